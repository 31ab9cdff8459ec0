# api/worker.py
"""Ejecuta las llamadas al API fuera del hilo de la interfaz."""
from loguru import logger
from PySide6.QtCore import QObject, QThread, Signal

from api.client import ApiError


class RequestWorker(QObject):
    finished = Signal(object)
    failed = Signal(str)

    def __init__(self, fn):
        super().__init__()
        self._fn = fn

    def run(self):
        try:
            result = self._fn()
        except ApiError as e:
            self.failed.emit(e.message)
            return
        except Exception as e:
            logger.exception("Error inesperado en la petición")
            self.failed.emit(str(e) or e.__class__.__name__)
            return
        self.finished.emit(result)


class _Relay(QObject):
    """Vive en el hilo de la interfaz; las señales del worker llegan encoladas."""
    succeeded = Signal(object)
    errored = Signal(str)


class ThreadedRunner(QObject):
    """
    Un QThread por petición. Cada petición entrega exactamente uno de
    on_success(result) / on_failure(message), en el hilo de la interfaz.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self._jobs = set()

    def pending(self) -> int:
        return len(self._jobs)

    def run(self, fn, on_success, on_failure):
        thread = QThread()
        worker = RequestWorker(fn)
        worker.moveToThread(thread)
        relay = _Relay(self)
        job = (thread, worker, relay)

        relay.succeeded.connect(on_success)
        relay.errored.connect(on_failure)
        worker.finished.connect(relay.succeeded)
        worker.failed.connect(relay.errored)

        thread.started.connect(worker.run)
        worker.finished.connect(thread.quit)
        worker.failed.connect(thread.quit)

        def _cleanup():
            self._jobs.discard(job)
            worker.deleteLater()
            thread.deleteLater()
            relay.deleteLater()

        thread.finished.connect(_cleanup)
        self._jobs.add(job)
        thread.start()


def run_inline(fn, on_success, on_failure):
    """Variante síncrona (pruebas y scripts)."""
    try:
        result = fn()
    except ApiError as e:
        on_failure(e.message)
        return
    on_success(result)
