import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QCoreApplication, QEvent
from PySide6.QtWidgets import QApplication


def ensure_app():
    """Devuelve la QApplication compartida por las pruebas (sin pantalla)."""
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app


def dispose(obj):
    """Deja que Qt destruya `obj` (y sus hijos) en lugar del recolector de Python."""
    obj.deleteLater()
    QCoreApplication.sendPostedEvents(None, QEvent.Type.DeferredDelete)
