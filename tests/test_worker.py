import unittest

from PySide6.QtTest import QTest

from tests.qt_app import ensure_app

from api.client import ApiError
from api.worker import ThreadedRunner, run_inline


def wait_until(predicate, timeout_ms=3000, step_ms=20):
    waited = 0
    while not predicate() and waited < timeout_ms:
        QTest.qWait(step_ms)
        waited += step_ms
    return predicate()


class TestThreadedRunner(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.app = ensure_app()

    def setUp(self):
        self.runner = ThreadedRunner()
        self.ok = []
        self.failed = []

    def test_result_is_delivered(self):
        self.runner.run(lambda: 42, self.ok.append, self.failed.append)
        self.assertTrue(wait_until(lambda: self.ok))
        self.assertEqual(self.ok, [42])
        self.assertEqual(self.failed, [])
        self.assertTrue(wait_until(lambda: self.runner.pending() == 0))

    def test_api_error_is_delivered_as_message(self):
        def fail():
            raise ApiError("Network error occurred")

        self.runner.run(fail, self.ok.append, self.failed.append)
        self.assertTrue(wait_until(lambda: self.failed))
        self.assertEqual(self.failed, ["Network error occurred"])
        self.assertEqual(self.ok, [])

    def test_unexpected_error_is_reported(self):
        def boom():
            raise KeyError("id")

        self.runner.run(boom, self.ok.append, self.failed.append)
        self.assertTrue(wait_until(lambda: self.failed))
        self.assertEqual(self.ok, [])


class TestRunInline(unittest.TestCase):

    def test_success_and_failure(self):
        ok, failed = [], []
        run_inline(lambda: "x", ok.append, failed.append)

        def fail():
            raise ApiError("mal")

        run_inline(fail, ok.append, failed.append)
        self.assertEqual(ok, ["x"])
        self.assertEqual(failed, ["mal"])


if __name__ == '__main__':
    unittest.main()
