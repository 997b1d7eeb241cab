from __future__ import annotations

import sys
import unittest

from termedit.jobs import JobResult, JobRunner
from termedit.runtime.channels import Multiplexer


class _SuspendRecorder:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def temp_fini(self) -> None:
        self.calls.append("temp_fini")

    def temp_start(self) -> None:
        self.calls.append("temp_start")


class JobRunnerTests(unittest.TestCase):
    def setUp(self) -> None:
        mux = Multiplexer()
        self.jobs = mux.channel("jobs", 4)
        self.close_terms = mux.channel("close_terms", 1)
        self.runner = JobRunner(self.jobs, self.close_terms)

    def test_completion_is_posted_with_callback_and_args(self) -> None:
        def callback(_output: str, _args: list[str]) -> None:
            pass

        job_id = self.runner.run_background([sys.executable, "-c", "print('hi')"], ["greet"], callback)

        result = self.jobs.get(timeout=10.0)
        self.assertEqual(job_id, 1)
        self.assertIsInstance(result, JobResult)
        self.assertEqual(result.output.strip(), "hi")
        self.assertEqual(result.args, ["greet"])
        self.assertIs(result.callback, callback)

    def test_missing_program_reports_error_as_output(self) -> None:
        self.runner.run_background(["termedit-no-such-program"], [], lambda *_args: None)
        result = self.jobs.get(timeout=10.0)
        self.assertTrue(result.output.startswith("termedit-no-such-program:"))

    def test_job_ids_increase(self) -> None:
        first = self.runner.run_background([sys.executable, "-c", "pass"], [], lambda *_args: None)
        second = self.runner.run_background([sys.executable, "-c", "pass"], [], lambda *_args: None)
        self.assertEqual(second, first + 1)
        self.jobs.get(timeout=10.0)
        self.jobs.get(timeout=10.0)

    def test_undecodable_output_still_posts_a_result(self) -> None:
        script = "import sys; sys.stdout.buffer.write(b'\\xff ok\\n')"
        self.runner.run_background([sys.executable, "-c", script], ["dump"], lambda *_args: None)

        result = self.jobs.get(timeout=10.0)

        self.assertEqual(result.output, "\ufffd ok\n")
        self.assertEqual(result.args, ["dump"])

    def test_interactive_command_suspends_screen_and_reports_close(self) -> None:
        screen = _SuspendRecorder()

        status = self.runner.run_interactive(screen, [sys.executable, "-c", "raise SystemExit(3)"])

        self.assertEqual(status, 3)
        self.assertEqual(screen.calls, ["temp_fini", "temp_start"])
        self.assertEqual(len(self.close_terms), 1)

    def test_interactive_start_failure_still_restores_screen(self) -> None:
        screen = _SuspendRecorder()

        with self.assertRaises(OSError):
            self.runner.run_interactive(screen, ["termedit-no-such-program"])

        self.assertEqual(screen.calls, ["temp_fini", "temp_start"])
        self.assertEqual(len(self.close_terms), 1)

    def test_terminal_close_notifications_coalesce(self) -> None:
        self.runner.notify_terminal_closed()
        self.runner.notify_terminal_closed()
        self.assertEqual(len(self.close_terms), 1)


if __name__ == "__main__":
    unittest.main()
