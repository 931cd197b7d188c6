"""
Unit tests for the brute-force iteration engine and the multi-target runner
"""
import os
import tempfile
import threading
import unittest
from pathlib import Path
from unittest import mock

from core.brute import AuthBrute, Signal, StopReason, Workers
from core.options import BruteOptions
from core.tracker import AttemptTracker


HOST, PORT = "10.0.0.1", 22


class Recorder:
    """Attempt function that records its calls and replies from a script."""

    def __init__(self, reply=Signal.CONTINUE):
        self.calls = []
        self.reply = reply

    def __call__(self, user, password):
        self.calls.append((user, password))
        if callable(self.reply):
            return self.reply(user, password)
        return self.reply


def make_brute(**kwargs):
    kwargs.setdefault("speed", 5)
    return AuthBrute(BruteOptions(**kwargs), proto="SSH")


def run(brute, credentials, attempt_fn, **kwargs):
    brute.initialize_run(credentials)
    return brute.iterate(HOST, PORT, credentials, attempt_fn, **kwargs)


CREDS = [("alice", "1"), ("alice", "2"), ("bob", "1"), ("bob", "2"), ("carol", "1")]


class TestSignals(unittest.TestCase):
    def test_every_signal_has_a_handler(self):
        brute = make_brute()
        self.assertEqual(set(brute._handlers), set(Signal))

    def test_coerce(self):
        self.assertIs(Signal.coerce(Signal.ABORT), Signal.ABORT)
        self.assertIs(Signal.coerce("next_user"), Signal.NEXT_USER)
        self.assertIs(Signal.coerce(":skip_user"), Signal.SKIP_USER)
        self.assertIs(Signal.coerce("bogus"), Signal.CONTINUE)
        self.assertIs(Signal.coerce(None), Signal.CONTINUE)
        self.assertIs(Signal.coerce(42), Signal.CONTINUE)


class TestIterate(unittest.TestCase):
    def test_tries_everything_in_order(self):
        attempt = Recorder()
        result = run(make_brute(), CREDS, attempt)
        self.assertEqual(attempt.calls, CREDS)
        self.assertEqual(result.attempts, 5)
        self.assertIs(result.stop_reason, StopReason.EXHAUSTED)

    def test_stop_on_success_ends_after_first_user(self):
        attempt = Recorder(Signal.NEXT_USER)
        result = run(make_brute(stop_on_success=True), CREDS, attempt)
        self.assertEqual(attempt.calls, [("alice", "1")])
        self.assertIs(result.stop_reason, StopReason.SKIPPED)
        self.assertEqual(result.successes, [("alice", "1")])

    def test_next_user_moves_on_to_next_username(self):
        attempt = Recorder(Signal.NEXT_USER)
        result = run(make_brute(), CREDS, attempt)
        self.assertEqual(attempt.calls, [("alice", "1"), ("bob", "1"), ("carol", "1")])
        self.assertEqual(len(result.successes), 3)

    def test_skip_user_is_not_a_success(self):
        attempt = Recorder(lambda u, p: Signal.SKIP_USER if u == "alice" else Signal.CONTINUE)
        result = run(make_brute(stop_on_success=True), CREDS, attempt)
        self.assertEqual(attempt.calls, [("alice", "1"), ("bob", "1"), ("bob", "2"), ("carol", "1")])
        self.assertEqual(result.successes, [])
        self.assertIs(result.stop_reason, StopReason.EXHAUSTED)

    def test_abort_stops_immediately(self):
        attempt = Recorder(lambda u, p: Signal.ABORT if u == "bob" else Signal.CONTINUE)
        result = run(make_brute(), CREDS, attempt)
        self.assertEqual(attempt.calls, [("alice", "1"), ("alice", "2"), ("bob", "1")])
        self.assertIs(result.stop_reason, StopReason.ABORTED)

    def test_cap_stops_after_two_attempts(self):
        credentials = [(f"user{i}", "pw") for i in range(10)]
        attempt = Recorder()
        brute = make_brute(max_guesses=2)
        with self.assertLogs("authkracker.brute", level="INFO") as logs:
            result = run(brute, credentials, attempt)
        self.assertEqual(len(attempt.calls), 2)
        self.assertIs(result.stop_reason, StopReason.CAP_REACHED)
        self.assertIn(
            "10.0.0.1:22 - SSH - [2/2] - Hit maximum guesses for this service.",
            logs.output[-1],
        )

    def test_cap_equal_to_set_size_never_stops_early(self):
        attempt = Recorder()
        result = run(make_brute(max_guesses=len(CREDS)), CREDS, attempt)
        self.assertEqual(len(attempt.calls), len(CREDS))
        self.assertIs(result.stop_reason, StopReason.EXHAUSTED)

    def test_connection_error_is_reported_and_skipped(self):
        attempt = Recorder(lambda u, p: Signal.CONNECTION_ERROR if p == "1" else Signal.CONTINUE)
        with self.assertLogs("authkracker.brute", level="ERROR") as logs:
            result = run(make_brute(), CREDS, attempt)
        self.assertEqual(len(attempt.calls), 5)
        self.assertIn("Connection error, skipping 'alice':'1'", logs.output[0])
        self.assertIs(result.stop_reason, StopReason.EXHAUSTED)

    def test_connection_error_is_quiet_without_verbose(self):
        attempt = Recorder(Signal.CONNECTION_ERROR)
        with mock.patch("logging.Logger.log") as log:
            run(make_brute(verbose=False), CREDS[:1], attempt)
        log.assert_not_called()

    def test_raising_attempt_counts_as_connection_error(self):
        def attempt(user, password):
            raise TimeoutError("timed out")

        with self.assertLogs("authkracker.brute", level="ERROR"):
            result = run(make_brute(), CREDS, attempt)
        self.assertEqual(result.attempts, 5)
        self.assertIs(result.stop_reason, StopReason.EXHAUSTED)

    def test_unknown_reply_is_ignored(self):
        attempt = Recorder("done")
        result = run(make_brute(), CREDS, attempt)
        self.assertEqual(result.attempts, 5)

    def test_blank_username_token(self):
        attempt = Recorder()
        run(make_brute(), [("<BLANK>", "x"), ("<blank>", "y")], attempt)
        self.assertEqual(attempt.calls, [("", "x"), ("", "y")])

    def test_immediate_repeat_is_skipped(self):
        attempt = Recorder()
        run(make_brute(), [("a", "1"), ("a", "1"), ("b", "1"), ("a", "1")], attempt)
        self.assertEqual(attempt.calls, [("a", "1"), ("b", "1")])

    def test_cancel_stops_before_next_candidate(self):
        cancel = threading.Event()

        def attempt(user, password):
            cancel.set()
            return Signal.CONTINUE

        result = run(make_brute(), CREDS, attempt, cancel=cancel)
        self.assertEqual(result.attempts, 1)
        self.assertIs(result.stop_reason, StopReason.CANCELLED)


class TestThrottling(unittest.TestCase):
    @mock.patch("core.brute.throttle_delay")
    def test_first_attempt_is_never_delayed(self, delay):
        brute = make_brute(speed=0)
        calls_before_attempt = []
        attempt = Recorder(lambda u, p: calls_before_attempt.append(delay.call_count))
        run(brute, CREDS[:3], attempt)
        self.assertEqual(calls_before_attempt, [0, 1, 2])
        delay.assert_called_with(0, None)

    @mock.patch("core.brute.throttle_delay")
    def test_noconn_bypasses_throttle(self, delay):
        run(make_brute(speed=0), CREDS, Recorder(), throttle=False)
        delay.assert_not_called()

    @mock.patch("core.brute.throttle_delay", side_effect=lambda speed, cancel: cancel.set())
    def test_cancel_during_pause_sends_nothing_more(self, delay):
        cancel = threading.Event()
        attempt = Recorder()
        result = run(make_brute(speed=2), CREDS[:3], attempt, cancel=cancel)
        self.assertEqual(attempt.calls, [CREDS[0]])
        self.assertEqual(result.attempts, 1)
        self.assertIs(result.stop_reason, StopReason.CANCELLED)

    def test_cancel_cuts_real_pause_short(self):
        cancel = threading.Event()
        timers = []

        def attempt(user, password):
            if not timers:
                timers.append(threading.Timer(0.2, cancel.set))
                timers[0].start()
            return Signal.CONTINUE

        result = run(make_brute(speed=2), CREDS[:3], attempt, cancel=cancel)
        timers[0].join()
        self.assertEqual(result.attempts, 1)
        self.assertIs(result.stop_reason, StopReason.CANCELLED)


class TestEachUserPass(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.users = Path(self.tmp.name) / "users.txt"
        self.users.write_text("root\nadmin\n")
        self.passwords = Path(self.tmp.name) / "pass.txt"
        self.passwords.write_text("toor\n")

    def test_builds_iterates_and_cleans_up(self):
        brute = make_brute(
            user_file=str(self.users), pass_file=str(self.passwords),
            blank_passwords=False, user_as_pass=False, remove_user_file=True,
        )
        attempt = Recorder()
        result = brute.each_user_pass(HOST, PORT, attempt)
        self.assertEqual(attempt.calls, [("root", "toor"), ("admin", "toor")])
        self.assertIs(result.stop_reason, StopReason.EXHAUSTED)
        self.assertFalse(self.users.exists())
        self.assertTrue(self.passwords.exists())

    def test_adjusting_cap_notice(self):
        brute = make_brute(user_file=str(self.users), max_guesses=50)
        with self.assertLogs("authkracker.brute", level="INFO") as logs:
            brute.each_user_pass(HOST, PORT, Recorder(), noconn=True)
        self.assertIn("Adjusting MaxGuessesPerService", logs.output[0])
        self.assertEqual(brute.tracker.cap, 4)


class TestWorkers(unittest.TestCase):
    def test_targets_share_one_tracker(self):
        tracker = AttemptTracker()
        brute = AuthBrute(
            BruteOptions(username="admin", pass_file=os.devnull, password="pw",
                         stop_on_success=True, blank_passwords=False, user_as_pass=False),
            tracker=tracker,
        )

        def factory(host, port):
            if host == "good":
                return Recorder(Signal.NEXT_USER)
            return Recorder(Signal.CONTINUE)

        results = Workers(brute, max_workers=2).run([("good", 80), ("bad", 80)], factory)
        by_host = {result.host: result for result in results}
        self.assertEqual(by_host["good"].successes, [("admin", "pw")])
        self.assertEqual(by_host["bad"].successes, [])
        self.assertTrue(tracker.is_service_skipped("good:80"))
        self.assertFalse(tracker.is_service_skipped("bad:80"))

    def make_workers(self):
        brute = AuthBrute(
            BruteOptions(username="admin", pass_file=os.devnull, password="pw",
                         blank_passwords=False, user_as_pass=False),
        )
        return Workers(brute, max_workers=2)

    def test_attempters_are_closed(self):
        attempters = []

        def factory(host, port):
            attempter = Recorder()
            attempter.close = mock.Mock()
            attempters.append(attempter)
            return attempter

        self.make_workers().run([("a", 80), ("b", 80)], factory)
        self.assertEqual(len(attempters), 2)
        for attempter in attempters:
            attempter.close.assert_called_once_with()

    def test_attempter_closed_when_it_raises(self):
        attempter = Recorder(mock.Mock(side_effect=RuntimeError("boom")))
        attempter.close = mock.Mock()
        results = self.make_workers().run([("a", 80)], lambda host, port: attempter)
        self.assertEqual(results[0].attempts, 1)
        attempter.close.assert_called_once_with()

    @mock.patch("core.brute.as_completed", side_effect=KeyboardInterrupt)
    def test_interrupt_keeps_finished_targets(self, _):
        workers = self.make_workers()
        with self.assertLogs(level="WARNING"):
            results = workers.run([("a", 80), ("b", 80)], lambda host, port: Recorder())
        self.assertTrue(workers.cancel.is_set())
        self.assertEqual(sorted(result.host for result in results), ["a", "b"])
        for result in results:
            self.assertIn(result.stop_reason, (StopReason.EXHAUSTED, StopReason.CANCELLED))


if __name__ == "__main__":
    unittest.main()
