from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor, as_completed
from enum import Enum
import logging
import os
from threading import Event
from tqdm import tqdm
from core.credentials import build_credentials
from core.throttle import throttle as throttle_delay
from core.tracker import AttemptTracker, service_key, user_key
from utils.file_io import remove_file
from utils.reporter import BruteMessenger, PURPLE, RESET


# Explicitly blank (zero-byte) username
BLANK_USERNAME = "<blank>"


class Signal(Enum):
    """What an attempt function tells the engine after trying one credential."""
    CONTINUE = "continue"
    ABORT = "abort"                          # give up on this service
    NEXT_USER = "next_user"                  # success, stop guessing this user
    SKIP_USER = "skip_user"                  # stop guessing this user, not a success
    CONNECTION_ERROR = "connection_error"    # transport failure, move on

    @classmethod
    def coerce(cls, value):
        """Map an attempt function's return value to a Signal; anything unknown is CONTINUE."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lstrip(":").lower())
            except ValueError:
                return cls.CONTINUE
        return cls.CONTINUE


class StopReason(Enum):
    EXHAUSTED = "exhausted"
    ABORTED = "aborted"
    SKIPPED = "skipped"
    CAP_REACHED = "cap_reached"
    CANCELLED = "cancelled"


RunResult = namedtuple("RunResult", ["host", "port", "attempts", "stop_reason", "successes"])


def normalize_username(username):
    return "" if username.lower() == BLANK_USERNAME else username


class AuthBrute:
    """
    Drives a list of credentials through a caller supplied attempt function
    for one service at a time, honouring the signals it returns.

    The tracker is shared: several services may be iterated at once from
    different threads, all against the same AttemptTracker.
    """

    def __init__(self, options, tracker=None, messenger=None, proto=None):
        self.options = options
        self.tracker = tracker or AttemptTracker()
        self.messenger = messenger or BruteMessenger(
            tracker=self.tracker, verbose=options.verbose, proto=proto
        )
        self._handlers = {
            Signal.CONTINUE: self._on_continue,
            Signal.ABORT: self._on_abort,
            Signal.NEXT_USER: self._on_next_user,
            Signal.SKIP_USER: self._on_skip_user,
            Signal.CONNECTION_ERROR: self._on_connection_error,
        }


    def build_credentials(self):
        return build_credentials(self.options)


    def initialize_run(self, credentials, host=None, port=None):
        """Reset the shared tracker and work out the per-service cap."""
        clamped = self.tracker.reset(len(credentials), self.options.max_guesses)
        if clamped:
            self.messenger.print_brute(
                "vstatus",
                "Adjusting MaxGuessesPerService to the actual total number of credentials",
                host=host, port=port,
            )
        return self.tracker.cap


    def each_user_pass(self, host, port, attempt_fn, noconn=False, cancel=None):
        """
        Build the credential list and try it against one service.

        Set `noconn` when the attempt function makes no network connection
        (plain enumeration); the bruteforce speed is then ignored.
        """
        credentials = self.build_credentials()
        self.initialize_run(credentials, host, port)
        try:
            return self.iterate(host, port, credentials, attempt_fn, throttle=not noconn, cancel=cancel)
        finally:
            self.cleanup_files()


    def iterate(self, host, port, credentials, attempt_fn, throttle=True, cancel=None):
        """
        Try each (user, password) in order against host:port and return a
        RunResult. Never raises for anything the attempt function does.
        """
        this_service = service_key(host, port)
        attempts = 0
        successes = []
        stop_reason = StopReason.EXHAUSTED

        for user, password in credentials:
            user = normalize_username(user)
            if self.tracker.is_service_skipped(this_service):
                stop_reason = StopReason.SKIPPED
                break
            if cancel is not None and cancel.is_set():
                stop_reason = StopReason.CANCELLED
                break

            fq_user = user_key(host, port, user)

            if throttle and self.tracker.has_tried():
                throttle_delay(self.options.speed, cancel)
                if cancel is not None and cancel.is_set():
                    stop_reason = StopReason.CANCELLED
                    break

            if self.tracker.is_user_done(this_service, fq_user):
                continue
            if self.tracker.was_tried(fq_user, password):
                continue

            signal = self._attempt(attempt_fn, user, password, host, port)
            attempts += 1

            outcome = self._handlers[signal](this_service, fq_user, user, password, host, port)
            if outcome is StopReason.ABORTED:
                stop_reason = outcome
                break
            if signal is Signal.NEXT_USER:
                successes.append((user, password))

            self.tracker.record_tried(fq_user, password)
            _, cap_reached = self.tracker.increment_and_check_cap(this_service)
            if cap_reached and self.tracker.cap < len(credentials):
                self.messenger.print_brute(
                    "vstatus", "Hit maximum guesses for this service.", host=host, port=port
                )
                stop_reason = StopReason.CAP_REACHED
                break

        return RunResult(host, port, attempts, stop_reason, successes)


    def _attempt(self, attempt_fn, user, password, host, port):
        try:
            return Signal.coerce(attempt_fn(user, password))
        except Exception as e:
            logging.debug(f"Attempt raised {type(e).__name__}: {e}")
            return Signal.CONNECTION_ERROR


    def _on_continue(self, this_service, fq_user, user, password, host, port):
        return None


    def _on_abort(self, this_service, fq_user, user, password, host, port):
        return StopReason.ABORTED


    def _on_next_user(self, this_service, fq_user, user, password, host, port):
        self.tracker.mark_done(fq_user, password)
        if self.options.stop_on_success:
            self.tracker.mark_service_skip_all(this_service)
        return None


    def _on_skip_user(self, this_service, fq_user, user, password, host, port):
        self.tracker.mark_done(fq_user, password)
        return None


    def _on_connection_error(self, this_service, fq_user, user, password, host, port):
        self.messenger.print_brute(
            "verror", f"Connection error, skipping '{user}':'{password}'", host=host, port=port
        )
        return None


    def cleanup_files(self):
        """Delete the word files whose removal was requested; failures are ignored."""
        removals = (
            (self.options.userpass_file, self.options.remove_userpass_file),
            (self.options.user_file, self.options.remove_user_file),
            (self.options.pass_file, self.options.remove_pass_file),
        )
        for path, requested in removals:
            if path and requested:
                remove_file(path)


class Workers:
    """Brute-forces many targets at once, one thread per target, one shared tracker."""

    def __init__(self, brute, reporter=None, max_workers=None):
        self.brute = brute
        self.reporter = reporter
        self.max_workers = max_workers or min(32, (os.cpu_count() or 1) * 4)
        self.cancel = Event()


    def run(self, targets, attempter_factory, noconn=False):
        """
        Try the credential list against every (host, port) in `targets`.
        `attempter_factory(host, port)` returns the attempt function for a target.
        """
        if self.reporter:
            tqdm.write(str(self.reporter))

        credentials = self.brute.build_credentials()
        self.brute.initialize_run(credentials)
        if self.reporter:
            self.reporter.summary_log["credentials"] = len(credentials)

        results = []
        collected = set()
        futures = {}
        interrupted = False
        try:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, max(len(targets), 1))) as executor:
                futures = {
                    executor.submit(
                        self.run_target,
                        host,
                        port,
                        credentials,
                        attempter_factory(host, port),
                        not noconn,
                        self.cancel,
                    ): (host, port)
                    for host, port in targets
                }

                with tqdm(desc=f"{PURPLE}Targets{RESET}",
                          total=len(futures),
                          mininterval=0.1, smoothing=0.1,
                          ncols=100, leave=True, ascii=True) as progress_bar:
                    try:
                        for future in as_completed(futures):
                            collected.add(future)
                            results.append(self.process_task_result(future, futures[future]))
                            progress_bar.update(1)
                    except KeyboardInterrupt:
                        interrupted = True
                        self.cancel.set()
                        logging.warning("Interrupted, waiting for running attempts to finish.")
        finally:
            self.brute.cleanup_files()

        # Targets that finished while the pool was shutting down after an interrupt
        for future, target in futures.items():
            if future not in collected and future.done():
                results.append(self.process_task_result(future, target))

        if self.reporter:
            self.reporter.final_summary(interrupted=interrupted)
        return [result for result in results if result is not None]


    def run_target(self, host, port, credentials, attempt_fn, throttle, cancel):
        """Iterate one target, then release whatever the attempt function holds open."""
        try:
            return self.brute.iterate(host, port, credentials, attempt_fn, throttle, cancel)
        finally:
            close = getattr(attempt_fn, "close", None)
            if callable(close):
                close()


    def process_task_result(self, future, target):
        """Collect one target's result; a failed worker is logged, not fatal."""
        try:
            result = future.result()
        except Exception as e:
            logging.error(f"Error brute-forcing {target[0]}:{target[1]}: {e}")
            return None

        if self.reporter:
            self.reporter.record_result(f"{result.host}:{result.port}", result)
        return result
