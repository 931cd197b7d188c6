from datetime import datetime
import logging
from pathlib import Path
import re
import time
from tqdm import tqdm


PURPLE, GREEN, RED, YELLOW, LIGHT_YELLOW, DIM, RESET = (
    "\033[0;35m", "\033[92m", "\033[0;31m", "\033[0;33m", "\033[93m", "\033[2m", "\033[0m"
)

# Between INFO and WARNING, used for successful logins
GOOD = 25
logging.addLevelName(GOOD, "GOOD")

LEVEL_COLORS = {
    logging.DEBUG: DIM,
    logging.INFO: "",
    GOOD: GREEN,
    logging.WARNING: YELLOW,
    logging.ERROR: RED,
    logging.CRITICAL: RED,
}

LEVEL_PREFIXES = {
    logging.DEBUG: "[-]",
    logging.INFO: "[*]",
    GOOD: "[+]",
    logging.WARNING: "[!]",
    logging.ERROR: "[-]",
    logging.CRITICAL: "[-]",
}

# print_brute level -> logging level
BRUTE_LEVELS = {
    "status": logging.INFO,
    "good": GOOD,
    "error": logging.ERROR,
    "line": logging.INFO,
}

BRUTE_LOGGER = "authkracker.brute"


class ColorFormatter(logging.Formatter):
    """Prefix and colour records the way the console summary does."""

    def format(self, record):
        message = super().format(record)
        if getattr(record, "plain", False):
            return message
        color = LEVEL_COLORS.get(record.levelno, "")
        prefix = LEVEL_PREFIXES.get(record.levelno, "[*]")
        return f"{color}{prefix} {message}{RESET if color else ''}"


class TqdmLoggingHandler(logging.Handler):
    """Write log records through tqdm so they don't break the progress bar."""

    def emit(self, record):
        try:
            tqdm.write(self.format(record))
        except Exception:
            self.handleError(record)


def setup_logging(verbose=True):
    handler = TqdmLoggingHandler()
    handler.setFormatter(ColorFormatter("%(message)s"))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def proto_from_fullname(fullname):
    """
    Guess the protocol label from a module name such as "ssh_login" or
    "smb_auth". Returns None when the name doesn't follow that pattern.
    """
    if not fullname:
        return None
    match = re.match(r"^(.*)_(login|auth)", Path(str(fullname)).name)
    return match.group(1).upper() if match else None


def tried_over_total(progress):
    if not progress:
        return None
    current, total = int(progress[0]), int(progress[1])
    pad = len(str(total))
    return f"[{current:0{pad}d}/{total:0{pad}d}] - "


def build_brute_message(host, port, proto, msg, progress=None):
    """
    Standard brute-force message: "host:port - PROTO - [n/total] - msg".
    Absent parts are left out; without a host and port only the message is
    returned.
    """
    ip = str(host).strip() if host is not None else None
    port = str(port).strip() if port is not None else None
    if not (ip and port):
        return str(msg or "").strip()

    complete_message = f"{ip}:{port} - "
    if proto:
        complete_message += f"{str(proto).strip()} - "
    counter = tried_over_total(progress)
    if counter:
        complete_message += counter
    complete_message += str(msg or "").strip()
    return complete_message


class BruteMessenger:
    """
    Sends brute-force status messages to the logging system.

    Levels are status, good, error and line. A leading "v" (vstatus, vgood,
    verror, vline) marks the message as verbose-only: it is dropped unless
    verbose output is on. Unknown levels are printed as status.
    """

    def __init__(self, tracker=None, verbose=True, proto=None, logger=None):
        self.tracker = tracker
        self.verbose = verbose
        self.proto = proto
        self.logger = logger or logging.getLogger(BRUTE_LOGGER)


    def print_brute(self, level="status", msg="", host=None, port=None, proto=None):
        level = str(level or "status").strip()
        if level.startswith("v"):
            if not self.verbose:
                return None
            level = level[1:]

        proto = proto or self.proto
        progress = None
        if self.tracker is not None and host is not None and port is not None:
            progress = self.tracker.progress(f"{host}:{port}")

        complete_message = build_brute_message(host, port, proto, msg, progress)
        self.logger.log(
            BRUTE_LEVELS.get(level, logging.INFO),
            complete_message,
            extra={"plain": level == "line"},
        )
        return complete_message


    def vprint_status(self, msg=""):
        return self.print_brute("vstatus", msg)


    def vprint_error(self, msg=""):
        return self.print_brute("verror", msg)


    def vprint_good(self, msg=""):
        return self.print_brute("vgood", msg)


class Reporter:
    """Collects run statistics and prints the final summary."""

    def __init__(self, options, proto=None):
        self.options = options
        self.proto = proto
        self.start_time = time.time()
        self.summary_log = self.initialize_summary_log()


    def __str__(self):
        return (
            f"\n{PURPLE}Auth Kracker Configuration:{RESET}\n"
            f"  Protocol: {self.proto}\n"
            f"  Username: {self.options.username}\n"
            f"  User file: {self.options.user_file}\n"
            f"  Password file: {self.options.pass_file}\n"
            f"  User/pass file: {self.options.userpass_file}\n"
            f"  Bruteforce speed: {self.options.speed}\n"
            f"  Max guesses per service: {self.options.max_guesses or 'unlimited'}\n"
            f"  Stop on success: {self.options.stop_on_success}\n"
        )


    def initialize_summary_log(self):
        return {
            "proto": self.proto,
            "targets": 0,
            "credentials": 0,
            "total_count": 0,
            "stop_reasons": {},
            "pwned": [],
        }


    def record_result(self, target, result):
        self.summary_log["targets"] += 1
        self.summary_log["total_count"] += result.attempts
        reason = result.stop_reason.value
        self.summary_log["stop_reasons"][reason] = self.summary_log["stop_reasons"].get(reason, 0) + 1
        for user, password in result.successes:
            self.summary_log["pwned"].append((target, user, password))


    def final_summary(self, interrupted=False):
        if interrupted:
            self.summary_log["message"] = "Process interrupted by user."
        elif not self.summary_log["pwned"]:
            self.summary_log["message"] = "No valid credentials found."
        else:
            found = len(self.summary_log["pwned"])
            self.summary_log["message"] = f"{found} valid credential{'s' if found != 1 else ''} found."

        self.summary_log["elapsed_time"] = time.time() - self.start_time
        display_summary(self.summary_log)


def display_summary(summary_log, log_file=f"log_{datetime.now().strftime('%Y%m%d')}.txt"):
    """Display a clean summary of the run and append it to a log file."""
    log_dir = Path("logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / log_file

    reasons = ", ".join(f"{k}={v}" for k, v in sorted(summary_log["stop_reasons"].items())) or "-"
    lines = [
        f"{'Protocol:':<25}{summary_log['proto']}",
        f"{'Targets:':<25}{summary_log['targets']}",
        f"{'Credentials on list:':<25}{summary_log['credentials']}",
        f"{'Attempts made:':<25}{summary_log['total_count']}",
        f"{'Stop reasons:':<25}{reasons}",
        f"{'Elapsed time:':<25}{summary_log['elapsed_time']:.1f} seconds",
    ]
    found = [f"{target} - {user}:{password}" for target, user, password in summary_log["pwned"]]

    with log_path.open("a", encoding="utf-8") as log:
        width = 49
        log_message = f"Scan completed: {datetime.now().strftime('%Y-%m-%d %H:%M.%S')}"
        log.write("-" * width + "\n")
        log.write(f"{log_message.center(width)}\n")
        log.write("-" * width + "\n")
        for line in lines + found:
            log.write(f"{line}\n")
        log.write(f"{summary_log['message']}\n")
        log.write("-" * width + "\n\n")

    tqdm.write("\n" + "-" * 15 + " Summary " + "-" * 15 + "\n")
    for line in lines:
        tqdm.write(line)
    for line in found:
        tqdm.write(f"{GREEN}{line}{RESET}")
    tqdm.write(f"\n{PURPLE}{summary_log['message']}{RESET}")
