from collections import namedtuple
import logging
from pathlib import Path
import re


# Result of reading a word source: the data, plus the reason when nothing could be read
WordSource = namedtuple("WordSource", ["words", "error"])

LINE_SPLIT = re.compile(r"\r?\n")
FIELD_SPLIT = re.compile(r"\s+")


def _read_text(path):
    """
    Read a whole word file. Returns (text, None) or (None, reason).
    """
    if not path:
        return None, "not set"
    path = Path(path)
    try:
        with path.open("r", encoding="latin-1") as file:
            return file.read(), None
    except OSError as e:
        return None, f"{path} - {e.strerror or e}"


def _split_lines(text, pattern):
    lines = pattern.split(text)
    # Trailing line terminators do not produce empty entries
    while lines and lines[-1] == "":
        lines.pop()
    return lines


def read_lines(path):
    """
    Load a newline separated word list (usernames or passwords).

    Never raises: an unset or unreadable path yields an empty list and the
    reason is kept on the result.
    """
    text, error = _read_text(path)
    if error:
        if path:
            logging.warning(f"Could not read word list: {error}")
        return WordSource([], error)

    return WordSource(_split_lines(text, LINE_SPLIT), None)


def read_pairs(path):
    """
    Load a "user password" file. The password is everything after the first
    run of whitespace; a line without whitespace gets an empty password.
    """
    text, error = _read_text(path)
    if error:
        if path:
            logging.warning(f"Could not read user/pass file: {error}")
        return WordSource([], error)

    pairs = []
    for line in _split_lines(text, re.compile(r"\n")):
        parts = FIELD_SPLIT.split(line, maxsplit=1)
        user = parts[0].strip()
        password = parts[1].strip() if len(parts) > 1 else ""
        pairs.append((user, password))
    return WordSource(pairs, None)


def remove_file(path):
    """Delete a word file, ignoring any failure."""
    if not path:
        return False
    try:
        Path(path).unlink()
        return True
    except OSError as e:
        logging.debug(f"Could not remove {path}: {e}")
        return False
