import argparse
import logging
from pathlib import Path
import sys
import yaml


def load_config(config_file=Path(__file__).parent.parent / "config.yaml"):
    """
    Load configuration options from a YAML file. A missing file means no config.
    """
    config_file = Path(config_file)
    if not config_file.exists():
        return None
    with config_file.open("r") as file:
        return yaml.safe_load(file) or {}


def parse_target(target, default_port=None):
    """
    Split "host:port" into (host, port). IPv6 hosts go in brackets:
    "[::1]:8080".
    """
    target = target.strip()
    if target.startswith("["):
        host, sep, rest = target[1:].partition("]")
        port = rest[1:] if rest.startswith(":") else ""
        if not sep:
            raise ValueError(f"Invalid target: {target}")
    else:
        host, _, port = target.rpartition(":")
        if not host:
            host, port = port, ""

    if not port:
        if default_port is None:
            raise ValueError(f"Target needs a port: {target}")
        port = default_port
    try:
        port = int(port)
    except ValueError:
        raise ValueError(f"Invalid port in target: {target}")
    if not host or not 0 <= port <= 65535:
        raise ValueError(f"Invalid target: {target}")
    return host, port


# Flags that default to on and are switched off with --no-<flag>
NEGATABLE = ("blank_passwords", "user_as_pass")


def config_to_args(config):
    """Turn config values into the equivalent command-line arguments."""
    simulated_args = []
    for key, value in config.items():
        if value is False and key in NEGATABLE:
            simulated_args.append(f"--no-{key.replace('_', '-')}")
            continue
        if value is None or value is False:
            continue
        if key == "targets":
            targets = [value] if isinstance(value, str) else value
            simulated_args.extend(str(target) for target in targets)
        elif value is True:
            simulated_args.append(f"--{key.replace('_', '-')}")
        else:
            simulated_args.extend([f"--{key.replace('_', '-')}", str(value)])
    return simulated_args


def build_parser():
    parser = argparse.ArgumentParser(
        description="Auth Kracker - Credential Brute Forcer",
    )

    parser.add_argument(
        "targets",
        nargs="*",
        help="Targets as host:port (for --proto hash, the hash files to check)."
    )
    parser.add_argument(
        "--proto",
        choices=["http", "hash"],
        default="http",
        help="Attempt function to use (default: http)."
    )

    # Credential sources
    parser.add_argument("--username", help="A specific username to authenticate as.")
    parser.add_argument("--password", help="A specific password to authenticate with.")
    parser.add_argument("--user-file", help="File containing usernames, one per line.")
    parser.add_argument("--pass-file", help="File containing passwords, one per line.")
    parser.add_argument(
        "--userpass-file",
        help="File containing users and passwords separated by space, one pair per line."
    )
    parser.add_argument("--smb-user", help="Protocol-specific username, overrides --username.")
    parser.add_argument("--smb-pass", help="Protocol-specific password, overrides --password.")

    # Guessing policy
    parser.add_argument(
        "--speed",
        type=int,
        choices=range(0, 6),
        default=5,
        help="How fast to bruteforce, from 0 to 5 (default: 5)."
    )
    parser.add_argument(
        "--blank-passwords",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Try blank passwords for all users (default: on)."
    )
    parser.add_argument(
        "--user-as-pass",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Try the username as the password for all users (default: on)."
    )
    parser.add_argument(
        "--stop-on-success",
        action="store_true",
        help="Stop guessing when a credential works for a host."
    )
    parser.add_argument(
        "--max-guesses",
        type=int,
        default=0,
        help="Maximum number of credentials to try per service (default: 0, unlimited)."
    )
    parser.add_argument(
        "--strip-usernames",
        action="store_true",
        help="Only try unique passwords, with an empty username."
    )
    parser.add_argument("--remove-user-file", action="store_true", help="Delete the user file when done.")
    parser.add_argument("--remove-pass-file", action="store_true", help="Delete the password file when done.")
    parser.add_argument(
        "--remove-userpass-file", action="store_true", help="Delete the user/pass file when done."
    )

    # Protocol settings
    parser.add_argument("--path", default="/", help="HTTP path to authenticate against (default: /).")
    parser.add_argument("--ssl", action="store_true", help="Use HTTPS.")
    parser.add_argument("--timeout", type=float, default=10, help="HTTP timeout in seconds (default: 10).")
    parser.add_argument("--threads", type=int, help="Number of targets brute-forced at once.")
    parser.add_argument("-q", "--quiet", action="store_true", help="Hide verbose-only messages.")
    return parser


def load_args(config=None, argv=None):
    """
    Parse command-line arguments, falling back to the config values when no
    arguments are given.
    """
    parser = build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)

    if config and not argv:
        argv = config_to_args(config)
        logging.debug(f"Simulated arguments: {argv}")

    args = parser.parse_args(argv)
    if not args.targets:
        parser.error("at least one target is required")
    if args.max_guesses < 0:
        parser.error("--max-guesses must be 0 or more")
    return args
