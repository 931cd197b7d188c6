import hashlib
import hmac
import logging
from pathlib import Path
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
import bcrypt
import requests
from requests.auth import HTTPBasicAuth
from core.brute import Signal
from utils.detector import HashTypeDetector
from utils.reporter import GOOD


class HashFileAttempter:
    """
    Offline attempt function: checks a candidate against the stored hash for
    that user in a "user:hash" file. Makes no network connection, so run it
    with `noconn`.
    """
    name = "hash_login"

    def __init__(self, hash_file):
        self.hash_file = Path(hash_file)
        self.hashes = self.load_hashes(self.hash_file)
        self.password_hasher = PasswordHasher()


    @staticmethod
    def load_hashes(hash_file):
        """
        Parse "user:hash" lines. Raises ValueError on a malformed line or an
        unsupported hash type.
        """
        hashes = {}
        try:
            with hash_file.open("r", encoding="utf-8") as file:
                for number, line in enumerate(file, start=1):
                    line = line.strip()
                    if not line or line.startswith("#"):
                        continue
                    user, sep, digest = line.partition(":")
                    if not sep or not digest:
                        raise ValueError(f"{hash_file}:{number} - expected 'user:hash'")
                    hashes[user] = (HashTypeDetector.detect(digest), digest)
        except FileNotFoundError:
            raise ValueError(f"{hash_file} - File not found.")
        logging.debug(f"Loaded {len(hashes)} hashes from {hash_file}")
        return hashes


    def verify(self, hash_type, digest, password):
        candidate = password.encode("utf-8")
        if hash_type == "bcrypt":
            try:
                return bcrypt.checkpw(candidate, digest.encode("utf-8"))
            except ValueError:
                return False
        if hash_type == "argon":
            try:
                return self.password_hasher.verify(digest, candidate)
            except (VerificationError, InvalidHashError):
                return False

        # "$md5$<hex>", "$sha256$<hex>", "$sha512$<hex>"
        target = digest.split("$", 2)[2].lower()
        computed = hashlib.new(hash_type, candidate).hexdigest()
        return hmac.compare_digest(computed, target)


    def __call__(self, user, password):
        entry = self.hashes.get(user)
        if entry is None:
            return Signal.SKIP_USER
        hash_type, digest = entry
        if self.verify(hash_type, digest, password):
            logging.log(GOOD, f"{self.hash_file.name} - Success: '{user}':'{password}'")
            return Signal.NEXT_USER
        return Signal.CONTINUE


class HttpBasicAttempter:
    """
    Attempt function for HTTP Basic authentication. Any 2xx response is a
    valid login; timeouts and connection failures come back as
    CONNECTION_ERROR.
    """
    name = "http_login"

    def __init__(self, host, port, path="/", ssl=False, timeout=10, session=None):
        scheme = "https" if ssl else "http"
        self.url = f"{scheme}://{host}:{port}/{path.lstrip('/')}"
        self.timeout = timeout
        # A caller supplied session stays open; one made here is closed by close()
        self.owns_session = session is None
        self.session = session or requests.Session()


    def close(self):
        if self.owns_session:
            self.session.close()


    def __call__(self, user, password):
        try:
            response = self.session.get(
                self.url,
                auth=HTTPBasicAuth(user, password),
                timeout=self.timeout,
                allow_redirects=False,
            )
        except requests.exceptions.RequestException as e:
            logging.debug(f"{self.url} - {type(e).__name__}: {e}")
            return Signal.CONNECTION_ERROR

        if 200 <= response.status_code < 300:
            logging.log(GOOD, f"{self.url} - Success: '{user}':'{password}'")
            return Signal.NEXT_USER
        return Signal.CONTINUE


ATTEMPTERS = {
    "hash": HashFileAttempter,
    "http": HttpBasicAttempter,
}
