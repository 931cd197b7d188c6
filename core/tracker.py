from threading import Lock


def service_key(host, port):
    return f"{host}:{port}"


def user_key(host, port, username):
    return f"{host}:{port}:{username}"


class AttemptTracker:
    """
    Attempt bookkeeping shared by every service brute-forced in one run.

    One instance is handed to all worker threads. Each key gets its own lock,
    so updates to the same user or service are serialized while different
    keys never wait on each other.
    """

    def __init__(self):
        self._registry_lock = Lock()
        self._locks = {}
        self.tried = {}         # user key -> last password attempted
        self.skipped = {}       # user key -> password that finished the user
        self.skip_all = {}      # service key -> stop on new users
        self.attempts = {}      # service key -> attempts counter
        self.cap = None         # None until a run starts


    def _lock_for(self, key):
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = Lock()
            return lock


    def reset(self, set_size, configured_cap=0):
        """
        Clear all state and compute the per-service cap for a new run.
        Returns True when the configured cap had to be lowered to the set size.
        """
        with self._registry_lock:
            self._locks.clear()
            self.tried = {}
            self.skipped = {}
            self.skip_all = {}
            self.attempts = {}

            configured_cap = int(configured_cap or 0)
            if configured_cap == 0:
                self.cap = set_size
                return False
            if configured_cap >= set_size:
                self.cap = set_size
                return True
            self.cap = configured_cap
            return False


    def is_user_done(self, service_key, user_key):
        return user_key in self.skipped or bool(self.skip_all.get(service_key))


    def mark_done(self, user_key, password):
        with self._lock_for(user_key):
            self.skipped[user_key] = password


    def mark_service_skip_all(self, service_key):
        with self._lock_for(service_key):
            self.skip_all[service_key] = True


    def is_service_skipped(self, service_key):
        return bool(self.skip_all.get(service_key))


    def was_tried(self, user_key, password):
        with self._lock_for(user_key):
            return user_key in self.tried and self.tried[user_key] == password


    def record_tried(self, user_key, password):
        with self._lock_for(user_key):
            self.tried[user_key] = password


    def has_tried(self):
        return bool(self.tried)


    def increment_and_check_cap(self, service_key):
        """
        Count one attempt against a service. The counter starts at 1 and stops
        moving once it reaches the cap; returns (count, cap_reached).
        """
        with self._lock_for(service_key):
            count = self.attempts.get(service_key) or 1
            if self.cap is not None and count >= self.cap:
                self.attempts[service_key] = count
                return count, True
            count += 1
            self.attempts[service_key] = count
            return count, False


    def progress(self, service_key):
        """(current, total) for status messages, or None outside a run."""
        if self.cap is None:
            return None
        return self.attempts.get(service_key) or 1, self.cap


    def unset_attempt_counters(self, host, port):
        with self._lock_for(service_key(host, port)):
            self.attempts.pop(service_key(host, port), None)
        self.cap = None
