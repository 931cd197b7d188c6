class BruteOptions:
    """
    Settings consumed by the credential builder and the brute-force engine.

    Field names follow the command-line flags; `from_datastore` accepts the
    upper-case option names (USERNAME, USER_FILE, MaxGuessesPerService, ...).
    """

    # Protocol-specific fields that override USERNAME / PASSWORD, applied in order
    PROTO_USER_FIELDS = ("SMBUser", "FTPUSER")
    PROTO_PASS_FIELDS = ("SMBPass", "FTPPASS")

    DATASTORE_MAP = {
        "USERNAME": "username",
        "PASSWORD": "password",
        "USER_FILE": "user_file",
        "PASS_FILE": "pass_file",
        "USERPASS_FILE": "userpass_file",
        "BRUTEFORCE_SPEED": "speed",
        "VERBOSE": "verbose",
        "BLANK_PASSWORDS": "blank_passwords",
        "USER_AS_PASS": "user_as_pass",
        "STOP_ON_SUCCESS": "stop_on_success",
        "MaxGuessesPerService": "max_guesses",
        "REMOVE_USER_FILE": "remove_user_file",
        "REMOVE_PASS_FILE": "remove_pass_file",
        "REMOVE_USERPASS_FILE": "remove_userpass_file",
    }

    def __init__(
        self,
        username=None,
        password=None,
        user_file=None,
        pass_file=None,
        userpass_file=None,
        speed=5,
        verbose=True,
        blank_passwords=True,
        user_as_pass=True,
        stop_on_success=False,
        max_guesses=0,
        remove_user_file=False,
        remove_pass_file=False,
        remove_userpass_file=False,
        strip_usernames=False,
        proto_overrides=None,
    ):
        self.username = username
        self.password = password
        self.user_file = user_file
        self.pass_file = pass_file
        self.userpass_file = userpass_file
        self.speed = int(speed) if speed is not None else 5
        self.verbose = bool(verbose)
        self.blank_passwords = bool(blank_passwords)
        self.user_as_pass = bool(user_as_pass)
        self.stop_on_success = bool(stop_on_success)
        self.max_guesses = int(max_guesses or 0)
        self.remove_user_file = bool(remove_user_file)
        self.remove_pass_file = bool(remove_pass_file)
        self.remove_userpass_file = bool(remove_userpass_file)
        self.strip_usernames = bool(strip_usernames)
        self.proto_overrides = dict(proto_overrides or {})

        if self.max_guesses < 0:
            raise ValueError(f"Maximum guesses per service must be >= 0, got {self.max_guesses}")


    def __repr__(self):
        return (
            f"BruteOptions(username={self.username!r}, password={'***' if self.password else None}, "
            f"user_file={self.user_file!r}, pass_file={self.pass_file!r}, "
            f"userpass_file={self.userpass_file!r}, speed={self.speed}, "
            f"max_guesses={self.max_guesses})"
        )


    @classmethod
    def from_datastore(cls, datastore):
        """
        Build options from a mapping keyed by the upper-case option names.
        Unknown keys other than the protocol overrides are ignored.
        """
        kwargs = {}
        for key, attr in cls.DATASTORE_MAP.items():
            if key in datastore and datastore[key] is not None:
                kwargs[attr] = datastore[key]

        overrides = {}
        for key in cls.PROTO_USER_FIELDS + cls.PROTO_PASS_FIELDS:
            if datastore.get(key) is not None:
                overrides[key] = datastore[key]
        kwargs["proto_overrides"] = overrides
        kwargs["strip_usernames"] = datastore.get("strip_usernames", False)
        return cls(**kwargs)


    @classmethod
    def from_args(cls, args):
        """Build options from the argparse namespace produced by `load_args`."""
        overrides = {}
        if getattr(args, "smb_user", None):
            overrides["SMBUser"] = args.smb_user
        if getattr(args, "smb_pass", None):
            overrides["SMBPass"] = args.smb_pass

        return cls(
            username=args.username,
            password=args.password,
            user_file=args.user_file,
            pass_file=args.pass_file,
            userpass_file=args.userpass_file,
            speed=args.speed,
            verbose=not args.quiet,
            blank_passwords=args.blank_passwords,
            user_as_pass=args.user_as_pass,
            stop_on_success=args.stop_on_success,
            max_guesses=args.max_guesses,
            remove_user_file=args.remove_user_file,
            remove_pass_file=args.remove_pass_file,
            remove_userpass_file=args.remove_userpass_file,
            strip_usernames=args.strip_usernames,
            proto_overrides=overrides,
        )


    def effective_credentials(self):
        """
        Resolve USERNAME / PASSWORD after protocol-specific overrides.
        Non-empty override fields win, the last one listed taking precedence.
        """
        username, password = self.username, self.password
        for field in self.PROTO_USER_FIELDS:
            value = self.proto_overrides.get(field)
            if value:
                username = value
        for field in self.PROTO_PASS_FIELDS:
            value = self.proto_overrides.get(field)
            if value:
                password = value
        return username, password
