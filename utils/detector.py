class HashTypeDetector:
    HASH_MAP = {
        "argon2id": "argon",
        "argon2i": "argon",
        "2b": "bcrypt",
        "2a": "bcrypt",
        "2y": "bcrypt",
        "md5": "md5",
        "sha256": "sha256",
        "sha512": "sha512",
    }

    @staticmethod
    def detect(hash_digest: str) -> str:
        """
        Detects the hash type from a stored hash such as "$2b$12$..." or
        "$sha256$<hex>".
        Args:
            hash_digest: The stored hash string.

        Returns:
            str: The detected hash type.
        """
        try:
            type_check = hash_digest.split("$", 2)[1]
            return HashTypeDetector.HASH_MAP[type_check]
        except (KeyError, IndexError, AttributeError):
            raise ValueError(
                f"Unknown or malformed hash format. Available types: {', '.join(HashTypeDetector.HASH_MAP.keys())}"
            )
