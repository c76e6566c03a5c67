# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Custom exception hierarchy for kvstore."""


class KVStoreError(Exception):
    """Base exception for all kvstore errors."""


class ConfigurationError(KVStoreError):
    """Invalid or missing configuration."""


class ValidationError(KVStoreError):
    """A key or value was rejected before reaching the backend."""


class InvalidKeyError(ValidationError):
    """Key is empty, not a string, or longer than the configured maximum."""


class InvalidValueError(ValidationError):
    """Value cannot be represented as JSON."""


class ValueTooLargeError(ValidationError):
    """Serialized value exceeds the configured maximum size."""


class PersistenceError(KVStoreError):
    """Disk or network I/O failed while reading or writing the store."""


class BackendUnavailableError(PersistenceError):
    """The remote backend cannot be reached."""


class BackupError(KVStoreError):
    """A snapshot could not be written or read back."""


class InvalidUsernameError(ValidationError):
    """Username is missing where required or contains reserved characters."""
