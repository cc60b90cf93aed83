"""Custom exceptions for cvecheq."""


class CveCheqError(Exception):
    """Base exception for all cvecheq errors."""


class ConfigError(CveCheqError):
    """Raised when the input document or the environment settings are unusable.

    This is the only error that aborts a run.
    """


class RegistryError(CveCheqError):
    """Base for lookup failures absorbed inside the registry client."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"{name}: {reason}")


class NetworkError(RegistryError):
    """Transport failure, non-success status, or empty response body."""


class ParseError(RegistryError):
    """Registry response body is not the expected JSON document."""


class CacheWriteError(CveCheqError):
    """Raised when the cache file cannot be written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot write cache file {path}: {reason}")
