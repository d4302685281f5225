"""Custom exceptions for rubyscan."""


class RubyScanError(Exception):
    """Base exception for all scanner errors."""


class ManifestParseError(RubyScanError):
    """Raised when a gemspec cannot be read by the gemspec engine."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot parse manifest {path}: {reason}")


class UnsupportedExpressionError(RubyScanError):
    """Raised when a Ruby expression falls outside the literal grammar."""


class CompanionFileError(RubyScanError):
    """Raised when a Gemfile cannot be read."""


class LockfileError(RubyScanError):
    """Raised when a Gemfile.lock cannot be read."""


class SecondaryManifestError(RubyScanError):
    """Raised when metadata.gz cannot be decompressed or decoded."""


class RubySyntaxError(UnsupportedExpressionError):
    """Raised on malformed Ruby text (unterminated literal or bracket)."""
