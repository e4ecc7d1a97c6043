"""Exception types raised at the remote and configuration boundaries.

The sync controller catches these at the operation boundary and turns them
into its single user-facing error message; nothing here escapes a session.
"""

from __future__ import annotations


class PotluckError(RuntimeError):
    """Base class for failures surfaced to the user as a message."""


class ConfigError(PotluckError):
    """A required setting is missing or malformed."""


class FetchError(PotluckError):
    """Reading the published CSV failed (network error or non-2xx status)."""


class WriteError(PotluckError):
    """The write endpoint did not acknowledge the entry with ``ok``."""


class SubmissionValidationError(PotluckError, ValueError):
    """A submission is missing a required field; no request was sent."""


__all__ = [
    "PotluckError",
    "ConfigError",
    "FetchError",
    "WriteError",
    "SubmissionValidationError",
]
