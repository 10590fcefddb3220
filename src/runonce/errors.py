"""Exception types raised by runonce."""

from __future__ import annotations


class RunOnceError(Exception):
    """Base class for runonce errors."""


class ManagementError(RunOnceError):
    """The VM-management service failed or answered with an error."""


class ConfigurationError(RunOnceError, ValueError):
    """A template or strategy is configured with values we cannot act on.

    Raised at construction time and never retried.
    """


class LaunchError(OSError):
    """A management failure surfaced while launching an agent connection."""
