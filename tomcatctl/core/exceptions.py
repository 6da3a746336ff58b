"""
Exception Types.

Errors raised by tomcatctl itself. Transport failures are not wrapped:
they surface as httpx.HTTPError exactly as httpx reports them.
"""


class TomcatctlError(Exception):
    """Base class for all tomcatctl errors."""


class ConfigurationError(TomcatctlError):
    """Required configuration is missing or invalid."""


class ProcessControlError(TomcatctlError):
    """A local process-control utility could not be run."""


class ShellSetupError(TomcatctlError):
    """The interactive shell could not prepare its local resources."""
