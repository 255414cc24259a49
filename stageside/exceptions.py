"""Custom exceptions for Stageside."""


class StagesideError(Exception):
    """Base class for errors raised by Stageside."""

    pass


class InvalidConfigurationError(StagesideError):
    """Raised when a scheduling configuration violates its contract."""

    pass


class InputLoadError(StagesideError):
    """Raised when an input file cannot be read or decoded."""

    pass


class DuplicateMemberError(StagesideError):
    """Raised when two group members share a member id."""

    pass
