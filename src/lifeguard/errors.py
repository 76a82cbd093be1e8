"""Exception types raised inside the analysis core.

None of these cross ``EmergencyAnalyzer.analyze``; they are converted into
failure outcomes there.
"""


class LifeguardError(Exception):
    """Base class for LifeGuard errors."""


class ServiceOverloadedError(LifeguardError):
    """The inference endpoint stayed overloaded for every retry attempt."""


class AnalysisCancelledError(LifeguardError):
    """The caller cancelled the analysis before it completed."""


class ResponseFormatError(LifeguardError):
    """The endpoint response could not be parsed or failed validation."""


class PreconditionError(LifeguardError):
    """A required input was missing or unusable."""
