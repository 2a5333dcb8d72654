"""Exception types raised by the stabilizer entanglement tools."""

from __future__ import annotations


class StabilizerError(ValueError):
    """Base class for contract violations on stabilizer inputs."""


class PreconditionViolation(StabilizerError):
    """Tableau is not full rank, not commuting, not Hermitian or not canonical."""


class InvalidSubsystem(StabilizerError):
    """Subsystem indices are out of range or cannot form the required shape."""


class ConfigurationError(StabilizerError):
    """Malformed construction parameters, rejected before any computation."""


__all__ = [
    "StabilizerError",
    "PreconditionViolation",
    "InvalidSubsystem",
    "ConfigurationError",
]
