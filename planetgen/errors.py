from __future__ import annotations


class PlanetGenError(Exception):
    """Base class for errors raised by the planet generator."""


class SurfaceNotReadyError(PlanetGenError):
    """Raised when a point query arrives before any generation has finished."""


class GenerationCancelledError(PlanetGenError):
    """Raised when the result of a cancelled generation task is requested."""


class DrainageCycleError(PlanetGenError):
    """Raised when following flow targets does not reach a sink."""
