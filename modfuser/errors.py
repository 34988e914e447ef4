from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised when a fusion run is misconfigured or has nothing to fuse."""


class FusionError(RuntimeError):
    """Raised when a fusion step fails and the run has to be aborted."""
