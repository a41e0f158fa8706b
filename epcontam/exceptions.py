"""Exception classes for the airflow network translator."""

from pathlib import Path


class ContamBaseException(Exception):
    """A base exception for the epcontam package."""

    def __init__(self, message: str):
        """Initialize the exception with a message."""
        self.message = message
        super().__init__(self.message)


class FatalTranslationError(ContamBaseException):
    """A translation problem that aborts the run."""


class NoLevelsFound(FatalTranslationError):
    """Raised when the building model has no stories to turn into levels."""

    def __init__(self):
        """Initialize the exception with a message."""
        super().__init__(
            "Failed to find building stories in model, translation aborted"
        )


class ZoneLevelUnresolved(FatalTranslationError):
    """Raised when a thermal zone cannot be placed on any level."""

    def __init__(self, zone_name: str):
        """Initialize the exception with a message.

        Args:
            zone_name (str): The name of the thermal zone.
        """
        self.zone_name = zone_name
        super().__init__(
            f"Unable to set level for zone '{zone_name}', translation aborted"
        )


class AdjacentSurfaceUnresolved(FatalTranslationError):
    """Raised when the other side of an interior surface cannot be resolved to a zone."""

    def __init__(self, surface_name: str, reason: str):
        """Initialize the exception with a message.

        Args:
            surface_name (str): The name of the surface that failed to resolve.
            reason (str): What part of the surface -> space -> zone chain is missing.
        """
        self.surface_name = surface_name
        self.reason = reason
        super().__init__(f"{reason} '{surface_name}'")


class TemplateLoadError(ContamBaseException):
    """Raised when the baseline network template cannot be loaded."""

    def __init__(self, path: Path | str, reason: str):
        """Initialize the exception with a message.

        Args:
            path (Path | str): The template path.
            reason (str): Why loading failed.
        """
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load network template {path}: {reason}")


class MultipleLeakageModes(ValueError):
    """Raised when more than one leakage specification is passed to a translation."""

    def __init__(self, modes: list[str]):
        """Initialize the error.

        Args:
            modes (list[str]): The leakage modes that were supplied together.
        """
        self.modes = modes
        super().__init__(
            f"Only one leakage specification may be used per translation, got: {', '.join(modes)}"
        )


class InvalidLeakageRate(ValueError):
    """Raised when a leakage rate cannot be fitted with a power-law element."""

    def __init__(self, flow: float):
        """Initialize the error.

        Args:
            flow (float): The rejected leakage rate [m3/h].
        """
        self.flow = flow
        super().__init__(f"Leakage rate must be positive and finite, got {flow}")
