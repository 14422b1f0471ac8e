"""Exceptions raised by the alert engine."""


class FleetWatchError(Exception):
    """Base class for engine errors."""


class TriggerError(FleetWatchError):
    """The evaluation trigger received a request it cannot run."""


class SettingsNotFound(FleetWatchError):
    """The global alert settings row does not exist."""


class SetupError(FleetWatchError):
    """A setup transition was attempted from the wrong state."""
