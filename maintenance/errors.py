"""Exception types raised by the notification engine."""


class MaintenanceError(Exception):
    """Base class for engine errors."""


class ConfigError(MaintenanceError):
    """Required configuration is missing or invalid. Aborts the whole run."""


class StoreError(MaintenanceError):
    """A read or write against the record store failed."""
