"""Exceptions raised by stockrec."""


class StockRecError(Exception):
    """Base class for all stockrec errors."""


class ConfigError(StockRecError):
    """Engine configuration is inconsistent (e.g. weights do not sum to 1.0)."""


class NotAuthenticatedError(StockRecError):
    """A signal was persisted without an authenticated user."""
