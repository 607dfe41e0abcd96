"""Exceptions raised by the load generator."""


class ConfigurationError(ValueError):
    """
    Raised when the generator is misconfigured.

    Covers malformed weight tables, empty or unreadable credential pools
    and invalid environment values.  Always raised while building
    settings at startup, never from inside a running virtual user.
    """
