"""Exceptions raised by Rail Radar."""


class RailRadarError(Exception):
    """Base exception."""
    pass


class ConfigurationError(RailRadarError):
    """Graph data that the path engine cannot work with (e.g. negative weights)."""
    pass


class DataLoadError(RailRadarError):
    """Rail data file missing or unreadable."""
    pass
