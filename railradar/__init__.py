"""Rail Radar - shortest paths over a rail station graph."""

__version__ = "0.1.0"
