"""Console application managing orders and their shared shipments."""

__version__ = "1.0.0"
