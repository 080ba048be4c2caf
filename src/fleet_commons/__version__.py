"""Version information for fleet-commons."""

__version__ = "0.1.0"
