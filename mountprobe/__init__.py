"""Mount point health checks for monitoring systems."""

__version__ = "1.0.0"
