"""Site inventory sync for managed hosting providers."""

__version__ = "0.1.0"
