"""Multi-tenant organization backend with error classification and health reporting."""

__version__ = "0.1.0"
