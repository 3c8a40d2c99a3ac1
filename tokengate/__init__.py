"""tokengate - bearer token authentication and authorization gateway."""

__version__ = "0.1.0"
