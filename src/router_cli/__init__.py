"""router-cli - safe configuration deployment for Junos routers."""

__version__ = "0.1.0"
