"""Settings and router inventory."""
from .settings import Settings

__all__ = ["Settings"]
