"""API route handlers."""
from . import connections, institutions, nordigen

__all__ = ["connections", "institutions", "nordigen"]
