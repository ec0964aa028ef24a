"""API routers for all endpoints."""

from miraat.routers import buildings, hospitals, scenarios, system

__all__ = ["buildings", "hospitals", "scenarios", "system"]
