"""
Business logic layer.
Services orchestrate the engine, persistence and notifications.
"""

from .scenario_service import ScenarioService

__all__ = ["ScenarioService"]
