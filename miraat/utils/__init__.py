"""Utility modules for logging and common helpers."""

from miraat.utils.logging import configure_logging, get_logger, scenario_context
from miraat.utils.rounding import round_half_up

__all__ = ["configure_logging", "get_logger", "round_half_up", "scenario_context"]
