"""Casualty, economic and mitigation calculators."""

from miraat.engine.calculators.casualty import CasualtyEstimator
from miraat.engine.calculators.economic import EconomicEstimator
from miraat.engine.calculators.mitigation import MitigationPlanner

__all__ = ["CasualtyEstimator", "EconomicEstimator", "MitigationPlanner"]
