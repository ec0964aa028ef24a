"""
Disaster impact engine.

This package contains the analytical core of MIR'AAT:

- Geospatial index: haversine radius queries over buildings and hospitals
- Vulnerability scoring: 0-1 composite susceptibility per building
- Impact classification: blast and earthquake radii, severity classes
- Calculators: casualty, economic loss and mitigation cost-benefit models
- Risk analysis: high-risk buildings and sector breakdown
- Pipeline: staged, cancellable scenario orchestration
- Reporting: Markdown report and mitigation comparison

Engine components are pure over an immutable GeoIndex and can be read
concurrently; only the pipeline touches persistence.
"""

__version__ = "1.0.0"

from miraat.engine.comparison import MitigationComparator
from miraat.engine.geo_index import GeoIndex, haversine_m
from miraat.engine.report_generator import ReportGenerator
from miraat.engine.vulnerability import VulnerabilityScorer

__all__ = [
    "GeoIndex",
    "MitigationComparator",
    "ReportGenerator",
    "VulnerabilityScorer",
    "haversine_m",
]
