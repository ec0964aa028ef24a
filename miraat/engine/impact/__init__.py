"""
Impact classification engine.

Computes damage radii for blast and earthquake events and classifies
buildings, hospitals and critical infrastructure against them:

1. radii: closed-form scaling laws for severe and mild radii
2. classifier: building classification with single-pass statistics
3. hospitals: hospital classification and bed-capacity aggregation
4. infrastructure: critical infrastructure inside the impact zone
"""

from miraat.engine.impact.classifier import ImpactClassifier
from miraat.engine.impact.hospitals import HospitalClassifier
from miraat.engine.impact.infrastructure import InfrastructureLocator
from miraat.engine.impact.radii import blast_radii, earthquake_radii, radii_for

__all__ = [
    "ImpactClassifier",
    "HospitalClassifier",
    "InfrastructureLocator",
    "blast_radii",
    "earthquake_radii",
    "radii_for",
]
