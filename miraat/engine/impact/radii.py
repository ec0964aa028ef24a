"""
Damage radii scaling laws.

Blast (Hopkinson-Cranz cube-root scaling, metres):
    severe = 5 * W^(1/3)   (~5 psi overpressure, structural collapse)
    mild   = 20 * W^(1/3)  (~1 psi overpressure, heavy damage)

Earthquake (magnitude scaling, kilometres):
    severe = 10^(0.5*M - 2.5)
    mild   = 10^(0.5*M - 1.8)
"""

from miraat.models.impact import BlastDefinition, DisasterRadii, EarthquakeDefinition

SEVERE_BLAST_COEFFICIENT = 5.0
MILD_BLAST_COEFFICIENT = 20.0
SEVERE_QUAKE_OFFSET = 2.5
MILD_QUAKE_OFFSET = 1.8


def blast_radii(yield_kg: float) -> DisasterRadii:
    cube_root = yield_kg ** (1.0 / 3.0)
    return DisasterRadii(
        severe_m=SEVERE_BLAST_COEFFICIENT * cube_root,
        mild_m=MILD_BLAST_COEFFICIENT * cube_root,
    )


def earthquake_radii(magnitude: float) -> DisasterRadii:
    severe_km = 10 ** (0.5 * magnitude - SEVERE_QUAKE_OFFSET)
    mild_km = 10 ** (0.5 * magnitude - MILD_QUAKE_OFFSET)
    return DisasterRadii(severe_m=severe_km * 1000.0, mild_m=mild_km * 1000.0)


def radii_for(disaster) -> DisasterRadii:
    """Radii for a BlastDefinition or EarthquakeDefinition."""
    if isinstance(disaster, BlastDefinition):
        return blast_radii(disaster.yield_kg)
    if isinstance(disaster, EarthquakeDefinition):
        return earthquake_radii(disaster.magnitude)
    raise TypeError(f"Unsupported disaster definition: {type(disaster).__name__}")
