"""
Dataset adapters.

Transforms the raw building GeoJSON and hospital JSON files into inventory
records, skipping malformed entries and reporting what was rejected.

Usage:
    from miraat.adapters import load_index

    index = load_index(settings)
"""

from .dataset_loader import (
    DatasetLoadReport,
    load_buildings,
    load_hospitals,
    load_index,
    parse_building,
    parse_hospital,
)

__all__ = [
    "DatasetLoadReport",
    "load_buildings",
    "load_hospitals",
    "load_index",
    "parse_building",
    "parse_hospital",
]
