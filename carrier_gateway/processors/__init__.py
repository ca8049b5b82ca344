"""
Policy processors: carrier payload normalization and field validation.
"""
from .policy_normalizer import map_address, map_coverage, map_vehicle, normalize

__all__ = ["normalize", "map_address", "map_coverage", "map_vehicle"]
