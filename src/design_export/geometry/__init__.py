"""
Geometry Module
===============

Placement conversion between the editor preview, the export canvas and the
marketplace print area.
"""

from design_export.geometry.mapper import PlacementMapper

__all__ = [
    "PlacementMapper",
]
