"""
conduitgen - Electrical conduit routing engine.

Builds conduit runs (segments joined by fittings) from waypoints, routes
around obstacles on a voxel grid, and computes field bending data.
"""

__version__ = "0.1.0"
