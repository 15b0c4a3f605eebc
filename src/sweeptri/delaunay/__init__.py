"""sweeptri - Constrained Delaunay Triangulation by sweep-line insertion
"""

import logging

from sweeptri.delaunay.mesh import triangulate, ConstrainedMesh
from sweeptri.delaunay.helpers import ToPointsAndSegments
from sweeptri.delaunay.errors import DelaunayError, PreconditionError, \
    PointConnectionError, TopologyViolationError


__version__ = '0.1.0.dev0'
__license__ = 'MIT License'
__author__ = 'Martijn Meijers'
__all__ = ("triangulate", "ConstrainedMesh", "ToPointsAndSegments",
           "DelaunayError", "PreconditionError", "PointConnectionError",
           "TopologyViolationError")


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    from sweeptri.delaunay.helpers import random_circle_vertices
    pts = random_circle_vertices(5000)
    triangulate(pts)
