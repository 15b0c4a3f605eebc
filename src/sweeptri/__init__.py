"""sweeptri - Constrained Delaunay Triangulation by sweep-line insertion
"""

__version__ = '0.1.0.dev0'
__license__ = 'MIT License'
__author__ = 'Martijn Meijers'

from sweeptri.delaunay import triangulate, ConstrainedMesh, \
    ToPointsAndSegments

__all__ = ["triangulate", "ConstrainedMesh", "ToPointsAndSegments"]
