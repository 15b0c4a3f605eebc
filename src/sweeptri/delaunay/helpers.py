'''
Input preparation: polygons and linestrings to indexed points and
segments, plus some point sets to try the triangulator on.
'''
from math import cos, pi, sin, sqrt
from random import random


def _as_key(point):
    return tuple(float(v) for v in point)


def random_circle_vertices(n=10, cx=0, cy=0):
    """Returns the sorted, distinct ones of n random points, uniformly
    spread over the unit disk centred at (cx, cy)"""
    vertices = set()
    for _ in range(n):
        # sqrt, otherwise the points crowd around the centre
        r = sqrt(random())
        t = 2 * pi * random()
        vertices.add((cx + r * cos(t), cy + r * sin(t)))
    return sorted(vertices)


def grid_vertices(columns, rows, size=1.):
    """Returns the vertices of a regular grid, column by column"""
    return [(i * size, j * size) for i in range(columns) for j in range(rows)]


class ToPointsAndSegments(object):
    """Collects polygons and linestrings as a list of points and a list
    of segments, pairs (i, j) with i < j of indices into the points.
    A point or segment that is added again is stored once.
    """

    def __init__(self):
        self.points = []
        self.segments = []
        self._point_index = {}
        self._segment_index = {}

    def add_point(self, point):
        """Index of point, which is appended when it is new"""
        key = _as_key(point)
        idx = self._point_index.get(key)
        if idx is None:
            idx = self._point_index[key] = len(self.points)
            self.points.append(key)
        return idx

    def add_segment(self, start, end):
        """Index of the segment between two points added before, as ~index
        when the segment is stored from end to start"""
        i = self._point_index[_as_key(start)]
        j = self._point_index[_as_key(end)]
        if i == j:
            raise ValueError("segment without length at {}".format(start))
        pair = (min(i, j), max(i, j))
        idx = self._segment_index.get(pair)
        if idx is None:
            idx = self._segment_index[pair] = len(self.segments)
            self.segments.append(pair)
        return idx if i < j else ~idx

    def add_linestring(self, line):
        for pt in line:
            self.add_point(pt)
        for start, end in zip(line, line[1:]):
            self.add_segment(start, end)

    def add_polygon(self, polygon):
        """Adds the rings of polygon, a list of closed rings (first and
        last point of a ring are equal)"""
        for ring in polygon:
            if _as_key(ring[0]) != _as_key(ring[-1]):
                raise ValueError("ring is not closed: {} - {}".format(
                    ring[0], ring[-1]))
            self.add_linestring(ring)
