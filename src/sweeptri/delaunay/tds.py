'''
Geometric primitives of the mesh: points, edges and triangles.

Edges and triangles do not hold references to each other, they refer to
each other via integer handles (the GIDs handed out by the registries of
the mesh). Points are shared by reference.
'''
import logging
from math import acos, degrees, hypot, isnan, sqrt

from sweeptri.delaunay.errors import PreconditionError, TopologyViolationError
from sweeptri.delaunay.preds import EPSILON, EPSILON2, Intersection, \
    classify, orient2d

# ------------------------------------------------------------------------------
# Helpers
#


def box(points):
    """Obtain a tight fitting axis-aligned box around point set"""
    xmin = min(points, key=lambda x: x[0])[0]
    ymin = min(points, key=lambda x: x[1])[1]
    xmax = max(points, key=lambda x: x[0])[0]
    ymax = max(points, key=lambda x: x[1])[1]
    return (xmin, ymin), (xmax, ymax)


class Point(object):
    """A point of the mesh, with an elevation.

    Points order lexicographically on (x, y).
    """
    __slots__ = ('x', 'y', 'z', 'gid')

    def __init__(self, x, y, z=0.):
        self.x = float(x)
        self.y = float(y)
        self.z = float(z)
        self.gid = -1

    @classmethod
    def from_sequence(cls, seq):
        """Make a point from a sequence with 2 or 3 ordinates"""
        if isinstance(seq, Point):
            return cls(seq.x, seq.y, seq.z)
        try:
            ordinates = [float(c) for c in seq]
        except (TypeError, ValueError):
            raise PreconditionError(
                "point should have X, Y and Z coordinates: {!r}".format(seq))
        if len(ordinates) not in (2, 3) or any(isnan(c) for c in ordinates):
            raise PreconditionError(
                "point should have X, Y and Z coordinates: {!r}".format(seq))
        return cls(*ordinates)

    def __str__(self):
        return "{0} {1}".format(self.x, self.y)

    def __repr__(self):
        return "Point({0}, {1}, {2})".format(self.x, self.y, self.z)

    def __getitem__(self, i):
        if i == 0:
            return self.x
        elif i == 1:
            return self.y
        elif i == 2:
            return self.z
        else:
            raise IndexError("No such ordinate: {}".format(i))

    def __eq__(self, other):
        if not isinstance(other, Point):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    def __hash__(self):
        return hash((self.x, self.y))

    def __lt__(self, other):
        return (self.x, self.y) < (other.x, other.y)

    def __le__(self, other):
        return (self.x, self.y) <= (other.x, other.y)

    def __gt__(self, other):
        return (self.x, self.y) > (other.x, other.y)

    def __ge__(self, other):
        return (self.x, self.y) >= (other.x, other.y)

    @property
    def key(self):
        return (self.x, self.y)

    def equals2d(self, other, tolerance=0.):
        """Equal in the plane, up to *tolerance*"""
        return self.squared_distance(other) <= tolerance * tolerance

    def distance(self, other):
        """Cartesian distance to other point """
        return hypot(self.x - other.x, self.y - other.y)

    def squared_distance(self, other):
        """Cartesian distance *squared* to other point """
        return pow(self.x - other.x, 2) + pow(self.y - other.y, 2)


class Edge(object):
    """A directed segment between two points.

    The left and right attributes hold the handle of the triangle on that
    side of the edge (seen in the direction start -> end), or None.
    A locked edge is a constraint and is never flipped, a degenerate edge
    is part of the boundary but has no triangle attached yet.
    """
    __slots__ = ('start', 'end', 'left', 'right', 'locked', 'degenerate',
                 'gid')

    def __init__(self, start, end, locked=False):
        if start == end:
            raise PreconditionError(
                "zero length edge at {}".format(start), start)
        self.start = start
        self.end = end
        self.left = None
        self.right = None
        self.locked = locked
        self.degenerate = False
        self.gid = -1

    def __str__(self):
        return "LINESTRING({0}, {1})".format(self.start, self.end)

    def __repr__(self):
        return "Edge({0!r}, {1!r})".format(self.start, self.end)

    @property
    def left_point(self):
        """The lexicographically smallest end point"""
        return self.start if self.start < self.end else self.end

    @property
    def right_point(self):
        """The lexicographically largest end point"""
        return self.end if self.start < self.end else self.start

    @property
    def key(self):
        # direction independent
        return (self.left_point.key, self.right_point.key)

    @property
    def triangle_count(self):
        return (self.left is not None) + (self.right is not None)

    @property
    def squared_length(self):
        return self.start.squared_distance(self.end)

    @property
    def slope(self):
        left, right = self.left_point, self.right_point
        if left.x == right.x:
            return float('inf')
        return (right.y - left.y) / (right.x - left.x)

    def side(self, p):
        """Twice the signed area of start, end, p (positive: p is left)"""
        return orient2d(self.start, self.end, p)

    def is_left(self, p):
        return orient2d(self.start, self.end, p) > 0

    def is_right(self, p):
        return orient2d(self.start, self.end, p) < 0

    def is_colinear(self, p):
        return orient2d(self.start, self.end, p) == 0

    def is_extremity(self, p):
        return p == self.start or p == self.end

    def contains(self, p):
        """Whether p lies on the segment, strictly between its end points"""
        if self.is_extremity(p) or not self.is_colinear(p):
            return False
        return self.left_point < p < self.right_point

    def get_other_point(self, p):
        if p is self.start:
            return self.end
        elif p is self.end:
            return self.start
        raise ValueError("{} is not an end point of {}".format(p, self))

    def y_at(self, x):
        """Ordinate of the supporting line at abscissa x"""
        left, right = self.left_point, self.right_point
        if left.x == right.x:
            return left.y
        return left.y + (x - left.x) * (right.y - left.y) / (right.x - left.x)

    def intersects(self, other):
        """Classifies the relation with other, see Intersection"""
        return classify(self.start, self.end, other.start, other.end)

    def get_intersection(self, other, tolerance=EPSILON):
        """Gives what self and other have in common.

        None if they are disjoint, the common sub-segment (as new Edge)
        when they overlap, otherwise a Point. A computed crossing that
        lies within tolerance of one of the end points is snapped to
        that end point. The elevation is interpolated along self.
        """
        kind = self.intersects(other)
        if kind == Intersection.NONE:
            return None
        elif kind == Intersection.OVERLAP:
            lo = max(self.left_point, other.left_point)
            hi = min(self.right_point, other.right_point)
            return Edge(lo, hi)
        elif kind == Intersection.TOUCH:
            for p in (other.start, other.end):
                if self.is_extremity(p) or self.contains(p):
                    return p
            for p in (self.start, self.end):
                if other.contains(p):
                    return p
            raise TopologyViolationError(
                "touching segments without common point: {} {}".format(
                    self, other))
        (x1, y1), (x2, y2) = self.start.key, self.end.key
        # the end points of self lie strictly on both sides of other,
        # so the denominator does not vanish
        o1 = orient2d(other.start, other.end, self.start)
        o2 = orient2d(other.start, other.end, self.end)
        t = o1 / (o1 - o2)
        crossing = Point(x1 + t * (x2 - x1),
                         y1 + t * (y2 - y1),
                         self.start.z + t * (self.end.z - self.start.z))
        for p in (self.start, self.end, other.start, other.end):
            if p.equals2d(crossing, tolerance):
                return p
        return crossing

    def swap(self):
        """Reverses the direction, the triangles change sides with it"""
        self.start, self.end = self.end, self.start
        self.left, self.right = self.right, self.left

    def get_barycenter(self):
        return Point((self.start.x + self.end.x) * .5,
                     (self.start.y + self.end.y) * .5,
                     (self.start.z + self.end.z) * .5)

    def is_flat_slope(self, tolerance=EPSILON):
        return abs(self.start.z - self.end.z) <= tolerance

    def get_gradient(self):
        """Unit 3D vector pointing downhill along the edge.
        A flat edge has the zero vector as gradient.
        """
        if self.start.z == self.end.z:
            return (0., 0., 0.)
        high, low = self.start, self.end
        if high.z < low.z:
            high, low = low, high
        dx, dy, dz = low.x - high.x, low.y - high.y, low.z - high.z
        norm = sqrt(dx * dx + dy * dy + dz * dz)
        return (dx / norm, dy / norm, dz / norm)


class Triangle(object):
    """Triangle for which its points are oriented CCW.

    Edge handle i belongs to the edge opposite of point i.
    Circumcenter and squared radius are cached, call recompute_center()
    after changing the points.
    """

    __slots__ = ('points', 'edges', 'gid', 'center', 'radius2')

    def __init__(self, a, b, c):
        self.edges = [None] * 3
        self.gid = -1
        self.set_points(a, b, c)

    def __str__(self):
        """Conversion to WKT string"""
        pts = list(self.points) + [self.points[0]]
        return "POLYGON(({0}))".format(", ".join(str(p) for p in pts))

    def __repr__(self):
        return "Triangle({0!r}, {1!r}, {2!r})".format(*self.points)

    @property
    def key(self):
        return tuple(sorted(p.key for p in self.points))

    def set_points(self, a, b, c):
        det = orient2d(a, b, c)
        if det == 0:
            logging.critical("flat triangle {} {} {}".format(a, b, c))
            raise TopologyViolationError(
                "can not make a triangle of collinear points "
                "{}, {}, {}".format(a, b, c))
        elif det < 0:
            b, c = c, b
        self.points = (a, b, c)
        self.recompute_center()

    def index(self, p):
        for i, q in enumerate(self.points):
            if q is p:
                return i
        raise ValueError("{} is not a point of {}".format(p, self))

    def belongs_to(self, p):
        return any(q is p for q in self.points)

    def assign_edges(self, edges):
        """Stores the handles of the three edges, opposite of the points"""
        handles = [None] * 3
        for edge in edges:
            for i, p in enumerate(self.points):
                if edge.start is not p and edge.end is not p:
                    handles[i] = edge.gid
        if None in handles:
            raise TopologyViolationError(
                "edges {} do not fit triangle {}".format(
                    ", ".join(map(str, edges)), self))
        self.edges = handles

    def get_alter_point(self, edge):
        """The point that is not on edge"""
        for p in self.points:
            if p is not edge.start and p is not edge.end:
                return p
        raise TopologyViolationError(
            "{} has no point opposite of {}".format(self, edge))

    def recompute_center(self):
        a, b, c = self.points
        bx, by = b.x - a.x, b.y - a.y
        cx, cy = c.x - a.x, c.y - a.y
        # the float cross product can round to zero for a sliver
        d = 2. * orient2d(a, b, c)
        b2 = bx * bx + by * by
        c2 = cx * cx + cy * cy
        ux = (cy * b2 - by * c2) / d
        uy = (bx * c2 - cx * b2) / d
        self.radius2 = ux * ux + uy * uy
        x, y = a.x + ux, a.y + uy
        self.center = (x, y, self._plane_z(x, y))

    def in_circle(self, p):
        """Where p is with respect to the circumcircle:
        0 = outside, 1 = inside, 2 = on the circle (within tolerance)
        """
        dx = p.x - self.center[0]
        dy = p.y - self.center[1]
        d2 = dx * dx + dy * dy
        band = EPSILON2 * self.radius2
        if d2 < self.radius2 - band:
            return 1
        elif d2 > self.radius2 + band:
            return 0
        return 2

    def _plane_z(self, x, y):
        a, b, c = self.points
        ux, uy, uz = b.x - a.x, b.y - a.y, b.z - a.z
        vx, vy, vz = c.x - a.x, c.y - a.y, c.z - a.z
        nx = uy * vz - uz * vy
        ny = uz * vx - ux * vz
        nz = orient2d(a, b, c)
        return a.z - (nx * (x - a.x) + ny * (y - a.y)) / nz

    def interpolate_z(self, p):
        """Elevation of the plane through the triangle at p"""
        return self._plane_z(p.x, p.y)

    def soft_interpolate_z(self, p, neighbours):
        """Average of the elevations at p of this triangle its plane and of
        the planes of the (at most 3) neighbouring triangles"""
        values = [self.interpolate_z(p)]
        values.extend(t.interpolate_z(p) for t in neighbours)
        return sum(values) / len(values)

    @property
    def area(self):
        a, b, c = self.points
        return 0.5 * abs((b.x - a.x) * (c.y - a.y) - (b.y - a.y) * (c.x - a.x))

    @property
    def barycenter(self):
        a, b, c = self.points
        return Point((a.x + b.x + c.x) / 3.,
                     (a.y + b.y + c.y) / 3.,
                     (a.z + b.z + c.z) / 3.)

    def angle(self, i):
        """Angle in degrees at point i"""
        p = self.points[i]
        q, r = self.points[(i + 1) % 3], self.points[(i + 2) % 3]
        ux, uy = q.x - p.x, q.y - p.y
        vx, vy = r.x - p.x, r.y - p.y
        cosine = (ux * vx + uy * vy) / (hypot(ux, uy) * hypot(vx, vy))
        return degrees(acos(max(-1., min(1., cosine))))

    def max_angle(self):
        return max(self.angle(i) for i in range(3))

    def min_angle(self):
        return min(self.angle(i) for i in range(3))

    def bad_angle(self, limit):
        """Index of the smallest angle if it is below limit, otherwise -1"""
        angles = [self.angle(i) for i in range(3)]
        smallest = min(range(3), key=lambda i: angles[i])
        return smallest if angles[smallest] < limit else -1

    def is_flat_slope(self, tolerance=EPSILON):
        zs = [p.z for p in self.points]
        return max(zs) - min(zs) <= tolerance

    def bounding_box(self):
        return box(self.points)

    def contains(self, p):
        """Point in triangle test, points on the boundary are inside"""
        a, b, c = self.points
        return orient2d(a, b, p) >= 0 and orient2d(b, c, p) >= 0 and \
            orient2d(c, a, p) >= 0

    def check_topology(self, edges):
        """Validates the triangle against its three edges (given in the
        order of the handles): the edges share exactly the three points,
        each point twice, and every edge has this triangle registered on
        the side where the opposite point lies.
        """
        count = {}
        for edge in edges:
            for p in (edge.start, edge.end):
                count[id(p)] = count.get(id(p), 0) + 1
        if sorted(count) != sorted(id(p) for p in self.points) or \
                any(ct != 2 for ct in count.values()):
            return False
        for apex, edge in zip(self.points, edges):
            if edge.gid != self.edges[self.index(apex)]:
                return False
            side = orient2d(edge.start, edge.end, apex)
            if side > 0 and edge.left != self.gid:
                return False
            elif side < 0 and edge.right != self.gid:
                return False
            elif side == 0:
                return False
        return True

    def check_delaunay(self, points):
        """No point of *points* lies strictly inside the circumcircle"""
        for p in points:
            if self.belongs_to(p):
                continue
            if self.in_circle(p) == 1:
                return False
        return True
