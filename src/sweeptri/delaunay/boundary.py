'''
The advancing boundary of the mesh.

Points are added in lexicographic order, so every new point lies outside
of the part of the plane triangulated so far. The frontier of that part
is cut into BoundaryParts by the constraints that have their left point
inside and their right point outside of the mesh (the constraints linked
to the envelope). A part is the chain of points one sees walking along
the frontier counter-clockwise, from the left point of its lower
constraint up to the left point of the constraint above it.

A spike, an edge that has no triangle yet, appears twice in a chain:
[.., w, p, w, ..].
'''
import logging
from collections import namedtuple
from functools import cmp_to_key

from sweeptri.delaunay.errors import TopologyViolationError
from sweeptri.delaunay.preds import Intersection, classify, orient2d
from sweeptri.delaunay.sweep import compare_from

# Result of connecting a point: a point that could not be connected yet
# gives connected == False and leaves the boundary untouched
Connection = namedtuple('Connection', 'connected triangles edges')
NOT_CONNECTED = Connection(False, (), ())


def _contains(points, point):
    return any(p is point for p in points)


def _link_allowed(v, p, a, b):
    """Segment v-p may touch segment a-b only in their common point v
    or p"""
    kind = classify(v, p, a, b)
    if kind == Intersection.NONE:
        return True
    elif kind == Intersection.TOUCH:
        return a is v or b is v or a is p or b is p
    return False


def _chain_edge(mesh, u, w):
    edge = mesh.find_edge(u, w)
    if edge is None:
        logging.critical("chain edge {} {} not in mesh".format(u, w))
        raise TopologyViolationError(
            "boundary edge between {} and {} is missing".format(u, w))
    return edge


class BoundaryPart(object):
    """Chain of frontier points above the lower *constraint* (None for
    the lowest part)"""

    __slots__ = ('points', 'constraint')

    def __init__(self, points, constraint=None):
        self.points = points
        self.constraint = constraint

    def __len__(self):
        return len(self.points)

    def __repr__(self):
        return "BoundaryPart([{}], {})".format(
            ", ".join(str(p) for p in self.points), self.constraint)

    def edges(self, mesh):
        """The edges of the chain, in traversal order"""
        return [mesh.find_edge(a, b)
                for a, b in zip(self.points, self.points[1:])]

    def is_above(self, point):
        """Whether point lies above the lower constraint of the part"""
        if self.constraint is None:
            return True
        c = self.constraint
        return orient2d(c.left_point, c.right_point, point) > 0

    def can_be_next(self, point, upper=None):
        """Whether point lies between the constraints bounding this part"""
        if not self.is_above(point):
            return False
        if upper is None:
            return True
        return orient2d(upper.left_point, upper.right_point, point) < 0

    def splice(self, start, stop, points):
        """Replaces the chain points start up to (not including) stop"""
        self.points[start:stop] = points

    def occurrences(self, point):
        return [i for i, p in enumerate(self.points) if p is point]

    def connect_point(self, point, mesh, upper=None, required=()):
        """Connects point to the chain, making triangles with the edges
        that are visible from it.

        *upper* is the constraint bounding the part from above,
        *required* are points that have to be linked to point (the left
        points of the constraints ending in point).
        Returns a Connection; when the point could not be connected the
        part is left untouched.
        """
        bounds = [c for c in (self.constraint, upper) if c is not None]
        runs = self._visible_runs(point, bounds)
        for start, stop in runs:
            touched = self.points[start:stop + 1]
            if all(_contains(touched, v) for v in required):
                return self._fan(point, mesh, start, stop)
        if runs:
            logging.debug("{} sees the chain, but not all of {}".format(
                point, ", ".join(str(v) for v in required)))
        return self._link(point, mesh, bounds, upper, required)

    def _clear(self, v, p, bounds):
        return all(_link_allowed(v, p, c.start, c.end) for c in bounds)

    def _reaches(self, v, p, bounds):
        """Whether the segment v-p passes neither the bounding constraints
        nor the chain"""
        if not self._clear(v, p, bounds):
            return False
        chain = self.points
        return all(_link_allowed(v, p, a, b)
                   for a, b in zip(chain, chain[1:]))

    def _visible_runs(self, point, bounds):
        """Maximal runs of consecutive traversals that have point strictly
        on their right and of which the links to point pass neither the
        bounding constraints nor the chain, as (first index, last index)
        of the chain points"""
        runs = []
        first = None
        chain = self.points
        for j in range(len(chain) - 1):
            u, w = chain[j], chain[j + 1]
            if orient2d(u, w, point) < 0 and \
                    self._reaches(u, point, bounds) and \
                    self._reaches(w, point, bounds):
                if first is None:
                    first = j
            elif first is not None:
                runs.append((first, j))
                first = None
        if first is not None:
            runs.append((first, len(chain) - 1))
        return runs

    def _fan(self, point, mesh, start, stop):
        """Makes the triangles between the run of chain edges and point"""
        chain = self.points
        triangles = []
        trailing = mesh.get_edge(chain[start], point)
        edges = [trailing]
        for j in range(start, stop):
            u, w = chain[j], chain[j + 1]
            consumed = _chain_edge(mesh, u, w)
            lead = mesh.get_edge(w, point)
            triangles.append(mesh.make_triangle(consumed, lead, trailing))
            edges.append(lead)
            trailing = lead
        self.splice(start + 1, stop, [point])
        return Connection(True, triangles, edges)

    def _link(self, point, mesh, bounds, upper, required):
        """Links point with one degenerate edge to the nearest chain point
        that it can reach without passing the chain or the bounding
        constraints"""
        if len(required) > 1:
            return NOT_CONNECTED
        candidates = []
        for v in self.points:
            if not _contains(candidates, v):
                candidates.append(v)
        if required:
            candidates = [v for v in candidates if v is required[0]]
        candidates.sort(key=lambda v: v.squared_distance(point))
        for v in candidates:
            if not self._reaches(v, point, bounds):
                continue
            for k in self.occurrences(v):
                if self._in_wedge(k, point, upper):
                    edge = mesh.get_edge(v, point, degenerate=True)
                    self.splice(k + 1, k + 1, [point, v])
                    return Connection(True, (), (edge,))
        return NOT_CONNECTED

    def _in_wedge(self, k, p, upper=None):
        """Whether p lies in the outside angle of the chain at index k.

        At the ends of the chain the angle is closed by the constraints
        bounding the part, the lower one at the first point and *upper*
        at the last.
        """
        chain = self.points
        v = chain[k]
        prev = chain[k - 1] if k > 0 else None
        nxt = chain[k + 1] if k + 1 < len(chain) else None
        lower = self.constraint
        if prev is None and lower is not None and lower.left_point is v:
            prev = lower.right_point
        if nxt is None and upper is not None and upper.left_point is v:
            nxt = upper.right_point
        if prev is None and nxt is None:
            return True
        elif prev is None:
            return orient2d(v, nxt, p) <= 0
        elif nxt is None:
            return orient2d(prev, v, p) <= 0
        turn = orient2d(prev, v, nxt)
        right_in = orient2d(prev, v, p) <= 0
        right_out = orient2d(v, nxt, p) <= 0
        if turn > 0:
            return right_in or right_out
        elif turn < 0:
            return right_in and right_out
        elif prev is nxt:
            # tip of a spike
            return True
        return right_in

    def fill_notches(self, mesh):
        """Closes the chain around its notches: wherever the chain turns
        right at a point and the triangle cut off there is empty, that
        triangle is made. Returns the new triangles."""
        chain = self.points
        triangles = []
        j = 1
        while j < len(chain) - 1:
            if self._is_notch(j):
                a, b, c = chain[j - 1:j + 2]
                triangles.append(mesh.make_triangle(
                    _chain_edge(mesh, a, b), _chain_edge(mesh, b, c),
                    mesh.get_edge(a, c)))
                del chain[j]
                j = max(j - 1, 1)
            else:
                j += 1
        return triangles

    def _is_notch(self, j):
        chain = self.points
        a, b, c = chain[j - 1:j + 2]
        if orient2d(a, b, c) >= 0 or not self._reaches(a, c, ()):
            return False
        # a spike may stick into the triangle
        for q in chain:
            if orient2d(a, b, q) < 0 and orient2d(b, c, q) < 0 and \
                    orient2d(c, a, q) < 0:
                return False
        return True


class Boundary(object):
    """The frontier of the mesh, as a list of parts from bottom to top"""

    def __init__(self, mesh):
        self.mesh = mesh
        self.parts = []

    def __len__(self):
        return len(self.parts)

    def start(self, point):
        """Starts the boundary with the first point of the mesh"""
        self.parts = [BoundaryPart([point])]
        self._open(0, point)

    def linked_constraints(self):
        """The constraints linked to the envelope, from bottom to top"""
        return [part.constraint for part in self.parts[1:]]

    def locate(self, point):
        """Index of the part that point has to be connected to"""
        for idx in range(len(self.parts) - 1, -1, -1):
            if self.parts[idx].is_above(point):
                return idx
        raise TopologyViolationError(
            "no part of the boundary below {}".format(point))

    def insert(self, point):
        """Connects point to the boundary; returns a Connection"""
        parts = self.parts
        closing = [idx for idx, part in enumerate(parts)
                   if part.constraint is not None and
                   part.constraint.right_point is point]
        if closing:
            lo, hi = closing[0] - 1, closing[-1]
            if closing != list(range(lo + 1, hi + 1)):
                logging.debug("constraints ending in {} are not "
                              "adjacent".format(point))
                return NOT_CONNECTED
            points = list(parts[lo].points)
            for part in parts[lo + 1:hi + 1]:
                if points[-1] is not part.points[0]:
                    logging.critical("{} does not continue {}".format(
                        part, parts[lo]))
                    raise TopologyViolationError(
                        "parts do not join at {}".format(part.points[0]))
                points.extend(part.points[1:])
            part = BoundaryPart(points, parts[lo].constraint)
            required = [parts[idx].constraint.left_point for idx in closing]
        else:
            lo = hi = self.locate(point)
            part = parts[lo]
            required = ()
        upper = parts[hi + 1].constraint if hi + 1 < len(parts) else None
        result = part.connect_point(point, self.mesh, upper, required)
        if result.connected:
            parts[lo:hi + 1] = [part]
            self._open(lo, point)
        return result

    def close(self):
        """Finishes the boundary once all points are connected: the
        notches of the envelope are filled, so that the mesh covers the
        convex hull of its points. Returns the new triangles."""
        if len(self.parts) != 1:
            raise TopologyViolationError(
                "constraints still linked to the envelope: {}".format(
                    ", ".join(str(c) for c in self.linked_constraints())))
        triangles = self.parts[0].fill_notches(self.mesh)
        if triangles:
            logging.debug("filled {} notches of the envelope".format(
                len(triangles)))
        return triangles

    def _open(self, idx, point):
        """Splits part idx at point for the constraints starting there"""
        constraints = self.mesh.constraint_edges.edges_from_left(point)
        if not constraints:
            return
        constraints.sort(key=cmp_to_key(compare_from(point)))
        part = self.parts[idx]
        at = part.occurrences(point)
        if not at:
            raise TopologyViolationError(
                "{} is not on the boundary part it was connected to".format(
                    point))
        k = at[-1]
        new = [BoundaryPart(part.points[:k + 1], part.constraint)]
        for constraint in constraints[:-1]:
            new.append(BoundaryPart([point], constraint))
        new.append(BoundaryPart(part.points[k:], constraints[-1]))
        self.parts[idx:idx + 1] = new
