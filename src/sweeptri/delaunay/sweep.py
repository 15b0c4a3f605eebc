'''
Constraint integrity: turns a set of arbitrary constraint segments into a
set of segments that do not cross each other.

A line sweeps from left to right (in lexicographic order of the points)
over the end points of the segments and over the crossings found on the
way. Crossing segments are split at the crossing point, collinear
overlapping segments are merged and points that lie on a segment split
that segment.
'''
import heapq
import logging
import time
from bisect import bisect_right
from functools import cmp_to_key

from sweeptri.delaunay.errors import TopologyViolationError
from sweeptri.delaunay.preds import EPSILON, Intersection, orient2d
from sweeptri.delaunay.tds import Edge


def vertical_key(edge, event):
    """Sort key of an edge on the sweep line at the event point.

    Edges are ordered on their ordinate at the abscissa of the event,
    ties are broken by slope so that the order is the one just right of
    the event. A vertical edge is placed at the event its ordinate.
    """
    left, right = edge.left_point, edge.right_point
    if left.x == right.x:
        return (min(max(event.y, left.y), right.y), float('inf'))
    return (edge.y_at(event.x), edge.slope)


def compare_from(point):
    """Comparison function ordering edges that start in *point* from
    bottom to top"""
    def compare(a, b):
        det = orient2d(point, a.get_other_point(point),
                       b.get_other_point(point))
        if det > 0:
            return -1
        elif det < 0:
            return 1
        return 0
    return compare


class VerticalList(object):
    """Edges that cross the sweep line, from bottom to top"""

    def __init__(self):
        self.event = None
        self._edges = []

    def __len__(self):
        return len(self._edges)

    def __iter__(self):
        return iter(self._edges)

    def __getitem__(self, idx):
        return self._edges[idx]

    def set_abscissa(self, event):
        """Moves the sweep line to the event, re-sorting the edges"""
        self.event = event
        self._edges.sort(key=lambda e: vertical_key(e, event))

    def add(self, edge):
        keys = [vertical_key(e, self.event) for e in self._edges]
        idx = bisect_right(keys, vertical_key(edge, self.event))
        self._edges.insert(idx, edge)
        return idx

    def remove(self, edge):
        for idx, e in enumerate(self._edges):
            if e is edge:
                del self._edges[idx]
                return idx
        logging.critical("{} not on the sweep line".format(edge))
        raise TopologyViolationError(
            "Problem while removing an edge: {} is not in the "
            "vertical list".format(edge))

    def starting_at(self, point):
        return [e for e in self._edges if e.left_point is point]


class ConstraintSweep(object):
    """Sweep over the constraints of a mesh.

    *points* is the point registry of the mesh: end points of the
    constraints must be registered in it, and crossings are merged into
    it. run() returns the list of non-crossing constraint edges.
    """

    def __init__(self, points, constraints, tolerance=EPSILON):
        self.points = points
        self.constraints = list(constraints)
        self.tolerance = tolerance
        self.status = VerticalList()
        self.result = []
        self.splits = 0
        self._events = []
        self._scheduled = set()
        self._pending = []
        self._seq = 0
        # origin of the pieces, so that a crossing found for a segment
        # also splits the remainder of that segment
        self._origin = {}
        self._crossings = {}
        self._inputs = {}

    def run(self):
        start = time.perf_counter()
        if not self.constraints:
            return []
        xmin = min(c.left_point.x for c in self.constraints)
        xmax = max(c.right_point.x for c in self.constraints)
        for origin, constraint in enumerate(self.constraints):
            self._inputs[constraint.key] = constraint
            self._origin[id(constraint)] = origin
            self._push(constraint)
            self._schedule(constraint.left_point)
            self._schedule(constraint.right_point)
        # isolated points can lie on a constraint as well
        for point in self.points:
            if xmin <= point.x <= xmax:
                self._schedule(point)
        while self._events:
            _, event = heapq.heappop(self._events)
            self._process(event)
        if len(self.status):
            raise TopologyViolationError(
                "{} segments left on the sweep line".format(len(self.status)))
        end = time.perf_counter()
        logging.debug("Constraint integrity took: " + str(end - start) +
                      " secs")
        logging.debug("{} constraints in, {} out, {} splits".format(
            len(self.constraints), len(self.result), self.splits))
        return self.result

    def _schedule(self, point):
        if point.key not in self._scheduled:
            self._scheduled.add(point.key)
            heapq.heappush(self._events, (point.key, point))

    def _push(self, edge):
        self._seq += 1
        heapq.heappush(self._pending,
                       (edge.left_point.key, edge.right_point.key,
                        self._seq, edge))

    def _piece(self, start, end, parent):
        edge = Edge(start, end, locked=True)
        self._origin[id(edge)] = self._origin[id(parent)]
        return edge

    def _finalize(self, edge):
        # keep the input instance when a segment survives unchanged
        edge = self._inputs.get(edge.key, edge)
        edge.locked = True
        self.result.append(edge)

    def _split(self, edge, event):
        """Finalizes the part of edge left of event, the part to the right
        stays on the sweep line"""
        self.status.remove(edge)
        self._finalize(self._piece(edge.left_point, event, edge))
        remainder = self._piece(event, edge.right_point, edge)
        self.status.add(remainder)
        self.splits += 1
        return remainder

    def _process(self, event):
        status = self.status
        status.set_abscissa(event)
        crossing = self._crossings.pop(event.key, set())
        # split the segments that pass through the event
        for edge in list(status):
            if edge.is_extremity(event):
                continue
            if self._origin[id(edge)] in crossing or edge.contains(event):
                self._split(edge, event)
        # retire the segments that end here
        for edge in list(status):
            if edge.right_point is event:
                status.remove(edge)
                self._finalize(edge)
            elif edge.right_point == event:
                raise TopologyViolationError(
                    "end point {} of {} is not shared".format(event, edge))
        # segments that start here
        while self._pending and self._pending[0][0] == event.key:
            edge = heapq.heappop(self._pending)[-1]
            status.add(edge)
        self._merge_overlaps(event)
        self._scan(event)

    def _merge_overlaps(self, event):
        """Collinear segments starting at the event overlap up to the
        shortest of them; the longer ones continue from its end point"""
        starting = sorted(self.status.starting_at(event),
                          key=cmp_to_key(compare_from(event)))
        i = 0
        while i < len(starting):
            j = i + 1
            while j < len(starting) and \
                    orient2d(event, starting[i].right_point,
                             starting[j].right_point) == 0:
                j += 1
            group = sorted(starting[i:j], key=lambda e: e.right_point.key)
            shortest = group[0]
            kept = self._origin[id(shortest)]
            for edge in group[1:]:
                self.status.remove(edge)
                # the shortest takes over the crossings on the common part
                removed = self._origin[id(edge)]
                for origins in self._crossings.values():
                    if removed in origins:
                        origins.add(kept)
                if edge.right_point is not shortest.right_point:
                    self._push(self._piece(shortest.right_point,
                                           edge.right_point, edge))
            i = j

    def _scan(self, event):
        """Looks for crossings of neighbours on the sweep line"""
        changed = True
        while changed:
            changed = False
            edges = list(self.status)
            for lower, upper in zip(edges, edges[1:]):
                if lower.intersects(upper) != Intersection.CROSS:
                    continue
                point = self.points.add(
                    lower.get_intersection(upper, self.tolerance))
                if point is event:
                    for edge in (lower, upper):
                        if not edge.is_extremity(event):
                            self._split(edge, event)
                    self._merge_overlaps(event)
                    changed = True
                    break
                elif point > event:
                    self._schedule(point)
                    origins = self._crossings.setdefault(point.key, set())
                    for edge in (lower, upper):
                        if not edge.is_extremity(point):
                            origins.add(self._origin[id(edge)])
                else:
                    logging.critical(
                        "crossing {} found behind sweep line at {}".format(
                            point, event))
                    raise TopologyViolationError(
                        "crossing of {} and {} lies before {}".format(
                            lower, upper, event))


def force_constraint_integrity(points, constraints, tolerance=EPSILON):
    """Returns non-crossing constraints for *constraints*, new points are
    merged into the point registry *points*"""
    return ConstraintSweep(points, constraints, tolerance).run()
