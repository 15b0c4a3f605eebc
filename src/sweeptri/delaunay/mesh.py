'''
Incremental constrained Delaunay triangulation.

Points are inserted in lexicographic order. Every point lies outside the
mesh built so far and is connected to the boundary of the mesh (see
boundary.py); afterwards the Delaunay criterion is restored by flipping
edges (Lawson's algorithm), leaving the constraints untouched. Once all
points are in, the notches of the envelope are filled so that the mesh
covers the convex hull.
'''
import logging
import time
from collections import deque
from itertools import count

from sweeptri.delaunay.boundary import Boundary
from sweeptri.delaunay.errors import PointConnectionError, \
    PreconditionError, TopologyViolationError
from sweeptri.delaunay.preds import EPSILON, orient2d
from sweeptri.delaunay.registry import EdgeRegistry, PointRegistry, \
    SortedRegistry
from sweeptri.delaunay.sweep import force_constraint_integrity
from sweeptri.delaunay.tds import Edge, Point, Triangle


class ConstrainedMesh(object):
    """Class to build a constrained Delaunay triangulation.

    Add points and constraint edges, then call process_delaunay(). The
    result is found in the (sorted) registries points, edges,
    constraint_edges and triangles.
    """

    def __init__(self, precision=0., tolerance=EPSILON):
        self.precision = precision
        self.tolerance = tolerance
        self.points = PointRegistry(tolerance, precision)
        # edges and constraints share their handles
        self._edge_gids = count()
        self.edges = EdgeRegistry(self._edge_gids)
        self.constraint_edges = EdgeRegistry(self._edge_gids)
        self.triangles = SortedRegistry()
        self.boundary = None
        self.finalized = False
        self.integrity_forced = False
        self.flips = 0
        self.retries = 0
        self._queue = deque()
        self._queued = set()
        self._processed = set()

    def _check_open(self):
        if self.finalized:
            raise PreconditionError(
                "triangulation has already been processed")

    # -- input

    def add_point(self, x, y=None, z=0.):
        """Adds a point (given as coordinates or as a sequence) and returns
        the registered instance, which may be an earlier point at the same
        location"""
        self._check_open()
        if y is None:
            point = Point.from_sequence(x)
        else:
            point = Point.from_sequence((x, y, z))
        self.integrity_forced = False
        return self.points.add(point)

    def add_points(self, points):
        return [self.add_point(pt) for pt in points]

    def add_constraint_edge(self, start, end):
        """Adds a constraint between two points (sequences or Points)"""
        self._check_open()
        p = self.add_point(start)
        q = self.add_point(end)
        if p is q:
            raise PreconditionError(
                "same start as end point: {}".format(p), p)
        self.integrity_forced = False
        return self.constraint_edges.add(Edge(p, q, locked=True))

    def add_constraint_edges(self, segments):
        return [self.add_constraint_edge(start, end)
                for start, end in segments]

    def add_segments(self, points, segments):
        """Adds points and the constraints given as pairs of indices into
        points"""
        registered = self.add_points(points)
        return [self.add_constraint_edge(registered[i], registered[j])
                for i, j in segments]

    def force_constraint_integrity(self):
        """Makes the constraints non-crossing, adding points where they
        cross"""
        self._check_open()
        if self.integrity_forced:
            return
        result = force_constraint_integrity(
            self.points, self.constraint_edges, self.tolerance)
        self.constraint_edges = EdgeRegistry(self._edge_gids)
        for edge in result:
            self.constraint_edges.add(edge)
        self.integrity_forced = True

    # -- topology

    def find_edge(self, p, q):
        return self.edges.find_edge(p, q)

    def get_edge(self, p, q, degenerate=False):
        """The edge between p and q, made if it does not exist yet (a
        constraint between p and q is used as the edge)"""
        edge = self.edges.find_edge(p, q)
        if edge is None:
            edge = self.constraint_edges.find_edge(p, q)
            if edge is None:
                edge = Edge(p, q)
            edge = self.edges.add(edge)
            edge.degenerate = degenerate
        return edge

    def make_triangle(self, e0, e1, e2):
        """Makes the triangle bounded by three edges and registers it as
        neighbour of the edges"""
        ends = []
        for edge in (e0, e1, e2):
            for p in (edge.start, edge.end):
                if not any(q is p for q in ends):
                    ends.append(p)
        if len(ends) != 3:
            logging.critical("edges {}, {}, {} do not form a triangle".format(
                e0, e1, e2))
            raise TopologyViolationError(
                "{} points for one triangle".format(len(ends)))
        triangle = Triangle(*ends)
        if self.triangles.add(triangle) is not triangle:
            raise TopologyViolationError(
                "triangle {} exists already".format(triangle))
        triangle.assign_edges((e0, e1, e2))
        for edge in (e0, e1, e2):
            self._attach(edge, triangle)
        return triangle

    def _attach(self, edge, triangle):
        apex = triangle.get_alter_point(edge)
        if edge.is_left(apex):
            if edge.left is not None:
                self._conflict(edge, triangle)
            edge.left = triangle.gid
        else:
            if edge.right is not None:
                self._conflict(edge, triangle)
            edge.right = triangle.gid
        edge.degenerate = False

    def _conflict(self, edge, triangle):
        logging.critical("edge {} already has a triangle on the side "
                         "of {}".format(edge, triangle))
        raise TopologyViolationError(
            "more than one triangle on one side of {}".format(edge))

    def neighbours(self, triangle):
        """Triangles sharing an edge with triangle"""
        result = []
        for gid in triangle.edges:
            edge = self.edges.lookup(gid)
            for other in (edge.left, edge.right):
                if other is not None and other != triangle.gid:
                    result.append(self.triangles.lookup(other))
        return result

    def triangle_edges(self, triangle):
        return [self.edges.lookup(gid) for gid in triangle.edges]

    # -- triangulation

    def process_delaunay(self):
        """Triangulates the points and constraints"""
        self._check_open()
        if len(self.points) < 3:
            raise PreconditionError(
                "not enough points found to triangulate")
        start = time.perf_counter()
        self.force_constraint_integrity()
        points = list(self.points)
        self.boundary = Boundary(self)
        retry = deque(reversed(self._seed(points)))
        pending = deque(points[3:])
        last = points[2]
        while pending or (retry and retry[0] is not last):
            if retry and retry[0] is not last:
                point = retry.popleft()
            else:
                point = pending.popleft()
            last = point
            if not self._insert(point):
                retry.appendleft(point)
        # what is left, is retried until that does not help any more
        while retry:
            progress = False
            for _ in range(len(retry)):
                point = retry.popleft()
                if self._insert(point):
                    progress = True
                else:
                    retry.append(point)
            if not progress:
                point = retry[0]
                logging.error("we failed at linking {} to the mesh".format(
                    point))
                raise PointConnectionError(point)
        self._enqueue_triangles(self.boundary.close())
        self.legalize()
        self._check_constraints()
        self.finalized = True
        end = time.perf_counter()
        logging.debug("Triangulating took: " + str(end - start) + " secs")
        logging.debug("{} triangles".format(len(self.triangles)))
        logging.debug("{} points".format(len(self.points)))
        logging.debug("{} flips".format(self.flips))
        logging.debug("{} retries".format(self.retries))
        logging.debug(str(float(self.flips) / len(self.points)) +
                      " flips per insert")

    def _seed(self, points):
        """Starts the mesh with the first three points: the first triangle,
        or two degenerate edges when they are collinear. A constraint may
        keep the second or third point from being connected, those points
        are returned."""
        self.boundary.start(points[0])
        waiting = [point for point in points[1:3] if not self._insert(point)]
        if waiting:
            logging.debug("seed without {}".format(
                ", ".join(str(p) for p in waiting)))
        elif self.triangles:
            logging.debug("seed triangle {}".format(
                next(iter(self.triangles))))
        else:
            logging.debug("collinear seed {} - {}".format(
                points[0], points[2]))
        return waiting

    def _insert(self, point):
        """Connects one point and legalizes; False if it has to wait"""
        result = self.boundary.insert(point)
        if not result.connected:
            self.retries += 1
            logging.warning("could not connect {} yet, "
                            "retrying later".format(point))
            return False
        self._enqueue_triangles(result.triangles)
        for edge in result.edges:
            self._enqueue(edge)
        self.legalize()
        return True

    def _check_constraints(self):
        for constraint in self.constraint_edges:
            if self.edges.find(constraint.key) is not constraint:
                logging.error("constraint {} is not in the mesh".format(
                    constraint))
                raise PointConnectionError(
                    constraint.left_point,
                    "Can't connect the constraint {} to the mesh".format(
                        constraint))

    # -- legalization

    def _enqueue(self, edge):
        if edge.gid not in self._queued:
            self._queued.add(edge.gid)
            self._queue.append(edge.gid)
            self._processed.discard(edge.gid)

    def _enqueue_triangles(self, triangles):
        for triangle in triangles:
            for gid in triangle.edges:
                self._enqueue(self.edges.lookup(gid))

    def legalize(self):
        """Flips edges from the queue until all of them are Delaunay"""
        queue = self._queue
        while queue:
            gid = queue.popleft()
            self._queued.discard(gid)
            if gid in self._processed:
                continue
            self._processed.add(gid)
            edge = self.edges.lookup(gid)
            if edge.locked or edge.left is None or edge.right is None:
                continue
            t0 = self.triangles.lookup(edge.left)
            t1 = self.triangles.lookup(edge.right)
            p2 = t0.get_alter_point(edge)
            p3 = t1.get_alter_point(edge)
            if t0.in_circle(p3) == 1 or t1.in_circle(p2) == 1:
                # only a strictly convex quadrilateral can be flipped
                s0 = orient2d(p2, p3, edge.start)
                s1 = orient2d(p2, p3, edge.end)
                if (s0 > 0 and s1 < 0) or (s0 < 0 and s1 > 0):
                    for outer in self.flip(edge):
                        self._enqueue(outer)
        self._processed.clear()

    def flip(self, edge):
        """Replaces edge, shared by two triangles, by the other diagonal
        of their quadrilateral. Triangles and edge keep their handles.

        Returns the four edges around the quadrilateral.
        """
        if edge.locked:
            raise TopologyViolationError("can not flip constraint " +
                                         str(edge))
        t0 = self.triangles.lookup(edge.left)
        t1 = self.triangles.lookup(edge.right)
        p0, p1 = edge.start, edge.end
        # p2 left of the edge, p3 right of it
        p2 = t0.get_alter_point(edge)
        p3 = t1.get_alter_point(edge)
        e02 = self.edges.lookup(t0.edges[t0.index(p1)])
        e21 = self.edges.lookup(t0.edges[t0.index(p0)])
        e03 = self.edges.lookup(t1.edges[t1.index(p1)])
        e31 = self.edges.lookup(t1.edges[t1.index(p0)])
        self.edges.detach(edge)
        self.triangles.detach(t0)
        self.triangles.detach(t1)
        # the quadrilateral is p0, p3, p1, p2 (ccw), the new diagonal
        # runs from p3 to p2: p0 lies left of it, p1 right
        edge.start, edge.end = p3, p2
        t0.set_points(p3, p1, p2)
        t1.set_points(p2, p0, p3)
        t0.assign_edges((edge, e21, e31))
        t1.assign_edges((edge, e02, e03))
        edge.left, edge.right = t1.gid, t0.gid
        self._relink(e31, t1.gid, t0.gid)
        self._relink(e02, t0.gid, t1.gid)
        self.edges.attach(edge)
        self.triangles.attach(t0)
        self.triangles.attach(t1)
        self.flips += 1
        return (e02, e21, e03, e31)

    def _relink(self, edge, old, new):
        if edge.left == old:
            edge.left = new
        elif edge.right == old:
            edge.right = new
        else:
            logging.critical("{} is not next to triangle {}".format(
                edge, old))
            raise TopologyViolationError(
                "Problem while removing an edge: {} has no triangle "
                "{}".format(edge, old))

    # -- queries

    def bounding_box(self):
        return self.points.bounding_box()

    def soft_interpolate_z(self, point, triangle):
        return triangle.soft_interpolate_z(point, self.neighbours(triangle))

    def check_triangulation(self):
        """Topology check of all triangles"""
        return all(t.check_topology(self.triangle_edges(t))
                   for t in self.triangles)

    def check_delaunay(self):
        """Empty circumcircle check of every triangle against every point.
        Only meaningful for a mesh without constraints (quadratic)."""
        return all(t.check_delaunay(self.points) for t in self.triangles)


def triangulate(points, segments=None, precision=0., tolerance=EPSILON):
    """Triangulate a set of points, segments are pairs of indices into
    points that have to become edges of the triangulation
    """
    start = time.perf_counter()
    mesh = ConstrainedMesh(precision, tolerance)
    if segments:
        mesh.add_segments(points, segments)
    else:
        mesh.add_points(points)
    end = time.perf_counter()
    logging.debug("Registering input: " + str(end - start) + " secs")
    mesh.process_delaunay()
    return mesh
