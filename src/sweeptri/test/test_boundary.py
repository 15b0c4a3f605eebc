import unittest

from sweeptri.delaunay.boundary import Boundary, BoundaryPart
from sweeptri.delaunay.errors import TopologyViolationError
from sweeptri.delaunay.mesh import ConstrainedMesh


class TestBoundaryPart(unittest.TestCase):

    def setUp(self):
        self.mesh = ConstrainedMesh()

    def pts(self, *coords):
        return [self.mesh.add_point(xy) for xy in coords]

    def test_spike_and_collinear(self):
        p0, p1, p2, p3 = self.pts((0, 0), (1, 0), (2, 0), (3, 1))
        part = BoundaryPart([p0])
        result = part.connect_point(p1, self.mesh)
        self.assertTrue(result.connected)
        self.assertEqual(len(result.triangles), 0)
        self.assertTrue(result.edges[0].degenerate)
        self.assertEqual(part.points, [p0, p1, p0])
        # collinear point extends the spike
        result = part.connect_point(p2, self.mesh)
        self.assertTrue(result.connected)
        self.assertEqual(part.points, [p0, p1, p2, p1, p0])
        self.assertEqual(len(self.mesh.triangles), 0)
        # a point off the line sees the lower side of the spike
        result = part.connect_point(p3, self.mesh)
        self.assertTrue(result.connected)
        self.assertEqual(len(result.triangles), 2)
        self.assertEqual(len(result.edges), 3)
        self.assertEqual(part.points, [p0, p1, p2, p3, p0])
        self.assertEqual(len(self.mesh.edges), 5)
        self.assertFalse(any(e.degenerate for e in self.mesh.edges))
        self.assertTrue(self.mesh.check_triangulation())
        self.assertEqual(len(part.edges(self.mesh)), 4)

    def test_required(self):
        p0, p1, p2, p3 = self.pts((0, 0), (0, 1), (1, 0), (1, 1))
        part = BoundaryPart([p0])
        part.connect_point(p1, self.mesh)
        result = part.connect_point(p2, self.mesh)
        self.assertEqual(len(result.triangles), 1)
        self.assertEqual(part.points, [p0, p2, p1, p0])
        # p3 only sees the edge p2 - p1, so it can not be linked to p0
        result = part.connect_point(p3, self.mesh, required=(p0,))
        self.assertFalse(result.connected)
        self.assertEqual(part.points, [p0, p2, p1, p0])
        self.assertEqual(len(self.mesh.triangles), 1)
        result = part.connect_point(p3, self.mesh, required=(p2,))
        self.assertTrue(result.connected)
        self.assertEqual(part.points, [p0, p2, p3, p1, p0])
        self.assertEqual(len(self.mesh.triangles), 2)

    def test_above(self):
        p0, p1, p2 = self.pts((0, 0), (2, 0), (1, .5))
        constraint = self.mesh.add_constraint_edge(p0, p1)
        part = BoundaryPart([p0], constraint)
        self.assertTrue(part.is_above(p2))
        self.assertFalse(part.is_above(self.mesh.add_point((1, -1))))
        self.assertTrue(BoundaryPart([p0]).is_above(p2))
        upper = self.mesh.add_constraint_edge(p0, (2, 2))
        self.assertTrue(part.can_be_next(p2, upper))
        self.assertFalse(part.can_be_next(self.mesh.add_point((1, 3)),
                                          upper))

    def test_link_above_lower_constraint(self):
        a, b, c = self.pts((0, 4), (1, 5), (3, 4))
        constraint = self.mesh.add_constraint_edge(b, (4, 2))
        # the part above the constraint, c sees no edge of it
        part = BoundaryPart([b, a], constraint)
        result = part.connect_point(c, self.mesh)
        self.assertTrue(result.connected)
        self.assertEqual(part.points, [b, c, b, a])
        self.assertTrue(result.edges[0].degenerate)

    def test_link_between_constraints(self):
        v, = self.pts((0, 0))
        lower = self.mesh.add_constraint_edge(v, (4, -4))
        upper = self.mesh.add_constraint_edge(v, (4, 4))
        part = BoundaryPart([v], lower)
        outside = self.mesh.add_point((1, 2))
        result = part.connect_point(outside, self.mesh, upper)
        self.assertFalse(result.connected)
        self.assertEqual(part.points, [v])
        inside = self.mesh.add_point((2, 0))
        result = part.connect_point(inside, self.mesh, upper)
        self.assertTrue(result.connected)
        self.assertEqual(part.points, [v, inside, v])

    def test_fill_notches(self):
        p0, q, r = self.pts((0, 0), (2, 1), (2, -1))
        for v in (q, r):
            self.mesh.get_edge(p0, v, degenerate=True)
        part = BoundaryPart([p0, r, p0, q, p0])
        triangles = part.fill_notches(self.mesh)
        self.assertEqual(len(triangles), 1)
        self.assertEqual(part.points, [p0, r, q, p0])
        self.assertFalse(any(e.degenerate for e in self.mesh.edges))
        self.assertTrue(self.mesh.check_triangulation())
        self.assertEqual(part.fill_notches(self.mesh), [])

    def test_fill_notches_around_spike(self):
        p0, t, q, r = self.pts((0, 0), (1.5, 0), (2, 1), (2, -1))
        for v in (q, r):
            self.mesh.get_edge(p0, v, degenerate=True)
        self.mesh.get_edge(q, t, degenerate=True)
        # t lies inside the triangle r, p0, q
        part = BoundaryPart([p0, r, p0, q, t, q, p0])
        triangles = part.fill_notches(self.mesh)
        self.assertEqual(len(triangles), 3)
        self.assertEqual(part.points, [p0, r, q, p0])
        self.assertAlmostEqual(sum(tri.area for tri in triangles), 2.)
        self.assertTrue(self.mesh.check_triangulation())


class TestBoundary(unittest.TestCase):

    def test_constraint_splits_and_closes(self):
        mesh = ConstrainedMesh()
        a, b, c = [mesh.add_point(xy) for xy in [(0, 0), (1, 1), (2, 0)]]
        ac = mesh.add_constraint_edge(a, c)
        mesh.force_constraint_integrity()
        boundary = Boundary(mesh)
        boundary.start(a)
        self.assertEqual(len(boundary), 2)
        self.assertEqual(boundary.linked_constraints(), [ac])
        self.assertEqual(boundary.locate(b), 1)
        result = boundary.insert(b)
        self.assertTrue(result.connected)
        self.assertEqual(len(boundary), 2)
        # the constraint closes at c, the parts merge again
        result = boundary.insert(c)
        self.assertTrue(result.connected)
        self.assertEqual(len(result.triangles), 1)
        self.assertEqual(len(boundary), 1)
        self.assertEqual(boundary.linked_constraints(), [])
        self.assertIs(mesh.find_edge(a, c), ac)
        self.assertTrue(ac.locked)
        self.assertEqual(boundary.parts[0].points, [a, c, b, a])
        self.assertEqual(boundary.close(), [])

    def test_constraints_from_one_point(self):
        mesh = ConstrainedMesh()
        a = mesh.add_point((0, 0))
        up = mesh.add_constraint_edge(a, (1, 1))
        down = mesh.add_constraint_edge(a, (1, -1))
        flat = mesh.add_constraint_edge(a, (2, 0))
        mesh.force_constraint_integrity()
        boundary = Boundary(mesh)
        boundary.start(a)
        # bottom to top
        self.assertEqual(boundary.linked_constraints(), [down, flat, up])
        self.assertTrue(all(part.points == [a] for part in boundary.parts))
        with self.assertRaises(TopologyViolationError):
            boundary.close()


if __name__ == "__main__":
    unittest.main()
