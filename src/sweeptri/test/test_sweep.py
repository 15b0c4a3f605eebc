import unittest
from functools import cmp_to_key

from sweeptri.delaunay.errors import TopologyViolationError
from sweeptri.delaunay.preds import EPSILON, Intersection
from sweeptri.delaunay.registry import PointRegistry
from sweeptri.delaunay.sweep import VerticalList, compare_from, \
    force_constraint_integrity, vertical_key
from sweeptri.delaunay.tds import Edge, Point


def sweep(segments, points=()):
    """Runs the integrity sweep over segments given as coordinate pairs"""
    registry = PointRegistry(EPSILON)
    for xy in points:
        registry.add(Point(*xy))
    edges = [Edge(registry.add(Point(*s)), registry.add(Point(*e)),
                  locked=True) for s, e in segments]
    return registry, force_constraint_integrity(registry, edges)


def keys(edges):
    return sorted(e.key for e in edges)


class TestVerticalOrder(unittest.TestCase):

    def test_vertical_key(self):
        event = Point(1, 0)
        rising = Edge(Point(0, 0), Point(2, 2))
        self.assertEqual(vertical_key(rising, event), (1., 1.))
        upright = Edge(Point(1, -3), Point(1, 3))
        self.assertEqual(vertical_key(upright, event), (0., float('inf')))
        self.assertEqual(vertical_key(upright, Point(1, 7)),
                         (3., float('inf')))

    def test_compare_from(self):
        o = Point(0, 0)
        down = Edge(o, Point(1, -1))
        flat = Edge(Point(2, 0), o)
        up = Edge(o, Point(1, 1))
        ordered = sorted([up, down, flat], key=cmp_to_key(compare_from(o)))
        self.assertEqual(ordered, [down, flat, up])

    def test_vertical_list(self):
        status = VerticalList()
        status.set_abscissa(Point(0, 0))
        high = Edge(Point(0, 2), Point(4, 2))
        low = Edge(Point(0, -1), Point(4, 3))
        self.assertEqual(status.add(high), 0)
        self.assertEqual(status.add(low), 0)
        self.assertEqual(list(status), [low, high])
        # beyond the crossing at x = 3 the order changes
        status.set_abscissa(Point(3.5, 0))
        self.assertEqual(list(status), [high, low])
        self.assertEqual(status.remove(low), 1)
        self.assertEqual(len(status), 1)
        with self.assertRaises(TopologyViolationError):
            status.remove(low)


class TestConstraintIntegrity(unittest.TestCase):

    def test_no_crossing(self):
        registry = PointRegistry(EPSILON)
        a, b, c = [registry.add(Point(*xy)) for xy in [(0, 0), (1, 0), (0, 1)]]
        ab = Edge(a, b, locked=True)
        ac = Edge(a, c, locked=True)
        result = force_constraint_integrity(registry, [ab, ac])
        self.assertEqual(len(result), 2)
        # unchanged input is passed on as is
        self.assertTrue(any(e is ab for e in result))
        self.assertTrue(any(e is ac for e in result))
        self.assertEqual(len(registry), 3)

    def test_empty(self):
        registry = PointRegistry(EPSILON)
        registry.add(Point(0, 0))
        self.assertEqual(force_constraint_integrity(registry, []), [])

    def test_crossing(self):
        registry, result = sweep([((0, 0), (2, 2)), ((0, 2), (2, 0))])
        self.assertEqual(len(result), 4)
        self.assertEqual(len(registry), 5)
        center = registry.find((1., 1.))
        self.assertIsNotNone(center)
        for edge in result:
            self.assertTrue(edge.is_extremity(center))
            self.assertTrue(edge.locked)
        for e in result:
            for f in result:
                self.assertNotEqual(e.intersects(f), Intersection.CROSS)

    def test_idempotent(self):
        registry, result = sweep([((0, 0), (2, 2)), ((0, 2), (2, 0)),
                                  ((0, 1), (3, 1))])
        again = force_constraint_integrity(registry, result)
        self.assertEqual(keys(again), keys(result))
        self.assertEqual(sorted(map(id, again)), sorted(map(id, result)))

    def test_three_through_one_point(self):
        registry, result = sweep([((0, 0), (2, 2)), ((0, 2), (2, 0)),
                                  ((0, 1), (2, 1))])
        self.assertEqual(len(result), 6)
        center = registry.find((1., 1.))
        self.assertTrue(all(e.is_extremity(center) for e in result))

    def test_overlap(self):
        _, result = sweep([((0, 0), (2, 0)), ((1, 0), (3, 0))])
        self.assertEqual(keys(result), [((0., 0.), (1., 0.)),
                                        ((1., 0.), (2., 0.)),
                                        ((2., 0.), (3., 0.))])

    def test_contained(self):
        _, result = sweep([((0, 0), (3, 0)), ((1, 0), (2, 0))])
        self.assertEqual(keys(result), [((0., 0.), (1., 0.)),
                                        ((1., 0.), (2., 0.)),
                                        ((2., 0.), (3., 0.))])

    def test_t_junction(self):
        _, result = sweep([((0, 0), (2, 0)), ((1, 0), (1, 1))])
        self.assertEqual(keys(result), [((0., 0.), (1., 0.)),
                                        ((1., 0.), (1., 1.)),
                                        ((1., 0.), (2., 0.))])

    def test_point_on_constraint(self):
        registry, result = sweep([((0, 0), (2, 0))], points=[(1, 0), (5, 5)])
        self.assertEqual(keys(result), [((0., 0.), (1., 0.)),
                                        ((1., 0.), (2., 0.))])
        self.assertEqual(len(registry), 4)

    def test_crossing_near_end_point(self):
        # the crossing is merged with the end point of the vertical segment
        registry, result = sweep([((0, 0), (2, 0)),
                                  ((1, 0.000001), (1, -1))])
        self.assertEqual(len(registry), 4)
        self.assertEqual(len(result), 3)
        foot = registry.find((1., 0.000001))
        self.assertEqual(sum(e.is_extremity(foot) for e in result), 3)


if __name__ == "__main__":
    unittest.main()
