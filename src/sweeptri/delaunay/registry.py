'''
Sorted, de-duplicating containers for the entities of a mesh.

Adding an element that is equal to one already present returns the
present element, so that all users share the same instance. A genuinely
new element gets the next GID of the registry, which serves as stable
handle: after a flip an element is re-positioned, but keeps its GID.
'''
from bisect import bisect_left
from itertools import count

from sweeptri.delaunay.errors import TopologyViolationError
from sweeptri.delaunay.tds import box


class SortedRegistry(object):
    """Elements kept sorted on their key attribute.

    Registries can share a GID counter (the mesh does so for its edges
    and constraint edges, so that an edge has one handle in both).
    """

    def __init__(self, counter=None):
        self._keys = []
        self._items = []
        self._by_gid = {}
        self._counter = counter if counter is not None else count()

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def __getitem__(self, idx):
        return self._items[idx]

    def __contains__(self, item):
        return self.index(item) >= 0

    def _rank(self, key):
        return bisect_left(self._keys, key)

    def index(self, item):
        """Position of *item* itself (not an equal one), -1 if absent"""
        idx = self._rank(item.key)
        if idx < len(self._keys) and self._keys[idx] == item.key and \
                self._items[idx] is item:
            return idx
        return -1

    def find(self, key):
        """Element with the given key, or None"""
        idx = self._rank(key)
        if idx < len(self._keys) and self._keys[idx] == key:
            return self._items[idx]
        return None

    def lookup(self, gid):
        """Resolves a handle"""
        return self._by_gid[gid]

    def add(self, item):
        key = item.key
        idx = self._rank(key)
        if idx < len(self._keys) and self._keys[idx] == key:
            return self._items[idx]
        self._keys.insert(idx, key)
        self._items.insert(idx, item)
        if item.gid < 0:
            item.gid = next(self._counter)
        self._by_gid[item.gid] = item
        return item

    def remove(self, item):
        """Removes the element equal to item, no-op for a non-member"""
        key = item.key
        idx = self._rank(key)
        if idx < len(self._keys) and self._keys[idx] == key:
            removed = self._items[idx]
            del self._keys[idx]
            del self._items[idx]
            del self._by_gid[removed.gid]
            return removed
        return None

    def detach(self, item):
        """Takes a member out of the sorted order before its key changes.
        Its handle stays valid until it is attached again."""
        idx = self.index(item)
        if idx < 0:
            raise TopologyViolationError(
                "{} is not registered, can not detach it".format(item))
        del self._keys[idx]
        del self._items[idx]

    def attach(self, item):
        """Puts a detached member back at the rank of its new key"""
        key = item.key
        idx = self._rank(key)
        if idx < len(self._keys) and self._keys[idx] == key:
            raise TopologyViolationError(
                "{} collides with {}".format(item, self._items[idx]))
        self._keys.insert(idx, key)
        self._items.insert(idx, item)


class PointRegistry(SortedRegistry):
    """Sorted points, where points closer than *tolerance* are merged.

    With a positive *precision* coordinates are snapped to a grid with
    that cell size before they are merged.
    """

    def __init__(self, tolerance=0., precision=0.):
        super(PointRegistry, self).__init__()
        self.tolerance = tolerance
        self.precision = precision

    def add(self, point):
        if self.precision > 0:
            point.x = round(point.x / self.precision) * self.precision
            point.y = round(point.y / self.precision) * self.precision
        if self.tolerance > 0:
            # points within tolerance can only be in this window of x-values
            idx = self._rank((point.x - self.tolerance, float('-inf')))
            while idx < len(self._keys) and \
                    self._keys[idx][0] <= point.x + self.tolerance:
                if self._items[idx].equals2d(point, self.tolerance):
                    return self._items[idx]
                idx += 1
        return super(PointRegistry, self).add(point)

    def bounding_box(self):
        if not self._items:
            return None
        return box(self._items)


class EdgeRegistry(SortedRegistry):
    """Sorted edges, keyed on their (left point, right point)"""

    def find_edge(self, p, q):
        """The edge between p and q, in whatever direction, or None"""
        if q < p:
            p, q = q, p
        return self.find((p.key, q.key))

    def edges_from_left(self, point):
        """All edges that have point as their left point"""
        idx = self._rank((point.key,))
        result = []
        while idx < len(self._keys) and self._keys[idx][0] == point.key:
            result.append(self._items[idx])
            idx += 1
        return result
