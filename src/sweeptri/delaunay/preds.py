'''
Robust predicates and the numeric tolerances of the triangulator.

Orientation is always decided with the exact predicate from geompreds;
tolerances are only used for merging near-duplicate points and for the
in-circle band of the legalizer.
'''

from geompreds import orient2d

# Two points closer than this are merged into one
EPSILON = 1e-5
# Relative width of the band around a circumcircle that counts as 'on'
EPSILON2 = 1e-9


class Intersection(object):
    """Relation between two segments"""
    NONE = 0
    # interiors cross in exactly one point
    CROSS = 1
    # collinear, sharing a piece with positive length
    OVERLAP = 2
    # one point in common that is an endpoint of at least one segment
    TOUCH = 3

    NAMES = {NONE: 'none', CROSS: 'cross', OVERLAP: 'overlap', TOUCH: 'touch'}


def classify(a, b, c, d):
    """Classifies how segment ab relates to segment cd.

    Returns one of the Intersection codes. Only the signs of exact
    orientation tests are used, so the result is consistent for all
    callers.
    """
    o1 = orient2d(a, b, c)
    o2 = orient2d(a, b, d)
    if o1 == 0 and o2 == 0:
        # collinear: compare the lexicographic extents along the line
        lo1, hi1 = sorted(((a[0], a[1]), (b[0], b[1])))
        lo2, hi2 = sorted(((c[0], c[1]), (d[0], d[1])))
        lo = max(lo1, lo2)
        hi = min(hi1, hi2)
        if lo < hi:
            return Intersection.OVERLAP
        elif lo == hi:
            return Intersection.TOUCH
        return Intersection.NONE
    if (o1 > 0 and o2 > 0) or (o1 < 0 and o2 < 0):
        return Intersection.NONE
    o3 = orient2d(c, d, a)
    o4 = orient2d(c, d, b)
    if (o3 > 0 and o4 > 0) or (o3 < 0 and o4 < 0):
        return Intersection.NONE
    if o1 == 0 or o2 == 0 or o3 == 0 or o4 == 0:
        return Intersection.TOUCH
    return Intersection.CROSS
