'''
Errors raised while building a constrained triangulation.

Bad input is reported with a PreconditionError (also a ValueError, so
callers that catch ValueError keep working), a point that cannot be
hooked onto the mesh with a PointConnectionError and an inconsistency
in the data structure itself with a TopologyViolationError.
'''


class DelaunayError(Exception):
    """Base class of all triangulation errors"""

    def __init__(self, message, point=None):
        super(DelaunayError, self).__init__(message)
        self.point = point


class PreconditionError(DelaunayError, ValueError):
    """The input (or the state of the mesh) does not allow the operation"""


class PointConnectionError(DelaunayError):
    """A point could not be linked to the mesh, not even after retrying"""

    def __init__(self, point, message=None):
        if message is None:
            message = "Can't connect the point to the boundary: {}".format(
                point)
        super(PointConnectionError, self).__init__(message, point)


class TopologyViolationError(DelaunayError):
    """Internal invariant of the mesh is broken, this is a bug"""
