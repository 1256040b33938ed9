"""Stateless 2D point transforms.

Every transform maps an array of points of shape (N, 2) to a new array of the
same shape. Transforms hold no state that changes between calls, so one
instance can be shared freely.
"""

import numpy as np


def as_points(points):
    points = np.asarray(points, dtype=np.float64)
    if points.ndim != 2 or points.shape[1] != 2:
        raise ValueError(f"Expected points of shape (N, 2), got {points.shape}")
    return points


class PointTransform:
    """Base class for (x, y) -> (x', y') mappings over real coordinates."""

    def __call__(self, points):
        return self.apply(as_points(points))

    def apply(self, points):
        """Transform a float64 array of shape (N, 2). Implemented by subclasses."""
        raise NotImplementedError

    def transform_point(self, x, y):
        result = self.apply(np.array([[x, y]], dtype=np.float64))
        return float(result[0, 0]), float(result[0, 1])

    def then(self, other):
        """Return the transform that applies ``self`` first, then ``other``."""
        return SequenceTransform(self, other)

    def inverse(self):
        raise NotImplementedError(f"{type(self).__name__} has no inverse")


class IdentityTransform(PointTransform):
    def apply(self, points):
        return points.copy()

    def inverse(self):
        return self

    def __repr__(self):
        return 'IdentityTransform()'


class HomographyTransform(PointTransform):
    """Projective transform given by a 3x3 matrix acting on homogeneous points."""

    def __init__(self, matrix):
        matrix = np.array(matrix, dtype=np.float64)
        if matrix.shape != (3, 3):
            raise ValueError(f"Expected a 3x3 matrix, got shape {matrix.shape}")
        matrix.setflags(write=False)
        self.matrix = matrix

    def apply(self, points):
        m = self.matrix
        x = points[:, 0]
        y = points[:, 1]
        w = m[2, 0] * x + m[2, 1] * y + m[2, 2]
        out = np.empty_like(points)
        out[:, 0] = (m[0, 0] * x + m[0, 1] * y + m[0, 2]) / w
        out[:, 1] = (m[1, 0] * x + m[1, 1] * y + m[1, 2]) / w
        return out

    def inverse(self):
        return HomographyTransform(np.linalg.inv(self.matrix))

    def __repr__(self):
        return f'HomographyTransform({self.matrix.tolist()})'


class FunctionTransform(PointTransform):
    """Wraps a function mapping (N, 2) arrays to (N, 2) arrays.

    Args:
        fn: The forward mapping.
        inverse_fn: Optional inverse mapping.
    """

    def __init__(self, fn, inverse_fn=None):
        self.fn = fn
        self.inverse_fn = inverse_fn

    def apply(self, points):
        return as_points(self.fn(points))

    def inverse(self):
        if self.inverse_fn is None:
            return super().inverse()
        return FunctionTransform(self.inverse_fn, self.fn)


class SequenceTransform(PointTransform):
    """Applies a list of transforms left to right.

    Nested sequences are flattened, so composition is associative by
    construction.
    """

    def __init__(self, *transforms):
        flat = []
        for t in transforms:
            if isinstance(t, SequenceTransform):
                flat.extend(t.transforms)
            else:
                flat.append(t)
        self.transforms = tuple(flat)

    def apply(self, points):
        for t in self.transforms:
            points = t.apply(points)
        return points

    def inverse(self):
        return SequenceTransform(*[t.inverse() for t in reversed(self.transforms)])

    def __len__(self):
        return len(self.transforms)

    def __repr__(self):
        return f'SequenceTransform({", ".join(repr(t) for t in self.transforms)})'
