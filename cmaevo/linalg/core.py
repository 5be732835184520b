# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Fixed-size vector and square matrix value types.

Both wrap read-only float64 numpy arrays: operations never mutate their
operands and always return new instances. The only failure of arithmetic
is a size disagreement, which raises :code:`DimensionMismatch`.
"""

from numbers import Real
import numpy as np
import cmaevo.common.typing as tp
from cmaevo.common import errors


def _frozen(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


class Vector:
    """Ordered sequence of N real components

    Parameters
    ----------
    components: iterable of float
        the components, copied at construction
    """

    __slots__ = ("_data",)
    __array_ufunc__ = None  # numpy operands defer to the methods below

    def __init__(self, components: tp.Union["Vector", tp.Iterable[float], np.ndarray]) -> None:
        if isinstance(components, Vector):
            self._data = components._data  # already read-only, sharing is fine
            return
        data = np.array(list(components) if not isinstance(components, np.ndarray) else components, dtype=np.float64)
        if data.ndim != 1:
            raise errors.DimensionMismatch(f"Vector requires 1-dimensional data, got shape {data.shape}")
        self._data = _frozen(data)

    @classmethod
    def zeros(cls, dimension: int) -> "Vector":
        return cls(np.zeros(dimension))

    @classmethod
    def _wrap(cls, array: np.ndarray) -> "Vector":
        """Wraps a freshly computed array without copying it"""
        out = cls.__new__(cls)
        out._data = _frozen(np.asarray(array, dtype=np.float64))
        return out

    @property
    def dimension(self) -> int:
        return self._data.shape[0]

    @property
    def data(self) -> np.ndarray:
        """Read-only view of the components"""
        return self._data

    def to_array(self) -> np.ndarray:
        """Writable copy of the components"""
        return np.array(self._data, copy=True)

    def tolist(self) -> tp.List[float]:
        return [float(x) for x in self._data]

    def _check(self, other: "Vector") -> None:
        if other.dimension != self.dimension:
            raise errors.DimensionMismatch(
                f"Vectors have different dimensions: {self.dimension} and {other.dimension}"
            )

    def __len__(self) -> int:
        return self.dimension

    def __getitem__(self, index: int) -> float:
        return float(self._data[index])

    def __iter__(self) -> tp.Iterator[float]:
        return (float(x) for x in self._data)

    def __add__(self, other: "Vector") -> "Vector":
        if not isinstance(other, Vector):
            return NotImplemented
        self._check(other)
        return Vector._wrap(self._data + other._data)

    def __sub__(self, other: "Vector") -> "Vector":
        if not isinstance(other, Vector):
            return NotImplemented
        self._check(other)
        return Vector._wrap(self._data - other._data)

    def __neg__(self) -> "Vector":
        return Vector._wrap(-self._data)

    def __mul__(self, scalar: float) -> "Vector":
        if not isinstance(scalar, Real):
            return NotImplemented
        return Vector._wrap(self._data * float(scalar))

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> "Vector":
        if not isinstance(scalar, Real):
            return NotImplemented
        return Vector._wrap(self._data / float(scalar))

    def dot(self, other: "Vector") -> float:
        self._check(other)
        return float(self._data.dot(other._data))

    @property
    def squared(self) -> "Vector":
        """Element-wise square"""
        return Vector._wrap(self._data ** 2)

    @property
    def sum(self) -> float:
        return float(np.sum(self._data))

    @property
    def squared_magnitude(self) -> float:
        return float(self._data.dot(self._data))

    @property
    def norm(self) -> float:
        return float(np.sqrt(self.squared_magnitude))

    def outer(self, other: "Vector") -> "Matrix":
        """Outer product self x other^T (both must have the same dimension
        since only square matrices are supported)
        """
        self._check(other)
        return Matrix._wrap(np.outer(self._data, other._data))

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self._data)))

    def __eq__(self, other: tp.Any) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return self.dimension == other.dimension and bool(np.array_equal(self._data, other._data))

    __hash__ = None  # type: ignore

    def __repr__(self) -> str:
        return f"Vector({self.tolist()})"


class Matrix:
    """N x N real matrix

    Parameters
    ----------
    rows: 2d array-like
        the entries, copied at construction. Must be square.
    """

    __slots__ = ("_data",)
    __array_ufunc__ = None  # numpy operands defer to the methods below

    def __init__(self, rows: tp.Union["Matrix", tp.Iterable[tp.Iterable[float]], np.ndarray]) -> None:
        if isinstance(rows, Matrix):
            self._data = rows._data
            return
        data = np.array(rows if isinstance(rows, np.ndarray) else [list(r) for r in rows], dtype=np.float64)
        if data.ndim != 2 or data.shape[0] != data.shape[1]:
            raise errors.DimensionMismatch(f"Matrix requires square 2-dimensional data, got shape {data.shape}")
        self._data = _frozen(data)

    @classmethod
    def _wrap(cls, array: np.ndarray) -> "Matrix":
        out = cls.__new__(cls)
        out._data = _frozen(np.asarray(array, dtype=np.float64))
        return out

    @classmethod
    def identity(cls, dimension: int) -> "Matrix":
        return cls._wrap(np.eye(dimension))

    @classmethod
    def zeros(cls, dimension: int) -> "Matrix":
        return cls._wrap(np.zeros((dimension, dimension)))

    @classmethod
    def diag(cls, diagonal: Vector) -> "Matrix":
        return cls._wrap(np.diag(diagonal.data))

    @property
    def dimension(self) -> int:
        return self._data.shape[0]

    @property
    def data(self) -> np.ndarray:
        """Read-only view of the entries"""
        return self._data

    def to_array(self) -> np.ndarray:
        return np.array(self._data, copy=True)

    def tolist(self) -> tp.List[tp.List[float]]:
        return [[float(x) for x in row] for row in self._data]

    def _check(self, dimension: int) -> None:
        if dimension != self.dimension:
            raise errors.DimensionMismatch(
                f"Expected dimension {self.dimension} but got {dimension}"
            )

    def __getitem__(self, index: tp.Tuple[int, int]) -> float:
        return float(self._data[index])

    def __matmul__(self, other: tp.Union[Vector, "Matrix"]) -> tp.Any:
        if isinstance(other, Vector):
            self._check(other.dimension)
            return Vector._wrap(self._data.dot(other.data))
        if isinstance(other, Matrix):
            self._check(other.dimension)
            return Matrix._wrap(self._data.dot(other._data))
        return NotImplemented

    @property
    def T(self) -> "Matrix":  # pylint: disable=invalid-name
        return Matrix._wrap(self._data.T.copy())

    def __add__(self, other: "Matrix") -> "Matrix":
        if not isinstance(other, Matrix):
            return NotImplemented
        self._check(other.dimension)
        return Matrix._wrap(self._data + other._data)

    def __sub__(self, other: "Matrix") -> "Matrix":
        if not isinstance(other, Matrix):
            return NotImplemented
        self._check(other.dimension)
        return Matrix._wrap(self._data - other._data)

    def __mul__(self, scalar: float) -> "Matrix":
        if not isinstance(scalar, Real):
            return NotImplemented
        return Matrix._wrap(self._data * float(scalar))

    __rmul__ = __mul__

    @property
    def trace(self) -> float:
        return float(np.trace(self._data))

    def diagonal(self) -> Vector:
        return Vector._wrap(np.diag(self._data).copy())

    def is_symmetric(self, atol: float = 0.0) -> bool:
        if not atol:
            return bool(np.array_equal(self._data, self._data.T))
        return bool(np.allclose(self._data, self._data.T, rtol=0, atol=atol))

    def symmetrized(self) -> "Matrix":
        """Average of the matrix and its transpose (exactly symmetric)"""
        return Matrix._wrap((self._data + self._data.T) / 2.0)

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self._data)))

    def __eq__(self, other: tp.Any) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.dimension == other.dimension and bool(np.array_equal(self._data, other._data))

    __hash__ = None  # type: ignore

    def __repr__(self) -> str:
        return f"Matrix({self.tolist()})"
