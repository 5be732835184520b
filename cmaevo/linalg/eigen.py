# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Adapter over dense symmetric eigensolvers.

The optimizer only ever needs "solve the symmetric eigenproblem", so the
actual routine is a pluggable backend, looked up by name in :code:`registry`.
Any callable taking a symmetric 2d numpy array and returning
:code:`(eigenvalues, eigenvectors)` with eigenvectors as columns can be registered.
"""

import logging
import numpy as np
import cmaevo.common.typing as tp
from cmaevo.common import errors
from cmaevo.common.decorators import Registry
from .core import Vector
from .core import Matrix


logger = logging.getLogger(__name__)
Backend = tp.Callable[[np.ndarray], tp.Tuple[np.ndarray, np.ndarray]]
registry: Registry[Backend] = Registry()


class Decomposition(tp.NamedTuple):
    """Eigenvalues in ascending order, and the orthonormal basis holding
    the corresponding eigenvectors as columns:
    :code:`matrix = eigenvectors @ diag(eigenvalues) @ eigenvectors.T`
    """

    eigenvalues: Vector
    eigenvectors: Matrix


class EigenSolver(tp.Protocol):
    # pylint: disable=pointless-statement,unused-argument
    def solve(self, matrix: Matrix) -> Decomposition:
        ...


@registry.register
def numpy(array: np.ndarray) -> tp.Tuple[np.ndarray, np.ndarray]:
    """LAPACK syevd through numpy"""
    return np.linalg.eigh(array)  # type: ignore


@registry.register
def scipy(array: np.ndarray) -> tp.Tuple[np.ndarray, np.ndarray]:
    """LAPACK syevr through scipy"""
    from scipy import linalg  # pylint: disable=import-outside-toplevel

    return linalg.eigh(array, check_finite=True)  # type: ignore


class SymmetricEigenSolver:
    """Solves the eigenproblem of symmetric matrices through a registered backend

    Parameters
    ----------
    backend: str or callable
        name of a backend of the registry ("numpy" or "scipy"), or a custom callable
    """

    def __init__(self, backend: tp.Union[str, Backend] = "numpy") -> None:
        if isinstance(backend, str):
            self.name = backend
            self._backend = registry[backend]
        else:
            self.name = getattr(backend, "__name__", backend.__class__.__name__)
            self._backend = backend

    def solve(self, matrix: Matrix) -> Decomposition:
        if not matrix.is_finite():
            raise errors.DecompositionFailure(f"Eigensolver {self.name!r} cannot decompose a non-finite matrix")
        if not matrix.is_symmetric():
            raise errors.CmaevoValueError("Eigendecomposition requires an exactly symmetric matrix")
        try:
            values, vectors = self._backend(matrix.to_array())
        except (np.linalg.LinAlgError, ValueError) as e:
            # scipy raises ValueError on non-finite input
            raise errors.DecompositionFailure(f"Eigensolver {self.name!r} failed: {e}") from e
        values = np.asarray(values, dtype=np.float64)
        vectors = np.asarray(vectors, dtype=np.float64)
        dim = matrix.dimension
        if values.shape != (dim,) or vectors.shape != (dim, dim):
            raise errors.DecompositionFailure(
                f"Eigensolver {self.name!r} returned shapes {values.shape} and {vectors.shape} for dimension {dim}"
            )
        if not (np.all(np.isfinite(values)) and np.all(np.isfinite(vectors))):
            raise errors.DecompositionFailure(f"Eigensolver {self.name!r} did not converge to finite values")
        order = np.argsort(values, kind="stable")  # backends are not required to sort
        logger.debug("Decomposed %sx%s matrix with %s, eigenvalues %s", dim, dim, self.name, values[order])
        return Decomposition(Vector._wrap(values[order]), Matrix._wrap(vectors[:, order]))

    def __repr__(self) -> str:
        return f"SymmetricEigenSolver({self.name!r})"


def solve(matrix: Matrix, backend: tp.Union[str, Backend] = "numpy") -> Decomposition:
    """Shortcut for :code:`SymmetricEigenSolver(backend).solve(matrix)`"""
    return SymmetricEigenSolver(backend).solve(matrix)
