# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
import numpy as np
import cmaevo.common.typing as tp
from cmaevo.common import errors
from cmaevo.linalg import Vector
from cmaevo.linalg import Matrix
from cmaevo.linalg import Decomposition
from cmaevo.linalg import SymmetricEigenSolver
from cmaevo.linalg.eigen import Backend


logger = logging.getLogger(__name__)


class CovarianceMatrix:
    """Symmetric positive semi-definite matrix maintaining a lazily
    computed eigendecomposition :code:`C = B diag(eigenvalues) B^T`.

    Any update marks the decomposition as dirty, it is only recomputed
    when requested (sampling, whitening, Mahalanobis norms).

    Parameters
    ----------
    matrix: Matrix or int
        initial matrix, or dimension for an identity matrix
    eigensolver: str, callable or SymmetricEigenSolver
        backend used for the decomposition
    psd_tolerance: float
        relative tolerance on negative eigenvalues: values below
        :code:`-psd_tolerance * max(|eigenvalues|)` mean the matrix is not PSD,
        values above are round-off and get clamped to 0.
    """

    # below this value, eigenvalues are considered null when taking square roots
    EPSILON = 1e-300

    def __init__(
        self,
        matrix: tp.Union[Matrix, int],
        eigensolver: tp.Union[str, Backend, SymmetricEigenSolver] = "numpy",
        psd_tolerance: float = 1e-10,
    ) -> None:
        self._matrix = Matrix.identity(matrix) if isinstance(matrix, int) else Matrix(matrix)
        self.eigensolver = (
            eigensolver if isinstance(eigensolver, SymmetricEigenSolver) else SymmetricEigenSolver(eigensolver)
        )
        self.psd_tolerance = psd_tolerance
        self.num_decompositions = 0
        self._dirty = True
        self._decomposition: tp.Optional[Decomposition] = None
        self._inverse_sqrt: tp.Optional[Matrix] = None
        self.update(self._matrix)

    @property
    def matrix(self) -> Matrix:
        return self._matrix

    @property
    def dimension(self) -> int:
        return self._matrix.dimension

    @property
    def dirty(self) -> bool:
        """True if the cached decomposition is out of date"""
        return self._dirty

    def update(self, matrix: Matrix) -> None:
        """Replaces the underlying matrix (symmetrized if needed) and
        invalidates the cached decomposition
        """
        if matrix.dimension != self.dimension:
            raise errors.DimensionMismatch(
                f"Covariance has dimension {self.dimension} but update has dimension {matrix.dimension}"
            )
        if not matrix.is_finite():
            raise errors.InvalidState("Covariance matrix update has non-finite entries")
        if not matrix.is_symmetric():
            asymmetry = np.max(np.abs(matrix.data - matrix.data.T))
            logger.debug("Symmetrizing covariance update (max asymmetry %s)", asymmetry)
            matrix = matrix.symmetrized()
        self._matrix = matrix
        self._dirty = True
        self._decomposition = None
        self._inverse_sqrt = None

    def decomposition(self) -> Decomposition:
        """Eigenvalues (clamped to be non-negative) and eigenvectors (as columns)"""
        if self._dirty or self._decomposition is None:
            values, vectors = self.eigensolver.solve(self._matrix)
            data = values.data
            scale = float(np.max(np.abs(data))) if data.size else 0.0
            if np.min(data) < -self.psd_tolerance * scale:
                raise errors.InvalidState(f"Covariance matrix is not positive semi-definite (eigenvalues: {data})")
            self._decomposition = Decomposition(Vector(np.maximum(data, 0.0)), vectors)
            self._dirty = False
            self._inverse_sqrt = None
            self.num_decompositions += 1
            logger.debug(
                "Covariance decomposition #%s, condition number %s", self.num_decompositions, self.condition_number()
            )
        return self._decomposition

    def sqrt_eigenvalues(self) -> Vector:
        """Square roots of the eigenvalues (D), with null values below epsilon"""
        values = self.decomposition().eigenvalues.data
        return Vector(np.sqrt(np.where(values < self.EPSILON, 0.0, values)))

    def inverse_sqrt(self) -> Matrix:
        """C^(-1/2) = B D^-1 B^T, which maps a displacement into the whitened frame"""
        if self._inverse_sqrt is None or self._dirty:
            basis = self.decomposition().eigenvectors
            sqrt_values = self.sqrt_eigenvalues()
            if np.min(sqrt_values.data) <= 0:
                raise errors.InvalidState("Covariance matrix is degenerate (null eigenvalue)")
            self._inverse_sqrt = basis @ Matrix.diag(Vector(1.0 / sqrt_values.data)) @ basis.T
        return self._inverse_sqrt

    def mahalanobis_norm(self, displacement: Vector) -> float:
        """||C^(-1/2) dx||"""
        return (self.inverse_sqrt() @ displacement).norm

    def condition_number(self) -> float:
        values = self.decomposition().eigenvalues.data
        if values[0] <= 0:
            return float("inf")
        return float(values[-1] / values[0])

    def __repr__(self) -> str:
        return f"CovarianceMatrix(dimension={self.dimension}, dirty={self._dirty})"
