# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import pytest
import numpy as np
from cmaevo.common import testing
from cmaevo.common import errors
from cmaevo.linalg import Vector
from cmaevo.linalg import Matrix
from .covariance import CovarianceMatrix


def test_lazy_decomposition() -> None:
    cov = CovarianceMatrix(3)
    assert cov.dirty
    assert cov.num_decompositions == 0
    cov.decomposition()
    cov.decomposition()
    cov.sqrt_eigenvalues()
    cov.inverse_sqrt()
    assert cov.num_decompositions == 1
    assert not cov.dirty
    # several updates before the next use only trigger one decomposition
    cov.update(Matrix.identity(3) * 2)
    cov.update(Matrix.identity(3) * 4)
    assert cov.dirty
    assert cov.num_decompositions == 1
    testing.assert_vectors_almost_equal(cov.sqrt_eigenvalues(), [2, 2, 2])
    assert cov.num_decompositions == 2


def test_decomposition_reconstructs() -> None:
    rng = np.random.RandomState(12)
    root = rng.normal(size=(4, 4))
    matrix = Matrix(root.dot(root.T)).symmetrized()
    cov = CovarianceMatrix(matrix)
    values, vectors = cov.decomposition()
    reconstructed = vectors @ Matrix.diag(values) @ vectors.T
    np.testing.assert_array_almost_equal(reconstructed.data, matrix.data)
    inv_sqrt = cov.inverse_sqrt()
    np.testing.assert_array_almost_equal((inv_sqrt @ matrix @ inv_sqrt).data, np.eye(4))


def test_update_symmetrizes() -> None:
    cov = CovarianceMatrix(2)
    cov.update(Matrix([[2.0, 1.0], [1.0 + 1e-14, 2.0]]))
    assert cov.matrix.is_symmetric()
    np.testing.assert_almost_equal(cov.matrix[0, 1], 1.0)


def test_round_off_negative_eigenvalues_are_clamped() -> None:
    def noisy_backend(array: np.ndarray):  # type: ignore
        values, vectors = np.linalg.eigh(array)
        values[0] = -1e-17
        return values, vectors

    cov = CovarianceMatrix(Matrix([[1.0, 1.0], [1.0, 1.0]]), eigensolver=noisy_backend)
    values = cov.decomposition().eigenvalues
    assert min(values) == 0.0
    testing.assert_vectors_almost_equal(cov.sqrt_eigenvalues(), [0.0, np.sqrt(2)])
    assert cov.condition_number() == float("inf")
    with pytest.raises(errors.InvalidState, match="degenerate"):
        cov.inverse_sqrt()


def test_not_psd_is_invalid() -> None:
    cov = CovarianceMatrix(Matrix([[1.0, 2.0], [2.0, 1.0]]))  # eigenvalues -1 and 3
    with pytest.raises(errors.InvalidState, match="positive semi-definite"):
        cov.decomposition()


def test_update_errors() -> None:
    cov = CovarianceMatrix(2)
    with pytest.raises(errors.DimensionMismatch):
        cov.update(Matrix.identity(3))
    with pytest.raises(errors.InvalidState):
        cov.update(Matrix([[np.inf, 0.0], [0.0, 1.0]]))
    assert cov.matrix == Matrix.identity(2)


def test_decomposition_failure_is_propagated() -> None:
    def failing(array: np.ndarray):  # type: ignore
        raise np.linalg.LinAlgError("Eigenvalues did not converge")

    cov = CovarianceMatrix(2, eigensolver=failing)
    with pytest.raises(errors.DecompositionFailure):
        cov.decomposition()
    assert cov.dirty


def test_mahalanobis_norm() -> None:
    cov = CovarianceMatrix(Matrix([[4.0, 0.0], [0.0, 1.0]]))
    np.testing.assert_almost_equal(cov.mahalanobis_norm(Vector([2.0, 0.0])), 1.0)
    np.testing.assert_almost_equal(cov.mahalanobis_norm(Vector([0.0, 3.0])), 3.0)
    np.testing.assert_almost_equal(cov.condition_number(), 4.0)
