# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import pytest
import numpy as np
from cmaevo.common import testing
from cmaevo.common import errors
from . import eigen
from .core import Matrix


def _random_psd(dimension: int, seed: int) -> Matrix:
    rng = np.random.RandomState(seed)
    root = rng.normal(size=(dimension, dimension))
    return Matrix(root.dot(root.T)).symmetrized()


@testing.parametrized(
    numpy_2=("numpy", 2),
    numpy_7=("numpy", 7),
    scipy_2=("scipy", 2),
    scipy_7=("scipy", 7),
)
def test_decomposition_reconstructs(backend: str, dimension: int) -> None:
    matrix = _random_psd(dimension, seed=dimension)
    values, vectors = eigen.solve(matrix, backend)
    reconstructed = vectors @ Matrix.diag(values) @ vectors.T
    np.testing.assert_array_almost_equal(reconstructed.data, matrix.data)
    # orthonormal basis
    np.testing.assert_array_almost_equal((vectors.T @ vectors).data, np.eye(dimension))
    # ascending order
    assert all(x <= y for x, y in zip(values, list(values)[1:]))


def test_eigenvalue_eigenvector_pairing() -> None:
    matrix = Matrix([[3.0, 0.0], [0.0, 1.0]])
    values, vectors = eigen.solve(matrix)
    testing.assert_vectors_almost_equal(values, [1, 3])
    np.testing.assert_array_almost_equal(np.abs(vectors.data), [[0, 1], [1, 0]])


def test_unsorted_custom_backend() -> None:
    def reversed_backend(array: np.ndarray):  # type: ignore
        values, vectors = np.linalg.eigh(array)
        return values[::-1], vectors[:, ::-1]

    solver = eigen.SymmetricEigenSolver(reversed_backend)
    assert solver.name == "reversed_backend"
    values, vectors = solver.solve(Matrix([[3.0, 0.0], [0.0, 1.0]]))
    testing.assert_vectors_almost_equal(values, [1, 3])
    np.testing.assert_array_almost_equal(np.abs(vectors.data), [[0, 1], [1, 0]])


def test_failure_is_surfaced() -> None:
    def failing(array: np.ndarray):  # type: ignore
        raise np.linalg.LinAlgError("Eigenvalues did not converge")

    with pytest.raises(errors.DecompositionFailure, match="did not converge"):
        eigen.SymmetricEigenSolver(failing).solve(Matrix.identity(2))


def test_non_finite_output_is_a_failure() -> None:
    def nan_backend(array: np.ndarray):  # type: ignore
        return np.array([np.nan, 1.0]), np.eye(2)

    with pytest.raises(errors.DecompositionFailure):
        eigen.SymmetricEigenSolver(nan_backend).solve(Matrix.identity(2))


@testing.parametrized(
    numpy=("numpy",),
    scipy=("scipy",),
)
def test_non_finite_input_is_a_failure(backend: str) -> None:
    with pytest.raises(errors.DecompositionFailure):
        eigen.solve(Matrix([[np.nan, 0.0], [0.0, 1.0]]), backend)
    with pytest.raises(errors.DecompositionFailure, match="non-finite"):
        eigen.solve(Matrix([[1.0, np.inf], [0.0, 1.0]]), backend)


def test_asymmetric_input_is_rejected() -> None:
    with pytest.raises(ValueError):
        eigen.solve(Matrix([[1.0, 2.0], [0.0, 1.0]]))


def test_registry() -> None:
    assert set(eigen.registry) >= {"numpy", "scipy"}
    with pytest.raises(KeyError):
        eigen.SymmetricEigenSolver("blublu")
