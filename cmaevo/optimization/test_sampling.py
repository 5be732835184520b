# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
from cmaevo.linalg import Vector
from cmaevo.linalg import Matrix
from .covariance import CovarianceMatrix
from .parameters import StrategyParameters
from .state import CMAESState
from . import sampling


def _state(mean: Vector, sigma: float, cov: Matrix, seed: int) -> CMAESState:
    return CMAESState(
        mean,
        sigma,
        StrategyParameters(mean.dimension, 6),
        CovarianceMatrix(cov),
        np.random.RandomState(seed),
    )


def test_sample_is_reproducible() -> None:
    samples = []
    for _ in range(2):
        state = _state(Vector([1.0, 2.0]), 0.5, Matrix.identity(2), seed=12)
        samples.append(list(sampling.sample(state, 5)))
    assert len(samples[0]) == 5
    assert samples[0] == samples[1]
    other = _state(Vector([1.0, 2.0]), 0.5, Matrix.identity(2), seed=13)
    assert list(sampling.sample(other, 5)) != samples[0]


def test_sample_identity_matches_raw_normal_draws() -> None:
    state = _state(Vector([1.0, -1.0, 0.0]), 2.0, Matrix.identity(3), seed=24)
    samples = np.array([x.data for x in sampling.sample(state, 4)])
    expected = np.array([1.0, -1.0, 0.0]) + 2.0 * np.random.RandomState(24).normal(0, 1, (4, 3))
    np.testing.assert_array_almost_equal(samples, expected)


def test_sample_distribution() -> None:
    cov = Matrix([[4.0, 1.5], [1.5, 1.0]])
    state = _state(Vector([3.0, -2.0]), 0.5, cov, seed=0)
    samples = np.array([x.data for x in sampling.sample(state, 20000)])
    np.testing.assert_array_almost_equal(samples.mean(axis=0), [3.0, -2.0], decimal=1)
    np.testing.assert_array_almost_equal(np.cov(samples.T), 0.25 * cov.data, decimal=1)


def test_sample_is_a_single_use_generator() -> None:
    state = _state(Vector([0.0, 0.0]), 1.0, Matrix.identity(2), seed=1)
    gen = sampling.sample(state, 3)
    assert state.covariance.num_decompositions == 0  # nothing happens before the first draw
    assert len(list(gen)) == 3
    assert not list(gen)
    assert state.covariance.num_decompositions == 1
