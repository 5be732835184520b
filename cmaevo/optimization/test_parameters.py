# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import pytest
import numpy as np
from cmaevo.common import testing
from cmaevo.common import errors
from . import parameters


@testing.parametrized(
    dim1=(1, 4),
    dim2=(2, 6),
    dim10=(10, 10),
    dim100=(100, 17),
)
def test_population_size(dimension: int, expected: int) -> None:
    assert parameters.population_size(dimension) == expected


def test_population_size_is_monotonic() -> None:
    sizes = [parameters.population_size(n) for n in range(2, 2000)]
    assert all(x <= y for x, y in zip(sizes, sizes[1:]))


def test_population_size_error() -> None:
    with pytest.raises(ValueError):
        parameters.population_size(0)


@pytest.mark.parametrize("mu", list(range(1, 40)) + [100, 1000])  # type: ignore
def test_recombination_weights(mu: int) -> None:
    weights = parameters.recombination_weights(mu)
    assert weights.shape == (mu,)
    assert np.all(weights > 0)
    assert np.all(np.diff(weights) < 0)
    np.testing.assert_almost_equal(np.sum(weights), 1.0, decimal=12)


def test_strategy_parameters_values() -> None:
    params = parameters.StrategyParameters(2, 6)
    assert params.mu == 3
    np.testing.assert_almost_equal(params.mueff, 2.0286, decimal=4)
    assert 0 < params.cs < 1
    assert 0 < params.cc < 1
    assert 0 < params.c1 + params.cmu <= 1
    assert params.damps >= 1
    np.testing.assert_almost_equal(params.chi_n, 1.2543, decimal=4)
    np.testing.assert_almost_equal(params.hsig_threshold, 1.4 + 2 / 3)


def test_strategy_parameters_are_deterministic() -> None:
    first = parameters.StrategyParameters(7, 11)
    second = parameters.StrategyParameters(7, 11)
    assert first == second
    assert first.as_dict() == second.as_dict()
    assert first != parameters.StrategyParameters(7, 12)
    with pytest.raises(ValueError):
        first.weights[0] = 1.0


def test_strategy_parameters_errors() -> None:
    with pytest.raises(errors.CmaevoValueError):
        parameters.StrategyParameters(2, 1)
    with pytest.raises(errors.CmaevoValueError):
        parameters.StrategyParameters(0, 6)
    with pytest.warns(errors.InefficientSettingsWarning):
        params = parameters.StrategyParameters(3, 2)
    assert params.mu == 1
    np.testing.assert_array_equal(params.weights, [1.0])
    assert params.cmu == 0


def test_expected_chi_norm() -> None:
    rng = np.random.RandomState(12)
    norms = np.linalg.norm(rng.normal(size=(20000, 5)), axis=1)
    np.testing.assert_almost_equal(parameters.expected_chi_norm(5), np.mean(norms), decimal=1)
