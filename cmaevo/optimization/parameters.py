# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Static strategy parameters of CMA-ES (Hansen's default setting).
They only depend on the dimension and the population size, so that they
are recomputed identically when an optimizer is restored from a checkpoint.
"""

import warnings
import numpy as np
import cmaevo.common.typing as tp
from cmaevo.common import errors


def population_size(dimension: int, popsize_factor: float = 3.0) -> int:
    """Recommended number of offsprings per generation: floor(4 + 3 ln(N))"""
    if dimension < 1:
        raise errors.CmaevoValueError(f"Dimension must be strictly positive, got {dimension}")
    return 4 + int(popsize_factor * np.log(dimension))


def recombination_weights(mu: int) -> np.ndarray:
    """Log-linear positive weights, strictly decreasing with the rank, summing to 1"""
    if mu < 1:
        raise errors.CmaevoValueError(f"Number of parents must be strictly positive, got {mu}")
    weights = np.log(mu + 0.5) - np.log(np.arange(1, mu + 1))
    return weights / np.sum(weights)


def expected_chi_norm(dimension: int) -> float:
    """Approximation of E||N(0, I)|| in the given dimension"""
    n = float(dimension)
    return float(np.sqrt(n) * (1.0 - 1.0 / (4.0 * n) + 1.0 / (21.0 * n ** 2)))


class StrategyParameters:
    """Constants derived once from the dimension and the population size

    Parameters
    ----------
    dimension: int
        dimension of the search space (N)
    population_size: int
        number of offsprings per generation (lambda), at least 2

    Note
    ----
    - mu (number of parents) is lambda // 2.
    - mueff is the variance effective selection mass of the weights.
    - cs / damps drive the cumulative step-size adaptation,
      cc / c1 / cmu the covariance adaptation.
    """

    def __init__(self, dimension: int, population_size: int) -> None:
        if dimension < 1:
            raise errors.CmaevoValueError(f"Dimension must be strictly positive, got {dimension}")
        if population_size < 2:
            raise errors.CmaevoValueError(f"Population size must be at least 2, got {population_size}")
        if population_size < 4:
            warnings.warn(
                f"Population size {population_size} is very small for CMA-ES",
                errors.InefficientSettingsWarning,
            )
        n = float(dimension)
        self.dimension = int(dimension)
        self.population_size = int(population_size)
        self.mu = self.population_size // 2
        weights = recombination_weights(self.mu)
        weights.flags.writeable = False
        self.weights = weights
        self.mueff = float(1.0 / np.sum(weights ** 2))
        mueff = self.mueff
        # cumulation and damping for the step size
        self.cs = (mueff + 2.0) / (n + mueff + 5.0)
        self.damps = 1.0 + 2.0 * max(0.0, float(np.sqrt((mueff - 1.0) / (n + 1.0))) - 1.0) + self.cs
        # cumulation and learning rates for the covariance
        self.cc = (4.0 + mueff / n) / (n + 4.0 + 2.0 * mueff / n)
        self.c1 = 2.0 / ((n + 1.3) ** 2 + mueff)
        self.cmu = min(1.0 - self.c1, 2.0 * (mueff - 2.0 + 1.0 / mueff) / ((n + 2.0) ** 2 + mueff))
        self.chi_n = expected_chi_norm(dimension)
        self.hsig_threshold = 1.4 + 2.0 / (n + 1.0)

    def as_dict(self) -> tp.Dict[str, tp.Any]:
        return {
            "dimension": self.dimension,
            "population_size": self.population_size,
            "mu": self.mu,
            "weights": self.weights.tolist(),
            "mueff": self.mueff,
            "cs": self.cs,
            "damps": self.damps,
            "cc": self.cc,
            "c1": self.c1,
            "cmu": self.cmu,
            "chi_n": self.chi_n,
        }

    def __eq__(self, other: tp.Any) -> bool:
        if not isinstance(other, StrategyParameters):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def __repr__(self) -> str:
        return f"StrategyParameters(dimension={self.dimension}, population_size={self.population_size}, mu={self.mu})"
