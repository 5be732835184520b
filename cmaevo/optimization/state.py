# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import cmaevo.common.typing as tp
from cmaevo.common import errors
from cmaevo.linalg import Vector
from .covariance import CovarianceMatrix
from .parameters import StrategyParameters


class Solution(tp.NamedTuple):
    """A point and its objective value"""

    x: Vector
    value: float


class EvolutionPaths:
    """Exponentially smoothed mean displacements

    Parameters
    ----------
    dimension: int
        dimension of the search space, both paths start at 0
    """

    def __init__(self, dimension: int) -> None:
        self.ps = Vector.zeros(dimension)  # conjugate path, drives the step size
        self.pc = Vector.zeros(dimension)  # drives the rank-one covariance update

    def __repr__(self) -> str:
        return f"EvolutionPaths(ps={self.ps}, pc={self.pc})"


class CMAESState:  # pylint: disable=too-many-instance-attributes
    """Full mutable state of a CMA-ES run.

    It is mutated in place once per generation, and is entirely
    serializable (see :code:`cmaevo.optimization.checkpoint`).

    Parameters
    ----------
    mean: Vector
        center of the search distribution
    sigma: float
        step size, strictly positive
    parameters: StrategyParameters
        constants derived from the dimension and the population size
    covariance: CovarianceMatrix
        shape of the search distribution
    random_state: np.random.RandomState
        generator used for all the sampling of this run
    """

    def __init__(
        self,
        mean: Vector,
        sigma: float,
        parameters: StrategyParameters,
        covariance: CovarianceMatrix,
        random_state: np.random.RandomState,
    ) -> None:
        if not (np.isfinite(sigma) and sigma > 0):
            raise errors.CmaevoValueError(f"Step size must be strictly positive and finite, got {sigma}")
        for name, dim in [("Covariance", covariance.dimension), ("Strategy parameters", parameters.dimension)]:
            if dim != mean.dimension:
                raise errors.DimensionMismatch(f"{name} dimension {dim} does not match mean dimension {mean.dimension}")
        self.mean = mean
        self.sigma = float(sigma)
        self.parameters = parameters
        self.covariance = covariance
        self.paths = EvolutionPaths(mean.dimension)
        self.generation = 0
        self.best = Solution(mean, float("inf"))
        self.random_state = random_state

    @property
    def dimension(self) -> int:
        return self.mean.dimension

    def update_best(self, candidates: tp.Sequence[Vector], losses: tp.Sequence[float]) -> bool:
        """Records the first of the candidates with minimal loss if it strictly improves
        on the current best. Returns whether it did.
        """
        if not candidates:
            return False
        index = min(range(len(losses)), key=losses.__getitem__)
        if losses[index] < self.best.value:
            self.best = Solution(candidates[index], float(losses[index]))
            return True
        return False

    def __repr__(self) -> str:
        return (
            f"CMAESState(dimension={self.dimension}, generation={self.generation}, "
            f"sigma={self.sigma}, best={self.best.value})"
        )
