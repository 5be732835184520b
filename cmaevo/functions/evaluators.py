# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Single-genome objective evaluators, usable with :code:`CMAES.epoch`.

Each evaluator reports a genome as an acceptable solution (through the
solution callback) when its squared distance to the origin, where all the
provided functions reach their optimum, is below a threshold.
"""

from math import exp, sqrt, e
import numpy as np
import cmaevo.common.typing as tp
from cmaevo.linalg import Vector
from . import corefuncs


class FunctionEvaluator:
    """Wraps a function of the registry (or any callable on vectors) as an evaluator

    Parameters
    ----------
    function: str or callable
        name of a function of :code:`corefuncs.registry`, or a callable taking a Vector
    threshold: float
        genomes with squared magnitude strictly below this value are reported as solutions
    """

    def __init__(self, function: tp.Union[str, tp.Callable[[Vector], float]], threshold: float) -> None:
        self.function = corefuncs.registry[function] if isinstance(function, str) else function
        self.threshold = threshold
        self.num_evaluations = 0

    def objective(self, genome: Vector, solution_callback: tp.SolutionCallback) -> float:
        self.num_evaluations += 1
        diff = genome.squared_magnitude  # distance from origin is the error
        if diff < self.threshold:
            solution_callback(genome, diff)
        return float(self.function(genome))

    def __call__(self, genomes: tp.List[Vector]) -> tp.List[float]:
        """Batch evaluation, without solution reporting"""
        self.num_evaluations += len(genomes)
        return [float(self.function(genome)) for genome in genomes]

    def __repr__(self) -> str:
        name = getattr(self.function, "__name__", self.function.__class__.__name__)
        return f"{self.__class__.__name__}({name}, threshold={self.threshold})"


class SphereEvaluator(FunctionEvaluator):
    def __init__(self, threshold: float = 0.01) -> None:
        super().__init__(corefuncs.sphere, threshold)


class RastriginEvaluator(FunctionEvaluator):
    def __init__(self, threshold: float = 0.1) -> None:
        super().__init__(corefuncs.rastrigin, threshold)


def classic_ackley(x: Vector) -> float:
    """Ackley function with fixed coefficients (the two-dimensional form).
    Unlike :code:`corefuncs.ackley`, the sums are not normalized by the dimension.
    """
    data = x.data
    sum_cos = float(np.sum(np.cos(2 * np.pi * data)))
    return -20.0 * exp(-0.2 * sqrt(x.squared_magnitude)) - exp(0.5 * sum_cos) + e + 20


class AckleyEvaluator(FunctionEvaluator):
    def __init__(self, threshold: float = 0.1) -> None:
        super().__init__(classic_ackley, threshold)
