# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from math import exp, sqrt
import numpy as np
import cmaevo.common.typing as tp
from cmaevo.common.decorators import Registry
from cmaevo.linalg import Vector


registry: Registry[tp.Callable[[np.ndarray], float]] = Registry()


def _array(x: tp.Union[Vector, tp.ArrayLike]) -> np.ndarray:
    return x.data if isinstance(x, Vector) else np.asarray(x, dtype=float)


@registry.register
def sphere(x: tp.Union[Vector, tp.ArrayLike]) -> float:
    """The most classical continuous optimization testbed.

    If you do not solve that one then you have a bug."""
    x = _array(x)
    assert x.ndim == 1
    return float(x.dot(x))


@registry.register
def rastrigin(x: tp.Union[Vector, tp.ArrayLike]) -> float:
    """Classical multimodal function."""
    x = _array(x)
    cosi = float(np.sum(np.cos(2 * np.pi * x)))
    return float(10 * (len(x) - cosi) + sphere(x))


@registry.register
def ackley(x: tp.Union[Vector, tp.ArrayLike]) -> float:
    x = _array(x)
    dim = x.size
    sum_cos = np.sum(np.cos(2 * np.pi * x))
    return -20.0 * exp(-0.2 * sqrt(sphere(x) / dim)) - exp(sum_cos / dim) + 20 + exp(1)


@registry.register
def ellipsoid(x: tp.Union[Vector, tp.ArrayLike]) -> float:
    """Classical example of ill conditioned function."""
    x = _array(x)
    weights = 10 ** np.linspace(0, 6, x.size)
    return float(weights.dot(x ** 2))


@registry.register
def rosenbrock(x: tp.Union[Vector, tp.ArrayLike]) -> float:
    x = _array(x)
    x_m_1 = x[:-1] - 1
    x_diff = x[:-1] ** 2 - x[1:]
    return float(100 * x_diff.dot(x_diff) + x_m_1.dot(x_m_1))
