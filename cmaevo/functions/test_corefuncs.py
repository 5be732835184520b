# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import numpy as np
from cmaevo.common import testing
from cmaevo.linalg import Vector
from . import corefuncs


@testing.parametrized(**{name: (name,) for name in corefuncs.registry})
def test_optimum_at_origin(name: str) -> None:
    func = corefuncs.registry[name]
    optimum = np.ones(4) if name == "rosenbrock" else np.zeros(4)
    np.testing.assert_almost_equal(func(optimum), 0.0)
    assert func(optimum + 0.1) > func(optimum)
    assert func(Vector(optimum)) == func(optimum)


@testing.parametrized(
    sphere=("sphere", [1.0, 2.0], 5.0),
    rastrigin=("rastrigin", [1.0, 0.5], 21.25),
    ellipsoid=("ellipsoid", [1.0, 1.0], 1000001.0),
    rosenbrock=("rosenbrock", [0.0, 0.0], 1.0),
    ackley=("ackley", [1.0, 1.0], 3.6253849384403627),
)
def test_values(name: str, x: tp.List[float], expected: float) -> None:
    np.testing.assert_almost_equal(corefuncs.registry[name](x), expected)


def test_registry_names() -> None:
    assert sorted(corefuncs.registry) == ["ackley", "ellipsoid", "rastrigin", "rosenbrock", "sphere"]
