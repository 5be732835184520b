# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import cmaevo.common.typing as tp
from cmaevo.linalg import Vector
from cmaevo.linalg import Matrix
from .state import CMAESState


def sample(state: CMAESState, count: int) -> tp.Iterator[Vector]:
    """Draws count candidates from the current search distribution

        m + sigma * N(0, C) = m + sigma * B D N(0, I)

    Standard normal draws come from the state's own random state, one vector
    at a time, in the order the candidates are yielded.
    The decomposition is (re)computed on the first draw if the covariance was updated.
    """
    decomposition = state.covariance.decomposition()
    transform = decomposition.eigenvectors @ Matrix.diag(state.covariance.sqrt_eigenvalues())
    mean, sigma = state.mean, state.sigma
    rng = state.random_state
    for _ in range(count):
        z = Vector(rng.normal(0, 1, state.dimension))
        yield mean + sigma * (transform @ z)
