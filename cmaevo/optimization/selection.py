# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""(mu/mu_w, lambda) selection: the mu best offsprings are kept,
and recombined with decreasing weights.
"""

import warnings
from numbers import Real
import numpy as np
import cmaevo.common.typing as tp
from cmaevo.common import errors
from cmaevo.linalg import Vector

# sys.float_info.max leads to numerical problems in later computations
MAX_LOSS = 5.0e20


def as_loss(value: tp.Any) -> float:
    """Checks an objective value and converts it to float.
    NaNs and very large values are clipped to MAX_LOSS.
    """
    if not isinstance(value, (Real, float)):
        raise TypeError(f"Objective values must be floats but got {value} (type: {type(value)}).")
    loss = float(value)
    if not loss < MAX_LOSS:  # pylint: disable=unneeded-not
        warnings.warn(
            f"Clipping very high value {loss} (rescale the objective function?).", errors.LossTooLargeWarning
        )
        loss = MAX_LOSS
    return loss


def rank(losses: tp.Sequence[float]) -> tp.List[int]:
    """Indices sorted by increasing loss. The sort is stable: ties keep the
    population order.
    """
    return sorted(range(len(losses)), key=losses.__getitem__)


class Selection(tp.NamedTuple):
    candidates: tp.List[Vector]
    losses: tp.List[float]


def select(candidates: tp.Sequence[Vector], losses: tp.Sequence[float], mu: int) -> Selection:
    """Returns the mu best candidates, best first"""
    if len(candidates) != len(losses):
        raise errors.DimensionMismatch(f"Got {len(candidates)} candidates but {len(losses)} objective values")
    if not 0 < mu <= len(candidates):
        raise errors.CmaevoValueError(f"Cannot select {mu} parents out of {len(candidates)} candidates")
    order = rank(losses)[:mu]
    return Selection([candidates[k] for k in order], [losses[k] for k in order])


def recombine(selected: tp.Sequence[Vector], weights: tp.Sequence[float]) -> Vector:
    """Weighted sum of the selected candidates (best first)"""
    if len(selected) != len(weights):
        raise errors.DimensionMismatch(f"Got {len(selected)} candidates but {len(weights)} weights")
    if not selected:
        raise errors.CmaevoValueError("Cannot recombine an empty selection")
    dimension = selected[0].dimension
    if any(x.dimension != dimension for x in selected):
        raise errors.DimensionMismatch("Selected candidates have different dimensions")
    data = np.array([x.data for x in selected])
    return Vector(np.asarray(weights, dtype=float).dot(data))
