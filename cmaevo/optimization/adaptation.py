# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Per-generation adaptation of the evolution paths, the step size
(cumulative step-size adaptation) and the covariance matrix
(rank-one + rank-mu updates).
"""

import logging
import numpy as np
import cmaevo.common.typing as tp
from cmaevo.common import errors
from cmaevo.linalg import Vector
from cmaevo.linalg import Matrix
from .parameters import StrategyParameters
from .state import CMAESState


logger = logging.getLogger(__name__)


def stall_indicator(ps: Vector, num_updates: int, params: StrategyParameters) -> bool:
    """hsig: False when the conjugate path is abnormally long, which turns off
    the accumulation of pc (the rank-one update would otherwise follow a spurious step).
    The norm is corrected for the initial null value of ps.
    """
    correction = np.sqrt(1.0 - (1.0 - params.cs) ** (2 * num_updates))
    return bool(ps.norm / correction / params.chi_n < params.hsig_threshold)


def updated_sigma(sigma: float, ps: Vector, params: StrategyParameters) -> float:
    """sigma * exp((cs / damps) * (||ps|| / E||N(0,I)|| - 1))"""
    exponent = (params.cs / params.damps) * (ps.norm / params.chi_n - 1.0)
    with np.errstate(over="ignore"):
        sigma = float(sigma * np.exp(exponent))
    if not (np.isfinite(sigma) and sigma > 0):
        raise errors.InvalidState(f"Step size became {sigma} (exponent {exponent})")
    return sigma


def rank_mu_matrix(steps: tp.Sequence[Vector], weights: tp.Sequence[float]) -> Matrix:
    """sum_i w_i y_i y_i^T"""
    data = np.array([y.data for y in steps])
    return Matrix((data.T * np.asarray(weights)).dot(data))


def adapt(state: CMAESState, new_mean: Vector, selected: tp.Sequence[Vector]) -> None:
    """Updates the state after selection: evolution paths, covariance matrix and
    step size, then moves the mean. The state is left untouched if an error is raised.

    Parameters
    ----------
    state: CMAESState
        state which was used for sampling the selected candidates
    new_mean: Vector
        recombination of the selected candidates
    selected: sequence of Vector
        the mu best candidates, best first
    """
    params = state.parameters
    paths = state.paths
    old_mean, sigma = state.mean, state.sigma
    cs, cc, c1, cmu, mueff = params.cs, params.cc, params.c1, params.cmu, params.mueff
    step = (new_mean - old_mean) / sigma
    # conjugate evolution path, in the whitened coordinate frame
    whitened = state.covariance.inverse_sqrt() @ step
    ps = (1.0 - cs) * paths.ps + float(np.sqrt(cs * (2.0 - cs) * mueff)) * whitened
    hsig = stall_indicator(ps, state.generation + 1, params)
    if not hsig:
        logger.debug("Stalling rank-one accumulation at generation %s (||ps||=%s)", state.generation, ps.norm)
    pc = (1.0 - cc) * paths.pc
    if hsig:
        pc = pc + float(np.sqrt(cc * (2.0 - cc) * mueff)) * step
    # covariance: decay + rank-one + rank-mu
    cov = state.covariance.matrix
    rank_one = pc.outer(pc)
    if not hsig:  # compensates the variance loss of pc
        rank_one = rank_one + (cc * (2.0 - cc)) * cov
    steps = [(x - old_mean) / sigma for x in selected]
    new_cov = (1.0 - c1 - cmu) * cov + c1 * rank_one + cmu * rank_mu_matrix(steps, params.weights)
    new_sigma = updated_sigma(sigma, ps, params)
    # all checks passed, commit
    state.covariance.update(new_cov)
    paths.ps, paths.pc = ps, pc
    state.mean = new_mean
    state.sigma = new_sigma
    logger.debug("Generation %s: sigma %s -> %s", state.generation, sigma, new_sigma)
