# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""JSON checkpoints of CMAES optimizers.

The snapshot holds the complete mutable state, including the state of the
random generator, so that a restored optimizer continues with exactly the same
trajectory. Floats are written with their full repr, which makes the round trip exact.
Derived constants (weights, learning rates) are recomputed on restore and
checked against the stored ones.
"""

import json
import logging
from pathlib import Path
import numpy as np
import cmaevo.common.typing as tp
from cmaevo.common import errors
from cmaevo.linalg import Vector
from cmaevo.linalg import Matrix
from .cmaes import CMAES
from .parameters import StrategyParameters
from .state import Solution


logger = logging.getLogger(__name__)
VERSION = 1
_MT19937_SIZE = 624
_REQUIRED = (
    "version",
    "mean",
    "sigma",
    "covariance",
    "ps",
    "pc",
    "generation",
    "population_size",
    "mu",
    "weights",
    "best",
    "rng",
)


def to_dict(optimizer: CMAES) -> tp.Dict[str, tp.Any]:
    """Snapshot of the optimizer state, as JSON-compatible data"""
    state = optimizer.state
    name, keys, pos, has_gauss, cached_gaussian = state.random_state.get_state()
    return {
        "version": VERSION,
        "name": optimizer.name,
        "mean": state.mean.tolist(),
        "sigma": state.sigma,
        "covariance": state.covariance.matrix.tolist(),
        "ps": state.paths.ps.tolist(),
        "pc": state.paths.pc.tolist(),
        "generation": state.generation,
        "population_size": state.parameters.population_size,
        "mu": state.parameters.mu,
        "weights": state.parameters.weights.tolist(),
        "best": {"x": state.best.x.tolist(), "value": state.best.value},
        "rng": {
            "name": name,
            "keys": [int(k) for k in keys],
            "pos": int(pos),
            "has_gauss": int(has_gauss),
            "cached_gaussian": float(cached_gaussian),
        },
        "eigensolver": state.covariance.eigensolver.name,
    }


def _vector(data: tp.Dict[str, tp.Any], key: str, dimension: int) -> Vector:
    vec = Vector(data[key])
    if vec.dimension != dimension:
        raise errors.CorruptCheckpoint(f'Field "{key}" has dimension {vec.dimension} instead of {dimension}')
    if not vec.is_finite():
        raise errors.CorruptCheckpoint(f'Field "{key}" has non-finite components')
    return vec


def _integer(data: tp.Dict[str, tp.Any], key: str) -> int:
    value = data[key]
    numeric = isinstance(value, (int, float)) and not isinstance(value, bool)
    if not (numeric and np.isfinite(value) and value == int(value)):
        raise errors.CorruptCheckpoint(f'Field "{key}" must be an integer, got {value!r}')
    return int(value)


def _mt19937_keys(rng_data: tp.Dict[str, tp.Any]) -> np.ndarray:
    keys = rng_data["keys"]
    if not isinstance(keys, list) or len(keys) != _MT19937_SIZE:
        raise errors.CorruptCheckpoint(f"Random state must hold {_MT19937_SIZE} keys")
    if not all(isinstance(k, int) and not isinstance(k, bool) and 0 <= k < 2 ** 32 for k in keys):
        raise errors.CorruptCheckpoint("Random state keys must be unsigned 32-bit integers")
    return np.array(keys, dtype=np.uint32)


def from_dict(data: tp.Dict[str, tp.Any], eigensolver: tp.Optional[tp.Any] = None) -> CMAES:
    """Rebuilds an optimizer from a snapshot

    Parameters
    ----------
    data: dict
        snapshot as provided by :code:`to_dict`
    eigensolver: str, callable or None
        eigensolver backend to use, defaults to the one recorded in the snapshot

    Raises
    ------
    CorruptCheckpoint
        if fields are missing, ill-typed, or have inconsistent dimensions
    """
    if not isinstance(data, dict):
        raise errors.CorruptCheckpoint(f"Checkpoint must be a mapping, got {type(data)}")
    missing = [key for key in _REQUIRED if key not in data]
    if missing:
        raise errors.CorruptCheckpoint(f"Checkpoint is missing fields: {missing}")
    if data["version"] != VERSION:
        raise errors.CorruptCheckpoint(f"Unsupported checkpoint version {data['version']}")
    try:
        return _from_dict(data, eigensolver)
    except errors.CorruptCheckpoint:
        raise
    except (KeyError, IndexError, TypeError, ValueError, OverflowError) as e:
        raise errors.CorruptCheckpoint(f"Invalid checkpoint content: {e!r}") from e


def _from_dict(data: tp.Dict[str, tp.Any], eigensolver: tp.Optional[tp.Any]) -> CMAES:
    mean = Vector(data["mean"])
    dimension = mean.dimension
    if not dimension:
        raise errors.CorruptCheckpoint("Checkpoint mean is empty")
    covariance = Matrix(data["covariance"])
    if covariance.dimension != dimension:
        raise errors.CorruptCheckpoint(
            f"Covariance dimension {covariance.dimension} does not match mean dimension {dimension}"
        )
    if not covariance.is_finite() or not covariance.is_symmetric():
        raise errors.CorruptCheckpoint("Covariance matrix must be finite and symmetric")
    ps = _vector(data, "ps", dimension)
    pc = _vector(data, "pc", dimension)
    popsize = _integer(data, "population_size")
    parameters = StrategyParameters(dimension, popsize)
    if _integer(data, "mu") != parameters.mu:
        raise errors.CorruptCheckpoint(f"mu={data['mu']} is inconsistent with population size {popsize}")
    weights = np.asarray(data["weights"], dtype=float)
    if weights.shape != parameters.weights.shape or not np.allclose(weights, parameters.weights, rtol=1e-12):
        raise errors.CorruptCheckpoint(f"Recombination weights {weights.tolist()} do not match mu={parameters.mu}")
    generation = _integer(data, "generation")
    if generation < 0:
        raise errors.CorruptCheckpoint(f"Generation counter must be non-negative, got {generation}")
    best = data["best"]
    best_x = _vector(best, "x", dimension)
    best_value = float(best["value"])
    rng_data = data["rng"]
    random_state = np.random.RandomState()
    random_state.set_state(
        (
            str(rng_data["name"]),
            _mt19937_keys(rng_data),
            _integer(rng_data, "pos"),
            _integer(rng_data, "has_gauss"),
            float(rng_data["cached_gaussian"]),
        )
    )
    if eigensolver is None:
        eigensolver = data.get("eigensolver", "numpy")
    try:
        optimizer = CMAES(mean, float(data["sigma"]), popsize, random_state=random_state, eigensolver=eigensolver)
    except KeyError as e:
        raise errors.CorruptCheckpoint(
            f"Unknown eigensolver {eigensolver!r}, provide one through the eigensolver argument"
        ) from e
    if "name" in data:
        optimizer.name = str(data["name"])
    state = optimizer.state
    state.covariance.update(covariance)
    state.paths.ps = ps
    state.paths.pc = pc
    state.generation = generation
    state.best = Solution(best_x, best_value)
    return optimizer


def dump(optimizer: CMAES, filepath: tp.PathLike) -> None:
    """Writes the optimizer snapshot into a JSON file"""
    filepath = Path(filepath)
    filepath.parent.mkdir(exist_ok=True, parents=True)
    with filepath.open("w") as f:
        json.dump(to_dict(optimizer), f)
    logger.debug("Dumped %s at generation %s into %s", optimizer.name, optimizer.generation, filepath)


def load(filepath: tp.PathLike, eigensolver: tp.Optional[tp.Any] = None) -> CMAES:
    """Loads an optimizer from a JSON file written by :code:`dump`"""
    filepath = Path(filepath)
    with filepath.open("r") as f:
        try:
            data = json.load(f)
        except ValueError as e:  # json.JSONDecodeError
            raise errors.CorruptCheckpoint(f"Could not decode checkpoint {filepath}: {e}") from e
    return from_dict(data, eigensolver=eigensolver)
