# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .common import errors as errors
from .common import typing as typing
from .linalg import Vector as Vector
from .linalg import Matrix as Matrix
from .optimization import CMAES as CMAES
from .optimization import population_size as population_size
from .optimization import registry as optimizers
from .optimization import callbacks as callbacks
from .optimization import checkpoint as checkpoint
from . import functions as functions


__all__ = [
    "CMAES",
    "Vector",
    "Matrix",
    "population_size",
    "optimizers",
    "callbacks",
    "checkpoint",
    "functions",
    "errors",
    "typing",
]


__version__ = "0.1.0"
