# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .cmaes import CMAES
from .cmaes import ParametrizedCMAES
from .cmaes import registry
from .parameters import population_size
from .parameters import StrategyParameters
from .state import Solution
from .covariance import CovarianceMatrix
from . import callbacks
from . import checkpoint
