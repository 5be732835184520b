# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .core import Vector
from .core import Matrix
from .eigen import Decomposition
from .eigen import SymmetricEigenSolver
from . import eigen
