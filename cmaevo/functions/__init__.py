# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from . import corefuncs
from .evaluators import FunctionEvaluator
from .evaluators import SphereEvaluator
from .evaluators import RastriginEvaluator
from .evaluators import AckleyEvaluator
from .evaluators import classic_ackley
