# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Definitions of some convenient types.
"""
# pylint: disable=unused-import
# structures
from typing import Any as Any
from typing import TypeVar as TypeVar
from typing import Optional as Optional
from typing import Union as Union
from typing import Type as Type

# containers
from typing import Dict as Dict
from typing import Tuple as Tuple
from typing import List as List
from typing import Sequence as Sequence
from typing import NamedTuple as NamedTuple
from typing import MutableMapping as MutableMapping

# iterables
from typing import Iterator as Iterator
from typing import Iterable as Iterable

# others
from typing import Callable as Callable
from typing import Hashable as Hashable
from pathlib import Path as Path
from typing_extensions import Protocol
from typing_extensions import runtime_checkable

#
import numpy as _np


ArrayLike = Union[Tuple[float, ...], List[float], _np.ndarray]
PathLike = Union[str, Path]


# %% Protocol definitions for objective evaluation

G_contra = TypeVar("G_contra", contravariant=True)
SolutionCallback = Callable[[Any, float], None]


@runtime_checkable
class ObjectiveEvaluator(Protocol[G_contra]):
    """Single-genome objective, lower is better.
    It may call :code:`solution_callback(genome, value)` at most once per call,
    when the genome is deemed an acceptable solution by the evaluator itself.
    """

    # pylint: disable=pointless-statement, unused-argument

    def objective(self, genome: G_contra, solution_callback: SolutionCallback) -> float:
        ...
