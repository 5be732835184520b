# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import time
import logging
from pathlib import Path
import numpy as np
import cmaevo.common.typing as tp
from cmaevo.common import errors
from cmaevo.linalg import Vector
from . import checkpoint
from .cmaes import CMAES

global_logger = logging.getLogger(__name__)

# -------------------------------------------------------------------------------------


class OptimizationPrinter:
    """Printer to register as "epoch" callback in an optimizer, for printing
    best point regularly.

    Parameters
    ----------
    print_interval_epochs: int
        max number of epochs before performing another print
    print_interval_seconds: float
        max number of seconds before performing another print
    """

    def __init__(self, print_interval_epochs: int = 1, print_interval_seconds: float = 60.0) -> None:
        assert print_interval_epochs > 0
        assert print_interval_seconds > 0
        self._print_interval_epochs = int(print_interval_epochs)
        self._print_interval_seconds = print_interval_seconds
        self._next_epoch = self._print_interval_epochs
        self._next_time = time.time() + print_interval_seconds

    def __call__(self, optimizer: CMAES) -> None:
        if time.time() >= self._next_time or optimizer.generation >= self._next_epoch:
            self._next_time = time.time() + self._print_interval_seconds
            self._next_epoch = optimizer.generation + self._print_interval_epochs
            best = optimizer.recommend()
            print(f"After {optimizer.generation} epochs, best value is {best.value} at {best.x}")


# -------------------------------------------------------------------------------------


class OptimizationLogger:
    """Logger to register as "epoch" callback in an optimizer, for logging
    best value and step size regularly.

    Parameters
    ----------
    logger:
        given logger that callback will use to log
    log_level:
        log level that logger will write to
    log_interval_epochs: int
        max number of epochs before performing another log
    log_interval_seconds:
        max number of seconds before performing another log
    """

    def __init__(
        self,
        *,
        logger: logging.Logger = global_logger,
        log_level: int = logging.INFO,
        log_interval_epochs: int = 1,
        log_interval_seconds: float = 60.0,
    ) -> None:
        assert log_interval_epochs > 0
        assert log_interval_seconds > 0
        self._logger = logger
        self._log_level = log_level
        self._log_interval_epochs = int(log_interval_epochs)
        self._log_interval_seconds = log_interval_seconds
        self._next_epoch = self._log_interval_epochs
        self._next_time = time.time() + log_interval_seconds

    def __call__(self, optimizer: CMAES) -> None:
        if time.time() >= self._next_time or optimizer.generation >= self._next_epoch:
            self._next_time = time.time() + self._log_interval_seconds
            self._next_epoch = optimizer.generation + self._log_interval_epochs
            self._logger.log(
                self._log_level,
                "After %s epochs, best value is %s (sigma=%s)",
                optimizer.generation,
                optimizer.recommend().value,
                optimizer.sigma,
            )


# -------------------------------------------------------------------------------------


class SolutionRecorder:
    """Records the acceptable solutions reported by an evaluator.
    To register on the "solution" event.
    """

    def __init__(self) -> None:
        self.solutions: tp.List[tp.Tuple[int, Vector, float]] = []

    def __call__(self, optimizer: CMAES, genome: Vector, value: float) -> None:
        self.solutions.append((optimizer.generation, genome, value))


# -------------------------------------------------------------------------------------


class OptimizerDump:
    """Dumps a JSON checkpoint of the optimizer at every call.

    Parameters
    ----------
    filepath: str or Path
        path to the checkpoint file
    """

    def __init__(self, filepath: tp.Union[str, Path]) -> None:
        self._filepath = filepath

    def __call__(self, optimizer: CMAES) -> None:
        checkpoint.dump(optimizer, self._filepath)


# -------------------------------------------------------------------------------------


class EarlyStopping:
    """Callback for stopping the :code:`minimize` method before the maximum
    number of epochs is reached.

    Parameters
    ----------
    stopping_criterion: func(optimizer) -> bool
        function that takes the current optimizer as input and returns True
        if the minimization must be stopped

    Note
    ----
    This callback must be registered on the "epoch" event.

    Example
    -------
    In the following code, the :code:`minimize` method will be stopped after the 4th epoch

    >>> early_stopping = cmaevo.callbacks.EarlyStopping(lambda opt: opt.generation > 3)
    >>> optimizer.register_callback("epoch", early_stopping)
    >>> optimizer.minimize(func, max_epochs=100)
    """

    def __init__(self, stopping_criterion: tp.Callable[[CMAES], bool]) -> None:
        self.stopping_criterion = stopping_criterion

    def __call__(self, optimizer: CMAES, *args: tp.Any) -> None:
        if args:
            raise errors.CmaevoRuntimeError("EarlyStopping must be registered on the epoch event")
        if self.stopping_criterion(optimizer):
            raise errors.CmaevoEarlyStopping("Early stopping criterion is reached")

    @classmethod
    def timer(cls, max_duration: float) -> "EarlyStopping":
        """Early stop when max_duration seconds has been reached (from the first epoch)"""
        return cls(_DurationCriterion(max_duration))

    @classmethod
    def no_improvement_stopper(cls, tolerance_window: int) -> "EarlyStopping":
        """Early stop when the best value did not decrease during tolerance_window epochs"""
        return cls(_LossImprovementToleranceCriterion(tolerance_window))


class _DurationCriterion:
    def __init__(self, max_duration: float) -> None:
        self._start = float("inf")
        self._max_duration = max_duration

    def __call__(self, optimizer: CMAES) -> bool:
        if np.isinf(self._start):
            self._start = time.time()
        return time.time() > self._start + self._max_duration


class _LossImprovementToleranceCriterion:
    def __init__(self, tolerance_window: int) -> None:
        self._tolerance_window: int = tolerance_window
        self._best_value: tp.Optional[float] = None
        self._tolerance_count: int = 0

    def __call__(self, optimizer: CMAES) -> bool:
        best_value = optimizer.recommend().value
        if self._best_value is None:
            self._best_value = best_value
            return False
        if self._best_value <= best_value:
            self._tolerance_count += 1
        else:
            self._tolerance_count = 0
            self._best_value = best_value
        return self._tolerance_count > self._tolerance_window
