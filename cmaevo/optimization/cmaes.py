# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import time
import logging
import threading
import numpy as np
import cmaevo.common.typing as tp
from cmaevo.common import errors
from cmaevo.common.decorators import Registry
from cmaevo.linalg import Vector
from cmaevo.linalg import Matrix
from cmaevo.linalg.eigen import Backend
from . import adaptation
from . import sampling
from . import selection
from .covariance import CovarianceMatrix
from .parameters import StrategyParameters
from .parameters import population_size as population_size
from .state import CMAESState
from .state import Solution


logger = logging.getLogger(__name__)
registry: Registry["ParametrizedCMAES"] = Registry()
BatchEvaluation = tp.Callable[[tp.List[Vector]], tp.Sequence[float]]
_EpochCallback = tp.Callable[["CMAES"], None]
_SolutionCallback = tp.Callable[["CMAES", Vector, float], None]
X = tp.TypeVar("X", bound="CMAES")


class CMAES:  # pylint: disable=too-many-instance-attributes
    """Covariance Matrix Adaptation Evolution Strategy, minimizing black-box functions.

    Each generation ("epoch"):

    - samples :code:`popsize` candidates from N(mean, sigma^2 C),
    - evaluates them through a user provided function,
    - recombines the best mu of them into the new mean,
    - adapts the evolution paths, the step size and the covariance matrix.

    Parameters
    ----------
    mean: Vector or sequence of float
        starting point, its length sets the dimension
    sigma: float
        initial step size
    popsize: int or None
        number of candidates per generation, default to :code:`population_size(dimension)`
    seed: int or None
        seed of the random state (ignored if random_state is provided)
    random_state: np.random.RandomState or None
        random state owned by this optimizer, used for all sampling
    eigensolver: str or callable
        backend for the covariance decomposition ("numpy" or "scipy", see :code:`cmaevo.linalg.eigen`)

    Note
    ----
    The optimizer is not reentrant: one epoch at a time, from any thread. Candidates can however be
    evaluated in parallel by the batch evaluation function.
    """

    def __init__(
        self,
        mean: tp.Union[Vector, tp.Iterable[float]],
        sigma: float,
        popsize: tp.Optional[int] = None,
        *,
        seed: tp.Optional[int] = None,
        random_state: tp.Optional[np.random.RandomState] = None,
        eigensolver: tp.Union[str, Backend] = "numpy",
    ) -> None:
        mean = Vector(mean)
        if not mean.is_finite():
            raise errors.CmaevoValueError(f"Starting mean must be finite, got {mean}")
        dimension = mean.dimension
        popsize = population_size(dimension) if popsize is None else int(popsize)
        parameters = StrategyParameters(dimension, popsize)
        if random_state is None:
            random_state = np.random.RandomState(seed)
        self.state = CMAESState(
            mean, sigma, parameters, CovarianceMatrix(Matrix.identity(dimension), eigensolver), random_state
        )
        self.name = self.__class__.__name__
        self._callbacks: tp.Dict[str, tp.List[tp.Any]] = {}
        self._epoch_lock = threading.Lock()
        self._last_losses: tp.List[float] = []

    # # # # # accessors # # # # #

    @property
    def dimension(self) -> int:
        return self.state.dimension

    @property
    def popsize(self) -> int:
        return self.state.parameters.population_size

    @property
    def mu(self) -> int:
        return self.state.parameters.mu

    @property
    def weights(self) -> np.ndarray:
        return self.state.parameters.weights

    @property
    def mean(self) -> Vector:
        return self.state.mean

    @property
    def sigma(self) -> float:
        return self.state.sigma

    @property
    def generation(self) -> int:
        return self.state.generation

    @property
    def covariance(self) -> CovarianceMatrix:
        return self.state.covariance

    @property
    def best(self) -> Solution:
        return self.state.best

    def recommend(self) -> Solution:
        """Best solution evaluated so far (the starting mean with an infinite value
        before the first epoch)
        """
        return self.state.best

    # # # # # callbacks # # # # #

    def register_callback(self, name: str, callback: tp.Union[_EpochCallback, _SolutionCallback]) -> None:
        """Add a callback method called either after each epoch (:code:`callback(optimizer)`)
        or when an evaluator reports an acceptable solution (:code:`callback(optimizer, genome, value)`).

        Parameters
        ----------
        name: str
            "epoch" or "solution"
        callback: callable
            the function to call
        """
        assert name in ["epoch", "solution"], f'Only "epoch" and "solution" callbacks are supported (not {name})'
        self._callbacks.setdefault(name, []).append(callback)

    def remove_all_callbacks(self) -> None:
        """Removes all registered callables"""
        self._callbacks = {}

    # # # # # generation # # # # #

    def ask(self) -> tp.List[Vector]:
        """Samples the candidates of the current generation"""
        return list(sampling.sample(self.state, self.popsize))

    def tell(self, candidates: tp.Sequence[Vector], values: tp.Sequence[float]) -> Solution:
        """Updates the optimizer with the objective values of the candidates of the
        current generation, and returns the best solution so far.
        """
        if len(candidates) != self.popsize:
            raise errors.DimensionMismatch(f"Expected {self.popsize} candidates but got {len(candidates)}")
        if len(values) != len(candidates):
            raise errors.DimensionMismatch(f"Got {len(candidates)} candidates but {len(values)} objective values")
        losses = [selection.as_loss(v) for v in values]
        selected = selection.select(candidates, losses, self.mu)
        new_mean = selection.recombine(selected.candidates, self.weights)
        adaptation.adapt(self.state, new_mean, selected.candidates)
        self.state.update_best(candidates, losses)
        self.state.generation += 1
        self._last_losses = sorted(losses)
        for callback in self._callbacks.get("epoch", []):
            callback(self)
        return self.state.best

    def epoch(
        self,
        evaluate: tp.Union[BatchEvaluation, tp.ObjectiveEvaluator[Vector]],
        solution_callback: tp.Optional[tp.SolutionCallback] = None,
    ) -> Solution:
        """Runs one full generation: sample, evaluate, select, adapt.

        Parameters
        ----------
        evaluate: callable or ObjectiveEvaluator
            either a batch function, taking the list of all candidates and returning their
            values in the same order (it may evaluate them in parallel), or an evaluator
            providing a single-genome :code:`objective(genome, solution_callback)` method,
            which is then called on each candidate sequentially.
        solution_callback: callable or None
            only used with an evaluator, forwarded to its :code:`objective` method and called
            as :code:`solution_callback(genome, value)` on acceptable solutions

        Returns
        -------
        Solution
            the best solution so far
        """
        if not self._epoch_lock.acquire(blocking=False):
            raise errors.CmaevoRuntimeError(f"{self.name} is not reentrant, an epoch is already running")
        try:
            candidates = self.ask()
            if isinstance(evaluate, tp.ObjectiveEvaluator):
                values: tp.Sequence[float] = self._evaluate_sequentially(evaluate, candidates, solution_callback)
            else:
                if solution_callback is not None:
                    raise errors.CmaevoValueError("solution_callback can only be used with an ObjectiveEvaluator")
                values = list(evaluate(candidates))
            return self.tell(candidates, values)
        finally:
            self._epoch_lock.release()

    def _evaluate_sequentially(
        self,
        evaluator: tp.ObjectiveEvaluator[Vector],
        candidates: tp.List[Vector],
        solution_callback: tp.Optional[tp.SolutionCallback],
    ) -> tp.List[float]:
        def on_solution(genome: Vector, value: float) -> None:
            if solution_callback is not None:
                solution_callback(genome, value)
            for callback in self._callbacks.get("solution", []):
                callback(self, genome, value)

        return [evaluator.objective(candidate, on_solution) for candidate in candidates]

    def stop(self, tolx: float = 1e-11, tolfun: float = 1e-12, max_condition: float = 1e14) -> tp.Dict[str, float]:
        """Satisfied termination conditions, as a dict (empty if none is satisfied)

        - "tolx": sigma * max(D) < tolx, the distribution has collapsed
        - "tolfun": the losses of the last generation span less than tolfun
        - "condition": the condition number of the covariance exceeds max_condition
        """
        res: tp.Dict[str, float] = {}
        if not self.generation:
            return res
        if self.sigma * float(np.max(self.covariance.sqrt_eigenvalues().data)) < tolx:
            res["tolx"] = tolx
        if len(self._last_losses) > 1 and self._last_losses[-1] - self._last_losses[0] < tolfun:
            res["tolfun"] = tolfun
        condition = self.covariance.condition_number()
        if condition > max_condition:
            res["condition"] = condition
        return res

    def minimize(
        self,
        evaluate: tp.Union[BatchEvaluation, tp.ObjectiveEvaluator[Vector]],
        max_epochs: int,
        target: tp.Optional[float] = None,
        verbosity: int = 0,
    ) -> Solution:
        """Runs epochs until max_epochs is reached, the best value is below target,
        a termination condition of :code:`stop` is satisfied, or an early stopping
        callback is triggered.

        Parameters
        ----------
        evaluate: callable or ObjectiveEvaluator
            see :code:`epoch`
        max_epochs: int
            maximum number of generations to run from now
        target: float or None
            stops as soon as the best value is below or equal to it
        verbosity: int
            print information about the optimization (0: None, 1: termination, 2: every epoch)

        Returns
        -------
        Solution
            the best solution found
        """
        start = time.time()
        for _ in range(max_epochs):
            try:
                best = self.epoch(evaluate)
            except errors.CmaevoEarlyStopping as e:
                if verbosity:
                    print(f"Early stopping after {self.generation} epochs: {e}")
                break
            if verbosity > 1:
                print(f"Epoch {self.generation}: best value {best.value}, sigma {self.sigma}")
            if target is not None and best.value <= target:
                if verbosity:
                    print(f"Target {target} reached after {self.generation} epochs")
                break
            conditions = self.stop()
            if conditions:
                if verbosity:
                    print(f"Termination after {self.generation} epochs: {conditions}")
                logger.info("Stopping %s after %s epochs: %s", self.name, self.generation, conditions)
                break
        logger.debug("Minimization ran %s epochs in %.3fs", self.generation, time.time() - start)
        return self.recommend()

    # # # # # checkpointing # # # # #

    def dump(self, filepath: tp.PathLike) -> None:
        """Writes a JSON checkpoint of the full state (including the random state)"""
        from . import checkpoint  # pylint: disable=import-outside-toplevel

        checkpoint.dump(self, filepath)

    @classmethod
    def load(cls: tp.Type[X], filepath: tp.PathLike) -> X:
        """Restores an optimizer from a JSON checkpoint"""
        from . import checkpoint  # pylint: disable=import-outside-toplevel

        optimizer = checkpoint.load(filepath)
        assert isinstance(optimizer, cls), f"You should only load {cls} with this method (found {type(optimizer)})"
        return optimizer

    def __repr__(self) -> str:
        return f"Instance of {self.name}(dimension={self.dimension}, popsize={self.popsize}, generation={self.generation})"


class ParametrizedCMAES:
    """Creates CMAES instances with a given configuration.

    Parameters
    ----------
    scale: float
        initial step size
    popsize: Optional[int] = None
        population size, default is 4 + int(popsize_factor * log(dimension))
    popsize_factor: float = 3.
        factor in the formula for computing the population size
    eigensolver: str
        backend for the covariance decomposition
    """

    def __init__(
        self,
        *,
        scale: float = 1.0,
        popsize: tp.Optional[int] = None,
        popsize_factor: float = 3.0,
        eigensolver: str = "numpy",
    ) -> None:
        self._config = dict(scale=scale, popsize=popsize, popsize_factor=popsize_factor, eigensolver=eigensolver)
        if scale <= 0:
            raise errors.CmaevoValueError(f"scale must be strictly positive, got {scale}")
        self.scale = scale
        self.popsize = popsize
        self.popsize_factor = popsize_factor
        self.eigensolver = eigensolver
        defaults = dict(scale=1.0, popsize=None, popsize_factor=3.0, eigensolver="numpy")
        params = ", ".join(f"{x}={y!r}" for x, y in sorted(self._config.items()) if defaults[x] != y)
        self.name = f"{self.__class__.__name__}({params})"

    def config(self) -> tp.Dict[str, tp.Any]:
        return dict(self._config)

    def __call__(
        self,
        mean: tp.Union[Vector, tp.Iterable[float]],
        *,
        seed: tp.Optional[int] = None,
        random_state: tp.Optional[np.random.RandomState] = None,
    ) -> CMAES:
        """Creates an optimizer starting from the given mean"""
        mean = Vector(mean)
        popsize = self.popsize
        if popsize is None:
            popsize = population_size(mean.dimension, self.popsize_factor)
        run = CMAES(
            mean, self.scale, popsize, seed=seed, random_state=random_state, eigensolver=self.eigensolver
        )
        run.name = self.name
        return run

    def __repr__(self) -> str:
        return self.name

    def set_name(self, name: str, register: bool = False) -> "ParametrizedCMAES":
        """Set a new representation for the instance"""
        self.name = name
        if register:
            registry.register_name(name, self)
        return self

    def __eq__(self, other: tp.Any) -> tp.Any:
        if self.__class__ == other.__class__:
            return self._config == other._config
        return False


DefaultCMAES = ParametrizedCMAES().set_name("CMAES", register=True)
LargePopCMAES = ParametrizedCMAES(popsize_factor=6.0).set_name("LargePopCMAES", register=True)
ScipyCMAES = ParametrizedCMAES(eigensolver="scipy").set_name("ScipyCMAES", register=True)
