# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import time
import logging
import typing as tp
from pathlib import Path
import pytest
from cmaevo.common import errors
from cmaevo.functions import corefuncs
from cmaevo.functions import evaluators
from . import callbacks
from . import checkpoint
from .cmaes import CMAES


def _sphere(candidates: tp.List[tp.Any]) -> tp.List[float]:
    return [corefuncs.sphere(x) for x in candidates]


def test_optimization_logger(caplog: tp.Any) -> None:
    logger = logging.getLogger("cmaevo.test")
    optim = CMAES([1.0, 1.0], 1.0, seed=12)
    optim.register_callback("epoch", callbacks.OptimizationLogger(logger=logger, log_interval_epochs=2))
    with caplog.at_level(logging.INFO, logger="cmaevo.test"):
        optim.minimize(_sphere, max_epochs=5)
    messages = [r.getMessage() for r in caplog.records if r.name == "cmaevo.test"]
    assert len(messages) == 2
    assert messages[0].startswith("After 2 epochs, best value is ")
    assert "sigma=" in messages[1]


def test_optimization_printer(capsys: tp.Any) -> None:
    optim = CMAES([1.0, 1.0], 1.0, seed=12)
    optim.register_callback("epoch", callbacks.OptimizationPrinter(print_interval_epochs=3))
    for _ in range(7):
        optim.epoch(_sphere)
    lines = capsys.readouterr().out.strip().splitlines()
    assert [line.split(",")[0] for line in lines] == ["After 3 epochs", "After 6 epochs"]


def test_optimizer_dump(tmp_path: Path) -> None:
    filepath = tmp_path / "dump" / "cmaes.json"
    optim = CMAES([1.0, -1.0], 0.5, seed=12)
    optim.register_callback("epoch", callbacks.OptimizerDump(filepath))
    for _ in range(4):
        optim.epoch(_sphere)
    loaded = checkpoint.load(filepath)
    assert loaded.generation == 4
    assert loaded.mean == optim.mean
    assert loaded.ask() == optim.ask()


def test_solution_recorder() -> None:
    recorder = callbacks.SolutionRecorder()
    optim = CMAES([0.5, 0.5], 0.3, seed=12)
    optim.register_callback("solution", recorder)
    evaluator = evaluators.SphereEvaluator(threshold=0.1)
    for _ in range(20):
        optim.epoch(evaluator)
    assert recorder.solutions
    generations = [generation for generation, _, _ in recorder.solutions]
    assert generations == sorted(generations)
    assert all(value < 0.1 for _, _, value in recorder.solutions)


def test_early_stopping() -> None:
    optim = CMAES([1.0, 1.0], 1.0, seed=12)
    optim.register_callback("epoch", callbacks.EarlyStopping(lambda opt: opt.generation > 3))
    optim.minimize(_sphere, max_epochs=100)
    assert optim.generation == 4
    # a second run stops immediately
    optim.minimize(_sphere, max_epochs=100)
    assert optim.generation == 5


def test_early_stopping_outside_minimize() -> None:
    optim = CMAES([1.0, 1.0], 1.0, seed=12)
    optim.register_callback("epoch", callbacks.EarlyStopping(lambda opt: True))
    with pytest.raises(errors.CmaevoEarlyStopping):
        optim.epoch(_sphere)
    assert optim.generation == 1


def test_early_stopping_on_wrong_event() -> None:
    optim = CMAES([0.01, 0.01], 0.01, seed=12)
    optim.register_callback("solution", callbacks.EarlyStopping(lambda opt: False))
    with pytest.raises(errors.CmaevoRuntimeError):
        optim.epoch(evaluators.SphereEvaluator())


def test_duration_criterion() -> None:
    optim = CMAES([1.0, 1.0], 1.0)
    crit = callbacks._DurationCriterion(0.05)
    assert not crit(optim)
    assert not crit(optim)
    time.sleep(0.06)
    assert crit(optim)


def test_no_improvement_stopper() -> None:
    optim = CMAES([1.0, 1.0], 1.0)
    optim.register_callback("epoch", callbacks.EarlyStopping.no_improvement_stopper(3))
    optim.minimize(lambda candidates: [1.0 + 0.01 * k for k in range(len(candidates))], max_epochs=100)
    # first epoch sets the reference, the next 4 do not improve
    assert optim.generation == 5


def test_timer() -> None:
    optim = CMAES([1.0, 1.0], 1.0)
    optim.register_callback("epoch", callbacks.EarlyStopping.timer(0.0))
    optim.minimize(_sphere, max_epochs=100)
    assert optim.generation in (1, 2)
