# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import numpy as np
from . import testing


def test_printed_assert_equal() -> None:
    testing.printed_assert_equal(0, 0)
    np.testing.assert_raises(AssertionError, testing.printed_assert_equal, 0, 1)


@testing.parametrized(
    same=([1.0, 2.0], [1.0, 2.0], False),
    close=((1.0, 2.0), [1.0, 2.0 + 1e-9], False),
    far=([1.0, 2.0], [1.0, 2.1], True),
)
def test_assert_vectors_almost_equal(actual: tp.List[float], desired: tp.List[float], fails: bool) -> None:
    if fails:
        np.testing.assert_raises(AssertionError, testing.assert_vectors_almost_equal, actual, desired)
    else:
        testing.assert_vectors_almost_equal(actual, desired)


@testing.parametrized(
    first=(1, "a"),
    second=(2, "b"),
)
def test_parametrized(number: int, letter: str) -> None:
    assert {1: "a", 2: "b"}[number] == letter
