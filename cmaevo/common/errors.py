# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# base classes


class CmaevoError(Exception):
    """Base class for error raised by cmaevo"""


class CmaevoWarning(Warning):
    pass


# errors
# pylint: disable=too-many-ancestors


class CmaevoEarlyStopping(StopIteration, CmaevoError):
    """Stops the minimization loop if raised"""


class CmaevoRuntimeError(RuntimeError, CmaevoError):
    """Runtime error raised by cmaevo"""


class CmaevoValueError(ValueError, CmaevoError):
    """Value error raised by cmaevo"""


class DimensionMismatch(CmaevoValueError):
    """Vector or matrix sizes do not agree.
    This is a programming error, it is never recovered internally.
    """


class DecompositionFailure(CmaevoRuntimeError):
    """The symmetric eigensolver could not decompose the covariance matrix.
    The optimizer instance cannot be used anymore, restart from a checkpoint.
    """


class InvalidState(CmaevoRuntimeError):
    """The optimizer reached a numerically invalid state (non-finite or non-positive
    step size, covariance which is not positive semi-definite...)
    """


class CorruptCheckpoint(CmaevoValueError):
    """A checkpoint is missing fields or holds inconsistent dimensions"""


# warnings


class CmaevoRuntimeWarning(RuntimeWarning, CmaevoWarning):
    """Runtime warning raised by cmaevo"""


class InefficientSettingsWarning(CmaevoRuntimeWarning):
    """Optimization settings are not optimal for the optimizer"""


class BadLossWarning(CmaevoRuntimeWarning):
    """Provided loss is unhelpful"""


class LossTooLargeWarning(BadLossWarning):
    """Sent when Loss is clipped because it is too large"""
