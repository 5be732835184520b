# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import functools
from . import errors


X = tp.TypeVar("X")


class Registry(tp.MutableMapping[str, X]):
    """Registers functions, classes or instances as a dict,
    under their :code:`__name__` (or class name for instances).
    Used for eigensolver backends, test functions and optimizer presets.
    """

    def __init__(self) -> None:
        super().__init__()
        self.data: tp.Dict[str, X] = {}
        self._information: tp.Dict[str, tp.Dict[tp.Hashable, tp.Any]] = {}

    def register(self, obj: X, info: tp.Optional[tp.Dict[tp.Hashable, tp.Any]] = None) -> X:
        """Decorator method for registering functions/classes"""
        name = getattr(obj, "__name__", obj.__class__.__name__)
        self.register_name(name, obj, info)
        return obj

    def register_name(self, name: str, obj: X, info: tp.Optional[tp.Dict[tp.Hashable, tp.Any]] = None) -> None:
        if name in self:
            raise errors.CmaevoRuntimeError(f'Encountered a name collision "{name}"')
        self.data[name] = obj
        if info is not None:
            self._information[name] = dict(info)

    def register_with_info(self, **info: tp.Any) -> tp.Callable[[X], X]:
        """Decorator for registering a function and information about it"""
        return functools.partial(self.register, info=info)

    def get_info(self, name: str) -> tp.Dict[tp.Hashable, tp.Any]:
        if name not in self:
            raise ValueError(f'"{name}" is not registered (available: {sorted(self)}).')
        return self._information.setdefault(name, {})

    def __getitem__(self, key: str) -> X:
        if key not in self.data:
            raise KeyError(f'"{key}" is not registered (available: {sorted(self.data)})')
        return self.data[key]

    def __setitem__(self, key: str, value: X) -> None:
        self.data[key] = value

    def __delitem__(self, key: str) -> None:
        del self.data[key]
        self._information.pop(key, None)

    def __iter__(self) -> tp.Iterator[str]:
        return iter(self.data)

    def __len__(self) -> int:
        return len(self.data)
