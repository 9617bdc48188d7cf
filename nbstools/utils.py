"""General utility functions"""

from typing import Any, Callable, DefaultDict, Optional, TypeVar

from sortedcontainers import SortedDict

A = TypeVar("A")
K = TypeVar("K")
V = TypeVar("V")


def value_or(value: Optional[A], default: A) -> A:
    if value is None:
        return default
    else:
        return value


class SortedDefaultDict(SortedDict, DefaultDict[K, V]):

    """Custom SortedDict that also acts as a defaultdict,
    passes the key to the value factory"""

    def __init__(self, factory: Callable[[K], V], *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.__factory__ = factory

    def __missing__(self, key: K) -> V:
        value = self.__factory__(key)
        self.__setitem__(key, value)
        return value
