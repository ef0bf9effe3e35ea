# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-21
# Description: size_estimator.py
# -----------------------------------------------------------------------------
"""
Approximate in-memory footprint of cached values, in bytes.

Not exact; only used to keep the cache under its ceiling. Unknown types cost 8.
"""
import dataclasses
from collections.abc import Mapping
from functools import singledispatch
from numbers import Number
from typing import Any

import numpy as np


@singledispatch
def estimate_size(value: Any) -> int:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _mapping_size({f.name: getattr(value, f.name) for f in dataclasses.fields(value)})
    if isinstance(value, Mapping):
        return _mapping_size(value)
    return 8


def _mapping_size(m: Mapping) -> int:
    return sum(2 * len(str(k)) + estimate_size(v) for k, v in m.items())


@estimate_size.register(type(None))
def _(value: None) -> int:
    return 8


@estimate_size.register(bool)
def _(value: bool) -> int:
    return 4


@estimate_size.register(Number)
def _(value: Number) -> int:
    return 8


@estimate_size.register(str)
def _(value: str) -> int:
    return 2 * len(value)


@estimate_size.register(bytes)
@estimate_size.register(bytearray)
def _(value) -> int:
    return len(value)


@estimate_size.register(list)
@estimate_size.register(tuple)
@estimate_size.register(set)
@estimate_size.register(frozenset)
def _(value) -> int:
    return sum(estimate_size(v) for v in value)


@estimate_size.register(np.ndarray)
def _(value: np.ndarray) -> int:
    return 8 * int(value.size)


@estimate_size.register(dict)
def _(value: dict) -> int:
    return _mapping_size(value)
