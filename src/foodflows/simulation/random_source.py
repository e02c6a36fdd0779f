"""Injectable uniform random sources for the path and trip generators."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, Union, runtime_checkable

import numpy as np
from numpy.random import Generator, default_rng


@runtime_checkable
class RandomSource(Protocol):
    def next(self) -> float:
        """Return a float uniformly distributed in [0, 1)."""
        ...


class GeneratorRandomSource:
    """Adapter exposing a numpy ``Generator`` through ``next()``."""

    def __init__(self, generator: Optional[Generator] = None):
        self.generator = generator or default_rng()

    def next(self) -> float:
        return float(self.generator.random())


class SequenceRandomSource:
    """Replays a fixed list of values, cycling once exhausted."""

    def __init__(self, values: Sequence[float]):
        if len(values) == 0:
            raise ValueError("SequenceRandomSource needs at least one value")
        for value in values:
            if not 0.0 <= float(value) < 1.0:
                raise ValueError(f"Random values must lie in [0, 1): {value!r}")
        self._values = [float(v) for v in values]
        self._index = 0
        self.draws = 0

    def next(self) -> float:
        value = self._values[self._index]
        self._index = (self._index + 1) % len(self._values)
        self.draws += 1
        return value


RandomLike = Union[None, int, Generator, RandomSource]


def as_random_source(rng: RandomLike = None) -> RandomSource:
    """Normalize seeds, numpy generators and sources into a ``RandomSource``."""
    if rng is None:
        return GeneratorRandomSource()
    if isinstance(rng, Generator):
        return GeneratorRandomSource(rng)
    if isinstance(rng, (int, np.integer)) and not isinstance(rng, bool):
        return GeneratorRandomSource(default_rng(int(rng)))
    if isinstance(rng, RandomSource):
        return rng
    raise TypeError(f"Unsupported random source: {type(rng).__name__}")


def signed_unit(source: RandomSource) -> float:
    """Uniform draw in [-1, 1)."""
    return (source.next() - 0.5) * 2.0


def uniform_int(source: RandomSource, low: int, high: int) -> int:
    """Uniform integer in [low, high], inclusive on both ends."""
    if high <= low:
        return int(low)
    return int(low + int(source.next() * (1 + high - low)))


__all__ = [
    "GeneratorRandomSource",
    "RandomLike",
    "RandomSource",
    "SequenceRandomSource",
    "as_random_source",
    "signed_unit",
    "uniform_int",
]
