"""
Uniform random sources for Heirloom path generators.

Purpose
-------
Every generator in the package draws its randomness from an explicit
source object passed in by the caller. Two implementations exist:

- LCGSource: a seeded linear-congruential recurrence. Runs with the same
  seed are bit-identical, which the Monte Carlo, VaR and scenario layers
  rely on for reproducible ensembles.
- AmbientSource: a wrapper over ``numpy.random.Generator`` for runs where
  reproducibility is not requested.

No function in this module touches process-wide random state.

Example
-------
>>> from heirloom.rng import make_source, standard_normal
>>> source = make_source(7)
>>> a = [source.uniform() for _ in range(3)]
>>> b = [make_source(7).uniform() for _ in range(3)]
>>> a[0] == b[0]
True
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np
from typing_extensions import Protocol, runtime_checkable

from .constants import LCG_INCREMENT, LCG_MODULUS, LCG_MULTIPLIER

__all__ = [
    "UniformSource",
    "LCGSource",
    "AmbientSource",
    "make_source",
    "standard_normal",
    "centered_uniform",
]


@runtime_checkable
class UniformSource(Protocol):
    """Anything that yields floats in [0, 1)."""

    def uniform(self) -> float:
        ...


class LCGSource:
    """
    Deterministic uniform source.

    Parameters
    ----------
    seed : int
        Initial state. Negative seeds are reduced modulo the LCG modulus.

    Notes
    -----
    Recurrence: ``s = (s * 9301 + 49297) % 233280``, value ``s / 233280``.
    The period is short (233280), which is ample for lifecycle runs of a
    few hundred draws per path.
    """

    __slots__ = ("_state",)

    def __init__(self, seed: int):
        self._state = int(seed) % LCG_MODULUS

    def uniform(self) -> float:
        self._state = (self._state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self._state / LCG_MODULUS

    def __repr__(self) -> str:
        return f"LCGSource(state={self._state})"


class AmbientSource:
    """Non-deterministic source backed by a private numpy Generator."""

    __slots__ = ("_rng",)

    def __init__(self, generator: Optional[np.random.Generator] = None):
        self._rng = generator if generator is not None else np.random.default_rng()

    def uniform(self) -> float:
        return float(self._rng.random())


def make_source(seed: Optional[int] = None) -> UniformSource:
    """Seeded LCG source when ``seed`` is given, else an ambient source."""
    if seed is None:
        return AmbientSource()
    return LCGSource(seed)


def standard_normal(source: UniformSource) -> float:
    """
    Standard-normal deviate via Box–Muller over two uniform draws.

    Zero draws are rejected so the logarithm stays finite.
    """
    u = 0.0
    v = 0.0
    while u == 0.0:
        u = source.uniform()
    while v == 0.0:
        v = source.uniform()
    return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)


def centered_uniform(source: UniformSource) -> float:
    """Symmetric noise in [-1, 1)."""
    return (source.uniform() - 0.5) * 2.0
