"""Seeded random generators shared by board generation and order sampling."""

from __future__ import annotations

import numpy as np

__all__ = ["SEED_MODULUS", "make_rng"]

SEED_MODULUS = 2**64


def make_rng(seed: int | None = None) -> np.random.Generator:
    """Generator for ``seed``; any integer, negative ones included, is accepted.

    Seeds are folded onto numpy's non-negative seed range, so ``-1`` and
    ``2**64 - 1`` name the same stream.
    """
    if seed is None:
        return np.random.default_rng()
    return np.random.default_rng(int(seed) % SEED_MODULUS)
