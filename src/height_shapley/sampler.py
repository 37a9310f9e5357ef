"""Seeded random insertion orders."""

from __future__ import annotations

from collections import abc

import numpy as np

from stacking import InvalidPermutationError
from stacking.seeding import make_rng

__all__ = ["PermutationSampler", "validate_permutation"]


def validate_permutation(
    permutation: abc.Sequence[int],
    piece_ids: abc.Collection[int],
) -> tuple[int, ...]:
    """Return ``permutation`` as a tuple if it lists every piece id exactly once."""
    ordering = tuple(permutation)
    if len(ordering) != len(piece_ids) or set(ordering) != set(piece_ids):
        msg = (
            f"Ordering {list(ordering)} is not a permutation of piece ids "
            f"{sorted(piece_ids)}."
        )
        raise InvalidPermutationError(msg)
    return ordering


class PermutationSampler:
    """Fisher-Yates shuffles of a fixed id list driven by a seeded generator.

    Parameters
    ----------
    piece_ids:
        Ids to permute, in their canonical order.
    seed:
        Seed for a fresh ``numpy.random.Generator``. Ignored when ``rng`` is given.
    rng:
        Generator to draw from; lets callers share or replay a random stream.
    """

    def __init__(
        self,
        piece_ids: abc.Iterable[int],
        *,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self._piece_ids = tuple(piece_ids)
        if len(set(self._piece_ids)) != len(self._piece_ids):
            msg = "piece_ids must be unique."
            raise ValueError(msg)
        self._rng = rng if rng is not None else make_rng(seed)

    @property
    def piece_ids(self) -> tuple[int, ...]:
        return self._piece_ids

    def sample(self) -> tuple[int, ...]:
        order = list(self._piece_ids)
        for i in range(len(order) - 1, 0, -1):
            j = int(self._rng.integers(0, i + 1))
            order[i], order[j] = order[j], order[i]
        return tuple(order)

    def __iter__(self) -> abc.Iterator[tuple[int, ...]]:
        while True:
            yield self.sample()
