"""Replaying an insertion order onto an empty board."""

from __future__ import annotations

from collections import abc
from dataclasses import dataclass

from stacking import Board

__all__ = ["Insertion", "replay_insertions"]


@dataclass(frozen=True, slots=True)
class Insertion:
    piece_id: int
    height_before: int
    height_after: int

    @property
    def marginal(self) -> int:
        """Height added by this piece given the pieces already stacked."""
        return self.height_after - self.height_before


def replay_insertions(
    working_board: Board,
    permutation: abc.Iterable[int],
) -> abc.Iterator[Insertion]:
    """Drop pieces onto ``working_board`` in order, yielding after each one.

    The board is mutated in place. An ``OutOfBoundsError`` from a drop
    propagates before the corresponding insertion is yielded.
    """
    for piece_id in permutation:
        height_before = working_board.stack_height
        height_after = working_board.drop(working_board.get_piece(piece_id))
        yield Insertion(piece_id=piece_id, height_before=height_before, height_after=height_after)

