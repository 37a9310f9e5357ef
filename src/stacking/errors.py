"""Exceptions raised by board construction and replay."""

from __future__ import annotations

__all__ = [
    "InvalidPermutationError",
    "OutOfBoundsError",
    "StackingError",
]


class StackingError(Exception):
    """Base class for stacking failures."""


class OutOfBoundsError(StackingError, ValueError):
    """A piece cannot rest inside the board."""

    def __init__(
        self,
        piece_id: int,
        row: int | None,
        col: int,
        width: int,
        height: int,
    ) -> None:
        self.piece_id = piece_id
        self.row = row
        self.col = col
        if row is None:
            msg = f"Piece #{piece_id} would cover column {col}, outside a {width}-column board."
        else:
            msg = (
                f"Piece #{piece_id} would rest at (row={row}, col={col}), "
                f"outside a {width}x{height} board."
            )
        super().__init__(msg)


class InvalidPermutationError(StackingError, ValueError):
    """An ordering is not a bijection onto the board's piece ids."""
