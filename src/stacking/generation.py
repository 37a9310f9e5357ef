"""Seeded generation of reference boards."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .board import Board, Piece
from .seeding import make_rng

__all__ = [
    "PALETTE",
    "SHAPE_CATALOG",
    "GenerationPolicy",
    "generate",
]

logger = logging.getLogger(__name__)

# (dcol, drow) offsets, row 0 at the bottom.
SHAPE_CATALOG: dict[str, tuple[tuple[int, int], ...]] = {
    "o1": ((0, 0),),
    "i2": ((0, 0), (0, 1)),
    "h2": ((0, 0), (1, 0)),
    "l3": ((0, 0), (1, 0), (0, 1)),
    "i3": ((0, 0), (0, 1), (0, 2)),
    "I": ((0, 0), (1, 0), (2, 0), (3, 0)),
    "O": ((0, 0), (1, 0), (0, 1), (1, 1)),
    "T": ((0, 1), (1, 1), (2, 1), (1, 0)),
    "S": ((0, 0), (1, 0), (1, 1), (2, 1)),
    "Z": ((1, 0), (2, 0), (0, 1), (1, 1)),
    "J": ((0, 0), (1, 0), (2, 0), (0, 1)),
    "L": ((0, 0), (1, 0), (2, 0), (2, 1)),
}

PALETTE: dict[str, str] = {
    "o1": "#c0c0c0",
    "i2": "#9fd3c7",
    "h2": "#f7d794",
    "l3": "#e77f67",
    "i3": "#778beb",
    "I": "#66e0ff",
    "O": "#ffe066",
    "T": "#c877ff",
    "S": "#5ee08e",
    "Z": "#ff6677",
    "J": "#6a77ff",
    "L": "#ff9e5e",
}

_SHAPE_NAMES = tuple(SHAPE_CATALOG)
_MAX_SHAPE_WIDTH = max(1 + max(dcol for dcol, _ in cells) for cells in SHAPE_CATALOG.values())
_MAX_SHAPE_ROWS = max(1 + max(drow for _, drow in cells) for cells in SHAPE_CATALOG.values())


@dataclass(frozen=True, slots=True)
class GenerationPolicy:
    """Knobs for :func:`generate`.

    Parameters
    ----------
    width:
        Number of board columns.
    piece_count:
        Number of pieces to place.
    height_budget:
        Optional stack height at which generation stops early.
    """

    width: int = 10
    piece_count: int = 12
    height_budget: int | None = None

    def __post_init__(self) -> None:
        if self.width < _MAX_SHAPE_WIDTH:
            msg = f"width must be at least {_MAX_SHAPE_WIDTH} to fit every catalog shape."
            raise ValueError(msg)
        if self.piece_count <= 0:
            msg = "piece_count must be positive."
            raise ValueError(msg)
        if self.height_budget is not None and self.height_budget <= 0:
            msg = "height_budget must be positive when set."
            raise ValueError(msg)

    @property
    def capacity(self) -> int:
        """Board height that fits every insertion order of ``piece_count`` pieces."""
        return self.piece_count * _MAX_SHAPE_ROWS


def _sample_pieces(rng: np.random.Generator, policy: GenerationPolicy) -> list[Piece]:
    pieces: list[Piece] = []
    for piece_id in range(policy.piece_count):
        name = _SHAPE_NAMES[int(rng.integers(0, len(_SHAPE_NAMES)))]
        shape = SHAPE_CATALOG[name]
        shape_width = 1 + max(dcol for dcol, _ in shape)
        column = int(rng.integers(0, policy.width - shape_width + 1))
        pieces.append(
            Piece(id=piece_id, shape=shape, color=PALETTE[name], column=column, name=name)
        )
    return pieces


def generate(seed: int, policy: GenerationPolicy | None = None) -> Board:
    """Build a reference board deterministically from ``seed``."""
    if isinstance(seed, bool) or not isinstance(seed, int | np.integer):
        msg = f"seed must be an integer, got {type(seed).__name__}."
        raise TypeError(msg)
    policy = policy or GenerationPolicy()
    rng = make_rng(int(seed))
    pieces = _sample_pieces(rng, policy)

    board = Board.from_pieces(policy.width, policy.capacity, pieces)
    placed = 0
    for piece in pieces:
        if policy.height_budget is not None and board.stack_height >= policy.height_budget:
            break
        board.drop(piece)
        placed += 1

    if placed < len(pieces):
        board = Board.from_pieces(policy.width, policy.capacity, pieces[:placed])
        for piece in pieces[:placed]:
            board.drop(piece)

    logger.debug(
        "Generated board seed=%s pieces=%d height=%d",
        seed,
        len(board.pieces),
        board.stack_height,
    )
    return board
