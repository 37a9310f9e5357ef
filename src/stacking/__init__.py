"""Boards, pieces and the gravity drop rule shared by the attribution tools."""

from .board import EMPTY, Board, Cell, Piece
from .errors import InvalidPermutationError, OutOfBoundsError, StackingError
from .generation import PALETTE, SHAPE_CATALOG, GenerationPolicy, generate
from .seeding import make_rng

__all__ = [
    "EMPTY",
    "PALETTE",
    "SHAPE_CATALOG",
    "Board",
    "Cell",
    "GenerationPolicy",
    "InvalidPermutationError",
    "OutOfBoundsError",
    "Piece",
    "StackingError",
    "generate",
    "make_rng",
]
