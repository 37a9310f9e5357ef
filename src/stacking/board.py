"""Grid board, immutable pieces and the gravity drop rule."""

from __future__ import annotations

from collections import abc
from dataclasses import dataclass, field
from types import MappingProxyType

import numpy as np

from .errors import OutOfBoundsError

__all__ = [
    "EMPTY",
    "Board",
    "Cell",
    "Piece",
]

EMPTY = -1
_LABELS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


@dataclass(frozen=True, slots=True)
class Piece:
    """A rigid multi-cell shape that falls straight down from its anchor column.

    ``shape`` holds ``(dcol, drow)`` offsets; they are normalised on creation so
    the lowest row and the leftmost column of the shape are both 0.
    """

    id: int
    shape: tuple[tuple[int, int], ...]
    color: str
    column: int = 0
    name: str = ""
    _floors: dict[int, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        offsets = {(int(dcol), int(drow)) for dcol, drow in self.shape}
        if not offsets:
            msg = f"Piece #{self.id} must occupy at least one cell."
            raise ValueError(msg)
        min_col = min(dcol for dcol, _ in offsets)
        min_row = min(drow for _, drow in offsets)
        normalised = tuple(sorted((dcol - min_col, drow - min_row) for dcol, drow in offsets))
        floors: dict[int, int] = {}
        for dcol, drow in normalised:
            floors[dcol] = min(drow, floors.get(dcol, drow))
        object.__setattr__(self, "shape", normalised)
        object.__setattr__(self, "_floors", floors)

    @property
    def width(self) -> int:
        return 1 + max(dcol for dcol, _ in self.shape)

    @property
    def rows(self) -> int:
        return 1 + max(drow for _, drow in self.shape)

    @property
    def size(self) -> int:
        return len(self.shape)

    def column_floors(self) -> abc.Mapping[int, int]:
        """Lowest ``drow`` of the shape in each of its relative columns."""
        return MappingProxyType(self._floors)


@dataclass(frozen=True, slots=True)
class Cell:
    piece_id: int
    color: str


class Board:
    """Fixed-capacity grid holding a fixed, ordered set of pieces.

    Row 0 is the bottom row. The grid stores piece ids (``EMPTY`` for free
    cells); colours are looked up from the piece set, which is shared between
    copies of a board and never mutated.
    """

    def __init__(
        self,
        width: int,
        height: int,
        pieces: abc.Iterable[Piece] | abc.Mapping[int, Piece] = (),
    ) -> None:
        if width <= 0 or height <= 0:
            msg = f"Board dimensions must be positive, got {width}x{height}."
            raise ValueError(msg)
        if isinstance(pieces, MappingProxyType):
            mapping = pieces
        else:
            values = pieces.values() if isinstance(pieces, abc.Mapping) else pieces
            ordered: dict[int, Piece] = {}
            for piece in values:
                if piece.id in ordered:
                    msg = f"Duplicate piece id {piece.id}."
                    raise ValueError(msg)
                ordered[piece.id] = piece
            mapping = MappingProxyType(ordered)

        self._width = int(width)
        self._height = int(height)
        self._pieces: abc.Mapping[int, Piece] = mapping
        self._grid = np.full((self._height, self._width), EMPTY, dtype=np.int64)
        self._column_heights = np.zeros(self._width, dtype=np.int64)
        self._stack_height = 0
        self._anchors: dict[int, int] = {}

    @classmethod
    def from_pieces(cls, width: int, height: int, pieces: abc.Iterable[Piece]) -> Board:
        return cls(width, height, tuple(pieces))

    # ------------------------------------------------------------------
    # Queries

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def pieces(self) -> abc.Mapping[int, Piece]:
        return self._pieces

    @property
    def piece_ids(self) -> tuple[int, ...]:
        return tuple(self._pieces)

    @property
    def placed_piece_ids(self) -> tuple[int, ...]:
        """Ids in the order they were dropped onto this board."""
        return tuple(self._anchors)

    @property
    def stack_height(self) -> int:
        return self._stack_height

    @property
    def grid(self) -> np.ndarray:
        view = self._grid.view()
        view.flags.writeable = False
        return view

    @property
    def is_empty(self) -> bool:
        return not self._anchors

    def get_piece(self, piece_id: int) -> Piece:
        try:
            return self._pieces[piece_id]
        except KeyError:
            msg = f"Unknown piece id {piece_id}."
            raise KeyError(msg) from None

    def column_height(self, col: int) -> int:
        return int(self._column_heights[col])

    def cell(self, row: int, col: int) -> Cell | None:
        piece_id = int(self._grid[row, col])
        if piece_id == EMPTY:
            return None
        return Cell(piece_id=piece_id, color=self._pieces[piece_id].color)

    def cells(self) -> abc.Iterator[tuple[int, int, Cell]]:
        """Occupied cells as ``(row, col, cell)``, bottom row first."""
        rows, cols = np.nonzero(self._grid != EMPTY)
        for row, col in zip(rows.tolist(), cols.tolist()):
            piece_id = int(self._grid[row, col])
            yield row, col, Cell(piece_id=piece_id, color=self._pieces[piece_id].color)

    def piece_cells(self, piece_id: int) -> tuple[tuple[int, int], ...]:
        """``(row, col)`` cells covered by a placed piece, empty if not placed."""
        anchor = self._anchors.get(piece_id)
        if anchor is None:
            return ()
        piece = self._pieces[piece_id]
        return tuple(
            sorted((anchor + drow, piece.column + dcol) for dcol, drow in piece.shape)
        )

    # ------------------------------------------------------------------
    # Drop rule

    def resting_row(self, piece: Piece) -> int:
        """Row offset at which ``piece`` would come to rest, without placing it."""
        offset = 0
        for dcol, floor in piece.column_floors().items():
            col = piece.column + dcol
            if not 0 <= col < self._width:
                raise OutOfBoundsError(piece.id, None, col, self._width, self._height)
            offset = max(offset, int(self._column_heights[col]) - floor)
        return offset

    def drop(self, piece: Piece) -> int:
        """Let ``piece`` fall onto the stack and return the new stack height."""
        if self._pieces.get(piece.id) != piece:
            msg = f"Piece #{piece.id} does not belong to this board."
            raise ValueError(msg)
        if piece.id in self._anchors:
            msg = f"Piece #{piece.id} has already been dropped."
            raise ValueError(msg)

        anchor = self.resting_row(piece)
        targets = [(anchor + drow, piece.column + dcol) for dcol, drow in piece.shape]
        for row, col in targets:
            if row >= self._height:
                raise OutOfBoundsError(piece.id, row, col, self._width, self._height)

        for row, col in targets:
            self._grid[row, col] = piece.id
            if row + 1 > self._column_heights[col]:
                self._column_heights[col] = row + 1
        self._anchors[piece.id] = anchor
        self._stack_height = max(self._stack_height, anchor + piece.rows)
        return self._stack_height

    # ------------------------------------------------------------------
    # Copies

    def clone_empty(self) -> Board:
        """Board with the same dimensions and piece set but nothing placed."""
        return Board(self._width, self._height, self._pieces)

    def copy(self) -> Board:
        clone = self.clone_empty()
        clone._grid = self._grid.copy()
        clone._column_heights = self._column_heights.copy()
        clone._stack_height = self._stack_height
        clone._anchors = dict(self._anchors)
        return clone

    def to_text(self, *, empty: str = ".") -> str:
        """ASCII picture of the stack, top row first; pieces shown by id."""
        lines: list[str] = []
        for row in range(max(self._stack_height, 1) - 1, -1, -1):
            chars = []
            for col in range(self._width):
                piece_id = int(self._grid[row, col])
                chars.append(empty if piece_id == EMPTY else _LABELS[piece_id % len(_LABELS)])
            lines.append(f"{row:>3} |{''.join(chars)}|")
        lines.append("    +" + "-" * self._width + "+")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"Board(width={self._width}, height={self._height}, "
            f"pieces={len(self._pieces)}, placed={len(self._anchors)}, "
            f"stack_height={self._stack_height})"
        )
