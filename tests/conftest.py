import pytest

from stacking import Board, Piece, generate, GenerationPolicy

A, B, C = 0, 1, 2


@pytest.fixture
def scenario_pieces():
    return (
        Piece(id=A, shape=((0, 0),), color="#ff0000", column=0, name="A"),
        Piece(id=B, shape=((0, 0), (1, 0)), color="#00ff00", column=1, name="B"),
        Piece(id=C, shape=((0, 0), (0, 1)), color="#0000ff", column=0, name="C"),
    )


@pytest.fixture
def scenario_board(scenario_pieces):
    return Board.from_pieces(4, 6, scenario_pieces)


@pytest.fixture
def overflowing_board():
    # Any insertion order needs three rows but only two exist.
    pieces = (
        Piece(id=0, shape=((0, 0), (0, 1)), color="#111111", column=0),
        Piece(id=1, shape=((0, 0),), color="#222222", column=0),
    )
    return Board.from_pieces(2, 2, pieces)


@pytest.fixture
def generated_board():
    return generate(12345, GenerationPolicy(width=8, piece_count=9))
