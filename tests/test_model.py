from __future__ import annotations

import pytest

from stacktoe.model import (
    GameState,
    Move,
    Piece,
    Player,
    Size,
    conservation_holds,
    empty_board,
    is_consistent,
    is_empty,
    new_inventory,
    parse_size,
    stacking_holds,
    state_from_dict,
    top_piece,
)
from stacktoe.rules import place


def test_new_state_is_empty_with_full_inventories():
    state = GameState.new(Player.OPPONENT)
    assert is_empty(state.board)
    assert state.turn is Player.OPPONENT
    assert state.winner is None
    for player in Player:
        assert state.inventory(player) == {Size.LARGE: 2, Size.MEDIUM: 3, Size.SMALL: 3}
    assert is_consistent(state)


def test_top_piece_is_last_placed():
    board = place(empty_board(), Move(0, Size.SMALL), Player.SELF)
    board = place(board, Move(0, Size.LARGE), Player.OPPONENT)
    assert top_piece(board[0]) == Piece(Player.OPPONENT, Size.LARGE)
    assert top_piece(board[1]) is None
    assert not is_empty(board)


def test_copy_does_not_share_inventories():
    state = GameState.new()
    clone = state.copy()
    clone.inventories[Player.SELF][Size.SMALL] = 0
    assert state.inventory(Player.SELF)[Size.SMALL] == 3


def test_conservation_counts_covered_pieces():
    board = place(empty_board(), Move(0, Size.SMALL), Player.SELF)
    board = place(board, Move(0, Size.LARGE), Player.OPPONENT)
    inventories = {Player.SELF: new_inventory(), Player.OPPONENT: new_inventory()}
    assert not conservation_holds(board, inventories)
    inventories[Player.SELF][Size.SMALL] = 2
    inventories[Player.OPPONENT][Size.LARGE] = 1
    assert conservation_holds(board, inventories)


def test_stacking_predicate():
    good = place(empty_board(), Move(0, Size.SMALL), Player.SELF)
    good = place(good, Move(0, Size.MEDIUM), Player.SELF)
    bad = place(good, Move(0, Size.MEDIUM), Player.OPPONENT)
    assert stacking_holds(good)
    assert not stacking_holds(bad)


def test_parse_size_accepts_names_and_numbers():
    assert parse_size("large") is Size.LARGE
    assert parse_size("Small") is Size.SMALL
    assert parse_size(2) is Size.MEDIUM
    assert parse_size("3") is Size.LARGE
    with pytest.raises(ValueError):
        parse_size("huge")
    with pytest.raises(ValueError):
        parse_size(4)


def test_state_from_dict_derives_inventories():
    board = [[] for _ in range(9)]
    board[4] = [{"owner": "self", "size": 1}, {"owner": "opponent", "size": "large"}]
    state = state_from_dict({"board": board, "turn": "self"})
    assert state.inventory(Player.SELF)[Size.SMALL] == 2
    assert state.inventory(Player.OPPONENT)[Size.LARGE] == 1
    assert top_piece(state.board[4]).owner is Player.OPPONENT


def test_state_from_dict_rejects_bad_positions():
    with pytest.raises(ValueError):
        state_from_dict({"board": [[]] * 8})
    board = [[] for _ in range(9)]
    board[0] = [{"owner": "self", "size": 3}, {"owner": "opponent", "size": 1}]
    with pytest.raises(ValueError):
        state_from_dict({"board": board})
    board = [[] for _ in range(9)]
    with pytest.raises(ValueError):
        state_from_dict({"board": board, "inventories": {"self": {"large": 5}}})


def test_move_from_dict():
    assert Move.from_dict({"cell": "4", "size": "large"}) == Move(4, Size.LARGE)
    assert Move.from_dict({"cell": 0, "size": 1}) == Move(0, Size.SMALL)
    with pytest.raises(ValueError):
        Move.from_dict({"size": 2})
    with pytest.raises(ValueError):
        Move.from_dict({"cell": 2})
    with pytest.raises(ValueError):
        Move.from_dict({"cell": "x", "size": 2})
