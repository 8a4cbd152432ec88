from __future__ import annotations

from typing import List, Mapping, Optional

from .model import (
    BOARD_CELLS,
    SIZES_DESCENDING,
    WIN_LINES,
    Board,
    Inventory,
    Move,
    Piece,
    Player,
    Size,
    top_piece,
)


def is_legal(board: Board, move: Move, inventory: Mapping[Size, int]) -> bool:
    if not 0 <= move.cell < BOARD_CELLS:
        return False
    if inventory.get(move.size, 0) <= 0:
        return False
    top = top_piece(board[move.cell])
    if top is None:
        return True
    return move.size > top.size


def legal_moves(board: Board, inventory: Mapping[Size, int]) -> List[Move]:
    """Every legal placement, largest pieces first, then by cell index.

    The order is relied on by the search: among equally scored moves the
    first one generated is chosen.
    """
    moves: List[Move] = []
    for size in SIZES_DESCENDING:
        if inventory.get(size, 0) <= 0:
            continue
        for cell in range(BOARD_CELLS):
            top = top_piece(board[cell])
            if top is None or size > top.size:
                moves.append(Move(cell, size))
    return moves


def place(board: Board, move: Move, player: Player) -> Board:
    cells = list(board)
    cells[move.cell] = board[move.cell] + (Piece(player, move.size),)
    return tuple(cells)


def spend(inventory: Mapping[Size, int], size: Size) -> Inventory:
    remaining = dict(inventory)
    remaining[size] = remaining[size] - 1
    return remaining


def winner(board: Board) -> Optional[Player]:
    for a, b, c in WIN_LINES:
        pa = top_piece(board[a])
        pb = top_piece(board[b])
        pc = top_piece(board[c])
        if pa and pb and pc and pa.owner == pb.owner == pc.owner:
            return pa.owner
    return None


def is_winning_move(board: Board, move: Move, player: Player) -> bool:
    return winner(place(board, move, player)) is player
