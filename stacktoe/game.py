from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import IllegalState, InvalidMove
from .model import (
    DRAW,
    GameState,
    Move,
    Player,
    Winner,
    board_to_list,
)
from .rules import is_legal, legal_moves, place, spend, winner

logger = logging.getLogger(__name__)


@dataclass
class MoveResult:
    move: Move
    player: Player
    turn: str
    game_over: bool
    result: Optional[str]


class Game:
    """Owns one live ``GameState`` and exposes a clean interface for the controller/API.

    All mutation goes through ``apply_move`` and ``update_outcome``; both
    validate against the current state and leave it untouched on rejection.
    """

    def __init__(self, first_player: Player = Player.SELF, state: Optional[GameState] = None) -> None:
        self.state = state.copy() if state else GameState.new(first_player)

    def reset(self, first_player: Player = Player.SELF, state: Optional[GameState] = None) -> None:
        self.state = state.copy() if state else GameState.new(first_player)

    def get_turn(self) -> Player:
        return self.state.turn

    def legal_moves(self) -> List[Move]:
        return legal_moves(self.state.board, self.state.inventory(self.state.turn))

    def is_game_over(self) -> bool:
        return self.state.winner is not None

    def get_result(self) -> Optional[str]:
        if self.state.winner is None:
            return None
        return _winner_label(self.state.winner)

    def apply_move(self, move: Move, player: Player) -> MoveResult:
        state = self.state
        if state.winner is not None:
            raise IllegalState(f"Game is over ({_winner_label(state.winner)})")
        if player is not state.turn:
            raise InvalidMove(f"Not {player.value}'s turn")
        inventory = state.inventory(player)
        if not is_legal(state.board, move, inventory):
            raise InvalidMove(f"Illegal move: {move.size.name} at cell {move.cell}")

        state.board = place(state.board, move, player)
        state.inventories[player] = spend(inventory, move.size)
        state.last_move = move

        won_by = winner(state.board)
        if won_by is not None:
            state.winner = won_by
            logger.info("%s wins", won_by.value)
        else:
            state.turn = player.other

        return MoveResult(
            move=move,
            player=player,
            turn=state.turn.value,
            game_over=self.is_game_over(),
            result=self.get_result(),
        )

    def update_outcome(self) -> Winner:
        """Settle the winner, or a draw when the side to move is stuck."""
        state = self.state
        if state.winner is not None:
            return state.winner
        won_by = winner(state.board)
        if won_by is not None:
            state.winner = won_by
            logger.info("%s wins", won_by.value)
        elif not self.legal_moves():
            state.winner = DRAW
            logger.info("Draw: %s has no legal move", state.turn.value)
        return state.winner

    def snapshot(self) -> Dict[str, object]:
        state = self.state
        return {
            "board": board_to_list(state.board),
            "inventories": {
                player.value: {size.name.lower(): count for size, count in inv.items()}
                for player, inv in state.inventories.items()
            },
            "turn": state.turn.value,
            "legal_moves": [m.to_dict() for m in self.legal_moves()] if not self.is_game_over() else [],
            "game_over": self.is_game_over(),
            "result": self.get_result(),
            "last_move": state.last_move.to_dict() if state.last_move else None,
        }


def _winner_label(value: Winner) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, Player):
        return value.value
    return str(value)
