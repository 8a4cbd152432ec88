from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

from .evaluator import Evaluator
from .model import Board, GameState, Inventory, Move, Player
from .rules import legal_moves, place, spend, winner

logger = logging.getLogger(__name__)

SEARCH_DEPTH = 4
INFINITY = 10**9


@dataclass
class SearchResult:
    best_move: Optional[Move]
    score: int
    nodes: int
    immediate_win: bool = False
    scored_moves: Optional[List[Tuple[Move, int]]] = None


class AIPlayer:
    """Minimax with alpha-beta pruning over a fixed horizon.

    SELF is always the maximizing side and OPPONENT the minimizing side;
    leaves are scored by ``Evaluator`` from SELF's point of view. The search
    only ever works on derived boards and inventories, never on a live
    ``GameState``.
    """

    def __init__(self, depth: int = SEARCH_DEPTH, prune: bool = True) -> None:
        self.depth = depth
        self.prune = prune

    def suggest(self, state: GameState) -> SearchResult:
        """Best move for the self side, without applying it."""
        return self.choose_move(state.board, Player.SELF, state.inventories)

    def best_reply(self, state: GameState) -> SearchResult:
        """Move the opponent side plays in training mode."""
        return self.choose_move(state.board, Player.OPPONENT, state.inventories)

    def choose_move(
        self,
        board: Board,
        player: Player,
        inventories: Mapping[Player, Inventory],
    ) -> SearchResult:
        maximizing = player is Player.SELF
        inv_self = inventories[Player.SELF]
        inv_opponent = inventories[Player.OPPONENT]
        own_inventory = inv_self if maximizing else inv_opponent

        moves = legal_moves(board, own_inventory)
        if not moves:
            return SearchResult(best_move=None, score=0, nodes=0)

        win_score = Evaluator.WIN_SCORE + self.depth
        for move in moves:
            if winner(place(board, move, player)) is player:
                logger.debug("Immediate win for %s at %s", player.value, move)
                return SearchResult(
                    best_move=move,
                    score=win_score if maximizing else -win_score,
                    nodes=1,
                    immediate_win=True,
                )

        best_move: Optional[Move] = None
        best_score = -INFINITY if maximizing else INFINITY
        nodes = 0
        scored_moves: List[Tuple[Move, int]] = []

        for move in moves:
            child = place(board, move, player)
            if maximizing:
                score, sub_nodes = self._alphabeta(
                    child, self.depth, -INFINITY, INFINITY, False,
                    spend(inv_self, move.size), inv_opponent,
                )
            else:
                score, sub_nodes = self._alphabeta(
                    child, self.depth, -INFINITY, INFINITY, True,
                    inv_self, spend(inv_opponent, move.size),
                )
            nodes += sub_nodes + 1
            scored_moves.append((move, score))
            if best_move is None or (score > best_score if maximizing else score < best_score):
                best_score = score
                best_move = move

        logger.debug(
            "Search for %s: best=%s score=%d nodes=%d",
            player.value, best_move, best_score, nodes,
        )
        return SearchResult(
            best_move=best_move, score=best_score, nodes=nodes, scored_moves=scored_moves
        )

    def search(
        self,
        board: Board,
        depth: int,
        alpha: int,
        beta: int,
        maximizing: bool,
        inv_max: Inventory,
        inv_min: Inventory,
    ) -> int:
        score, _ = self._alphabeta(board, depth, alpha, beta, maximizing, inv_max, inv_min)
        return score

    def _alphabeta(
        self,
        board: Board,
        depth: int,
        alpha: int,
        beta: int,
        maximizing: bool,
        inv_max: Inventory,
        inv_min: Inventory,
    ) -> Tuple[int, int]:
        won_by = winner(board)
        # Remaining depth rewards quicker wins and slower losses.
        if won_by is Player.SELF:
            return Evaluator.WIN_SCORE + depth, 1
        if won_by is Player.OPPONENT:
            return -Evaluator.WIN_SCORE - depth, 1
        if depth == 0:
            return Evaluator.evaluate(board, Player.SELF), 1

        nodes = 0

        if maximizing:
            moves = legal_moves(board, inv_max)
            if not moves:
                return 0, 1
            value = -INFINITY
            for move in moves:
                score, child_nodes = self._alphabeta(
                    place(board, move, Player.SELF), depth - 1, alpha, beta, False,
                    spend(inv_max, move.size), inv_min,
                )
                nodes += child_nodes + 1
                if score > value:
                    value = score
                alpha = max(alpha, score)
                if self.prune and beta <= alpha:
                    break
            return value, nodes
        else:
            moves = legal_moves(board, inv_min)
            if not moves:
                return 0, 1
            value = INFINITY
            for move in moves:
                score, child_nodes = self._alphabeta(
                    place(board, move, Player.OPPONENT), depth - 1, alpha, beta, True,
                    inv_max, spend(inv_min, move.size),
                )
                nodes += child_nodes + 1
                if score < value:
                    value = score
                beta = min(beta, score)
                if self.prune and beta <= alpha:
                    break
            return value, nodes
