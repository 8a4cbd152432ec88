from __future__ import annotations

from .model import CENTER, WIN_LINES, Board, Player, top_piece
from .rules import winner


class Evaluator:
    """Static evaluation for stacking positions.

    Scores are from ``for_player``'s point of view: positive favours it,
    negative favours the other side. The search always asks from
    ``Player.SELF``.
    """

    WIN_SCORE = 10000
    CENTER_BONUS = 50
    # Blocking an opponent threat outweighs building one of our own.
    OWN_THREAT = 20
    OPPONENT_THREAT = 25

    @classmethod
    def evaluate(cls, board: Board, for_player: Player = Player.SELF) -> int:
        won_by = winner(board)
        if won_by is for_player:
            return cls.WIN_SCORE
        if won_by is not None:
            return -cls.WIN_SCORE

        score = 0

        center = top_piece(board[CENTER])
        if center is not None:
            score += cls.CENTER_BONUS if center.owner is for_player else -cls.CENTER_BONUS

        for line in WIN_LINES:
            own = 0
            other = 0
            empty = 0
            for index in line:
                piece = top_piece(board[index])
                if piece is None:
                    empty += 1
                elif piece.owner is for_player:
                    own += 1
                else:
                    other += 1

            if own == 2 and empty == 1:
                score += cls.OWN_THREAT
            if other == 2 and empty == 1:
                score -= cls.OPPONENT_THREAT

        return score
