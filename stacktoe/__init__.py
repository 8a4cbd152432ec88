"""Stacking tic-tac-toe engine: game state, evaluation, and AI search.

Modules:
- model: Pieces, board, inventories and the game state value
- rules: Move generation, placement and win detection
- evaluator: Heuristic evaluation function for positions
- ai: Minimax with alpha-beta pruning and an immediate-win shortcut
- game: Owned live game state with validated move application
- controller: Turn state machine, modes, and cancellable search tasks
"""

from .game import Game
from .ai import AIPlayer, SearchResult
from .evaluator import Evaluator
from .controller import GameController, Mode, Selection
from .config import Settings
from .model import DRAW, GameState, Move, Piece, Player, Size

__all__ = [
    "Game",
    "AIPlayer",
    "SearchResult",
    "Evaluator",
    "GameController",
    "Mode",
    "Selection",
    "Settings",
    "DRAW",
    "GameState",
    "Move",
    "Piece",
    "Player",
    "Size",
]
