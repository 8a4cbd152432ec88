from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, List, Mapping, Optional, Tuple, Union


class Size(IntEnum):
    SMALL = 1
    MEDIUM = 2
    LARGE = 3


SIZES_DESCENDING: Tuple[Size, ...] = (Size.LARGE, Size.MEDIUM, Size.SMALL)

_SIZE_NAMES = {"small": Size.SMALL, "medium": Size.MEDIUM, "large": Size.LARGE}


def parse_size(value: object) -> Size:
    """Accept 1/2/3 or 'small'/'medium'/'large'."""
    if isinstance(value, str):
        key = value.strip().lower()
        if key in _SIZE_NAMES:
            return _SIZE_NAMES[key]
        if key.isdigit():
            value = int(key)
    try:
        return Size(value)  # type: ignore[arg-type]
    except ValueError:
        raise ValueError(f"Unknown piece size: {value!r}") from None


class Player(str, Enum):
    SELF = "self"
    OPPONENT = "opponent"

    @property
    def other(self) -> "Player":
        return Player.OPPONENT if self is Player.SELF else Player.SELF


DRAW = "draw"

Winner = Union[Player, str, None]

BOARD_CELLS = 9
CENTER = 4

WIN_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),  # rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),  # columns
    (0, 4, 8), (2, 4, 6),             # diagonals
)

Inventory = Dict[Size, int]

INITIAL_INVENTORY: Mapping[Size, int] = {
    Size.LARGE: 2,
    Size.MEDIUM: 3,
    Size.SMALL: 3,
}


@dataclass(frozen=True)
class Piece:
    owner: Player
    size: Size

    def to_dict(self) -> Dict[str, object]:
        return {"owner": self.owner.value, "size": int(self.size)}


Cell = Tuple[Piece, ...]
Board = Tuple[Cell, ...]


@dataclass(frozen=True)
class Move:
    cell: int
    size: Size

    def to_dict(self) -> Dict[str, object]:
        return {"cell": self.cell, "size": int(self.size)}

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "Move":
        try:
            cell = int(data["cell"])  # type: ignore[arg-type]
        except (KeyError, TypeError, ValueError):
            raise ValueError("Move needs an integer 'cell'") from None
        if "size" not in data:
            raise ValueError("Move needs a 'size'")
        return cls(cell=cell, size=parse_size(data["size"]))


def empty_board() -> Board:
    return tuple(() for _ in range(BOARD_CELLS))


def new_inventory() -> Inventory:
    return dict(INITIAL_INVENTORY)


def top_piece(cell: Cell) -> Optional[Piece]:
    if not cell:
        return None
    return cell[-1]


def is_empty(board: Board) -> bool:
    return all(len(cell) == 0 for cell in board)


def stacking_holds(board: Board) -> bool:
    for cell in board:
        for lower, upper in zip(cell, cell[1:]):
            if upper.size <= lower.size:
                return False
    return True


def conservation_holds(board: Board, inventories: Mapping[Player, Mapping[Size, int]]) -> bool:
    placed: Dict[Tuple[Player, Size], int] = {}
    for cell in board:
        for piece in cell:
            key = (piece.owner, piece.size)
            placed[key] = placed.get(key, 0) + 1
    for player in Player:
        inventory = inventories[player]
        for size, initial in INITIAL_INVENTORY.items():
            remaining = inventory.get(size, 0)
            if remaining < 0 or remaining + placed.get((player, size), 0) != initial:
                return False
    return True


@dataclass
class GameState:
    """One live game: board, both inventories, side to move and outcome."""

    board: Board
    inventories: Dict[Player, Inventory]
    turn: Player
    winner: Winner = None
    last_move: Optional[Move] = field(default=None, compare=False)

    @classmethod
    def new(cls, first_player: Player = Player.SELF) -> "GameState":
        return cls(
            board=empty_board(),
            inventories={player: new_inventory() for player in Player},
            turn=first_player,
        )

    def copy(self) -> "GameState":
        return GameState(
            board=self.board,
            inventories={player: dict(inv) for player, inv in self.inventories.items()},
            turn=self.turn,
            winner=self.winner,
            last_move=self.last_move,
        )

    def inventory(self, player: Player) -> Inventory:
        return self.inventories[player]


def is_consistent(state: GameState) -> bool:
    return (
        len(state.board) == BOARD_CELLS
        and stacking_holds(state.board)
        and conservation_holds(state.board, state.inventories)
    )


def board_to_list(board: Board) -> List[Dict[str, object]]:
    cells: List[Dict[str, object]] = []
    for index, cell in enumerate(board):
        top = top_piece(cell)
        cells.append({
            "cell": index,
            "stack": [piece.to_dict() for piece in cell],
            "top": top.to_dict() if top else None,
        })
    return cells


def _parse_player(value: object) -> Player:
    try:
        return Player(value)
    except ValueError:
        raise ValueError(f"Unknown player: {value!r}") from None


def state_from_dict(data: Mapping[str, object]) -> GameState:
    """Load a position as sent by a client.

    ``board`` is a list of 9 stacks (bottom first) of ``{owner, size}``;
    ``inventories`` maps player to ``{size: count}``. Missing inventories
    are derived from the board so that conservation holds.
    """
    raw_board = data.get("board")
    if not isinstance(raw_board, list) or len(raw_board) != BOARD_CELLS:
        raise ValueError("Board must be a list of 9 stacks")

    cells: List[Cell] = []
    for raw_cell in raw_board:
        if isinstance(raw_cell, Mapping):
            raw_cell = raw_cell.get("stack", [])
        if not isinstance(raw_cell, list):
            raise ValueError("Each board cell must be a list of pieces")
        cells.append(tuple(
            Piece(owner=_parse_player(p.get("owner")), size=parse_size(p.get("size")))
            for p in raw_cell
        ))
    board: Board = tuple(cells)

    raw_inventories = data.get("inventories")
    inventories: Dict[Player, Inventory] = {}
    for player in Player:
        if isinstance(raw_inventories, Mapping) and player.value in raw_inventories:
            raw_inv = raw_inventories[player.value]
            inventories[player] = {parse_size(k): int(v) for k, v in raw_inv.items()}
            for size in Size:
                inventories[player].setdefault(size, 0)
        else:
            inventory = new_inventory()
            for cell in board:
                for piece in cell:
                    if piece.owner is player:
                        inventory[piece.size] -= 1
            inventories[player] = inventory

    state = GameState(
        board=board,
        inventories=inventories,
        turn=_parse_player(data.get("turn", Player.SELF.value)),
    )
    if not is_consistent(state):
        raise ValueError("Position breaks the stacking or piece-count rules")
    return state
