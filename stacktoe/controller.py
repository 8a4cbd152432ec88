from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import wait as wait_futures
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from .ai import AIPlayer, SearchResult
from .config import Settings
from .errors import GameError, IllegalState, InvalidMove, StaleAsyncResult
from .game import Game
from .model import GameState, Move, Player, Size, is_empty
from .tasks import SearchTask, TaskRole, TaskRunner

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, object]], None]


class Mode(str, Enum):
    COMPANION = "companion"
    TRAINING = "training"


@dataclass(frozen=True)
class Selection:
    player: Player
    size: Size

    def to_dict(self) -> Dict[str, object]:
        return {"player": self.player.value, "size": int(self.size)}


class GameController:
    """Drives one game: applies moves, runs the turn state machine, and schedules searches.

    In companion mode the human enters moves for both sides and the engine
    only suggests moves for the self side. In training mode the opponent
    side is played by the engine.

    Searches run on a worker pool. Their results are picked up by ``poll``
    or ``wait`` and only applied if the game has not moved on since the
    task was started: every start, reset, applied move and game over bumps
    the generation counter, and a task from an older generation is dropped.
    """

    def __init__(
        self,
        mode: Mode = Mode.COMPANION,
        settings: Optional[Settings] = None,
        ai: Optional[AIPlayer] = None,
        runner: Optional[TaskRunner] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.mode = mode
        self.auto_suggest = self.settings.auto_suggest
        self.ai = ai or AIPlayer(depth=self.settings.search_depth)
        self._runner = runner or TaskRunner(self.settings.max_workers)
        self._lock = threading.RLock()
        self._game: Optional[Game] = None
        self._generation = 0
        self._tasks: Dict[TaskRole, SearchTask] = {}
        self._retired: List[SearchTask] = []
        self._suggestion: Optional[SearchResult] = None
        self._selection: Optional[Selection] = None
        self._listeners: List[Listener] = []

    # Queries

    @property
    def state(self) -> Optional[GameState]:
        with self._lock:
            return self._game.state.copy() if self._game else None

    @property
    def suggestion(self) -> Optional[SearchResult]:
        return self._suggestion

    @property
    def selection(self) -> Optional[Selection]:
        return self._selection

    @property
    def thinking(self) -> bool:
        return bool(self._tasks)

    @property
    def generation(self) -> int:
        return self._generation

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            if self._game is not None:
                snap = self._game.snapshot()
                snap["winner"] = snap.pop("result")
            else:
                snap = {
                    "board": None,
                    "inventories": None,
                    "turn": None,
                    "legal_moves": [],
                    "game_over": False,
                    "winner": None,
                    "last_move": None,
                }
            suggestion = self._suggestion
            snap.update({
                "started": self._game is not None,
                "mode": self.mode.value,
                "auto_suggest": self.auto_suggest,
                "thinking": self.thinking,
                "selection": self._selection.to_dict() if self._selection else None,
                "suggestion": None,
            })
            if suggestion is not None and suggestion.best_move is not None:
                snap["suggestion"] = {
                    **suggestion.best_move.to_dict(),
                    "score": suggestion.score,
                    "immediate_win": suggestion.immediate_win,
                }
            return snap

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # Commands

    def set_mode(self, mode: Mode) -> None:
        with self._lock:
            self.reset_game()
            self.mode = mode

    def start_game(self, first_player: Player = Player.SELF, state: Optional[GameState] = None) -> None:
        with self._lock:
            self._invalidate()
            self._game = Game(first_player, state)
            self._suggestion = None
            self._selection = None
            logger.info(
                "New %s game, %s moves first", self.mode.value, self._game.get_turn().value
            )
            self._advance()
            self._notify()

    def reset_game(self) -> None:
        with self._lock:
            self._invalidate()
            self._game = None
            self._suggestion = None
            self._selection = None
            logger.info("Game reset")
            self._notify()

    def select_pending_piece(self, player: Player, size: Size) -> bool:
        with self._lock:
            try:
                game = self._require_game()
                self._check_mover(game, player)
                if game.state.inventory(player).get(size, 0) <= 0:
                    raise InvalidMove(f"{player.value} has no {size.name} pieces left")
            except GameError as exc:
                logger.warning("Selection rejected: %s", exc)
                return False
            self._selection = Selection(player, size)
            self._notify()
            return True

    def attempt_move(self, cell: int, selection: Optional[Selection] = None) -> bool:
        with self._lock:
            selection = selection or self._selection
            try:
                game = self._require_game()
                if selection is None:
                    raise InvalidMove("No piece selected")
                self._check_mover(game, selection.player)
                game.apply_move(Move(cell, selection.size), selection.player)
            except GameError as exc:
                logger.warning("Move rejected: %s", exc)
                return False
            self._selection = None
            self._invalidate()
            self._advance()
            self._notify()
            return True

    def request_suggestion(self) -> Optional[SearchTask]:
        with self._lock:
            try:
                game = self._require_game()
                if game.get_turn() is not Player.SELF:
                    raise IllegalState("Suggestions are only given on the self side's turn")
            except GameError as exc:
                logger.warning("Suggestion rejected: %s", exc)
                return None
            task = self._launch(TaskRole.SUGGESTION)
            self._notify()
            return task

    def set_auto_suggest(self, enabled: bool) -> None:
        with self._lock:
            self.auto_suggest = enabled
            if enabled and self._wants_auto_suggestion() and TaskRole.SUGGESTION not in self._tasks:
                self._suggestion = None
                self._launch(TaskRole.SUGGESTION)
            self._notify()

    def poll(self) -> bool:
        """Apply finished task results that still belong to the live game."""
        with self._lock:
            finished: List[SearchTask] = []
            running: List[SearchTask] = []
            for task in self._retired:
                (finished if task.done() else running).append(task)
            self._retired = running
            for role, task in list(self._tasks.items()):
                if task.done():
                    del self._tasks[role]
                    finished.append(task)

            changed = False
            for task in finished:
                try:
                    result = self._collect(task)
                except StaleAsyncResult as exc:
                    logger.debug("Discarding result: %s", exc)
                    continue
                self._deliver(task.role, result)
                changed = True
            if changed:
                self._notify()
            return changed

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until no task is outstanding. Returns False on timeout."""
        deadline = (time.monotonic() + timeout) if timeout is not None else None
        while True:
            with self._lock:
                futures = [task.future for task in self._tasks.values()]
            if not futures:
                return True
            remaining = None
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
            wait_futures(futures, timeout=remaining)
            self.poll()

    def close(self) -> None:
        with self._lock:
            self._invalidate()
        self._runner.shutdown()

    # Internals

    def _require_game(self) -> Game:
        if self._game is None:
            raise IllegalState("No game in progress")
        if self._game.is_game_over():
            raise IllegalState(f"Game is over ({self._game.get_result()})")
        return self._game

    def _check_mover(self, game: Game, player: Player) -> None:
        if self.mode is Mode.TRAINING and player is Player.OPPONENT:
            raise InvalidMove("The opponent side is played by the engine in training mode")
        if player is not game.get_turn():
            raise InvalidMove(f"Not {player.value}'s turn")

    def _wants_auto_suggestion(self) -> bool:
        game = self._game
        return (
            game is not None
            and not game.is_game_over()
            and self.mode is Mode.COMPANION
            and self.auto_suggest
            and game.get_turn() is Player.SELF
            and not is_empty(game.state.board)
        )

    def _advance(self) -> None:
        self._suggestion = None
        game = self._game
        if game is None:
            return
        if game.update_outcome() is not None:
            self._invalidate()
            logger.info("Game over: %s", game.get_result())
            return

        if self.mode is Mode.COMPANION:
            if self._wants_auto_suggestion():
                self._launch(TaskRole.SUGGESTION)
        elif self.mode is Mode.TRAINING and game.get_turn() is Player.OPPONENT:
            self._launch(TaskRole.AI_MOVE)

    def _launch(self, role: TaskRole) -> SearchTask:
        previous = self._tasks.pop(role, None)
        if previous is not None:
            previous.cancel()
            self._retired.append(previous)

        snapshot = self._game.state.copy()
        if role is TaskRole.SUGGESTION:
            search = lambda: self.ai.suggest(snapshot)  # noqa: E731
            delay = self.settings.suggestion_delay_s
        else:
            search = lambda: self.ai.best_reply(snapshot)  # noqa: E731
            delay = self.settings.ai_move_delay_s

        task = self._runner.submit(role, self._generation, search, delay_s=delay)
        self._tasks[role] = task
        logger.debug("Started %r", task)
        return task

    def _invalidate(self) -> None:
        self._generation += 1
        for task in self._tasks.values():
            task.cancel()
            self._retired.append(task)
        self._tasks.clear()

    def _collect(self, task: SearchTask) -> SearchResult:
        if task.cancelled or task.generation != self._generation:
            raise StaleAsyncResult(
                f"{task.role.value} task from generation {task.generation}, now {self._generation}"
            )
        return task.result()

    def _deliver(self, role: TaskRole, result: SearchResult) -> None:
        if result.best_move is None:
            return
        if role is TaskRole.SUGGESTION:
            self._suggestion = result
            return

        try:
            self._game.apply_move(result.best_move, Player.OPPONENT)
        except GameError as exc:
            logger.warning("Engine move rejected: %s", exc)
            return
        self._invalidate()
        self._advance()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)
