class GameError(Exception):
    pass


class InvalidMove(GameError):
    """Placement breaks inventory, stacking or turn rules."""


class IllegalState(GameError):
    """Command issued with no game running or after the game has ended."""


class StaleAsyncResult(GameError):
    """A search task finished after the game it was started for moved on."""
