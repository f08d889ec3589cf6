"""
Error kinds raised by the Contexto game layer.

Every ContextoError carries the message shown to the player and is turned
into a normal (private) reply by the command layer. UnsupportedGameModeError
is deliberately outside that hierarchy: it marks a programming error and
must propagate.
"""


class ContextoError(Exception):
    """Base class for user-visible game errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidDateError(ContextoError):
    """Raised when an explicit game date cannot be parsed."""

    def __init__(self, date_string=None):
        super().__init__("❌ Data inválida! Use o formato YYYY-MM-DD (ex: 2025-07-09)")
        self.date_string = date_string


class InvalidGameIdError(ContextoError):
    """Raised when the requested puzzle id does not exist (before the first game)."""

    def __init__(self, game_id: int):
        super().__init__(f"❌ O jogo #{game_id} não existe. Os jogos começam no #0.")
        self.game_id = game_id


class DuplicateGuessError(ContextoError):
    """A word that was already played in the same scope; the stored result is replayed."""

    def __init__(self, message: str, guess=None):
        super().__init__(message)
        self.guess = guess


class GameFinishedError(ContextoError):
    """The shared (default mode) session is already finished."""

    def __init__(self, message: str, game=None):
        super().__init__(message)
        self.game = game


class AlreadyCompletedError(ContextoError):
    """The player already found the word in a competitive session."""

    def __init__(self, message: str, guess_count=None):
        super().__init__(message)
        self.guess_count = guess_count


class SubmissionError(ContextoError):
    """The distance oracle (or local validation) rejected the guess."""

    def __init__(self, message: str, guess=None):
        super().__init__(message)
        self.guess = guess


class UnsupportedGameModeError(Exception):
    """Raised for a mode tag that has no handler. This is a bug, not a user error."""

    def __init__(self, mode):
        super().__init__(f"Unsupported game mode: {mode!r}")
        self.mode = mode
