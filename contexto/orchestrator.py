"""
Contexto - Game Orchestrator
Entry point of the /c and /ranking commands: normalizes the raw command
options, resolves the session and hands the guess to the handler of the
requested mode. Every path ends in a private reply payload.
"""

from datetime import date
from typing import Optional

from contexto.errors import ContextoError, GameFinishedError, UnsupportedGameModeError
from contexto.game import GameManager, GameMode
from contexto.game_dates import parse_game_date
from contexto.handlers import MODE_HANDLERS, format_leaderboard
from contexto.logger_utils import game_logger as logger


def make_reply(text: str) -> dict:
    """Reply payload, always private to the player who sent the command."""
    return {'content': text, 'ephemeral': True}


class GameRequest:
    """One command invocation, normalized."""

    def __init__(self, player_id, mode: GameMode = GameMode.DEFAULT, word: Optional[str] = None,
                 explicit_game_id: Optional[int] = None, explicit_date: Optional[date] = None):
        self.player_id = player_id
        self.mode = mode
        self.word = word
        self.explicit_game_id = explicit_game_id
        self.explicit_date = explicit_date

    @property
    def target(self):
        """Explicit game id wins over an explicit date; None means today."""
        if self.explicit_game_id is not None:
            return self.explicit_game_id
        return self.explicit_date

    def __repr__(self):
        return (f"GameRequest(player_id={self.player_id!r}, mode={self.mode.value}, word={self.word!r}, "
                f"game_id={self.explicit_game_id!r}, date={self.explicit_date!r})")


class GameOrchestrator:
    """Parses requests, resolves sessions and dispatches on the request's mode tag."""

    def __init__(self, manager: GameManager, leaderboard_size: int = 10):
        self.manager = manager
        self.calendar = manager.calendar
        self.leaderboard_size = leaderboard_size

    def parse_request(self, player_id, word: Optional[str] = None, mode: Optional[str] = None,
                      game_id: Optional[int] = None, date_string: Optional[str] = None) -> GameRequest:
        """
        Build a GameRequest from raw command options.

        Raises:
            InvalidDateError: If date_string is used and is not YYYY-MM-DD
        """
        explicit_date = None
        if game_id is None and date_string:
            explicit_date = parse_game_date(date_string)

        word = word.strip() if word else None
        return GameRequest(player_id, GameMode.parse(mode), word or None, game_id, explicit_date)

    def resolve_session(self, request: GameRequest):
        """Get or create the session for the request. Returns (game, created)."""
        return self.manager.get_current_or_create_game(request.player_id, request.mode, request.target)

    async def execute(self, player_id, word: Optional[str] = None, mode: Optional[str] = None,
                      game_id: Optional[int] = None, date_string: Optional[str] = None) -> dict:
        """Run a /c command and return its reply payload."""
        try:
            request = self.parse_request(player_id, word, mode, game_id, date_string)
            game, created = self.resolve_session(request)

            handler = MODE_HANDLERS.get(request.mode)
            if handler is None or game.mode is not request.mode:
                raise UnsupportedGameModeError(request.mode)

            text = await handler(game, request, self.calendar, created)
            return make_reply(text)

        except GameFinishedError as e:
            logger.debug(f"Player {player_id} hit finished game; leaving current game")
            self.manager.leave_current_game(player_id)
            return make_reply(e.message)
        except ContextoError as e:
            logger.debug(f"Refused command from {player_id}: {type(e).__name__}: {e.message}")
            return make_reply(e.message)

    async def ranking(self, player_id, game_id: Optional[int] = None,
                      date_string: Optional[str] = None) -> dict:
        """Run a /ranking command: competitive leaderboard of a puzzle (today by default)."""
        try:
            if game_id is None and date_string:
                game_id = self.calendar.game_id_for_date(parse_game_date(date_string))
        except ContextoError as e:
            return make_reply(e.message)

        if game_id is None:
            game_id = self.calendar.get_todays_game_id()

        game = self.manager.find_game(GameMode.COMPETITIVE, game_id)
        leaderboard = game.get_leaderboard() if game else []
        date_label = self.calendar.format_game_date(game_id)
        return make_reply(format_leaderboard(game_id, leaderboard, date_label, player_id, self.leaderboard_size))
