"""
Contexto - Game Session Module
In-memory sessions for the daily Contexto puzzle.

A ContextoGame is tagged with a GameMode:
- DEFAULT: one guess history shared by everyone; the game finishes when
  anybody finds the word.
- COMPETITIVE: every player has their own history; finishing players are
  ranked on a leaderboard by number of attempts. The game itself never finishes.
"""

import asyncio
import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from contexto.errors import InvalidGameIdError, UnsupportedGameModeError
from contexto.game_dates import GameCalendar
from contexto.logger_utils import game_logger as logger, log_function_call
from contexto.proximity import display_rank


class GameMode(Enum):
    """Game modes selectable with the `mode` command option."""
    DEFAULT = "default"
    COMPETITIVE = "competitive"

    @classmethod
    def parse(cls, value) -> "GameMode":
        """Empty means DEFAULT; anything else must name a mode."""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.DEFAULT
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnsupportedGameModeError(value)


def normalize_word(word: Optional[str]) -> str:
    return (word or '').strip().lower()


class GuessResult:
    """Outcome of one guess: distance 0 is the secret word, None means not ranked."""

    def __init__(self, word: str, lemma: Optional[str] = None, distance: Optional[int] = None,
                 error: Optional[str] = None, player_id=None, duplicate: bool = False):
        self.word = word
        self.lemma = lemma or word
        self.distance = distance
        self.error = error
        self.player_id = player_id
        self.duplicate = duplicate
        self.created_at = datetime.now(timezone.utc)

    @classmethod
    def from_api(cls, data: dict, player_id=None) -> "GuessResult":
        return cls(
            word=data.get('word'),
            lemma=data.get('lemma'),
            distance=data.get('distance'),
            error=data.get('error'),
            player_id=player_id,
        )

    @property
    def rank(self) -> int:
        return display_rank(self.distance)

    @property
    def is_exact(self) -> bool:
        return self.error is None and self.distance == 0

    def matches(self, word: str) -> bool:
        key = normalize_word(word)
        return key in (normalize_word(self.word), normalize_word(self.lemma))

    def as_duplicate(self) -> "GuessResult":
        copy = GuessResult(self.word, self.lemma, self.distance, self.error, self.player_id, duplicate=True)
        copy.created_at = self.created_at
        return copy

    def to_dict(self) -> dict:
        return {
            'word': self.word,
            'lemma': self.lemma,
            'distance': self.distance,
            'error': self.error,
        }

    def __repr__(self):
        return f"GuessResult(word={self.word!r}, lemma={self.lemma!r}, distance={self.distance!r}, error={self.error!r})"


class ContextoGame:
    """One puzzle session, shared (DEFAULT) or with per-player histories (COMPETITIVE)."""

    def __init__(self, game_id: int, mode: GameMode, oracle, closest_guesses_limit: Optional[int] = None):
        """
        Args:
            game_id: Numeric puzzle id (one per day)
            mode: GameMode tag of this session
            oracle: Object with `async get_word_distance(game_id, word) -> dict`
            closest_guesses_limit: Default size of get_closest_guesses()
        """
        self.id = uuid.uuid4().hex[:8]
        self.game_id = game_id
        self.mode = mode
        self.oracle = oracle
        self.closest_guesses_limit = closest_guesses_limit
        self.finished = False
        self.created_at = datetime.now(timezone.utc)
        self._guesses: Dict[object, List[GuessResult]] = {}  # scope -> valid guesses in order
        self._invalid: Dict[object, Dict[str, GuessResult]] = {}  # scope -> word -> rejected guess
        self._aliases: Dict[object, Dict[str, GuessResult]] = {}  # scope -> word -> guess with same lemma
        self._completions: Dict[object, dict] = {}  # player_id -> completion, in completion order
        self._lock = asyncio.Lock()

    def _scope(self, player_id):
        return player_id if self.mode is GameMode.COMPETITIVE else None

    def get_existing_guess(self, word: str, player_id=None) -> Optional[GuessResult]:
        """Previous guess of the same word (case-insensitive, word or lemma) in the player's scope."""
        key = normalize_word(word)
        if not key:
            return None
        scope = self._scope(player_id)

        for guess in self._guesses.get(scope, []):
            if guess.matches(key):
                return guess
        alias = self._aliases.get(scope, {}).get(key)
        if alias:
            return alias
        return self._invalid.get(scope, {}).get(key)

    def _find_by_lemma(self, lemma: str, scope) -> Optional[GuessResult]:
        lemma = normalize_word(lemma)
        for guess in self._guesses.get(scope, []):
            if normalize_word(guess.lemma) == lemma:
                return guess
        return None

    async def try_word(self, player_id, word: str) -> Optional[GuessResult]:
        """
        Submit a guess for a player.

        Returns None for empty input or when the game no longer accepts
        guesses. A word already played in the scope is returned as stored
        without asking the oracle again.
        """
        key = normalize_word(word)
        if not key:
            return None

        log_function_call(logger, 'try_word', game=self.id, game_id=self.game_id, player=player_id, word=key)
        scope = self._scope(player_id)

        async with self._lock:
            if self.finished or self.has_player_completed(player_id):
                return None

            existing = self.get_existing_guess(key, player_id)
            if existing:
                return existing.as_duplicate()

            data = await self.oracle.get_word_distance(self.game_id, key)
            result = GuessResult.from_api(data, player_id)

            if result.error:
                if data.get('cacheable', True):
                    self._invalid.setdefault(scope, {})[key] = result
                logger.debug(f"Game {self.id}: '{key}' rejected for {player_id}: {result.error}")
                return result

            # A different spelling of an already played lemma counts as the same guess
            same_lemma = self._find_by_lemma(result.lemma, scope)
            if same_lemma:
                self._aliases.setdefault(scope, {})[key] = same_lemma
                return same_lemma.as_duplicate()

            self._guesses.setdefault(scope, []).append(result)

            if result.is_exact:
                self._record_win(player_id)

            return result

    def _record_win(self, player_id):
        if self.mode is GameMode.DEFAULT:
            self.finished = True
            logger.info(f"Game {self.id} (#{self.game_id}, default) finished by {player_id} "
                        f"after {self.get_guess_count()} guesses")
        else:
            guess_count = self.get_guess_count(player_id)
            self._completions[player_id] = {
                'player_id': player_id,
                'guess_count': guess_count,
                'completed_at': datetime.now(timezone.utc),
            }
            logger.info(f"Player {player_id} completed competitive game #{self.game_id} in {guess_count} guesses")

    def get_closest_guesses(self, player_id=None, limit: Optional[int] = None) -> List[GuessResult]:
        """Valid guesses of the scope ordered by increasing distance (ties keep guess order)."""
        guesses = sorted(self._guesses.get(self._scope(player_id), []), key=lambda g: g.distance)
        limit = limit if limit is not None else self.closest_guesses_limit
        if limit is not None:
            guesses = guesses[:limit]
        return guesses

    def get_guess_count(self, player_id=None) -> int:
        return len(self._guesses.get(self._scope(player_id), []))

    def has_player_completed(self, player_id) -> bool:
        return player_id in self._completions

    def get_player_completion(self, player_id) -> Optional[dict]:
        completion = self._completions.get(player_id)
        return dict(completion) if completion else None

    def get_leaderboard(self) -> List[dict]:
        """Completed players, fewest attempts first; ties keep completion order."""
        entries = [
            {'player_id': c['player_id'], 'guess_count': c['guess_count']}
            for c in self._completions.values()
        ]
        return sorted(entries, key=lambda entry: entry['guess_count'])

    def __repr__(self):
        return f"ContextoGame(id={self.id!r}, game_id={self.game_id}, mode={self.mode.value}, finished={self.finished})"


class GameManager:
    """
    Registry of live sessions and of each player's current session.

    Sessions are keyed by (mode, game_id). A command without an explicit game
    plays today's puzzle; the player's pointer is only reused when it points
    to today's game of the same mode.
    """

    def __init__(self, oracle, calendar: Optional[GameCalendar] = None,
                 closest_guesses_limit: Optional[int] = None):
        self.oracle = oracle
        self.calendar = calendar or GameCalendar()
        self.closest_guesses_limit = closest_guesses_limit
        self._games: Dict[Tuple[GameMode, int], ContextoGame] = {}
        self._current: Dict[object, ContextoGame] = {}  # player_id -> current session

    def _resolve_game_id(self, game_id_or_date) -> Optional[int]:
        if game_id_or_date is None:
            return None
        if isinstance(game_id_or_date, datetime):
            game_id_or_date = game_id_or_date.date()
        if isinstance(game_id_or_date, date):
            return self.calendar.game_id_for_date(game_id_or_date)
        return int(game_id_or_date)

    def get_current_or_create_game(self, player_id, mode, game_id_or_date=None) -> Tuple[ContextoGame, bool]:
        """
        Get the session a command should act on, creating it if needed.

        Args:
            player_id: Discord user ID
            mode: GameMode (or its string value)
            game_id_or_date: Explicit puzzle id or calendar date, None for today

        Returns:
            (game, created) tuple

        Raises:
            InvalidGameIdError: If the id resolves before the first puzzle
        """
        mode = GameMode.parse(mode)
        game_id = self._resolve_game_id(game_id_or_date)

        if game_id is None:
            game_id = self.calendar.get_todays_game_id()
            current = self.get_current_game(player_id)
            if current and current.mode is mode and current.game_id == game_id:
                return current, False

        if game_id < 0:
            raise InvalidGameIdError(game_id)

        key = (mode, game_id)
        game = self._games.get(key)
        created = game is None
        if created:
            game = ContextoGame(game_id, mode, self.oracle, self.closest_guesses_limit)
            self._games[key] = game
            logger.info(f"Created {mode.value} game {game.id} for puzzle #{game_id} (requested by {player_id})")

        self._current[player_id] = game
        return game, created

    def find_game(self, mode, game_id: int) -> Optional[ContextoGame]:
        """Live session for a puzzle without creating one."""
        return self._games.get((GameMode.parse(mode), game_id))

    def get_current_game(self, player_id) -> Optional[ContextoGame]:
        return self._current.get(player_id)

    def leave_current_game(self, player_id):
        """
        Forget the player's current session.
        A finished default session is retired so the next command starts a fresh one.
        """
        game = self._current.pop(player_id, None)
        if not game:
            return

        key = (game.mode, game.game_id)
        if game.mode is GameMode.DEFAULT and game.finished and self._games.get(key) is game:
            del self._games[key]
            logger.info(f"Retired finished game {game.id} (#{game.game_id})")

    def cleanup_stale_games(self, keep_days: int = 7) -> int:
        """Drop sessions older than keep_days puzzles and the pointers to them."""
        oldest_kept = self.calendar.get_todays_game_id() - keep_days
        stale = [key for key, game in self._games.items() if game.game_id < oldest_kept]
        for key in stale:
            del self._games[key]

        live = set(id(game) for game in self._games.values())
        for player_id in [p for p, game in self._current.items() if id(game) not in live]:
            del self._current[player_id]

        if stale:
            logger.info(f"Cleaned up {len(stale)} stale Contexto games (older than #{oldest_kept})")
        return len(stale)
