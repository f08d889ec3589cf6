"""
Contexto - Game Date Module
Maps puzzle ids to calendar days and builds the date label shown next to a game id.
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from contexto.errors import InvalidDateError

# Locale format used for labels (pt-BR: dd/mm/yyyy)
LABEL_DATE_FORMAT = '%d/%m/%Y'
INPUT_DATE_FORMAT = '%Y-%m-%d'
INPUT_DATE_PATTERN = re.compile(r'\d{4}-\d{2}-\d{2}')

DEFAULT_FIRST_GAME_DATE = date(2022, 9, 18)
DEFAULT_UTC_OFFSET_HOURS = -3


def parse_game_date(date_string: str) -> date:
    """
    Parse an explicit game date given as YYYY-MM-DD.

    Raises:
        InvalidDateError: If the text is not a valid calendar date
    """
    if date_string is None:
        raise InvalidDateError(date_string)
    text = date_string.strip()
    # strptime alone also takes unpadded fields like 2025-7-9
    if not INPUT_DATE_PATTERN.fullmatch(text):
        raise InvalidDateError(date_string)
    try:
        return datetime.strptime(text, INPUT_DATE_FORMAT).date()
    except ValueError:
        raise InvalidDateError(date_string)


class GameCalendar:
    """Daily puzzle calendar: game #0 is played on first_game_date, one id per day."""

    def __init__(self, first_game_date: date = DEFAULT_FIRST_GAME_DATE,
                 utc_offset_hours: float = DEFAULT_UTC_OFFSET_HOURS):
        self.first_game_date = first_game_date
        self.tz = timezone(timedelta(hours=utc_offset_hours))

    def today(self) -> date:
        """Current calendar day in the puzzle's timezone."""
        return datetime.now(self.tz).date()

    def game_id_for_date(self, day: date) -> int:
        return (day - self.first_game_date).days

    def date_for_game_id(self, game_id: int) -> date:
        return self.first_game_date + timedelta(days=game_id)

    def get_todays_game_id(self, today: Optional[date] = None) -> int:
        return self.game_id_for_date(today or self.today())

    def format_game_date(self, game_id: int, today: Optional[date] = None) -> str:
        """
        Build the label appended after a game id.

        Today's game gets no label. Any other id, past or future, gets
        " (dd/mm/yyyy)" with the day that puzzle is played.
        """
        if game_id == self.get_todays_game_id(today):
            return ''
        return f" ({self.date_for_game_id(game_id).strftime(LABEL_DATE_FORMAT)})"
