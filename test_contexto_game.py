#!/usr/bin/env python3
"""
Tests for the in-memory Contexto sessions and the GameManager registry.
Uses a mocked distance API so no network is needed.
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from contexto.errors import InvalidGameIdError, UnsupportedGameModeError
from contexto.game import ContextoGame, GameManager, GameMode, GuessResult
from contexto.game_dates import GameCalendar

UNKNOWN_WORD = "Desculpe, não conheço essa palavra"


def make_oracle(responses):
    """Mocked distance API. responses: word -> dict(distance=..., lemma=..., error=..., cacheable=...)"""
    async def lookup(game_id, word):
        data = responses.get(word)
        if data is None:
            return {'word': word, 'lemma': word, 'distance': None, 'error': UNKNOWN_WORD, 'cacheable': True}
        return {
            'word': word,
            'lemma': data.get('lemma', word),
            'distance': data.get('distance'),
            'error': data.get('error'),
            'cacheable': data.get('cacheable', True),
        }

    oracle = MagicMock()
    oracle.get_word_distance = AsyncMock(side_effect=lookup)
    return oracle


RESPONSES = {
    'casa': {'distance': 5},
    'casas': {'distance': 5, 'lemma': 'casa'},
    'lar': {'distance': 2},
    'rua': {'distance': 900},
    'gato': {'distance': 0},
}


def test_game_mode_parse():
    assert GameMode.parse(None) is GameMode.DEFAULT
    assert GameMode.parse('') is GameMode.DEFAULT
    assert GameMode.parse('Competitive') is GameMode.COMPETITIVE
    assert GameMode.parse(GameMode.COMPETITIVE) is GameMode.COMPETITIVE
    with pytest.raises(UnsupportedGameModeError):
        GameMode.parse('battle-royale')


def test_guess_result_rank():
    assert GuessResult('casa', distance=5).rank == 6
    assert GuessResult('gato', distance=0).rank == 1
    assert GuessResult('gato', distance=0).is_exact
    assert not GuessResult('xyz', error=UNKNOWN_WORD).is_exact


def test_default_game_shares_history_between_players():
    oracle = make_oracle(RESPONSES)
    game = ContextoGame(100, GameMode.DEFAULT, oracle)

    result = asyncio.run(game.try_word('p1', 'Casa'))
    assert result.distance == 5
    assert not result.duplicate

    existing = game.get_existing_guess('CASA', 'p2')
    assert existing is result

    again = asyncio.run(game.try_word('p2', 'casa'))
    assert again.duplicate
    assert again.distance == 5
    assert oracle.get_word_distance.await_count == 1
    assert game.get_guess_count() == 1


def test_competitive_game_keeps_histories_apart():
    oracle = make_oracle(RESPONSES)
    game = ContextoGame(100, GameMode.COMPETITIVE, oracle)

    asyncio.run(game.try_word('p1', 'casa'))
    assert game.get_existing_guess('casa', 'p2') is None

    asyncio.run(game.try_word('p2', 'casa'))
    asyncio.run(game.try_word('p2', 'rua'))

    assert oracle.get_word_distance.await_count == 3
    assert game.get_guess_count('p1') == 1
    assert game.get_guess_count('p2') == 2


def test_rejected_words_are_cached_but_outages_are_not():
    responses = dict(RESPONSES)
    responses['lento'] = {'error': 'Serviço indisponível', 'cacheable': False}
    oracle = make_oracle(responses)
    game = ContextoGame(100, GameMode.DEFAULT, oracle)

    first = asyncio.run(game.try_word('p1', 'xpto'))
    assert first.error == UNKNOWN_WORD
    assert game.get_existing_guess('xpto').error == UNKNOWN_WORD

    asyncio.run(game.try_word('p1', 'lento'))
    assert game.get_existing_guess('lento') is None
    asyncio.run(game.try_word('p1', 'lento'))

    # xpto once, lento twice
    assert oracle.get_word_distance.await_count == 3
    assert game.get_guess_count() == 0


def test_same_lemma_counts_as_duplicate():
    oracle = make_oracle(RESPONSES)
    game = ContextoGame(100, GameMode.DEFAULT, oracle)

    asyncio.run(game.try_word('p1', 'casa'))
    result = asyncio.run(game.try_word('p1', 'casas'))

    assert result.duplicate
    assert result.word == 'casa'
    assert game.get_guess_count() == 1
    assert game.get_existing_guess('casas').lemma == 'casa'


def test_empty_word_is_a_no_op():
    oracle = make_oracle(RESPONSES)
    game = ContextoGame(100, GameMode.DEFAULT, oracle)
    assert asyncio.run(game.try_word('p1', '   ')) is None
    oracle.get_word_distance.assert_not_awaited()


def test_default_game_finishes_on_exact_match():
    oracle = make_oracle(RESPONSES)
    game = ContextoGame(100, GameMode.DEFAULT, oracle)

    asyncio.run(game.try_word('p1', 'casa'))
    win = asyncio.run(game.try_word('p2', 'gato'))
    assert win.is_exact
    assert game.finished

    assert asyncio.run(game.try_word('p3', 'lar')) is None
    assert oracle.get_word_distance.await_count == 2


def test_competitive_leaderboard_orders_by_attempts():
    oracle = make_oracle(RESPONSES)
    game = ContextoGame(100, GameMode.COMPETITIVE, oracle)

    for word in ['casa', 'lar', 'gato']:
        asyncio.run(game.try_word('p1', word))
    for word in ['rua', 'gato']:
        asyncio.run(game.try_word('p2', word))
    for word in ['lar', 'gato']:
        asyncio.run(game.try_word('p3', word))

    assert not game.finished
    assert game.has_player_completed('p1')
    assert game.get_player_completion('p1')['guess_count'] == 3
    assert game.get_leaderboard() == [
        {'player_id': 'p2', 'guess_count': 2},
        {'player_id': 'p3', 'guess_count': 2},
        {'player_id': 'p1', 'guess_count': 3},
    ]

    # Completed players can't keep guessing
    assert asyncio.run(game.try_word('p1', 'rua')) is None
    # Others still can
    assert asyncio.run(game.try_word('p4', 'rua')).distance == 900


def test_closest_guesses_sorted_and_limited():
    oracle = make_oracle(RESPONSES)
    game = ContextoGame(100, GameMode.DEFAULT, oracle, closest_guesses_limit=2)

    for word in ['rua', 'casa', 'lar']:
        asyncio.run(game.try_word('p1', word))

    assert [g.word for g in game.get_closest_guesses('p1')] == ['lar', 'casa']
    assert [g.word for g in game.get_closest_guesses('p1', limit=10)] == ['lar', 'casa', 'rua']


def test_manager_creates_once_and_reuses_sessions():
    manager = GameManager(make_oracle(RESPONSES), GameCalendar())
    todays_id = manager.calendar.get_todays_game_id()

    game, created = manager.get_current_or_create_game('p1', 'default')
    assert created
    assert game.game_id == todays_id

    same, created = manager.get_current_or_create_game('p2', GameMode.DEFAULT)
    assert same is game
    assert not created

    competitive, created = manager.get_current_or_create_game('p1', 'competitive')
    assert created
    assert competitive is not game


def test_manager_without_explicit_game_returns_to_today():
    manager = GameManager(make_oracle(RESPONSES), GameCalendar())
    calendar = manager.calendar
    todays_id = calendar.get_todays_game_id()

    old_day = calendar.today() - timedelta(days=10)
    old_game, _ = manager.get_current_or_create_game('p1', 'default', old_day)
    assert old_game.game_id == calendar.game_id_for_date(old_day)
    assert manager.get_current_game('p1') is old_game

    today_game, created = manager.get_current_or_create_game('p1', 'default')
    assert today_game.game_id == todays_id
    assert created
    assert manager.get_current_game('p1') is today_game

    by_id, _ = manager.get_current_or_create_game('p1', 'default', 5)
    assert by_id.game_id == 5
    assert manager.get_current_or_create_game('p1', 'default')[0] is today_game


def test_manager_reuses_pointer_to_todays_game_of_same_mode():
    manager = GameManager(make_oracle(RESPONSES), GameCalendar())

    game, _ = manager.get_current_or_create_game('p1', 'competitive')
    again, created = manager.get_current_or_create_game('p1', 'competitive')
    assert again is game
    assert not created

    cooperative, _ = manager.get_current_or_create_game('p1', 'default')
    assert cooperative is not game
    assert cooperative.mode is GameMode.DEFAULT


def test_manager_rejects_games_before_the_first():
    manager = GameManager(make_oracle(RESPONSES), GameCalendar())
    with pytest.raises(InvalidGameIdError):
        manager.get_current_or_create_game('p1', 'default', -1)
    first_day = manager.calendar.first_game_date
    with pytest.raises(InvalidGameIdError):
        manager.get_current_or_create_game('p1', 'default', first_day - timedelta(days=1))


def test_leaving_finished_game_starts_fresh_session():
    manager = GameManager(make_oracle(RESPONSES), GameCalendar())

    game, _ = manager.get_current_or_create_game('p1', 'default')
    asyncio.run(game.try_word('p1', 'gato'))
    assert game.finished

    manager.leave_current_game('p1')
    assert manager.get_current_game('p1') is None

    fresh, created = manager.get_current_or_create_game('p1', 'default')
    assert created
    assert fresh is not game
    assert not fresh.finished


def test_cleanup_drops_old_games_and_pointers():
    manager = GameManager(make_oracle(RESPONSES), GameCalendar())
    todays_id = manager.calendar.get_todays_game_id()

    manager.get_current_or_create_game('p1', 'default', todays_id - 30)
    manager.get_current_or_create_game('p2', 'default')

    assert manager.cleanup_stale_games(keep_days=7) == 1
    assert manager.get_current_game('p1') is None
    assert manager.get_current_game('p2') is not None
    assert manager.find_game('default', todays_id - 30) is None


if __name__ == "__main__":
    import sys
    sys.exit(pytest.main([__file__, '-v']))
