#!/usr/bin/env python3
"""
Tests for loading config/config.json and the .env overrides.
"""

import json
from datetime import date

import pytest

from contexto.config import DEFAULT_SETTINGS, ConfigError, ContextoConfig, get_discord_token


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ('CONTEXTO_API_URL', 'CONTEXTO_LANGUAGE', 'DISCORD_BOT_TOKEN'):
        monkeypatch.delenv(name, raising=False)


def _write_config(tmp_path, section):
    path = tmp_path / 'config.json'
    path.write_text(json.dumps({'contexto': section}), encoding='utf-8')
    return str(path)


def test_missing_file_uses_defaults(tmp_path):
    settings = ContextoConfig.load(str(tmp_path / 'missing.json'))
    assert settings['api_url'] == DEFAULT_SETTINGS['api_url']
    assert settings['first_game_date'] == date(2022, 9, 18)
    assert settings['closest_guesses_limit'] == 20


def test_file_values_override_defaults(tmp_path):
    path = _write_config(tmp_path, {
        'api_url': 'https://example.test/api/',
        'language': 'en',
        'first_game_date': '2023-01-01',
        'closest_guesses_limit': '15',
    })
    settings = ContextoConfig.load(path)
    assert settings['api_url'] == 'https://example.test/api'
    assert settings['language'] == 'en'
    assert settings['first_game_date'] == date(2023, 1, 1)
    assert settings['closest_guesses_limit'] == 15
    assert settings['leaderboard_size'] == DEFAULT_SETTINGS['leaderboard_size']


def test_environment_overrides_file(tmp_path, monkeypatch):
    path = _write_config(tmp_path, {'language': 'en'})
    monkeypatch.setenv('CONTEXTO_LANGUAGE', 'es')
    monkeypatch.setenv('CONTEXTO_API_URL', 'https://mirror.test')
    settings = ContextoConfig.load(path)
    assert settings['language'] == 'es'
    assert settings['api_url'] == 'https://mirror.test'


def test_malformed_json_raises(tmp_path):
    path = tmp_path / 'config.json'
    path.write_text('{"contexto": ', encoding='utf-8')
    with pytest.raises(ConfigError):
        ContextoConfig.load(str(path))


@pytest.mark.parametrize('section', [
    {'first_game_date': '18/09/2022'},
    {'api_timeout': 'soon'},
    {'closest_guesses_limit': 0},
    {'timezone_offset_hours': 'brt'},
])
def test_invalid_values_raise(tmp_path, section):
    with pytest.raises(ConfigError):
        ContextoConfig.load(_write_config(tmp_path, section))


def test_discord_token_strips_quotes(monkeypatch):
    monkeypatch.setenv('DISCORD_BOT_TOKEN', ' "abc.def.ghi" ')
    assert get_discord_token() == 'abc.def.ghi'


if __name__ == "__main__":
    import sys
    sys.exit(pytest.main([__file__, '-v']))
