"""
Configuration Manager for the Contexto bot

Loads the `contexto` section of config/config.json, fills in defaults and
applies environment overrides from .env.

Usage:
    from contexto.config import ContextoConfig

    settings = ContextoConfig.load()
    print(settings['api_url'])
"""

import json
import os
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from contexto.logger_utils import bot_logger as logger


class ConfigError(Exception):
    """Raised when there's an issue with the bot configuration"""
    pass


DEFAULT_SETTINGS = {
    'api_url': 'https://api.contexto.me/machado',
    'language': 'pt-br',
    'api_timeout': 10,
    'first_game_date': '2022-09-18',
    'timezone_offset_hours': -3,
    'closest_guesses_limit': 20,
    'leaderboard_size': 10,
    'log_level': 'INFO',
}

# Environment variable -> setting key
ENV_OVERRIDES = {
    'CONTEXTO_API_URL': 'api_url',
    'CONTEXTO_LANGUAGE': 'language',
}


class ContextoConfig:
    """Contexto configuration loader"""

    CONFIG_FILE = "config/config.json"

    @classmethod
    def load(cls, config_file: Optional[str] = None) -> Dict[str, Any]:
        """
        Load the game configuration.

        Returns:
            Dict with every key of DEFAULT_SETTINGS; first_game_date is a date

        Raises:
            ConfigError: If the file is malformed or a value is invalid
        """
        config_path = Path(config_file or cls.CONFIG_FILE)
        settings = dict(DEFAULT_SETTINGS)

        if config_path.exists():
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    raw = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Invalid JSON in {config_path}: {e}")
            except OSError as e:
                raise ConfigError(f"Failed to read {config_path}: {e}")

            section = raw.get('contexto', {})
            if not isinstance(section, dict):
                raise ConfigError(f"'contexto' in {config_path} must be an object")
            settings.update(section)
        else:
            logger.warning(f"Config file {config_path} not found - using defaults")

        load_dotenv()
        for env_name, key in ENV_OVERRIDES.items():
            value = os.environ.get(env_name, '').strip()
            if value:
                settings[key] = value

        return cls._validate(settings, config_path)

    @classmethod
    def _validate(cls, settings: Dict[str, Any], config_path: Path) -> Dict[str, Any]:
        first_game = settings['first_game_date']
        if not isinstance(first_game, date):
            try:
                settings['first_game_date'] = datetime.strptime(str(first_game), '%Y-%m-%d').date()
            except ValueError:
                raise ConfigError(
                    f"first_game_date in {config_path} must be YYYY-MM-DD, got {first_game!r}"
                )

        for key in ('api_timeout', 'closest_guesses_limit', 'leaderboard_size'):
            try:
                settings[key] = int(settings[key])
            except (TypeError, ValueError):
                raise ConfigError(f"{key} in {config_path} must be an integer")
            if settings[key] <= 0:
                raise ConfigError(f"{key} in {config_path} must be positive")

        try:
            settings['timezone_offset_hours'] = float(settings['timezone_offset_hours'])
        except (TypeError, ValueError):
            raise ConfigError(f"timezone_offset_hours in {config_path} must be a number")

        settings['api_url'] = str(settings['api_url']).rstrip('/')
        return settings


def get_discord_token() -> str:
    """Read the bot token from the environment, stripping stray quotes."""
    load_dotenv()
    return os.environ.get("DISCORD_BOT_TOKEN", "").strip().strip('"').strip("'")
