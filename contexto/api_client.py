"""
Contexto - Distance API Module
Asks the public Contexto API how far a guessed word is from a puzzle's secret word.
"""

import asyncio
from urllib.parse import quote

import aiohttp

from contexto.logger_utils import api_logger as logger, log_api_call

# API timeout in seconds
API_TIMEOUT = 10

# Messages for failures that say nothing about the word itself
RATE_LIMITED_MESSAGE = "⏳ Muitas tentativas seguidas. Espere um pouco e tente de novo."
UNAVAILABLE_MESSAGE = "❌ Não foi possível consultar o Contexto agora. Tente novamente mais tarde."
UNKNOWN_WORD_MESSAGE = "Desculpe, não conheço essa palavra"


class ContextoApiClient:
    """Thin aiohttp client for GET {api_url}/{language}/game/{game_id}/{word}."""

    def __init__(self, api_url: str = 'https://api.contexto.me/machado', language: str = 'pt-br',
                 timeout: int = API_TIMEOUT):
        self.api_url = api_url.rstrip('/')
        self.language = language
        self.timeout = timeout

    def build_url(self, game_id: int, word: str) -> str:
        return f"{self.api_url}/{self.language}/game/{game_id}/{quote(word, safe='')}"

    async def get_word_distance(self, game_id: int, word: str) -> dict:
        """
        Look up a word's distance to the secret word of a puzzle.

        Returns:
            Dictionary with:
            - 'word': str - the word as submitted
            - 'lemma': str - normalized form used by the API
            - 'distance': int or None - 0 means the word was found
            - 'error': str or None - reason the word was rejected
            - 'cacheable': bool - whether the error is about the word itself
              (False for timeouts, rate limits and server errors)
        """
        result = {
            'word': word,
            'lemma': word,
            'distance': None,
            'error': None,
            'cacheable': True,
        }
        url = self.build_url(game_id, word)

        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    url,
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status == 429:
                        log_api_call(logger, url, success=False, error="rate limited", status=429)
                        result['error'] = RATE_LIMITED_MESSAGE
                        result['cacheable'] = False
                        return result

                    if response.status >= 500:
                        log_api_call(logger, url, success=False, error=f"HTTP {response.status}")
                        result['error'] = UNAVAILABLE_MESSAGE
                        result['cacheable'] = False
                        return result

                    data = await response.json(content_type=None)
                    if not isinstance(data, dict):
                        data = {}

                    if response.status == 200 and data.get('distance') is not None:
                        log_api_call(logger, url, status=response.status)
                        result['lemma'] = data.get('lemma') or word
                        result['distance'] = int(data['distance'])
                        return result

                    # 4xx or a body without distance: the word itself was rejected
                    result['error'] = data.get('error') or UNKNOWN_WORD_MESSAGE
                    log_api_call(logger, url, success=False, error=result['error'], status=response.status)
                    return result

        except asyncio.TimeoutError:
            log_api_call(logger, url, success=False, error=f"timeout after {self.timeout}s")
        except (aiohttp.ClientError, ValueError) as e:
            log_api_call(logger, url, success=False, error=f"{type(e).__name__}: {e}")

        result['error'] = UNAVAILABLE_MESSAGE
        result['cacheable'] = False
        return result
