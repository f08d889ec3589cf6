"""
Contexto - Discord Slash Commands
Registers /c and /ranking on the bot's command tree.
"""

from typing import Optional

import discord
from discord import app_commands

from contexto.errors import UnsupportedGameModeError
from contexto.logger_utils import bot_logger as logger, log_discord_event, log_error_with_context
from contexto.orchestrator import GameOrchestrator, make_reply

MODE_CHOICES = [
    app_commands.Choice(name="Cooperativo (padrão)", value="default"),
    app_commands.Choice(name="Competitivo", value="competitive"),
]

GENERIC_ERROR_MESSAGE = "❌ Algo deu errado ao processar o comando. Tente novamente."


def register_commands(tree: app_commands.CommandTree, orchestrator: GameOrchestrator):
    """Add the Contexto commands to a command tree."""

    @tree.command(name="c", description="Jogue Contexto, um jogo de adivinhação de palavras!")
    @app_commands.describe(
        word="A palavra que você quer tentar adivinhar",
        mode="Modo de jogo",
        game_id="ID do jogo específico (para jogar um jogo de um dia específico)",
        date="Data do jogo no formato YYYY-MM-DD (ex: 2025-07-09)",
    )
    @app_commands.rename(game_id="game-id")
    @app_commands.choices(mode=MODE_CHOICES)
    async def contexto_command(interaction: discord.Interaction, word: str,
                               mode: Optional[app_commands.Choice[str]] = None,
                               game_id: Optional[int] = None,
                               date: Optional[str] = None):
        """Guess a word in today's (or the chosen) Contexto game."""
        await interaction.response.defer(ephemeral=True)
        mode_value = mode.value if mode else None
        log_discord_event(logger, "/c", f"user={interaction.user.id} mode={mode_value} game_id={game_id} date={date}")

        try:
            reply = await orchestrator.execute(interaction.user.id, word, mode_value, game_id, date)
        except UnsupportedGameModeError:
            raise
        except Exception as e:
            log_error_with_context(logger, e, {
                'command': '/c',
                'user': interaction.user.id,
                'word': word,
                'mode': mode_value,
                'game_id': game_id,
                'date': date,
            })
            reply = make_reply(GENERIC_ERROR_MESSAGE)

        await interaction.followup.send(**reply)

    @tree.command(name="ranking", description="Ranking do modo competitivo do Contexto")
    @app_commands.describe(
        game_id="ID do jogo (padrão: jogo de hoje)",
        date="Data do jogo no formato YYYY-MM-DD",
    )
    @app_commands.rename(game_id="game-id")
    async def ranking_command(interaction: discord.Interaction,
                              game_id: Optional[int] = None,
                              date: Optional[str] = None):
        """Show who found the competitive word with the fewest attempts."""
        await interaction.response.defer(ephemeral=True)
        log_discord_event(logger, "/ranking", f"user={interaction.user.id} game_id={game_id} date={date}")

        try:
            reply = await orchestrator.ranking(interaction.user.id, game_id, date)
        except Exception as e:
            log_error_with_context(logger, e, {
                'command': '/ranking',
                'user': interaction.user.id,
                'game_id': game_id,
                'date': date,
            })
            reply = make_reply(GENERIC_ERROR_MESSAGE)

        await interaction.followup.send(**reply)

    return contexto_command, ranking_command
