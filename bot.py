import asyncio
import signal
import sys

import discord

# --- Import structured logging ---
from contexto.logger_utils import bot_logger as logger, log_discord_event, set_log_level

# --- Library Version Check ---
# This code requires discord.py version 2.0 or higher for slash commands.
try:
    version_parts = tuple(int(x) for x in discord.__version__.split('.')[:2])
    if version_parts[0] < 2:
        logger.error(f"discord.py version {discord.__version__} is too old. Requires 2.0.0+")
        print("Error: Your discord.py version is too old.")
        print(f"You have version {discord.__version__}, but this bot requires version 2.0.0 or higher.")
        print("Please update it by running: pip install -U discord.py")
        sys.exit(1)
except ValueError:
    logger.warning(f"Could not parse discord.py version: {discord.__version__}")

from discord import app_commands
from discord.ext import tasks

from contexto.api_client import ContextoApiClient
from contexto.config import ConfigError, ContextoConfig, get_discord_token
from contexto.discord_commands import register_commands
from contexto.game import GameManager
from contexto.game_dates import GameCalendar
from contexto.orchestrator import GameOrchestrator

# Puzzles older than this many days are dropped from memory
STALE_GAME_DAYS = 7

# --- Load token and configuration ---
DISCORD_BOT_TOKEN = get_discord_token()

if not DISCORD_BOT_TOKEN:
    logger.critical("DISCORD_BOT_TOKEN environment variable is not set")
    print("Error: DISCORD_BOT_TOKEN environment variable is not set.")
    print("Create a .env file next to bot.py containing:")
    print('DISCORD_BOT_TOKEN="YOUR_BOT_TOKEN_HERE"')
    sys.exit(1)

token_parts = DISCORD_BOT_TOKEN.split('.')
if len(token_parts) != 3:
    logger.critical(f"DISCORD_BOT_TOKEN appears malformed (parts: {len(token_parts)})")
    print("Error: The DISCORD_BOT_TOKEN appears to be malformed.")
    print(f"  -> Sanitized Token Preview: {DISCORD_BOT_TOKEN[:5]}...{DISCORD_BOT_TOKEN[-5:]}")
    sys.exit(1)

try:
    settings = ContextoConfig.load()
except ConfigError as e:
    logger.critical(f"Configuration error: {e}")
    print(f"FATAL: {e}")
    sys.exit(1)

set_log_level(settings['log_level'])

# --- GAME SETUP ---
calendar = GameCalendar(settings['first_game_date'], settings['timezone_offset_hours'])
api_client = ContextoApiClient(settings['api_url'], settings['language'], settings['api_timeout'])
game_manager = GameManager(api_client, calendar, settings['closest_guesses_limit'])
orchestrator = GameOrchestrator(game_manager, settings['leaderboard_size'])

# --- DISCORD BOT SETUP ---
# Slash commands only; no privileged intents needed
intents = discord.Intents.default()

client = discord.Client(intents=intents)
tree = app_commands.CommandTree(client)
register_commands(tree, orchestrator)


@tasks.loop(hours=6)
async def cleanup_games_task():
    """Drop old puzzle sessions so memory doesn't grow day after day."""
    removed = game_manager.cleanup_stale_games(STALE_GAME_DAYS)
    if removed:
        logger.info(f"Removed {removed} stale games")


@client.event
async def on_ready():
    log_discord_event(logger, "Ready", f"{client.user} (ID: {client.user.id})")
    print(f"Logged in as {client.user} - today's Contexto game is #{calendar.get_todays_game_id()}")

    synced = await tree.sync()
    logger.info(f"Synced {len(synced)} global commands")
    for guild in client.guilds:
        try:
            await tree.sync(guild=guild)
        except discord.HTTPException as e:
            logger.warning(f"Guild sync failed for {guild.name}: {e}")

    if not cleanup_games_task.is_running():
        cleanup_games_task.start()


@tree.error
async def on_app_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError):
    logger.error(f"Unhandled error in /{interaction.command.name if interaction.command else '?'}: {error}",
                 exc_info=error)


async def graceful_shutdown(signal_name=None):
    """Stop background tasks and close the Discord connection."""
    if signal_name:
        print(f"[Shutdown] Shutting down after {signal_name}...")
    if cleanup_games_task.is_running():
        cleanup_games_task.cancel()
    if not client.is_closed():
        await client.close()
    print("[Shutdown] Bot stopped.")


def signal_handler(sig, frame):
    """Handle SIGINT and SIGTERM signals."""
    signal_name = 'SIGINT' if sig == signal.SIGINT else 'SIGTERM'
    print(f"\n[Signal] Received {signal_name}")

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop and loop.is_running():
        loop.create_task(graceful_shutdown(signal_name))
    else:
        sys.exit(0)


# --- RUN THE BOT ---
if __name__ == "__main__":
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        client.run(DISCORD_BOT_TOKEN, log_handler=None)
    except KeyboardInterrupt:
        print("\n[Shutdown] KeyboardInterrupt received.")
    except discord.LoginFailure as e:
        logger.critical(f"Login failed: {e}")
        print(f"\n[Shutdown] Login failed: {e}")
