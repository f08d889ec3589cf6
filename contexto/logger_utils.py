"""
Centralized logging utility for the Contexto bot.
Provides consistent, structured logging across the game, API and Discord layers.
"""
import logging
import os
import sys
import traceback
from datetime import datetime
from pathlib import Path

# Color codes for terminal output
class LogColors:
    RESET = '\033[0m'
    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    BLUE = '\033[94m'
    MAGENTA = '\033[95m'
    CYAN = '\033[96m'
    GRAY = '\033[90m'

class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for different log levels"""

    COLORS = {
        'DEBUG': LogColors.GRAY,
        'INFO': LogColors.BLUE,
        'WARNING': LogColors.YELLOW,
        'ERROR': LogColors.RED,
        'CRITICAL': LogColors.MAGENTA
    }

    def format(self, record):
        # Color a copy so the file handler keeps the plain level name
        record = logging.makeLogRecord(record.__dict__)
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{LogColors.RESET}"
        return super().format(record)

def setup_logger(name, log_file=None, level=logging.INFO):
    """
    Set up a logger with consistent formatting.

    Args:
        name: Logger name (typically component name)
        log_file: Optional file path for file logging
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    # Console handler with colors
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_format = ColoredFormatter(
        '[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    # File handler (if specified)
    if log_file:
        log_dir = Path(log_file).parent
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
        file_handler.setLevel(level)
        file_format = logging.Formatter(
            '[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(file_format)
        logger.addHandler(file_handler)

    return logger

def set_log_level(level):
    """Change the level of every Contexto logger and its handlers at runtime."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    for logger in (bot_logger, game_logger, api_logger):
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)

def log_function_call(logger, func_name, **kwargs):
    """Log a function call with its parameters"""
    params = ', '.join(f"{k}={v}" for k, v in kwargs.items())
    logger.debug(f"→ {func_name}({params})")

def log_api_call(logger, endpoint, success=True, error=None, status=None):
    """Log distance API calls with consistent format"""
    if success:
        status_info = f" (status: {status})" if status else ""
        logger.debug(f"[API] {endpoint}: SUCCESS{status_info}")
    else:
        logger.warning(f"[API] {endpoint}: FAILED - {error}")

def log_discord_event(logger, event_name, details=None):
    """Log Discord events with consistent format"""
    detail_str = f": {details}" if details else ""
    logger.info(f"[Discord] {event_name}{detail_str}")

def log_error_with_context(logger, error, context):
    """
    Log an error with full context information.

    Args:
        logger: Logger instance
        error: Exception object
        context: Dictionary with context information
    """
    logger.error(f"Error occurred: {type(error).__name__}: {str(error)}")
    for key, value in context.items():
        logger.error(f"  Context - {key}: {value}")

    logger.error(f"Traceback:\n{traceback.format_exc()}")

# Session-based log file names
session_timestamp = datetime.now().strftime('%Y-%m-%d_%H-%M-%S')
log_dir = os.environ.get('CONTEXTO_LOG_DIR', 'logs')

bot_log_file = os.path.join(log_dir, f'bot_{session_timestamp}.log')
game_log_file = os.path.join(log_dir, f'game_{session_timestamp}.log')

bot_logger = setup_logger('Bot', log_file=bot_log_file)
game_logger = setup_logger('ContextoGame', log_file=game_log_file)
api_logger = setup_logger('ContextoAPI', log_file=game_log_file)  # API calls go next to game logs
