"""
Contexto - Mode Handlers
Guess policies for the two game modes and the text of every reply.

The handlers return the reply text for a processed guess and raise a
ContextoError subclass for every refusal; the command layer turns those
into replies as well.
"""

import json
from typing import Optional

from contexto.errors import (
    AlreadyCompletedError,
    DuplicateGuessError,
    GameFinishedError,
    SubmissionError,
)
from contexto.game import GameMode
from contexto.logger_utils import game_logger as logger
from contexto.proximity import build_proximity_rows, fit_rows, render_rows


# --- Pure formatting helpers ---

def find_leaderboard_rank(leaderboard: list, player_id) -> Optional[int]:
    """1-based position of the player's first entry, None if they are not ranked."""
    for index, entry in enumerate(leaderboard):
        if entry['player_id'] == player_id:
            return index + 1
    return None


def format_finished_notice(game) -> str:
    return (f"O jogo {game.id} já foi finalizado. "
            f"Você pode jogar novamente com o comando /c <palavra>")


def format_duplicate_message(word: str, guess, mode: GameMode) -> str:
    rank = guess.rank
    if mode is GameMode.COMPETITIVE:
        return f"Você já tentou a palavra {word}. ({rank})"
    return f"A palavra {word} já foi. ({rank})"


def format_already_completed(completion: Optional[dict]) -> str:
    guess_count = completion['guess_count'] if completion else '?'
    return f"Você já encontrou a palavra em {guess_count} tentativas! Veja o ranking com /ranking"


def format_win_text(game_id: int, guess_count: int, rank: Optional[int] = None) -> str:
    text = f"Parabéns!\n\nVocê acertou a palavra #{game_id} em {guess_count} tentativas.\n\n\n"
    if rank:
        text += f"Sua posição: {rank}º lugar\n\n"
    return text


def format_guess_count_line(game_id: int, date_label: str, guess_count: int, mode: GameMode) -> str:
    if mode is GameMode.COMPETITIVE:
        return f"Jogo: #{game_id}{date_label} Suas tentativas: {guess_count}\n\n"
    return f"Jogo: #{game_id}{date_label} Tentativas: {guess_count}\n\n"


def format_status_message(game, date_label: str, created: bool, guess_count: int) -> str:
    if game.mode is GameMode.COMPETITIVE:
        title = "Jogo competitivo iniciado!" if created else "Jogo competitivo em andamento."
        count_line = f"Suas tentativas: {guess_count}"
    else:
        title = "Jogo cooperativo iniciado!" if created else "Jogo cooperativo em andamento."
        count_line = f"Tentativas: {guess_count}"
    return (f"{title}\n"
            f"Jogo: #{game.game_id}{date_label}\n"
            f"Sessão: {game.id}\n"
            f"{count_line}")


def build_game_response(header: str, result, closest_guesses: list) -> str:
    """Wrap the header and the proximity bars in an ANSI code block."""
    if not closest_guesses:
        return (f"```You guessed the word: {result.word}\n\n\n"
                f"{json.dumps(result.to_dict(), indent=2, ensure_ascii=False)}```")

    opening = "```ansi\n" + header
    closing = "\n\n\n```"
    lines = fit_rows(opening, render_rows(build_proximity_rows(result, closest_guesses)), closing)
    return opening + '\n'.join(lines) + closing


def format_leaderboard(game_id: int, leaderboard: list, date_label: str, player_id=None, size: int = 10) -> str:
    """Competitive ranking of a puzzle: the top entries plus the requester's own line."""
    if not leaderboard:
        return f"Ninguém encontrou a palavra do jogo #{game_id}{date_label} ainda."

    lines = [f"🏆 Ranking do jogo #{game_id}{date_label}", ""]
    for position, entry in enumerate(leaderboard[:size], start=1):
        lines.append(f"{position}º <@{entry['player_id']}> - {entry['guess_count']} tentativas")

    rank = find_leaderboard_rank(leaderboard, player_id)
    if rank:
        lines.append("")
        lines.append(f"Sua posição: {rank}º lugar ({leaderboard[rank - 1]['guess_count']} tentativas)")
    return '\n'.join(lines)


def _raise_if_duplicate(guess, word: str, mode: GameMode):
    if not guess:
        return
    if guess.error:
        raise DuplicateGuessError(guess.error, guess)
    raise DuplicateGuessError(format_duplicate_message(word, guess, mode), guess)


# --- Mode handlers ---

async def handle_default_game(game, request, calendar, created: bool = False) -> str:
    """Shared session: one history for everybody, finished once anyone finds the word."""
    date_label = calendar.format_game_date(game.game_id)

    if game.finished:
        raise GameFinishedError(format_finished_notice(game), game)

    if request.word:
        _raise_if_duplicate(game.get_existing_guess(request.word), request.word, GameMode.DEFAULT)

        result = await game.try_word(request.player_id, request.word)
        if result:
            if result.duplicate:
                _raise_if_duplicate(result, request.word, GameMode.DEFAULT)
            if result.error:
                raise SubmissionError(result.error, result)

            guess_count = game.get_guess_count()
            header = ''
            if result.is_exact:
                header = format_win_text(game.game_id, guess_count)
            header += format_guess_count_line(game.game_id, date_label, guess_count, GameMode.DEFAULT)

            closest_guesses = game.get_closest_guesses(request.player_id)
            return build_game_response(header, result, closest_guesses)

    return format_status_message(game, date_label, created, game.get_guess_count())


async def handle_competitive_game(game, request, calendar, created: bool = False) -> str:
    """Per-player histories; a player who found the word is done, the others keep playing."""
    player_id = request.player_id
    date_label = calendar.format_game_date(game.game_id)

    if game.has_player_completed(player_id):
        completion = game.get_player_completion(player_id)
        raise AlreadyCompletedError(format_already_completed(completion),
                                    completion['guess_count'] if completion else None)

    if request.word:
        _raise_if_duplicate(game.get_existing_guess(request.word, player_id), request.word, GameMode.COMPETITIVE)

        result = await game.try_word(player_id, request.word)
        if result:
            if result.duplicate:
                _raise_if_duplicate(result, request.word, GameMode.COMPETITIVE)
            if result.error:
                raise SubmissionError(result.error, result)

            guess_count = game.get_guess_count(player_id)
            header = ''
            if result.is_exact:
                rank = find_leaderboard_rank(game.get_leaderboard(), player_id)
                header = format_win_text(game.game_id, guess_count, rank)
                logger.info(f"Player {player_id} ranked {rank} on competitive game #{game.game_id}")
            header += format_guess_count_line(game.game_id, date_label, guess_count, GameMode.COMPETITIVE)

            closest_guesses = game.get_closest_guesses(player_id)
            return build_game_response(header, result, closest_guesses)

    return format_status_message(game, date_label, created, game.get_guess_count(player_id))


MODE_HANDLERS = {
    GameMode.DEFAULT: handle_default_game,
    GameMode.COMPETITIVE: handle_competitive_game,
}
