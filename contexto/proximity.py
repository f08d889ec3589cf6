"""
Contexto - Proximity Rendering Module
Turns guess distances into colored ANSI bars for Discord code blocks.

A row looks like:
    [palavra██████████------------] 6
The word sits at the start of the bar and takes the bar's color.
"""

import math

TOTAL_BAR_WIDTH = 30  # Total width of the bar in characters
FILL_GLYPH = '█'
FILLER_GLYPH = '-'

# Discord message limit (characters)
MAX_MESSAGE_LENGTH = 2000

# Bar width curve: exponential decay over the oracle's ranked vocabulary
RANKED_WORDS_TOTAL = 40000
DECAY_LAMBDA = 0.5
CURVE_END_X = 100
MIN_BAR_WIDTH = 1

# (exclusive upper distance, color); anything further away is gray
COLOR_THRESHOLDS = [
    (300, 'green'),
    (1500, 'cyan'),
]
FAR_COLOR = 'gray'

# Discord ANSI colors: \u001b[{format};{color}m
#     30: Gray   31: Red    32: Green  33: Yellow
#     34: Blue   35: Pink   36: Cyan   37: White
ANSI_COLORS = {
    'gray': '\u001b[2;30m',
    'red': '\u001b[2;31m',
    'green': '\u001b[2;32m',
    'yellow': '\u001b[2;33m',
    'blue': '\u001b[2;34m',
    'pink': '\u001b[2;35m',
    'cyan': '\u001b[2;36m',
    'white': '\u001b[2;37m',
}
ANSI_RESET = '\u001b[0m'


def display_rank(distance) -> int:
    """Distances are 0-based, the player sees 1-based ranks (exact match = 1)."""
    return (distance or 0) + 1


def get_bar_color(distance: int) -> str:
    """Color category for a distance; closer words move from gray to cyan to green."""
    distance = distance or 0
    for limit, color in COLOR_THRESHOLDS:
        if distance < limit:
            return color
    return FAR_COLOR


def _decay(x: float) -> float:
    return DECAY_LAMBDA * math.exp(-DECAY_LAMBDA * x)


def get_bar_width(distance: int) -> float:
    """
    Bar fill percentage (1 to 100) for a distance.

    Distance 0 fills the whole bar; the fill decays exponentially and never
    drops below MIN_BAR_WIDTH so every guess stays visible.
    """
    distance = max(distance or 0, 0)
    start_y = _decay(0)
    end_y = _decay(CURVE_END_X)
    x = (distance / RANKED_WORDS_TOTAL) * CURVE_END_X
    width = ((_decay(x) - end_y) / (start_y - end_y)) * 100
    return min(max(width, MIN_BAR_WIDTH), 100.0)


def color_to_ansi(color: str) -> str:
    return ANSI_COLORS.get(color, ANSI_RESET)


def build_proximity_rows(result, closest_guesses) -> list:
    """
    Pair every guess with its color and fill width.
    The newest guess comes first, followed by the ranked history.
    """
    rows = []
    for guess in [result, *closest_guesses]:
        rows.append({
            'text': guess.word,
            'lemma': guess.lemma,
            'distance': guess.distance,
            'color': get_bar_color(guess.distance),
            'width': get_bar_width(guess.distance),  # 0 to 100
        })
    return rows


def render_row(row: dict) -> str:
    """Render one guess as `[word███---] rank` with the bar colored by proximity."""
    text = row['text']
    bar_width = math.floor(row['width'] * TOTAL_BAR_WIDTH / 100)
    bar_fill = FILL_GLYPH * max(bar_width - len(text), 0)
    remaining_bar = FILLER_GLYPH * max(TOTAL_BAR_WIDTH - max(bar_width, len(text)), 0)

    return f"[{color_to_ansi(row['color'])}{text}{bar_fill}{ANSI_RESET}{remaining_bar}] {display_rank(row['distance'])}"


def render_rows(rows: list) -> list:
    """Render a block of rows; the newest guess is separated by a blank line."""
    lines = []
    for i, row in enumerate(rows):
        line = render_row(row)
        if i == 0:
            line += '\n'
        lines.append(line)
    return lines


def fit_rows(header: str, lines: list, footer: str = '', limit: int = MAX_MESSAGE_LENGTH) -> list:
    """
    Drop rows from the end of the history until the message fits the limit.
    The newest guess (first line) is always kept.
    """
    kept = list(lines)
    while len(kept) > 1 and len(header) + len('\n'.join(kept)) + len(footer) > limit:
        kept.pop()
    return kept
