"""Engine evaluation helpers: win percentages and prompt formatting."""
import math

from schemas import LineEval, PositionEval

# Lichess win-percentage model, clamped to +-10 pawns
WIN_PERCENT_COEFFICIENT = -0.00368208
CP_CLAMP = 1000
NEUTRAL_WIN_PERCENTAGE = 50.0


def win_percentage_from_cp(cp: int) -> float:
    """Convert a centipawn score (White's view) to White's winning chances in [0, 100]."""
    clamped = max(-CP_CLAMP, min(CP_CLAMP, cp))
    return 50 + 50 * (2 / (1 + math.exp(WIN_PERCENT_COEFFICIENT * clamped)) - 1)


def win_percentage_from_mate(mate: int) -> float:
    return 100.0 if mate > 0 else 0.0


def position_win_percentage(position: PositionEval) -> float:
    """Return White's win percentage for a position, based on its first engine line.

    Positions without a scored line are treated as balanced.
    """
    if not position.lines:
        return NEUTRAL_WIN_PERCENTAGE

    line = position.lines[0]
    if line.cp is not None:
        return win_percentage_from_cp(line.cp)
    if line.mate is not None:
        return win_percentage_from_mate(line.mate)
    return NEUTRAL_WIN_PERCENTAGE


def format_evaluation(line: LineEval | None) -> str:
    """Render a line evaluation for a prompt: "Mate in 3", "+1.5", "-0.4" or "Unknown"."""
    if line is None:
        return "Unknown"
    if line.mate is not None:
        return f"Mate in {abs(line.mate)}"
    if line.cp is not None:
        pawns = line.cp / 100
        return f"{'+' if line.cp > 0 else ''}{pawns:.1f}"
    return "Unknown"
