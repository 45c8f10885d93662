"""Decides which moves of a game deserve an LLM explanation."""

from schemas import ExplanationSettings, MoveClassification

# Poor moves are always explained so the player learns what went wrong
ALWAYS_EXPLAIN_POOR: frozenset[MoveClassification] = frozenset({
    MoveClassification.BLUNDER,
    MoveClassification.MISTAKE,
    MoveClassification.INACCURACY,
})

ALWAYS_EXPLAIN_BRILLIANT: frozenset[MoveClassification] = frozenset({
    MoveClassification.PERFECT,
    MoveClassification.SPLENDID,
})

DEFAULT_SETTINGS = ExplanationSettings()


def should_explain(
    classification: MoveClassification,
    eval_change: float,
    settings: ExplanationSettings | None = None,
) -> bool:
    """Return True if a move with this classification should be explained.

    Args:
        classification: Classification attached to the move by the analysis.
        eval_change: Win percentage change caused by the move (sign ignored).
        settings: Policy flags and threshold; defaults are used when omitted.

    Returns:
        True when the move qualifies for an explanation.
    """
    settings = settings or DEFAULT_SETTINGS

    if classification in ALWAYS_EXPLAIN_POOR:
        return True
    if classification in ALWAYS_EXPLAIN_BRILLIANT:
        return True
    if classification == MoveClassification.BEST:
        return True
    if classification == MoveClassification.EXCELLENT and settings.explain_excellent:
        return True
    if classification == MoveClassification.OPENING and settings.explain_opening:
        return True

    # Anything else only when the evaluation swung far enough
    return abs(eval_change) >= settings.min_eval_change
