"""Prompt templates for LLM move explanations."""
from schemas import ExplanationRequest, MoveClassification

from .evaluation import format_evaluation

SYSTEM_PROMPT = (
    "You are a chess expert explaining moves based on Stockfish analysis. "
    "Provide concise, educational explanations focused on why moves are good "
    "or bad according to the engine evaluation."
)

# What the model should focus on, per classification
CLASSIFICATION_GUIDANCE: dict[MoveClassification, list[str]] = {
    MoveClassification.BLUNDER: [
        "What tactical or positional mistake was made",
        "What the better alternative was",
    ],
    MoveClassification.MISTAKE: [
        "The inaccuracy in the move",
        "How it worsens the position",
    ],
    MoveClassification.INACCURACY: [
        "The slight imprecision",
        "What would have been more accurate",
    ],
    MoveClassification.PERFECT: [
        "The brilliant tactical or positional concept",
        "Why other moves were inadequate",
    ],
    MoveClassification.SPLENDID: [
        "The brilliant tactical or positional concept",
        "Why other moves were inadequate",
    ],
    MoveClassification.BEST: [
        "Why this is the engine's top choice",
        "The key idea behind the move",
    ],
    MoveClassification.EXCELLENT: [
        "The good aspects of this move",
        "How it improves the position",
    ],
}

DEFAULT_GUIDANCE = [
    "The key aspects of this move",
    "Its effect on the position",
]


def classification_guidance(classification: MoveClassification) -> str:
    """Return the bullet list of focus points for a classification."""
    points = CLASSIFICATION_GUIDANCE.get(classification, DEFAULT_GUIDANCE)
    return "\n".join(f"- {point}" for point in points)


def mover_eval_change(request: ExplanationRequest) -> float:
    """Win percentage change seen from the side that played the move."""
    change = request.current_win_percentage - request.previous_win_percentage
    return change if request.is_white_move else -change


def build_prompt(request: ExplanationRequest, max_length: int = 150) -> str:
    """Build the user prompt sent to the chat-completion endpoint.

    Args:
        request: The move to explain with its engine context.
        max_length: Character budget the model is asked to respect.

    Returns:
        The prompt text.
    """
    classification = request.classification.value
    position_eval = request.position_eval
    best_line = position_eval.lines[0] if position_eval.lines else None
    mover = "White" if request.is_white_move else "Black"

    lines = [
        f"Position: {request.fen}",
        f"Move played: {request.uci_move} (classified as {classification})",
    ]
    if request.opening:
        lines.append(f"Opening: {request.opening}")
    lines += [
        "",
        "Stockfish Analysis:",
        f"- Best move: {position_eval.best_move or 'N/A'}",
        f"- Best line evaluation: {format_evaluation(best_line)}",
        f"- Win probability changed by {mover_eval_change(request):.1f}% for {mover}",
        "",
        f"Explain in 1-2 sentences (max {max_length} chars) why this move is {classification}. Focus on:",
        classification_guidance(request.classification),
        "",
        f'Format: {{"explanation": "...", "themes": ["theme1", "theme2"], "reason": "why it\'s {classification}"}}',
    ]
    return "\n".join(lines)
