"""Turns raw LLM replies into MoveExplanation records."""
import json
import logging
import re
from datetime import datetime, timezone

import chess
from pydantic import BaseModel, Field, ValidationError, field_validator

from schemas import ExplanationRequest, MoveExplanation

from .errors import ParseError

logger = logging.getLogger(__name__)

EXPLANATION_VERSION = "1.0"

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class ReplyPayload(BaseModel):
    """Shape the model is asked to answer with."""

    explanation: str
    themes: list[str] = Field(default_factory=list)
    reason: str = ""

    @field_validator("themes", "reason", mode="before")
    @classmethod
    def _null_as_empty(cls, value, info):
        if value is None:
            return [] if info.field_name == "themes" else ""
        return value


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def uci_to_san(uci_move: str, fen: str) -> str:
    """Convert a UCI move to SAN in the given position.

    Falls back to the UCI text when the position or move can't be parsed,
    or when the move is illegal.
    """
    try:
        board = chess.Board(fen)
        move = chess.Move.from_uci(uci_move)
        if not board.is_legal(move):
            return uci_move
        return board.san(move)
    except ValueError:
        return uci_move


def decode_reply(content: str) -> ReplyPayload:
    """Decode a reply as the JSON object requested in the prompt.

    A single Markdown code fence around the object is tolerated.

    Raises:
        ParseError: If the content is not a JSON object of the expected shape.
    """
    text = content.strip()
    fenced = _CODE_FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Reply is not JSON: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("Reply is not a JSON object")

    try:
        return ReplyPayload.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"Reply has unexpected shape: {e.error_count()} errors") from e


def parse_response(content: str, request: ExplanationRequest, max_length: int = 150) -> MoveExplanation:
    """Build a MoveExplanation from the model reply.

    Replies that aren't the requested JSON object are used verbatim as the
    explanation text.
    """
    try:
        payload = decode_reply(content)
        explanation = payload.explanation
        themes = payload.themes
        reason = payload.reason
    except ParseError as e:
        logger.debug(f"Falling back to plain-text explanation for move {request.move_number}: {e}")
        explanation = content.strip()
        themes = []
        reason = f"Move classified as {request.classification.value}"

    return MoveExplanation(
        move=uci_to_san(request.uci_move, request.fen),
        uci_move=request.uci_move,
        move_number=request.move_number,
        explanation=explanation[:max_length],
        themes=themes,
        classification_reason=reason,
        generated_at=utc_timestamp(),
        version=EXPLANATION_VERSION,
    )
