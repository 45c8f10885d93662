"""LLM move explanation module.

This module selects the moves of an analysed game worth explaining, asks a
chat-completion model to explain them from the engine evaluation, and parses
the replies into MoveExplanation records.
"""
from .batch import batch_explain
from .client import MoveExplainer
from .errors import (
    ConfigurationError,
    EmptyResponseError,
    ExplanationError,
    ParseError,
    RemoteServiceError,
)
from .evaluation import format_evaluation, position_win_percentage
from .game import GameExplanationService, build_explanation_requests, game_history, get_explanation_stats
from .policy import should_explain
from .prompts import build_prompt
from .response import parse_response, uci_to_san
from .session import ExplanationSession

__all__ = [
    "batch_explain",
    "MoveExplainer",
    "ConfigurationError",
    "EmptyResponseError",
    "ExplanationError",
    "ParseError",
    "RemoteServiceError",
    "format_evaluation",
    "position_win_percentage",
    "GameExplanationService",
    "build_explanation_requests",
    "game_history",
    "get_explanation_stats",
    "should_explain",
    "build_prompt",
    "parse_response",
    "uci_to_san",
    "ExplanationSession",
]
