"""Whole-game explanation: picks the moves to explain and runs the batch."""
import io
import logging
from collections.abc import Iterator, Sequence

import chess.pgn

from schemas import (
    ExplanationRequest,
    ExplanationSettings,
    ExplanationStats,
    GameEval,
    GameExplanations,
    MoveExplanation,
    PositionEval,
)

from .batch import ProgressCallback
from .client import MoveExplainer
from .evaluation import NEUTRAL_WIN_PERCENTAGE, position_win_percentage
from .policy import should_explain
from .response import EXPLANATION_VERSION, utc_timestamp

logger = logging.getLogger(__name__)


def game_history(pgn: str) -> tuple[list[str], list[str]]:
    """Replay a PGN and collect every position and move.

    Args:
        pgn: The game in PGN notation.

    Returns:
        (fens, uci_moves) where ``fens[0]`` is the starting position and
        ``uci_moves[i]`` leads from ``fens[i]`` to ``fens[i + 1]``.

    Raises:
        ValueError: If the PGN holds no game or contains illegal moves.
    """
    game = chess.pgn.read_game(io.StringIO(pgn))
    if game is None:
        raise ValueError("Invalid PGN: no game found")
    if game.errors:
        raise ValueError(f"Invalid PGN: {game.errors[0]}")

    board = game.board()
    fens = [board.fen()]
    uci_moves: list[str] = []
    for move in game.mainline_moves():
        uci_moves.append(move.uci())
        board.push(move)
        fens.append(board.fen())
    return fens, uci_moves


def build_explanation_requests(
    fens: Sequence[str],
    uci_moves: Sequence[str],
    positions: Sequence[PositionEval],
    settings: ExplanationSettings | None = None,
) -> Iterator[ExplanationRequest]:
    """Yield an ExplanationRequest for every move the policy wants explained.

    ``positions[i]`` is the evaluation after ply ``i``; unclassified plies are
    skipped. The request references the position before the move.
    """
    last = min(len(positions), len(fens), len(uci_moves) + 1)
    for i in range(1, last):
        position = positions[i]
        previous_position = positions[i - 1]
        if position.move_classification is None:
            continue

        previous_win = position_win_percentage(previous_position)
        current_win = position_win_percentage(position)
        if not should_explain(position.move_classification, abs(current_win - previous_win), settings):
            continue

        yield ExplanationRequest(
            fen=fens[i - 1],
            uci_move=uci_moves[i - 1],
            move_number=i,
            position_eval=position,
            previous_position_eval=previous_position,
            classification=position.move_classification,
            opening=position.opening,
            previous_win_percentage=previous_win,
            current_win_percentage=current_win,
            is_white_move=i % 2 == 1,
        )


def get_explanation_stats(game_eval: GameEval, settings: ExplanationSettings | None = None) -> ExplanationStats:
    """Count how many moves of a game would be explained, without calling the LLM."""
    positions = game_eval.positions
    stats = ExplanationStats(total_moves=max(len(positions) - 1, 0), moves_to_explain=0)

    for previous_position, position in zip(positions, positions[1:]):
        classification = position.move_classification
        if classification is None:
            continue
        stats.by_classification[classification] = stats.by_classification.get(classification, 0) + 1

        eval_change = position_win_percentage(position) - position_win_percentage(previous_position)
        if should_explain(classification, abs(eval_change), settings):
            stats.moves_to_explain += 1

    return stats


class GameExplanationService:
    """Explains the interesting moves of a whole game."""

    def __init__(self, explainer: MoveExplainer) -> None:
        self.explainer = explainer

    @property
    def settings(self) -> ExplanationSettings:
        return self.explainer.settings

    async def explain_game(
        self,
        game_id: int,
        pgn: str,
        game_eval: GameEval,
        on_progress: ProgressCallback | None = None,
        concurrency: int | None = None,
    ) -> GameExplanations:
        """Generate explanations for every qualifying move of a game.

        Raises:
            ValueError: If the PGN can't be replayed.
        """
        fens, uci_moves = game_history(pgn)
        if len(game_eval.positions) != len(fens):
            logger.warning(
                f"Game {game_id}: evaluation has {len(game_eval.positions)} positions "
                f"but the PGN has {len(fens)}"
            )

        requests = list(build_explanation_requests(fens, uci_moves, game_eval.positions, self.settings))
        logger.info(f"Game {game_id}: explaining {len(requests)} of {len(uci_moves)} moves")

        explanations = await self.explainer.batch_explain_moves(requests, on_progress, concurrency)

        return GameExplanations(
            game_id=game_id,
            explanations={explanation.move_number: explanation for explanation in explanations},
            generated_at=utc_timestamp(),
            version=EXPLANATION_VERSION,
        )

    async def explain_single_move(
        self,
        fen: str,
        uci_move: str,
        move_number: int,
        position_eval: PositionEval,
        previous_position_eval: PositionEval | None = None,
    ) -> MoveExplanation | None:
        """Explain one move, or return None when it doesn't qualify."""
        classification = position_eval.move_classification
        if classification is None:
            return None

        previous_win = (
            position_win_percentage(previous_position_eval)
            if previous_position_eval is not None
            else NEUTRAL_WIN_PERCENTAGE
        )
        current_win = position_win_percentage(position_eval)
        if not self.explainer.should_explain_move(classification, abs(current_win - previous_win)):
            return None

        request = ExplanationRequest(
            fen=fen,
            uci_move=uci_move,
            move_number=move_number,
            position_eval=position_eval,
            previous_position_eval=previous_position_eval,
            classification=classification,
            opening=position_eval.opening,
            previous_win_percentage=previous_win,
            current_win_percentage=current_win,
            is_white_move=move_number % 2 == 1,
        )
        return await self.explainer.explain_move(request)

    def get_explanation_stats(self, game_eval: GameEval) -> ExplanationStats:
        return get_explanation_stats(game_eval, self.settings)
