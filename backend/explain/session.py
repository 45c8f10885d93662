"""Per-game explanation state for an analysis view."""
import logging
import time
from collections.abc import Callable

from schemas import BatchExplanationProgress, ExplanationSettings, GameEval, GameExplanations, MoveExplanation
from settings import default_explanation_settings, settings as app_settings

from .client import MoveExplainer
from .errors import ConfigurationError
from .game import GameExplanationService, get_explanation_stats

logger = logging.getLogger(__name__)

ExplainerFactory = Callable[[str, ExplanationSettings], MoveExplainer]


def _default_factory(api_key: str, settings: ExplanationSettings) -> MoveExplainer:
    return MoveExplainer(api_key, settings)


class ExplanationSession:
    """Holds the explanations of the game currently under analysis.

    Only one generation runs at a time. Loading a different game drops the
    previous explanations, and a new generation replaces them wholesale.
    """

    def __init__(
        self,
        settings: ExplanationSettings | None = None,
        explainer_factory: ExplainerFactory = _default_factory,
        default_api_key: str | None = None,
    ) -> None:
        self.settings = settings or default_explanation_settings()
        self._explainer_factory = explainer_factory
        self._default_api_key = default_api_key if default_api_key is not None else app_settings.openai_api_key

        self.pgn: str | None = None
        self.game_eval: GameEval | None = None
        self.game_id: int | None = None

        self.game_explanations: GameExplanations | None = None
        self.is_generating = False
        self.progress: BatchExplanationProgress | None = None
        self.error: str | None = None

    def load_game(self, pgn: str, game_eval: GameEval | None, game_id: int | None = None) -> None:
        """Set the game under analysis, clearing explanations if the game changed."""
        if pgn != self.pgn:
            self.clear()
        self.pgn = pgn
        self.game_eval = game_eval
        self.game_id = game_id

    def clear(self) -> None:
        self.game_explanations = None
        self.error = None

    @property
    def should_auto_generate(self) -> bool:
        return self.game_explanations is None and not self.is_generating and self.game_eval is not None

    @property
    def has_explanations(self) -> bool:
        return self.explanation_count > 0

    @property
    def explanation_count(self) -> int:
        if self.game_explanations is None:
            return 0
        return len(self.game_explanations.explanations)

    def get_move_explanation(self, move_number: int) -> MoveExplanation | None:
        if self.game_explanations is None:
            return None
        return self.game_explanations.explanations.get(move_number)

    def current_move_explanation(self, current_move_idx: int | None) -> MoveExplanation | None:
        """Explanation for the move the board is showing; index 0 is the start position."""
        if not current_move_idx:
            return None
        return self.get_move_explanation(current_move_idx)

    def _on_progress(self, progress: BatchExplanationProgress) -> None:
        self.progress = progress

    async def generate(self, api_key: str | None = None) -> GameExplanations | None:
        """Generate explanations for the loaded game.

        Failures are reported through ``error`` rather than raised.

        Returns:
            The new explanations, or None if nothing was generated.
        """
        if self.game_eval is None or not self.pgn or self.is_generating:
            return None

        key = api_key or self._default_api_key
        try:
            if not key:
                raise ConfigurationError(
                    "LLM API key not found. Set OPENAI_API_KEY in the environment or pass it as a parameter."
                )
            explainer = self._explainer_factory(key, self.settings)
        except ConfigurationError as e:
            self.error = str(e)
            return None

        self.is_generating = True
        self.error = None
        self.progress = BatchExplanationProgress(total=0)
        try:
            stats = get_explanation_stats(self.game_eval, self.settings)
            logger.info(f"Will explain {stats.moves_to_explain} out of {stats.total_moves} moves")

            game_id = self.game_id if self.game_id is not None else int(time.time() * 1000)
            async with explainer:
                service = GameExplanationService(explainer)
                explanations = await service.explain_game(game_id, self.pgn, self.game_eval, self._on_progress)

            self.game_explanations = explanations
            logger.info(f"Generated {len(explanations.explanations)} explanations")
            return explanations
        except Exception as e:
            self.error = str(e) or "Failed to generate explanations"
            logger.exception("Explanation generation failed")
            return None
        finally:
            self.is_generating = False
            self.progress = None
