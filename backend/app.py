import logging
import time

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from explain import (
    ConfigurationError,
    ExplanationError,
    GameExplanationService,
    MoveExplainer,
    get_explanation_stats,
)
from schemas import (
    ExplainGameRequest,
    ExplainMoveRequest,
    ExplanationSettings,
    ExplanationStats,
    GameExplanations,
    MoveExplanation,
    StatsRequest,
)
from settings import default_explanation_settings, settings

logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Chess Move Explanations", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.cors_origins] if settings.cors_origins != "*" else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Latest explanations per game, in-process only. Regeneration replaces the
# entry; past MAX_STORED_GAMES the least recently generated game is evicted.
MAX_STORED_GAMES = 256
_explanation_store: dict[int, GameExplanations] = {}


def get_explanation_store() -> dict[int, GameExplanations]:
    return _explanation_store


def remember_explanations(store: dict[int, GameExplanations], result: GameExplanations) -> None:
    store.pop(result.game_id, None)
    store[result.game_id] = result
    while len(store) > MAX_STORED_GAMES:
        store.pop(next(iter(store)))


def get_explainer_factory():
    """Dependency returning the callable that builds a MoveExplainer."""

    def factory(api_key: str | None, explanation_settings: ExplanationSettings) -> MoveExplainer:
        return MoveExplainer(api_key or settings.openai_api_key, explanation_settings)

    return factory


def _build_explainer(factory, api_key: str | None, explanation_settings: ExplanationSettings | None) -> MoveExplainer:
    try:
        return factory(api_key, explanation_settings or default_explanation_settings())
    except ConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.post("/explanations/game", response_model=GameExplanations)
async def explain_game(
    req: ExplainGameRequest,
    factory=Depends(get_explainer_factory),
    store: dict[int, GameExplanations] = Depends(get_explanation_store),
):
    explainer = _build_explainer(factory, req.api_key, req.settings)
    game_id = req.game_id if req.game_id is not None else int(time.time() * 1000)
    try:
        async with explainer:
            result = await GameExplanationService(explainer).explain_game(game_id, req.pgn, req.game_eval)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    remember_explanations(store, result)
    return result


@app.get("/explanations/{game_id}", response_model=GameExplanations)
def read_game_explanations(game_id: int, store: dict[int, GameExplanations] = Depends(get_explanation_store)):
    if game_id not in store:
        raise HTTPException(status_code=404, detail=f"No explanations for game {game_id}")
    return store[game_id]


@app.get("/explanations/{game_id}/{move_number}", response_model=MoveExplanation)
def read_move_explanation(
    game_id: int, move_number: int, store: dict[int, GameExplanations] = Depends(get_explanation_store)
):
    game = store.get(game_id)
    explanation = game.explanations.get(move_number) if game else None
    if explanation is None:
        raise HTTPException(status_code=404, detail=f"No explanation for move {move_number} of game {game_id}")
    return explanation


@app.delete("/explanations/{game_id}")
def clear_game_explanations(game_id: int, store: dict[int, GameExplanations] = Depends(get_explanation_store)):
    removed = store.pop(game_id, None) is not None
    return {"ok": True, "removed": removed}


@app.post("/explanations/move", response_model=MoveExplanation | None)
async def explain_move(req: ExplainMoveRequest, factory=Depends(get_explainer_factory)):
    explainer = _build_explainer(factory, req.api_key, req.settings)
    try:
        async with explainer:
            return await GameExplanationService(explainer).explain_single_move(
                req.fen,
                req.uci_move,
                req.move_number,
                req.position_eval,
                req.previous_position_eval,
            )
    except ExplanationError as e:
        logger.warning(f"Move {req.move_number} explanation failed: {e}")
        raise HTTPException(status_code=502, detail=str(e)) from e


@app.post("/explanations/stats", response_model=ExplanationStats)
def explanation_stats(req: StatsRequest):
    return get_explanation_stats(req.game_eval, req.settings or default_explanation_settings())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host=settings.host, port=settings.port)
