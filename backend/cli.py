import argparse
import asyncio
import logging
from pathlib import Path

from explain import ExplanationError, GameExplanationService, MoveExplainer, get_explanation_stats
from schemas import BatchExplanationProgress, GameEval
from settings import default_explanation_settings, settings


def print_progress(progress: BatchExplanationProgress) -> None:
    current = progress.current or "failed"
    print(f"[{progress.completed}/{progress.total}] {current}")


async def run(args: argparse.Namespace, pgn: str, game_eval: GameEval) -> int:
    explanation_settings = default_explanation_settings()
    async with MoveExplainer(args.api_key or settings.openai_api_key, explanation_settings) as explainer:
        service = GameExplanationService(explainer)
        result = await service.explain_game(
            args.game_id, pgn, game_eval, on_progress=print_progress, concurrency=args.concurrency
        )

    for move_number, explanation in sorted(result.explanations.items()):
        print(f"{move_number:>3}. {explanation.move}: {explanation.explanation}")
        if explanation.themes:
            print(f"     themes: {', '.join(explanation.themes)}")
        if explanation.classification_reason:
            print(f"     reason: {explanation.classification_reason}")

    if args.output:
        Path(args.output).write_text(result.model_dump_json(indent=2), encoding="utf-8")
        print(f"Saved {len(result.explanations)} explanations to {args.output}")
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Chess Move Explanations (CLI)")
    p.add_argument("--pgn", default=None, help="Path to the game PGN (not needed with --stats-only)")
    p.add_argument("--eval", required=True, help="Path to the game evaluation JSON")
    p.add_argument("--game-id", type=int, default=0, help="Game identifier stored with the explanations")
    p.add_argument("--api-key", default=None, help="LLM API key (defaults to OPENAI_API_KEY)")
    p.add_argument("--concurrency", type=int, default=None, help="Parallel requests per batch window")
    p.add_argument("--output", default=None, help="Write the explanations as JSON to this path")
    p.add_argument("--stats-only", action="store_true", help="Only count the moves that would be explained")
    args = p.parse_args(argv)

    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    game_eval = GameEval.model_validate_json(Path(args.eval).read_text(encoding="utf-8"))

    if args.stats_only:
        stats = get_explanation_stats(game_eval, default_explanation_settings())
        print(f"Moves: {stats.total_moves}")
        print(f"To explain: {stats.moves_to_explain}")
        for classification, count in sorted(stats.by_classification.items(), key=lambda kv: kv[0].value):
            print(f"  - {classification.value}: {count}")
        return 0

    if args.pgn is None:
        p.error("--pgn is required unless --stats-only is given")
    pgn = Path(args.pgn).read_text(encoding="utf-8")

    try:
        return asyncio.run(run(args, pgn, game_eval))
    except (ExplanationError, ValueError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
