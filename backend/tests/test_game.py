"""Tests for whole-game request building and the game service."""
import asyncio
import os
import random
import sys

import httpx
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from explain.client import MoveExplainer
from explain.evaluation import position_win_percentage
from explain.game import GameExplanationService, build_explanation_requests, game_history, get_explanation_stats
from explain.policy import should_explain
from schemas import ExplanationSettings, GameEval, LineEval, MoveClassification, PositionEval

PGN = "1. e4 e5 2. Nf3 Nc6 3. Bb5 a6 *"

C = MoveClassification


def position(classification=None, cp=0, best_move=None, opening=None) -> PositionEval:
    return PositionEval(
        best_move=best_move,
        lines=[LineEval(cp=cp, depth=18)],
        move_classification=classification,
        opening=opening,
    )


def mixed_game_eval() -> GameEval:
    return GameEval(positions=[
        position(),                                   # start
        position(C.BEST),                             # 1. e4
        position(C.OKAY),                             # 1... e5
        position(C.BLUNDER, opening="King's Knight"),  # 2. Nf3
        position(C.EXCELLENT),                        # 2... Nc6
        position(C.OPENING),                          # 3. Bb5
        position(C.OKAY, cp=500),                     # 3... a6, big swing
    ])


def completion_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": '{"explanation": "Noted."}'}}]})


class TestGameHistory:

    def test_positions_and_moves(self):
        fens, moves = game_history(PGN)
        assert len(fens) == 7
        assert moves == ["e2e4", "e7e5", "g1f3", "b8c6", "f1b5", "a7a6"]
        assert fens[0].startswith("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w")

    def test_empty_pgn(self):
        with pytest.raises(ValueError):
            game_history("")

    def test_illegal_move(self):
        with pytest.raises(ValueError):
            game_history("1. e4 e4 *")


class TestBuildExplanationRequests:

    def test_only_policy_accepted_moves(self):
        fens, moves = game_history(PGN)
        requests = list(build_explanation_requests(fens, moves, mixed_game_eval().positions))

        assert [r.move_number for r in requests] == [1, 3, 6]

    def test_request_fields(self):
        fens, moves = game_history(PGN)
        requests = list(build_explanation_requests(fens, moves, mixed_game_eval().positions))
        blunder = requests[1]

        assert blunder.fen == fens[2]
        assert blunder.uci_move == "g1f3"
        assert blunder.classification == C.BLUNDER
        assert blunder.opening == "King's Knight"
        assert blunder.is_white_move is True
        assert blunder.previous_position_eval.move_classification == C.OKAY
        assert requests[2].is_white_move is False
        assert requests[2].current_win_percentage > 80

    def test_settings_flags(self):
        fens, moves = game_history(PGN)
        settings = ExplanationSettings(explain_excellent=True, explain_opening=True)
        requests = list(build_explanation_requests(fens, moves, mixed_game_eval().positions, settings))

        assert [r.move_number for r in requests] == [1, 3, 4, 5, 6]

    def test_unclassified_positions_skipped(self):
        fens, moves = game_history(PGN)
        positions = [position() for _ in fens]
        assert list(build_explanation_requests(fens, moves, positions)) == []

    def test_is_lazy(self):
        fens, moves = game_history(PGN)
        gen = build_explanation_requests(fens, moves, mixed_game_eval().positions)
        assert next(gen).move_number == 1


class TestExplanationStats:

    def test_counts(self):
        stats = get_explanation_stats(mixed_game_eval())
        assert stats.total_moves == 6
        assert stats.moves_to_explain == 3
        assert stats.by_classification[C.OKAY] == 2
        assert stats.by_classification[C.BEST] == 1

    def test_empty_game(self):
        stats = get_explanation_stats(GameEval(positions=[]))
        assert stats.total_moves == 0
        assert stats.moves_to_explain == 0


class TestGameExplanationService:

    def run(self, coro_factory):
        async def go():
            async with httpx.AsyncClient(transport=httpx.MockTransport(completion_handler)) as client:
                explainer = MoveExplainer("sk-test", client=client)
                return await coro_factory(GameExplanationService(explainer))

        return asyncio.run(go())

    def test_explain_game_keys_only_accepted_moves(self):
        progress = []
        result = self.run(lambda service: service.explain_game(42, PGN, mixed_game_eval(), progress.append))

        assert result.game_id == 42
        assert sorted(result.explanations) == [1, 3, 6]
        assert result.explanations[3].move == "Nf3"
        assert result.explanations[3].explanation == "Noted."
        assert progress[-1].completed == 3

    @pytest.mark.parametrize("seed", range(5))
    def test_no_entries_for_rejected_moves(self, seed):

        rng = random.Random(seed)
        classifications = [None] + list(C)
        positions = [position()]
        for _ in range(6):
            positions.append(position(rng.choice(classifications), cp=rng.randint(-400, 400)))
        game_eval = GameEval(positions=positions)

        result = self.run(lambda service: service.explain_game(1, PGN, game_eval))

        fens, moves = game_history(PGN)
        expected = {r.move_number for r in build_explanation_requests(fens, moves, positions)}
        assert set(result.explanations) == expected
        for move_number in result.explanations:
            pos = positions[move_number]
            assert pos.move_classification is not None
            change = position_win_percentage(pos) - position_win_percentage(positions[move_number - 1])
            assert should_explain(pos.move_classification, change)

    def test_single_move_explained(self):
        result = self.run(lambda service: service.explain_single_move(
            "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1", "e2e4", 1, position(C.BEST)
        ))
        assert result is not None
        assert result.move == "e4"

    def test_single_move_unclassified(self):
        result = self.run(lambda service: service.explain_single_move(
            "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1", "e2e4", 1, position()
        ))
        assert result is None

    def test_single_move_rejected_by_policy(self):
        result = self.run(lambda service: service.explain_single_move(
            "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1", "e2e4", 1, position(C.OKAY), position()
        ))
        assert result is None

    def test_invalid_pgn(self):
        with pytest.raises(ValueError):
            self.run(lambda service: service.explain_game(1, "", mixed_game_eval()))
