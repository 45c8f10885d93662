from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MoveClassification(str, Enum):
    BLUNDER = "blunder"
    MISTAKE = "mistake"
    INACCURACY = "inaccuracy"
    OKAY = "okay"
    EXCELLENT = "excellent"
    BEST = "best"
    FORCED = "forced"
    OPENING = "opening"
    PERFECT = "perfect"
    SPLENDID = "splendid"


class LineEval(BaseModel):
    """One scored engine line. Scores are from White's point of view."""

    pv: list[str] = Field(default_factory=list)
    cp: int | None = None
    mate: int | None = None
    depth: int = 0
    multi_pv: int = 1


class PositionEval(BaseModel):
    best_move: str | None = None
    lines: list[LineEval] = Field(default_factory=list)
    move_classification: MoveClassification | None = None
    opening: str | None = None


class GameEval(BaseModel):
    positions: list[PositionEval]
    accuracy: dict[str, float] | None = None


class ExplanationSettings(BaseModel):
    max_length: int = Field(150, gt=0, description="Maximum explanation length in characters")
    explain_excellent: bool = False
    explain_opening: bool = False
    min_eval_change: float = Field(5.0, ge=0, description="Win percentage change that triggers an explanation")


class ExplanationRequest(BaseModel):
    fen: str = Field(..., description="FEN of the position before the move")
    uci_move: str = Field(..., description="Move played, in UCI (e.g. 'g1f3')")
    move_number: int = Field(..., ge=1, description="Ply index of the move in the game")
    position_eval: PositionEval
    previous_position_eval: PositionEval | None = None
    classification: MoveClassification
    opening: str | None = None
    previous_win_percentage: float
    current_win_percentage: float
    is_white_move: bool


class MoveExplanation(BaseModel):
    model_config = ConfigDict(frozen=True)

    move: str
    uci_move: str
    move_number: int
    explanation: str
    themes: list[str] = Field(default_factory=list)
    classification_reason: str
    generated_at: str
    version: str


class GameExplanations(BaseModel):
    game_id: int
    explanations: dict[int, MoveExplanation] = Field(default_factory=dict)
    generated_at: str
    version: str


class BatchExplanationProgress(BaseModel):
    total: int
    completed: int = 0
    current: str | None = None
    errors: list[str] = Field(default_factory=list)


class ExplanationStats(BaseModel):
    total_moves: int
    moves_to_explain: int
    by_classification: dict[MoveClassification, int] = Field(default_factory=dict)


class ExplainGameRequest(BaseModel):
    pgn: str = Field(..., description="PGN of the game")
    game_eval: GameEval
    game_id: int | None = None
    api_key: str | None = None
    settings: ExplanationSettings | None = None


class ExplainMoveRequest(BaseModel):
    fen: str = Field(..., description="FEN string of the position before the move")
    uci_move: str = Field(..., description="Move in UCI (e.g., 'g1f3')")
    move_number: int = Field(..., ge=1)
    position_eval: PositionEval
    previous_position_eval: PositionEval | None = None
    api_key: str | None = None
    settings: ExplanationSettings | None = None


class StatsRequest(BaseModel):
    game_eval: GameEval
    settings: ExplanationSettings | None = None
