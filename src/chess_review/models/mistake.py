from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import MistakeType


class MistakeIn(BaseModel):
    """Mistake emitted by game analysis.

    解析側から受け取るミス 1 件。mistake_type を省略した場合は評価値と
    FEN の手番から分類する。
    """

    model_config = ConfigDict(extra="ignore")

    game_id: int
    move_number: int = Field(ge=1)
    position_fen: str = Field(min_length=1)
    played_move: str = Field(min_length=1, max_length=16)
    best_move: str = Field(default="", max_length=16)
    evaluation_before: float = 0.0
    evaluation_after: float = 0.0
    mistake_type: Optional[MistakeType] = None
    analysis: str = ""


class MistakeOut(BaseModel):
    id: int
    game_id: int
    move_number: int
    position_fen: str
    played_move: str
    best_move: str
    evaluation_before: float
    evaluation_after: float
    mistake_type: MistakeType
    analysis: str


class MistakeCreateResponse(BaseModel):
    id: int
    mistake_type: MistakeType
