"""質問バンクのデータモデル。"""

from typing import Literal

from pydantic import BaseModel

QuestionPhase = Literal["discovery", "detail"]


class Question(BaseModel):
    """デフォルト回答と根拠付きのYes/No質問。"""

    text: str
    default: bool
    reason: str
