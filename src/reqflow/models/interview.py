"""インタビュー駆動の結果モデル。"""

from typing import Literal

from pydantic import BaseModel

from reqflow.models.question import Question
from reqflow.models.session import Progress, SessionPhase, SessionStatus

DriverResultKind = Literal["answered", "phase_transitioned", "idle"]


class DriverResult(BaseModel):
    """advance() 1ステップの結果。"""

    kind: DriverResultKind
    session_id: str
    previous_phase: SessionPhase
    phase: SessionPhase
    status: SessionStatus
    progress: Progress
    question_index: int | None = None
    question: Question | None = None
    answer: bool | None = None

    @property
    def transitioned(self) -> bool:
        return self.previous_phase != self.phase
