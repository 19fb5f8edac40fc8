"""要件定義セッション関連のデータモデル。"""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from reqflow.models.question import QuestionPhase
from reqflow.models.settings import Settings

SessionStatus = Literal["active", "completed", "incomplete"]
SessionPhase = Literal["discovery", "context", "detail", "complete"]
EndAction = Literal["complete", "incomplete", "delete"]


class _Record(BaseModel):
    """metadata.json上ではcamelCaseで保存するレコードの基底クラス。"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, validate_assignment=True)


class PhaseProgress(_Record):
    """フェーズごとの回答進捗。"""

    answered: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_answered(self) -> "PhaseProgress":
        if self.answered > self.total:
            raise ValueError(f"answered ({self.answered}) exceeds total ({self.total})")
        return self

    @property
    def remaining(self) -> int:
        return self.total - self.answered

    @property
    def done(self) -> bool:
        return self.answered == self.total


class Progress(_Record):
    """discovery/detailの独立した進捗カウンタ。"""

    discovery: PhaseProgress
    detail: PhaseProgress

    def of(self, phase: QuestionPhase) -> PhaseProgress:
        return self.discovery if phase == "discovery" else self.detail


class AnswerRecord(_Record):
    """Yes/No質問に対する回答の記録。追記のみ。"""

    question_index: int
    question_text: str
    answer: bool
    reasoning: str
    answered_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class AnswerLog(_Record):
    """フェーズごとの回答ログ。"""

    discovery: list[AnswerRecord] = Field(default_factory=list)
    detail: list[AnswerRecord] = Field(default_factory=list)

    def of(self, phase: QuestionPhase) -> list[AnswerRecord]:
        return self.discovery if phase == "discovery" else self.detail


class Session(_Record):
    """要件定義インタビューのセッション（metadata.jsonの内容）。"""

    id: str
    request: str = ""
    started: datetime
    last_updated: datetime
    ended_at: datetime | None = None
    status: SessionStatus = "active"
    phase: SessionPhase = "discovery"
    progress: Progress
    settings: Settings
    context_files: list[str] = Field(default_factory=list)
    related_features: list[str] = Field(default_factory=list)
    answers: AnswerLog = Field(default_factory=AnswerLog)

    @classmethod
    def new(cls, session_id: str, request: str, settings: Settings, now: datetime) -> "Session":
        """設定から進捗カウンタを初期化した新規セッションを作る。"""
        return cls(
            id=session_id,
            request=request,
            started=now,
            last_updated=now,
            progress=Progress(
                discovery=PhaseProgress(total=settings.discovery_questions),
                detail=PhaseProgress(total=settings.expert_questions),
            ),
            settings=settings,
        )

    def to_json(self) -> str:
        return self.model_dump_json(indent=2, by_alias=True)


class SessionSummary(BaseModel):
    """セッション一覧の1行。"""

    id: str
    status: str
    phase: str
    started: datetime | None = None
    active: bool = False


class SessionDump(BaseModel):
    """セッションフォルダ内の全ファイルの読み取り専用ダンプ。"""

    session_id: str
    files: dict[str, str]
    metadata: Session


class EndResult(BaseModel):
    """セッション終了操作の結果。"""

    session_id: str
    action: EndAction
    status: SessionStatus | None = None
    index_updated: bool = False
