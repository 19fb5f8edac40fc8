"""質問数設定のデータモデル。"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MIN_QUESTIONS = 1
MAX_QUESTIONS = 20
DEFAULT_QUESTIONS = 5


class Settings(BaseModel):
    """プロセス全体の質問数設定。以降に作成されるセッションに適用される。"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    discovery_questions: int = Field(default=DEFAULT_QUESTIONS, ge=MIN_QUESTIONS, le=MAX_QUESTIONS)
    expert_questions: int = Field(default=DEFAULT_QUESTIONS, ge=MIN_QUESTIONS, le=MAX_QUESTIONS)
