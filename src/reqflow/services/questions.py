"""フェーズ別のYes/No質問バンク。"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from reqflow.models.errors import QuestionNotFoundError, StorageError
from reqflow.models.question import Question, QuestionPhase

QUESTIONS_FILE = "questions.yaml"


class QuestionBank:
    """質問定義ファイルから読み込んだ、フェーズごとの順序付き質問カタログ。"""

    def __init__(self, config_dir: Path) -> None:
        self._config_dir = config_dir
        self._questions: dict[str, list[Question]] | None = None

    def _load_questions(self) -> dict[str, list[Question]]:
        """質問定義を読み込む。"""
        if self._questions is None:
            questions_file = self._config_dir / QUESTIONS_FILE
            try:
                with open(questions_file, encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except FileNotFoundError:
                raise StorageError(f"Question definitions not found: {questions_file}") from None
            try:
                self._questions = {
                    phase: [Question.model_validate(q) for q in data.get(phase) or []]
                    for phase in ("discovery", "detail")
                }
            except (AttributeError, ValidationError) as e:
                raise StorageError(f"Invalid question definitions in {questions_file}: {e}") from e
        return self._questions

    def questions(self, phase: QuestionPhase, count: int | None = None) -> list[Question]:
        """フェーズの質問を先頭からcount問返す。Noneなら全件。"""
        questions = self._load_questions()[phase]
        return list(questions if count is None else questions[:count])

    def get(self, phase: QuestionPhase, index: int) -> Question:
        """フェーズのindex番目の質問を返す。

        Raises:
            QuestionNotFoundError: indexが範囲外の場合。
        """
        questions = self._load_questions()[phase]
        if not 0 <= index < len(questions):
            raise QuestionNotFoundError(phase, index)
        return questions[index]
