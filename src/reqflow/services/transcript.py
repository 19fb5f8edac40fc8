"""セッションフォルダ内の人間向けMarkdownトランスクリプト。"""

from pathlib import PurePosixPath

from reqflow.models.question import Question, QuestionPhase
from reqflow.models.session import AnswerRecord
from reqflow.storage.service import StorageService

INITIAL_REQUEST_FILE = "00-initial-request.md"
CONTEXT_FINDINGS_FILE = "03-context-findings.md"

_QUESTION_FILES: dict[str, str] = {
    "discovery": "01-discovery-questions.md",
    "detail": "04-detail-questions.md",
}
_ANSWER_FILES: dict[str, str] = {
    "discovery": "02-discovery-answers.md",
    "detail": "05-detail-answers.md",
}
_TITLES: dict[str, str] = {
    "discovery": "Discovery",
    "detail": "Expert Detail",
}


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


class TranscriptWriter:
    """質問・回答・コンテキスト調査結果をMarkdownとして書き出す。"""

    def __init__(self, storage: StorageService) -> None:
        self._storage = storage

    async def write_initial_request(self, session_id: str, request: str, timestamp: str) -> None:
        content = (
            "# Initial Request\n\n"
            f"**Timestamp:** {timestamp}\n\n"
            f"**Request:** {request}\n\n"
            "---\n\n"
            f"This is the starting point for requirements gathering session: {session_id}\n"
        )
        await self._storage.write_text(PurePosixPath(session_id, INITIAL_REQUEST_FILE), content)

    async def has_questions(self, session_id: str, phase: QuestionPhase) -> bool:
        return await self._storage.exists(PurePosixPath(session_id, _QUESTION_FILES[phase]))

    async def write_questions(self, session_id: str, phase: QuestionPhase, questions: list[Question]) -> None:
        """質問を全て（デフォルト回答付きで）書き出す。質問を尋ねる前に呼ぶ。"""
        lines = [f"# {_TITLES[phase]} Questions\n"]
        for i, question in enumerate(questions, start=1):
            lines.append(f"## Q{i}: {question.text}")
            lines.append(f"**Default if unknown:** {_yes_no(question.default)} ({question.reason})\n")
        await self._storage.write_text(PurePosixPath(session_id, _QUESTION_FILES[phase]), "\n".join(lines))

    async def append_answer(self, session_id: str, phase: QuestionPhase, record: AnswerRecord) -> None:
        entry = (
            f"## Q{record.question_index + 1}: {record.question_text}\n"
            f"**Answer:** {_yes_no(record.answer)}\n"
            f"**Reasoning:** {record.reasoning}\n\n"
        )
        await self._storage.append_text(
            PurePosixPath(session_id, _ANSWER_FILES[phase]),
            entry,
            header=f"# {_TITLES[phase]} Answers\n\n",
        )

    async def append_context(
        self,
        session_id: str,
        files: list[str],
        related_features: list[str],
        findings: str | None,
    ) -> None:
        parts: list[str] = []
        if findings:
            parts.append(findings.strip() + "\n")
        if files:
            parts.append("**Files to examine:**\n" + "".join(f"- {f}\n" for f in files))
        if related_features:
            parts.append("**Related features:**\n" + "".join(f"- {f}\n" for f in related_features))
        if not parts:
            return
        await self._storage.append_text(
            PurePosixPath(session_id, CONTEXT_FINDINGS_FILE),
            "\n".join(parts) + "\n",
            header="# Context Findings\n\n",
        )
