"""インタビューを1ステップずつ進めるドライバ。"""

from typing import Protocol

import structlog

from reqflow.models.interview import DriverResult, DriverResultKind
from reqflow.models.question import Question, QuestionPhase
from reqflow.models.session import Session, SessionPhase
from reqflow.services.questions import QuestionBank
from reqflow.services.session import SessionService
from reqflow.services.transcript import TranscriptWriter

logger = structlog.get_logger(__name__)

USER_ANSWER_REASONING = "Answered by user"


class AskYesNo(Protocol):
    """Yes/No質問を利用者に尋ねる能力。応答が無い場合はデフォルト値に解決する。"""

    async def __call__(self, prompt: str, default: bool, reason: str) -> bool: ...


class DefaultAsker:
    """常にデフォルト回答を返す。"""

    async def __call__(self, prompt: str, default: bool, reason: str) -> bool:
        return default


class FixedAsker:
    """あらかじめ与えられた回答を返す。"""

    def __init__(self, answer: bool) -> None:
        self._answer = answer

    async def __call__(self, prompt: str, default: bool, reason: str) -> bool:
        return self._answer


class InterviewDriver:
    """質問バンクから次の未回答の質問を取り出し、回答を記録してフェーズを進める。

    1回のadvance()で行う変更は、高々1つの回答と高々1つのフェーズ遷移のみ。
    """

    def __init__(self, sessions: SessionService, questions: QuestionBank, transcripts: TranscriptWriter) -> None:
        self._sessions = sessions
        self._questions = questions
        self._transcripts = transcripts

    async def advance(self, ask: AskYesNo, session: Session | None = None) -> DriverResult:
        """インタビューを1ステップ進める。

        Args:
            ask: 質問を尋ねる能力。
            session: 対象セッション。Noneの場合はアクティブなセッションを使用。

        Raises:
            NoActiveSessionError: sessionが指定されず、アクティブなセッションも無い場合。
        """
        if session is None:
            session = await self._sessions.load_active("advance")
        previous = session.phase

        if session.status == "active":
            if session.phase in ("discovery", "detail"):
                phase: QuestionPhase = "discovery" if session.phase == "discovery" else "detail"
                if not session.progress.of(phase).done:
                    return await self._ask_next(session, phase, ask)
                # 全問回答済みで遷移が保存されていない場合はここで遷移する
                await self._sessions.try_advance_phase(session)
                return self._result("phase_transitioned", session, previous)
            elif session.phase == "context":
                await self._sessions.try_advance_phase(session)
                return self._result("phase_transitioned", session, previous)

        return self._result("idle", session, previous)

    async def _ask_next(self, session: Session, phase: QuestionPhase, ask: AskYesNo) -> DriverResult:
        previous = session.phase
        progress = session.progress.of(phase)
        count = session.settings.discovery_questions if phase == "discovery" else session.settings.expert_questions

        # 最初の質問を尋ねる前に、全ての質問をファイルに書き出しておく
        if progress.answered == 0 and not await self._transcripts.has_questions(session.id, phase):
            await self._transcripts.write_questions(session.id, phase, self._questions.questions(phase, count))

        index = progress.answered
        question = self._questions.get(phase, index)
        answer = await ask(question.text, question.default, question.reason)
        reasoning = question.reason if answer == question.default else USER_ANSWER_REASONING
        await self._sessions.record_answer(session, phase, index, question.text, answer, reasoning)
        await self._sessions.try_advance_phase(session)
        logger.debug("interview_advanced", session_id=session.id, phase=phase, question_index=index)
        return self._result("answered", session, previous, index=index, question=question, answer=answer)

    @staticmethod
    def _result(
        kind: DriverResultKind,
        session: Session,
        previous: SessionPhase,
        *,
        index: int | None = None,
        question: Question | None = None,
        answer: bool | None = None,
    ) -> DriverResult:
        return DriverResult(
            kind=kind,
            session_id=session.id,
            previous_phase=previous,
            phase=session.phase,
            status=session.status,
            progress=session.progress.model_copy(deep=True),
            question_index=index,
            question=question,
            answer=answer,
        )
