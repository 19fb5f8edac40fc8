"""要件定義セッションの状態機械と永続化を行うサービス。

フェーズは ``discovery -> context -> detail -> complete`` の順にのみ進む。
アクティブなセッションはレジストリポインタで高々1つに制限される。
"""

import re
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath

import structlog
from pydantic import ValidationError

from reqflow.models.errors import (
    AnswerOutOfOrderError,
    FolderCollisionError,
    InvalidPhaseError,
    MetadataCorruptError,
    MetadataMissingError,
    NoActiveSessionError,
    SessionAlreadyActiveError,
    SessionNotActiveError,
    StaleRegistryError,
    StorageError,
)
from reqflow.models.question import QuestionPhase
from reqflow.models.session import (
    AnswerRecord,
    EndAction,
    EndResult,
    Session,
    SessionDump,
    SessionSummary,
)
from reqflow.models.settings import Settings
from reqflow.services.index import IndexWriter
from reqflow.services.transcript import TranscriptWriter
from reqflow.storage.registry import SessionRegistry
from reqflow.storage.service import StorageService
from reqflow.storage.settings import SettingsStore

logger = structlog.get_logger(__name__)

METADATA_FILE = "metadata.json"
SLUG_MAX_LENGTH = 30


def _utcnow() -> datetime:
    return datetime.now(UTC)


def slugify(text: str) -> str:
    """リクエスト文からフォルダ名用のスラッグを作る。

    小文字化し、``[a-z0-9\\s-]`` 以外の文字を除去してから空白の連続をハイフン1つにまとめ、
    30文字に切り詰める。

    >>> slugify("Add Dark-Mode!! Support")
    'add-dark-mode-support'
    """
    slug = re.sub(r"[^a-z0-9\s-]", "", text.lower())
    slug = re.sub(r"\s+", "-", slug)
    return slug[:SLUG_MAX_LENGTH]


def folder_name(request: str, now: datetime) -> str:
    """分単位のUTCタイムスタンプとスラッグからセッションフォルダ名を作る。"""
    timestamp = now.astimezone(UTC).strftime("%Y-%m-%d-%H%M")
    slug = slugify(request)
    return f"{timestamp}-{slug}" if slug else timestamp


class SessionService:
    """セッションのメタデータを所有し、フェーズ遷移の検証と適用を行う。"""

    def __init__(
        self,
        storage: StorageService,
        registry: SessionRegistry,
        settings_store: SettingsStore,
        index_writer: IndexWriter,
        transcripts: TranscriptWriter,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._storage = storage
        self._registry = registry
        self._settings_store = settings_store
        self._index_writer = index_writer
        self._transcripts = transcripts
        self._clock = clock

    def _session_dir(self, session_id: str) -> PurePosixPath:
        # ディレクトリトラバーサル防止
        if not session_id or Path(session_id).name != session_id:
            raise StorageError(f"Invalid session ID: {session_id}")
        return PurePosixPath(session_id)

    def _metadata_path(self, session_id: str) -> PurePosixPath:
        return self._session_dir(session_id) / METADATA_FILE

    def _parse(self, session_id: str, content: str) -> Session:
        try:
            return Session.model_validate_json(content)
        except ValidationError as e:
            raise MetadataCorruptError(session_id, str(e)) from e

    async def _save(self, session: Session) -> None:
        await self._storage.write_text(self._metadata_path(session.id), session.to_json())

    async def _commit(self, session: Session, updated: Session) -> None:
        """更新後のレコードを保存し、成功した場合のみ呼び出し元のセッションに反映する。"""
        await self._save(updated)
        for name in Session.model_fields:
            setattr(session, name, getattr(updated, name))

    async def create(self, request: str, settings: Settings | None = None) -> Session:
        """新しいセッションを作成し、アクティブとして登録する。

        Args:
            request: 要件定義の対象となるリクエスト文。
            settings: 質問数設定。Noneの場合は保存済みの設定を使用。

        Returns:
            作成されたセッション。

        Raises:
            SessionAlreadyActiveError: 既にアクティブなセッションがある場合。
            FolderCollisionError: 同名のセッションフォルダが既に存在する場合。
        """
        try:
            active = await self.load_active("start")
        except NoActiveSessionError:
            pass
        except MetadataCorruptError as e:
            # 壊れたセッションはアクティブとみなさない。フォルダは一覧にunknownとして残る
            logger.error("metadata_corrupt", session_id=e.session_id, operation="start")
            await self._registry.clear_active()
        else:
            raise SessionAlreadyActiveError(active.id)

        if settings is None:
            settings = await self._settings_store.load()

        now = self._clock()
        session_id = folder_name(request, now)
        session_dir = self._session_dir(session_id)
        if await self._storage.exists(session_dir):
            raise FolderCollisionError(session_id)

        await self._storage.ensure_dir(session_dir)
        session = Session.new(session_id, request, settings, now)
        try:
            await self._transcripts.write_initial_request(session_id, request, now.isoformat())
            await self._save(session)
        except StorageError:
            # 作りかけのフォルダは残さない
            await self._storage.remove_recursive(session_dir)
            raise
        await self._registry.set_active(session_id)
        logger.info(
            "session_started",
            session_id=session_id,
            discovery_questions=settings.discovery_questions,
            expert_questions=settings.expert_questions,
        )
        return session

    async def load(self, session_id: str) -> Session:
        """セッションのメタデータを読み込む。

        Raises:
            StorageError: メタデータが存在しない、または不正な場合。
        """
        content = await self._storage.read_text_or_none(self._metadata_path(session_id))
        if content is None:
            raise StorageError(f"Metadata not found for session: {session_id}")
        return self._parse(session_id, content)

    async def load_active(self, operation: str = "status") -> Session:
        """レジストリが指すアクティブなセッションを読み込む。

        ポインタが存在しないメタデータや終了済みセッションを指している場合は、
        ポインタを削除してから例外を送出する。

        Raises:
            NoActiveSessionError: アクティブなセッションが無い場合。
            MetadataMissingError: メタデータが失われていた場合。
            StaleRegistryError: 終了済みセッションを指していた場合。
            MetadataCorruptError: メタデータが解析できない場合。ポインタは保持する。
        """
        session_id = await self._registry.get_active()
        if session_id is None:
            raise NoActiveSessionError(operation)

        content = await self._storage.read_text_or_none(self._metadata_path(session_id))
        if content is None:
            logger.warning("metadata_missing", session_id=session_id, operation=operation)
            await self._registry.clear_active()
            raise MetadataMissingError(session_id, operation)

        session = self._parse(session_id, content)
        if session.ended_at is not None:
            logger.error("registry_stale", session_id=session_id, status=session.status, operation=operation)
            await self._registry.clear_active()
            raise StaleRegistryError(session_id, operation)
        return session

    async def record_answer(
        self,
        session: Session,
        phase: QuestionPhase,
        index: int,
        question: str,
        answer: bool,
        reasoning: str,
    ) -> AnswerRecord:
        """回答を記録し、フェーズの回答数を1つ進める。

        Raises:
            SessionNotActiveError: セッションが終了済みの場合。
            AnswerOutOfOrderError: indexが次の未回答の質問と一致しない場合。
        """
        if session.status != "active":
            raise SessionNotActiveError(session.id, session.status, "record an answer")
        progress = session.progress.of(phase)
        if session.phase != phase or progress.done:
            raise AnswerOutOfOrderError(session.id, phase, index, None)
        if index != progress.answered:
            raise AnswerOutOfOrderError(session.id, phase, index, progress.answered)

        now = self._clock()
        record = AnswerRecord(
            question_index=index,
            question_text=question,
            answer=answer,
            reasoning=reasoning,
            answered_at=now,
        )
        updated = session.model_copy(deep=True)
        updated.answers.of(phase).append(record)
        updated.progress.of(phase).answered += 1
        updated.last_updated = now
        await self._commit(session, updated)
        await self._transcripts.append_answer(session.id, phase, record)
        logger.info(
            "answer_recorded",
            session_id=session.id,
            phase=phase,
            question_index=index,
            answer=answer,
        )
        return record

    async def try_advance_phase(self, session: Session) -> bool:
        """遷移条件を満たしていればフェーズを1つ進める。

        Returns:
            遷移した場合True。該当する遷移が無い場合は何もせずFalse。
        """
        if session.status != "active":
            return False

        updated = session.model_copy(deep=True)
        if session.phase == "discovery" and session.progress.discovery.done:
            updated.phase = "context"
        elif session.phase == "context":
            updated.phase = "detail"
        elif session.phase == "detail" and session.progress.detail.done:
            updated.phase = "complete"
            updated.status = "completed"
        else:
            return False

        previous = session.phase
        updated.last_updated = self._clock()
        await self._commit(session, updated)
        logger.info("phase_transition", session_id=session.id, from_phase=previous, to_phase=session.phase)
        return True

    async def add_context(
        self,
        session: Session,
        files: list[str],
        related_features: list[str],
        findings: str | None = None,
    ) -> Session:
        """コンテキスト調査の結果を追記する。contextフェーズでのみ許可される。"""
        if session.status != "active":
            raise SessionNotActiveError(session.id, session.status, "record context")
        if session.phase != "context":
            raise InvalidPhaseError(session.id, session.phase, "record context")

        updated = session.model_copy(deep=True)
        for f in files:
            if f not in updated.context_files:
                updated.context_files.append(f)
        for feature in related_features:
            if feature not in updated.related_features:
                updated.related_features.append(feature)
        updated.last_updated = self._clock()
        await self._commit(session, updated)
        await self._transcripts.append_context(session.id, files, related_features, findings)
        logger.info("context_recorded", session_id=session.id, files=len(files), related_features=len(related_features))
        return session

    async def end(self, action: EndAction) -> EndResult:
        """アクティブなセッションを終了する。

        Args:
            action: complete（完了）、incomplete（未完了として保存）、delete（削除）。

        Raises:
            NoActiveSessionError: アクティブなセッションが無い場合。ファイルは変更しない。
            MetadataCorruptError: メタデータが解析できず、actionがdeleteでない場合。
        """
        try:
            session = await self.load_active("end")
        except MetadataCorruptError as e:
            if action != "delete":
                raise
            # メタデータが読めなくてもレジストリのIDでフォルダを削除できる
            await self._storage.remove_recursive(self._session_dir(e.session_id))
            await self._registry.clear_active()
            logger.warning("corrupt_session_deleted", session_id=e.session_id)
            return EndResult(session_id=e.session_id, action=action)

        if action == "delete":
            await self._storage.remove_recursive(self._session_dir(session.id))
            await self._registry.clear_active()
            logger.info("session_deleted", session_id=session.id)
            return EndResult(session_id=session.id, action=action)

        now = self._clock()
        updated = session.model_copy(deep=True)
        # phase completeで既にcompletedになったセッションはその状態を保持する
        if updated.status == "active":
            updated.status = "completed" if action == "complete" else "incomplete"
        updated.ended_at = now
        updated.last_updated = now
        await self._commit(session, updated)
        index_updated = await self._index_writer.append_entry(session.id, session.status, now)
        await self._registry.clear_active()
        logger.info("session_ended", session_id=session.id, action=action, status=session.status)
        return EndResult(session_id=session.id, action=action, status=session.status, index_updated=index_updated)

    async def current(self) -> SessionDump:
        """アクティブなセッションのMarkdownファイルとメタデータを全て返す。"""
        session = await self.load_active("current")
        session_dir = self._session_dir(session.id)
        files: dict[str, str] = {}
        for name in await self._storage.read_dir(session_dir):
            if not name.endswith(".md"):
                continue
            content = await self._storage.read_text_or_none(session_dir / name)
            if content is not None:
                files[name] = content
        return SessionDump(session_id=session.id, files=files, metadata=session)

    async def list_sessions(self) -> list[SessionSummary]:
        """全セッションを新しい順に返す。メタデータが読めないセッションはunknownとする。"""
        active_id = await self._registry.get_active()
        summaries: list[SessionSummary] = []
        for name in sorted(await self._storage.read_dir(), reverse=True):
            if name.startswith(".") or not await self._storage.is_dir(name):
                continue
            try:
                session = await self.load(name)
            except StorageError as e:
                logger.warning("session_metadata_unreadable", session_id=name, error=str(e))
                summaries.append(SessionSummary(id=name, status="unknown", phase="unknown", active=name == active_id))
                continue
            summaries.append(
                SessionSummary(
                    id=name,
                    status=session.status,
                    phase=session.phase,
                    started=session.started,
                    active=name == active_id,
                )
            )
        return summaries
