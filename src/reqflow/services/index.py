"""終了したセッションのグローバルインデックス（index.md）。"""

from datetime import datetime

import structlog

from reqflow.models.session import SessionStatus
from reqflow.storage.service import StorageService

logger = structlog.get_logger(__name__)

INDEX_FILE = "index.md"
INDEX_HEADER = "# Requirements Index\n\nThis file tracks all requirements gathering sessions.\n\n"

_STATUS_LABELS: dict[str, tuple[str, str]] = {
    "completed": ("✅", "Completed"),
    "incomplete": ("⚠️", "Incomplete"),
}


class IndexWriter:
    """セッション終了時にindex.mdへ1行追記する。同じセッションIDの行は1度しか書かない。"""

    def __init__(self, storage: StorageService) -> None:
        self._storage = storage

    async def append_entry(self, session_id: str, status: SessionStatus, ended_at: datetime) -> bool:
        """インデックスに行を追加する。

        Returns:
            追加した場合True、既にエントリがあった場合False。
        """
        existing = await self._storage.read_text_or_none(INDEX_FILE)
        content = INDEX_HEADER if existing is None else existing
        if f"**{session_id}**" in content:
            logger.info("index_entry_exists", session_id=session_id)
            return False

        emoji, label = _STATUS_LABELS.get(status, ("❓", status.capitalize()))
        content += f"- {emoji} **{session_id}** - {label} ({ended_at.date().isoformat()})\n"
        await self._storage.write_text(INDEX_FILE, content)
        logger.info("index_entry_added", session_id=session_id, status=status)
        return True

    async def read(self) -> str | None:
        return await self._storage.read_text_or_none(INDEX_FILE)
