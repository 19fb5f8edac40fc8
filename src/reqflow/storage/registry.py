"""アクティブセッションを指すレジストリポインタ。"""

import structlog

from reqflow.models.errors import StorageError
from reqflow.storage.service import StorageService

logger = structlog.get_logger(__name__)

POINTER_FILE = ".current-requirement"


class SessionRegistry:
    """アクティブなセッションIDを1つだけ保持するポインタストア。

    セッションの存在確認は行わない。検証は呼び出し側の責務。
    """

    def __init__(self, storage: StorageService) -> None:
        self._storage = storage

    async def get_active(self) -> str | None:
        """アクティブなセッションIDを返す。無い・読めない場合はNone。"""
        try:
            content = await self._storage.read_text_or_none(POINTER_FILE)
        except StorageError as e:
            logger.warning("registry_unreadable", error=str(e))
            return None
        if content is None:
            return None
        return content.strip() or None

    async def set_active(self, session_id: str) -> None:
        await self._storage.write_text(POINTER_FILE, session_id)
        logger.info("registry_set", session_id=session_id)

    async def clear_active(self) -> None:
        await self._storage.remove_file(POINTER_FILE)
        logger.info("registry_cleared")
