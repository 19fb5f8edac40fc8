"""質問数設定のMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from reqflow.models.errors import ReqflowError
from reqflow.models.settings import MAX_QUESTIONS, MIN_QUESTIONS
from reqflow.storage.settings import SettingsStore


def register_settings_tools(mcp: FastMCP, settings_store: SettingsStore) -> None:
    """設定関連のMCPツールを登録する。"""

    @mcp.tool(name="requirements-settings-get")
    async def requirements_settings_get() -> dict[str, Any]:
        """新しいセッションで使われる質問数の設定を取得する。"""
        try:
            settings = await settings_store.load()
            return {**settings.model_dump(), "min": MIN_QUESTIONS, "max": MAX_QUESTIONS}
        except ReqflowError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool(name="requirements-settings-set")
    async def requirements_settings_set(
        discovery_questions: int | None = None,
        expert_questions: int | None = None,
    ) -> dict[str, Any]:
        """質問数の設定を変更する。

        変更は以降に開始するセッションにのみ適用されます。進行中のセッションには影響しません。

        Args:
            discovery_questions: discoveryフェーズの質問数（1〜20）。
            expert_questions: detailフェーズの質問数（1〜20）。
        """
        try:
            settings = await settings_store.update(discovery_questions, expert_questions)
            return settings.model_dump()
        except ReqflowError as e:
            return {"error": type(e).__name__, "message": str(e)}
