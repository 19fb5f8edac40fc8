"""要件定義セッションのMCPツール定義。"""

from typing import Any, Literal

import structlog
from fastmcp import Context, FastMCP
from mcp.shared.exceptions import McpError

from reqflow.models.errors import ReqflowError
from reqflow.prompts.workflow import workflow_reminder
from reqflow.services.interview import AskYesNo, DefaultAsker, FixedAsker, InterviewDriver
from reqflow.services.session import SessionService

logger = structlog.get_logger(__name__)

PHASE_DESCRIPTIONS: dict[str, str] = {
    "discovery": "Context Discovery Questions (understanding problem space)",
    "context": "Targeted Context Gathering (autonomous codebase analysis)",
    "detail": "Expert Requirements Questions (detailed system behavior)",
    "complete": "Requirements Documentation (comprehensive spec generation)",
}


class ElicitationAsker:
    """MCPのelicitationで利用者にYes/Noを尋ねる。

    クライアントが拒否・キャンセルした場合や、elicitationに対応していない場合はデフォルト値を返す。
    """

    def __init__(self, ctx: Context) -> None:
        self._ctx = ctx

    async def __call__(self, prompt: str, default: bool, reason: str) -> bool:
        message = f"{prompt}\n\nDefault if unknown: {'Yes' if default else 'No'} ({reason})"
        try:
            result = await self._ctx.elicit(message, response_type=bool)
        except McpError as e:
            logger.warning("elicitation_unavailable", error=str(e))
            return default
        if result.action == "accept" and isinstance(result.data, bool):
            return result.data
        logger.info("elicitation_defaulted", action=result.action)
        return default


def register_requirements_tools(mcp: FastMCP, sessions: SessionService, driver: InterviewDriver) -> None:
    """要件定義セッション関連のMCPツールを登録する。"""

    @mcp.tool(name="requirements-start")
    async def requirements_start(request: str) -> dict[str, Any]:
        """新しい機能・プロジェクトの要件定義を開始する。

        セッションフォルダを作成し、アクティブなセッションとして登録します。
        アクティブなセッションは同時に1つだけです。

        Args:
            request: 要件定義の対象となる機能・プロジェクトの説明。
        """
        try:
            session = await sessions.create(request)
            return {
                "session_id": session.id,
                "folder": f"requirements/{session.id}",
                "status": session.status,
                "phase": session.phase,
                "progress": session.progress.model_dump(),
                "next_step": "Call requirements-advance to ask the first discovery question.",
            }
        except ReqflowError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool(name="requirements-status")
    async def requirements_status() -> dict[str, Any]:
        """アクティブなセッションの状態と進捗を取得する。"""
        try:
            session = await sessions.load_active("status")
            return {
                "session_id": session.id,
                "started": session.started.isoformat(),
                "last_updated": session.last_updated.isoformat(),
                "status": session.status,
                "phase": session.phase,
                "phase_description": PHASE_DESCRIPTIONS[session.phase],
                "progress": session.progress.model_dump(),
                "context_files": len(session.context_files),
            }
        except ReqflowError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool(name="requirements-advance")
    async def requirements_advance(
        ctx: Context,
        answer: bool | None = None,
        use_default: bool = False,
    ) -> dict[str, Any]:
        """インタビューを1ステップ進める。

        次の未回答の質問を1つ尋ねて回答を記録するか、contextフェーズからdetailフェーズへ遷移します。
        phaseがcompleteになるまで繰り返し呼び出してください。

        Args:
            answer: 利用者の回答が既に分かっている場合のYes(true)/No(false)。
            use_default: trueの場合、利用者に尋ねずデフォルト回答を記録する。
        """
        ask: AskYesNo
        if answer is not None:
            ask = FixedAsker(answer)
        elif use_default:
            ask = DefaultAsker()
        else:
            ask = ElicitationAsker(ctx)
        try:
            result = await driver.advance(ask)
            data = result.model_dump(mode="json")
            data["phase_description"] = PHASE_DESCRIPTIONS[result.phase]
            return data
        except ReqflowError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool(name="requirements-context")
    async def requirements_context(
        files: list[str],
        related_features: list[str] | None = None,
        findings: str | None = None,
    ) -> dict[str, Any]:
        """contextフェーズで調査したファイルと関連機能を記録する。

        Args:
            files: 変更・参照が必要なファイルパス。
            related_features: 関連する既存機能。
            findings: 調査結果のMarkdown。
        """
        try:
            session = await sessions.load_active("context")
            await sessions.add_context(session, files, related_features or [], findings)
            return {
                "session_id": session.id,
                "context_files": session.context_files,
                "related_features": session.related_features,
            }
        except ReqflowError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool(name="requirements-current")
    async def requirements_current() -> dict[str, Any]:
        """アクティブなセッションの全ファイルとメタデータを取得する。"""
        try:
            dump = await sessions.current()
            return dump.model_dump(mode="json")
        except ReqflowError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool(name="requirements-end")
    async def requirements_end(action: Literal["complete", "incomplete", "delete"]) -> dict[str, Any]:
        """アクティブなセッションを終了する。

        Args:
            action: complete（完了）、incomplete（未完了として保存）、delete（完全に削除）。
        """
        try:
            result = await sessions.end(action)
            return result.model_dump(mode="json")
        except ReqflowError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool(name="requirements-list")
    async def requirements_list() -> dict[str, Any]:
        """全ての要件定義セッションを新しい順に一覧する。"""
        try:
            summaries = await sessions.list_sessions()
            return {"sessions": [s.model_dump(mode="json") for s in summaries]}
        except ReqflowError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool(name="requirements-remind")
    async def requirements_remind() -> dict[str, Any]:
        """要件定義ワークフローのルールを取得する。"""
        return {"reminder": workflow_reminder()}
