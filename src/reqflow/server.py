"""FastMCPベースのMCPサーバーエントリポイント。"""

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from reqflow.config import ServerConfig
from reqflow.prompts.workflow import register_workflow_prompts
from reqflow.resources.questions import register_question_resources
from reqflow.services.index import IndexWriter
from reqflow.services.interview import InterviewDriver
from reqflow.services.questions import QuestionBank
from reqflow.services.session import SessionService
from reqflow.services.transcript import TranscriptWriter
from reqflow.storage.registry import SessionRegistry
from reqflow.storage.service import StorageService
from reqflow.storage.settings import SettingsStore
from reqflow.tools.requirements import register_requirements_tools
from reqflow.tools.settings import register_settings_tools


def create_server(config: ServerConfig | None = None) -> FastMCP:
    """reqflow MCPサーバーを作成し、ツール・リソース・プロンプトを登録する。

    Args:
        config: サーバー設定。Noneの場合はデフォルト設定を使用。

    Returns:
        設定済みのFastMCPインスタンス。
    """
    if config is None:
        config = ServerConfig()

    mcp = FastMCP("reqflow")

    # データアクセス層
    storage = StorageService(data_dir=config.data_dir)
    registry = SessionRegistry(storage)
    settings_store = SettingsStore(storage)

    # サービス層
    transcripts = TranscriptWriter(storage)
    questions = QuestionBank(config_dir=config.config_dir)
    sessions = SessionService(
        storage=storage,
        registry=registry,
        settings_store=settings_store,
        index_writer=IndexWriter(storage),
        transcripts=transcripts,
    )
    driver = InterviewDriver(sessions, questions, transcripts)

    # MCPインターフェース登録
    register_requirements_tools(mcp, sessions, driver)
    register_settings_tools(mcp, settings_store)
    register_question_resources(mcp, questions)
    register_workflow_prompts(mcp)

    # ヘルスチェックエンドポイント（HTTPトランスポート時のみ有効）
    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return mcp
