"""質問バンクのMCPリソース定義。"""

import yaml
from fastmcp import FastMCP

from reqflow.services.questions import QuestionBank


def register_question_resources(mcp: FastMCP, questions: QuestionBank) -> None:
    """質問バンク関連のMCPリソースを登録する。"""

    @mcp.resource("reqflow://questions/discovery")
    async def discovery_questions() -> str:
        """discoveryフェーズの質問定義を取得する。

        質問文、デフォルト回答、デフォルトの根拠を含む質問一覧を返します。
        """
        data = {"discovery": [q.model_dump() for q in questions.questions("discovery")]}
        return yaml.dump(data, allow_unicode=True, default_flow_style=False, sort_keys=False)

    @mcp.resource("reqflow://questions/detail")
    async def detail_questions() -> str:
        """detailフェーズ（エキスパート）の質問定義を取得する。"""
        data = {"detail": [q.model_dump() for q in questions.questions("detail")]}
        return yaml.dump(data, allow_unicode=True, default_flow_style=False, sort_keys=False)
