"""要件定義フローのMCPプロトコル経由統合テスト。"""

import json
from pathlib import Path

import pytest
from fastmcp import Client

from reqflow.config import ServerConfig
from reqflow.server import create_server


@pytest.fixture
def mcp_server(tmp_path: Path) -> object:
    """テスト用MCPサーバー。"""
    config = ServerConfig(root_dir=tmp_path, config_dir=Path(__file__).parent.parent.parent / "src" / "reqflow" / "data")
    return create_server(config)


def parse_tool_result(result: object) -> dict:
    """CallToolResultからJSONデータを抽出する。"""
    content = result.content  # type: ignore[union-attr]
    assert len(content) > 0
    return json.loads(content[0].text)  # type: ignore[union-attr]


class TestRequirementsFlowViaMCP:
    async def test_start_via_mcp(self, mcp_server: object, tmp_path: Path) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool("requirements-start", {"request": "Add dark mode"})
            data = parse_tool_result(result)
            assert data["status"] == "active"
            assert data["phase"] == "discovery"
            assert data["session_id"].endswith("-add-dark-mode")
            assert (tmp_path / "requirements" / ".current-requirement").exists()

    async def test_full_flow_via_mcp(self, mcp_server: object, tmp_path: Path) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            # 1. 質問数を設定
            result = await client.call_tool(
                "requirements-settings-set", {"discovery_questions": 2, "expert_questions": 2}
            )
            assert parse_tool_result(result) == {"discovery_questions": 2, "expert_questions": 2}

            # 2. セッション開始
            result = await client.call_tool("requirements-start", {"request": "Add dark mode"})
            session_id = parse_tool_result(result)["session_id"]

            # 3. discovery: 明示的な回答とデフォルト回答
            result = await client.call_tool("requirements-advance", {"answer": False})
            data = parse_tool_result(result)
            assert data["kind"] == "answered"
            assert data["answer"] is False
            result = await client.call_tool("requirements-advance", {"use_default": True})
            data = parse_tool_result(result)
            assert data["phase"] == "context"

            # 4. context: 調査結果を記録してdetailへ
            result = await client.call_tool(
                "requirements-context",
                {"files": ["src/theme.py"], "related_features": ["Settings page"], "findings": "Theme tokens"},
            )
            assert parse_tool_result(result)["context_files"] == ["src/theme.py"]
            result = await client.call_tool("requirements-advance", {"use_default": True})
            data = parse_tool_result(result)
            assert data["kind"] == "phase_transitioned"
            assert data["phase"] == "detail"

            # 5. detail
            for _ in range(2):
                result = await client.call_tool("requirements-advance", {"use_default": True})
            data = parse_tool_result(result)
            assert data["phase"] == "complete"
            assert data["status"] == "completed"

            # 6. 状態確認とダンプ
            result = await client.call_tool("requirements-status", {})
            data = parse_tool_result(result)
            assert data["session_id"] == session_id
            assert data["progress"]["detail"] == {"answered": 2, "total": 2}
            assert data["context_files"] == 1

            result = await client.call_tool("requirements-current", {})
            data = parse_tool_result(result)
            assert "03-context-findings.md" in data["files"]
            assert "05-detail-answers.md" in data["files"]

            # 7. 終了
            result = await client.call_tool("requirements-end", {"action": "complete"})
            data = parse_tool_result(result)
            assert data["status"] == "completed"
            assert data["index_updated"] is True

            result = await client.call_tool("requirements-list", {})
            sessions = parse_tool_result(result)["sessions"]
            assert [(s["id"], s["status"], s["active"]) for s in sessions] == [(session_id, "completed", False)]

        index = (tmp_path / "requirements" / "index.md").read_text(encoding="utf-8")
        assert session_id in index

    async def test_start_while_active_returns_error(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            await client.call_tool("requirements-start", {"request": "Add dark mode"})
            result = await client.call_tool(
                "requirements-start", {"request": "Another feature"}, raise_on_error=False
            )
            data = parse_tool_result(result)
            assert data["error"] == "SessionAlreadyActiveError"

    async def test_end_twice_returns_no_active_session(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            await client.call_tool("requirements-start", {"request": "Add dark mode"})
            await client.call_tool("requirements-end", {"action": "incomplete"})
            result = await client.call_tool("requirements-end", {"action": "incomplete"}, raise_on_error=False)
            data = parse_tool_result(result)
            assert data["error"] == "NoActiveSessionError"

    async def test_delete_removes_session_from_list(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            await client.call_tool("requirements-start", {"request": "Add dark mode"})
            result = await client.call_tool("requirements-end", {"action": "delete"})
            assert parse_tool_result(result)["action"] == "delete"
            result = await client.call_tool("requirements-list", {})
            assert parse_tool_result(result)["sessions"] == []

    async def test_settings_round_trip_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            await client.call_tool("requirements-settings-set", {"expert_questions": 9})
            await client.call_tool("requirements-settings-set", {"discovery_questions": 3})
            result = await client.call_tool("requirements-settings-get", {})
            data = parse_tool_result(result)
            assert data["discovery_questions"] == 3
            assert data["expert_questions"] == 9

    async def test_invalid_settings_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool(
                "requirements-settings-set", {"discovery_questions": 25}, raise_on_error=False
            )
            data = parse_tool_result(result)
            assert data["error"] == "InvalidSettingsError"

    async def test_status_without_session(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool("requirements-status", {}, raise_on_error=False)
            data = parse_tool_result(result)
            assert data["error"] == "NoActiveSessionError"

    async def test_list_tools_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            tools = await client.list_tools()
            tool_names = {t.name for t in tools}
            assert {
                "requirements-start",
                "requirements-status",
                "requirements-advance",
                "requirements-context",
                "requirements-current",
                "requirements-end",
                "requirements-list",
                "requirements-remind",
                "requirements-settings-get",
                "requirements-settings-set",
            } <= tool_names

    async def test_list_resources_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            resources = await client.list_resources()
            resource_uris = {str(r.uri) for r in resources}
            assert "reqflow://questions/discovery" in resource_uris
            assert "reqflow://questions/detail" in resource_uris

    async def test_list_prompts_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            prompts = await client.list_prompts()
            prompt_names = {p.name for p in prompts}
            assert "start_requirements" in prompt_names
            assert "resume_requirements" in prompt_names

    async def test_remind_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool("requirements-remind", {})
            assert "one question at a time" in parse_tool_result(result)["reminder"]
