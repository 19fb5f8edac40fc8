"""要件定義ワークフローのMCPプロンプト定義。"""

from fastmcp import FastMCP


def workflow_reminder() -> str:
    """ワークフローのルールとフェーズ構成の説明文。"""
    return (
        "# Requirements Gathering Workflow\n\n"
        "## Phases\n\n"
        "1. **Discovery**: yes/no questions about the problem space. "
        "All questions are written to 01-discovery-questions.md before the first one is asked; "
        "answers are recorded in 02-discovery-answers.md.\n"
        "2. **Context**: autonomous codebase analysis. Record findings, files and related features "
        "with `requirements-context` (03-context-findings.md), then call `requirements-advance`.\n"
        "3. **Detail**: expert yes/no questions about expected system behavior "
        "(04-detail-questions.md, answers in 05-detail-answers.md).\n"
        "4. **Complete**: all questions answered. Close the session with `requirements-end`.\n\n"
        "## Rules\n\n"
        "- Only yes/no questions, each with a default and the reason for that default.\n"
        "- Ask one question at a time: each `requirements-advance` call answers at most one question.\n"
        "- If the user does not respond, the default answer is recorded.\n"
        "- Only one session can be active at a time.\n"
        "- Focus on requirements, not implementation.\n"
    )


def register_workflow_prompts(mcp: FastMCP) -> None:
    """ワークフロー系のMCPプロンプトを登録する。"""

    @mcp.prompt()
    async def start_requirements(request: str) -> str:
        """新しい要件定義セッションを開始するためのプロンプト。

        Args:
            request: 要件定義の対象となる機能・プロジェクトの説明。
        """
        return (
            f"Start gathering requirements for: {request}\n\n"
            "## Steps\n\n"
            f"1. Call `requirements-start` with the request `{request}`.\n"
            "2. **Tell the user the created session folder (`session_id`).**\n"
            "3. Call `requirements-advance` repeatedly, one question at a time, "
            "until the phase becomes `context`.\n"
            "4. Analyze the codebase and record the results with `requirements-context`, "
            "then call `requirements-advance` to move on to the detail phase.\n"
            "5. Call `requirements-advance` until the phase becomes `complete`.\n"
            "6. Call `requirements-end` with action `complete`.\n\n" + workflow_reminder()
        )

    @mcp.prompt()
    async def resume_requirements() -> str:
        """アクティブな要件定義セッションを再開するためのプロンプト。"""
        return (
            "Resume the active requirements gathering session.\n\n"
            "## Steps\n\n"
            "1. Call `requirements-status` to see the current phase and progress.\n"
            "2. Call `requirements-current` if you need the answers recorded so far.\n"
            "3. Continue with `requirements-advance` until the phase becomes `complete`, "
            "then call `requirements-end`.\n"
        )
