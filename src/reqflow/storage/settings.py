"""質問数設定の永続化。"""

import json
from typing import Any

import structlog
from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from reqflow.models.errors import InvalidSettingsError
from reqflow.models.settings import MAX_QUESTIONS, MIN_QUESTIONS, Settings
from reqflow.storage.service import StorageService

logger = structlog.get_logger(__name__)

SETTINGS_FILE = ".settings"


class SettingsStore:
    """``requirements/.settings`` に質問数設定を保存・読み込みする。"""

    def __init__(self, storage: StorageService) -> None:
        self._storage = storage

    async def load(self) -> Settings:
        """保存済みの設定をデフォルトにキー単位でマージして返す。

        ファイルが無い・パースできない場合はデフォルトをそのまま返す。
        範囲外や型違いの値はそのキーだけデフォルトに戻す。
        """
        defaults = Settings()
        content = await self._storage.read_text_or_none(SETTINGS_FILE)
        if content is None:
            return defaults
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            logger.warning("settings_unparsable", file=SETTINGS_FILE)
            return defaults
        if not isinstance(data, dict):
            logger.warning("settings_unparsable", file=SETTINGS_FILE)
            return defaults

        merged: dict[str, Any] = {}
        for name in Settings.model_fields:
            value = data.get(to_camel(name), data.get(name))
            if _valid_count(value):
                merged[name] = value
            elif value is not None:
                logger.warning("settings_value_ignored", key=name, value=value)
        return defaults.model_copy(update=merged)

    async def save(self, settings: Settings) -> Settings:
        """設定を検証して保存する。

        Raises:
            InvalidSettingsError: 質問数が範囲外の場合。
        """
        try:
            validated = Settings.model_validate(settings.model_dump())
        except ValidationError as e:
            raise InvalidSettingsError(_describe(e)) from e
        await self._storage.ensure_dir()
        await self._storage.write_text(SETTINGS_FILE, validated.model_dump_json(indent=2, by_alias=True))
        logger.info(
            "settings_saved",
            discovery_questions=validated.discovery_questions,
            expert_questions=validated.expert_questions,
        )
        return validated

    async def update(
        self,
        discovery_questions: int | None = None,
        expert_questions: int | None = None,
    ) -> Settings:
        """指定された値だけを現在の設定に上書きして保存する。"""
        current = await self.load()
        changes: dict[str, int] = {}
        if discovery_questions is not None:
            changes["discovery_questions"] = discovery_questions
        if expert_questions is not None:
            changes["expert_questions"] = expert_questions
        try:
            updated = Settings.model_validate({**current.model_dump(), **changes})
        except ValidationError as e:
            raise InvalidSettingsError(_describe(e)) from e
        return await self.save(updated)


def _valid_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and MIN_QUESTIONS <= value <= MAX_QUESTIONS


def _describe(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        key = ".".join(str(p) for p in err["loc"])
        parts.append(f"{key} must be an integer between {MIN_QUESTIONS} and {MAX_QUESTIONS}")
    return "; ".join(parts)
