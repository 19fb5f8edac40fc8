"""Session関連データモデルのユニットテスト。"""

import json
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from reqflow.models.session import AnswerRecord, PhaseProgress, Session
from reqflow.models.settings import Settings

NOW = datetime(2026, 10, 19, 14, 5, tzinfo=UTC)


def _session(**settings: int) -> Session:
    return Session.new("2026-10-19-1405-test", "test", Settings(**settings), NOW)


class TestSession:
    def test_new_session_defaults(self) -> None:
        session = _session()
        assert session.status == "active"
        assert session.phase == "discovery"
        assert session.ended_at is None
        assert session.context_files == []
        assert session.related_features == []
        assert session.answers.discovery == []

    def test_progress_totals_come_from_settings(self) -> None:
        session = _session(discovery_questions=3, expert_questions=7)
        assert session.progress.discovery.total == 3
        assert session.progress.detail.total == 7
        assert session.progress.discovery.answered == 0

    def test_serialization_uses_camel_case(self) -> None:
        data = json.loads(_session().to_json())
        assert "lastUpdated" in data
        assert "contextFiles" in data
        assert "relatedFeatures" in data
        assert data["settings"] == {"discoveryQuestions": 5, "expertQuestions": 5}

    def test_serialization_roundtrip(self) -> None:
        session = _session()
        session.answers.discovery.append(
            AnswerRecord(question_index=0, question_text="Q?", answer=True, reasoning="because")
        )
        restored = Session.model_validate_json(session.to_json())
        assert restored.model_dump() == session.model_dump()

    def test_unknown_phase_fails_closed(self) -> None:
        data = json.loads(_session().to_json())
        data["phase"] = "review"
        with pytest.raises(ValidationError):
            Session.model_validate(data)

    def test_unknown_status_fails_closed(self) -> None:
        data = json.loads(_session().to_json())
        data["status"] = "paused"
        with pytest.raises(ValidationError):
            Session.model_validate(data)

    def test_assigning_invalid_phase_is_rejected(self) -> None:
        session = _session()
        with pytest.raises(ValidationError):
            session.phase = "review"  # type: ignore[assignment]

    def test_settings_snapshot_is_frozen(self) -> None:
        session = _session()
        with pytest.raises(ValidationError):
            session.settings.discovery_questions = 9  # type: ignore[misc]


class TestPhaseProgress:
    def test_answered_cannot_exceed_total(self) -> None:
        with pytest.raises(ValidationError):
            PhaseProgress(answered=3, total=2)

    def test_increment_past_total_is_rejected(self) -> None:
        progress = PhaseProgress(answered=1, total=1)
        with pytest.raises(ValidationError):
            progress.answered += 1

    def test_done_and_remaining(self) -> None:
        progress = PhaseProgress(answered=2, total=5)
        assert progress.remaining == 3
        assert not progress.done
        assert PhaseProgress(answered=5, total=5).done


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.discovery_questions == 5
        assert settings.expert_questions == 5

    @pytest.mark.parametrize("value", [0, 21, -1])
    def test_out_of_range_rejected(self, value: int) -> None:
        with pytest.raises(ValidationError):
            Settings(discovery_questions=value)

    def test_accepts_camel_case_keys(self) -> None:
        settings = Settings.model_validate({"discoveryQuestions": 3, "expertQuestions": 20})
        assert settings.discovery_questions == 3
        assert settings.expert_questions == 20
