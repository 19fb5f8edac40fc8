"""テスト共通フィクスチャ。"""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from reqflow.config import ServerConfig
from reqflow.services.index import IndexWriter
from reqflow.services.interview import InterviewDriver
from reqflow.services.questions import QuestionBank
from reqflow.services.session import SessionService
from reqflow.services.transcript import TranscriptWriter
from reqflow.storage.registry import SessionRegistry
from reqflow.storage.service import StorageService
from reqflow.storage.settings import SettingsStore


class FakeClock:
    """テスト用の進められる時計。"""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def tick(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def tmp_data_dir(tmp_path: Path) -> Path:
    """テスト用の一時データディレクトリ（requirements/ 相当）。"""
    return tmp_path / "requirements"


@pytest.fixture
def config_dir() -> Path:
    """設定ファイルディレクトリ。"""
    return Path(__file__).parent.parent / "src" / "reqflow" / "data"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 19, 14, 5, 30, tzinfo=UTC))


@pytest.fixture
def storage(tmp_data_dir: Path) -> StorageService:
    """テスト用StorageService。"""
    return StorageService(data_dir=tmp_data_dir)


@pytest.fixture
def registry(storage: StorageService) -> SessionRegistry:
    return SessionRegistry(storage)


@pytest.fixture
def settings_store(storage: StorageService) -> SettingsStore:
    return SettingsStore(storage)


@pytest.fixture
def index_writer(storage: StorageService) -> IndexWriter:
    return IndexWriter(storage)


@pytest.fixture
def transcripts(storage: StorageService) -> TranscriptWriter:
    return TranscriptWriter(storage)


@pytest.fixture
def questions(config_dir: Path) -> QuestionBank:
    return QuestionBank(config_dir=config_dir)


@pytest.fixture
def session_service(
    storage: StorageService,
    registry: SessionRegistry,
    settings_store: SettingsStore,
    index_writer: IndexWriter,
    transcripts: TranscriptWriter,
    clock: FakeClock,
) -> SessionService:
    """テスト用SessionService。"""
    return SessionService(
        storage=storage,
        registry=registry,
        settings_store=settings_store,
        index_writer=index_writer,
        transcripts=transcripts,
        clock=clock,
    )


@pytest.fixture
def driver(session_service: SessionService, questions: QuestionBank, transcripts: TranscriptWriter) -> InterviewDriver:
    """テスト用InterviewDriver。"""
    return InterviewDriver(session_service, questions, transcripts)


@pytest.fixture
def server_config(tmp_path: Path, config_dir: Path) -> ServerConfig:
    """テスト用ServerConfig。"""
    return ServerConfig(root_dir=tmp_path, config_dir=config_dir)
