"""reqflowサーバーの設定管理。"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

_PACKAGE_ROOT = Path(__file__).parent

DATA_DIR_NAME = "requirements"


class ServerConfig(BaseSettings):
    """サーバー設定。環境変数から読み込み可能。"""

    model_config = {"env_prefix": "REQFLOW_"}

    # requirements/ を作成するプロジェクトルート
    root_dir: Path = Field(default_factory=Path.cwd)
    # 質問カタログ。パッケージ同梱のものを既定とし、REQFLOW_CONFIG_DIRで差し替え可能
    config_dir: Path = _PACKAGE_ROOT / "data"

    transport: Literal["stdio", "streamable-http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 8000

    log_level: str = "INFO"
    log_json: bool = False

    @property
    def data_dir(self) -> Path:
        return self.root_dir / DATA_DIR_NAME
