"""Keelサーバーの設定管理。"""

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

_PACKAGE_ROOT = Path(__file__).parent
_REPO_ROOT = _PACKAGE_ROOT.parent.parent


class ServerConfig(BaseSettings):
    """サーバー設定。環境変数から読み込み可能。"""

    model_config = {"env_prefix": "KEEL_", "populate_by_name": True}

    data_dir: Path = _REPO_ROOT / ".keel"
    config_dir: Path = _REPO_ROOT / "config"
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # プロジェクト保存のデバウンス間隔（秒）
    save_debounce_seconds: float = 1.0

    # AI推奨 (未設定でも推奨以外の機能は動作する)
    openai_api_key: str = Field(default="", validation_alias=AliasChoices("KEEL_OPENAI_API_KEY", "OPENAI_API_KEY"))
    openai_model: str = "gpt-5"
    recommendation_max_tokens: int = 2048
    openai_timeout_seconds: float = 60.0
