"""テスト共通フィクスチャ。"""

from pathlib import Path

import pytest
from factories import ManualScheduler

from keel.config import ServerConfig
from keel.services.project import ProjectService
from keel.storage.memory import InMemoryStorageService
from keel.storage.service import StorageService


@pytest.fixture
def tmp_data_dir(tmp_path: Path) -> Path:
    """テスト用の一時データディレクトリ。"""
    return tmp_path / "keel-test"


@pytest.fixture
def config_dir() -> Path:
    """設定ファイルディレクトリ。"""
    return Path(__file__).parent.parent / "config"


@pytest.fixture
def storage(tmp_data_dir: Path) -> StorageService:
    """テスト用StorageService。"""
    return StorageService(data_dir=tmp_data_dir)


@pytest.fixture
def memory_storage() -> InMemoryStorageService:
    """テスト用InMemoryStorageService。"""
    return InMemoryStorageService()


@pytest.fixture
def scheduler() -> ManualScheduler:
    """テスト用ManualScheduler。"""
    return ManualScheduler()


@pytest.fixture
def project_service(memory_storage: InMemoryStorageService, scheduler: ManualScheduler) -> ProjectService:
    """インメモリストレージと手動スケジューラを使うProjectService。"""
    return ProjectService(memory_storage, debounce_seconds=1.0, scheduler=scheduler)


@pytest.fixture
def server_config(tmp_data_dir: Path, config_dir: Path) -> ServerConfig:
    """テスト用ServerConfig。"""
    return ServerConfig(data_dir=tmp_data_dir, config_dir=config_dir, openai_api_key="")
