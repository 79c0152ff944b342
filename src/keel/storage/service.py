"""ローカルファイルシステムベースのストレージサービス。"""

import json
import logging
import shutil
from pathlib import Path
from typing import Any

from keel.models.errors import ProjectNotFoundError, StorageError
from keel.models.project import Project
from keel.storage.base import apply_patch, new_project

logger = logging.getLogger(__name__)


class StorageService:
    """ローカルファイルシステムを利用したプロジェクト永続化層。

    プロジェクトごとに data_dir/projects/<id>/project.json を1ファイル保存する。
    """

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir
        self._projects_dir = data_dir / "projects"

    def _project_dir(self, project_id: str) -> Path:
        # ディレクトリトラバーサル防止
        safe_id = Path(project_id).name
        if safe_id in {"", ".", ".."} or safe_id != project_id:
            raise StorageError(f"Invalid project ID: {project_id}")
        return self._projects_dir / safe_id

    def _project_file(self, project_id: str) -> Path:
        return self._project_dir(project_id) / "project.json"

    async def save(self, project: Project) -> None:
        """プロジェクトをファイルシステムに保存する。"""
        project_dir = self._project_dir(project.id)
        project_dir.mkdir(parents=True, exist_ok=True)
        self._project_file(project.id).write_text(project.model_dump_json(indent=2), encoding="utf-8")
        logger.debug("Saved project %s", project.id)

    async def create(self, name: str, description: str = "") -> Project:
        """新しいプロジェクトを作成して保存する。

        Raises:
            InvalidPayloadError: プロジェクト名が空の場合。
        """
        project = new_project(name, description)
        await self.save(project)
        return project

    async def get(self, project_id: str) -> Project:
        """プロジェクトをファイルシステムから読み込む。

        Raises:
            ProjectNotFoundError: プロジェクトが存在しない場合。
        """
        project_file = self._project_file(project_id)
        if not project_file.exists():
            raise ProjectNotFoundError(project_id)
        data = json.loads(project_file.read_text(encoding="utf-8"))
        return Project.model_validate(data)

    async def list_projects(self) -> list[Project]:
        """保存されているプロジェクトを作成日時順に返す。"""
        if not self._projects_dir.exists():
            return []
        projects = [await self.get(d.name) for d in self._projects_dir.iterdir() if (d / "project.json").exists()]
        return sorted(projects, key=lambda p: p.created_at)

    async def patch(self, project_id: str, fields: dict[str, Any]) -> Project:
        """プロジェクトを部分更新する。

        Raises:
            ProjectNotFoundError: プロジェクトが存在しない場合。
            InvalidPayloadError: 更新内容が不正な場合。
        """
        updated = apply_patch(await self.get(project_id), fields)
        await self.save(updated)
        return updated

    async def delete(self, project_id: str) -> bool:
        """プロジェクトを削除する。削除した場合はTrueを返す。"""
        project_dir = self._project_dir(project_id)
        if not project_dir.exists():
            return False
        shutil.rmtree(project_dir)
        return True
