"""インメモリのストレージサービス。"""

from typing import Any

from keel.models.errors import ProjectNotFoundError
from keel.models.project import Project
from keel.storage.base import apply_patch, new_project


class InMemoryStorageService:
    """プロセス内のdictにプロジェクトを保持する永続化層。"""

    def __init__(self) -> None:
        self._projects: dict[str, Project] = {}

    async def save(self, project: Project) -> None:
        self._projects[project.id] = project

    async def create(self, name: str, description: str = "") -> Project:
        project = new_project(name, description)
        await self.save(project)
        return project

    async def get(self, project_id: str) -> Project:
        try:
            return self._projects[project_id]
        except KeyError:
            raise ProjectNotFoundError(project_id) from None

    async def list_projects(self) -> list[Project]:
        return sorted(self._projects.values(), key=lambda p: p.created_at)

    async def patch(self, project_id: str, fields: dict[str, Any]) -> Project:
        updated = apply_patch(await self.get(project_id), fields)
        await self.save(updated)
        return updated

    async def delete(self, project_id: str) -> bool:
        return self._projects.pop(project_id, None) is not None
