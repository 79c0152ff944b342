"""プロジェクトのCRUD・アクティブプロジェクト管理・エクスポートを行うサービス。"""

import logging
from typing import Any

from pydantic import ValidationError

from keel.generators.dockerfile import render_dockerfile
from keel.generators.kubernetes import render_k8s_manifest
from keel.generators.observability import render_observability_code
from keel.generators.resilience import render_resilience_code
from keel.models.errors import InvalidPayloadError, NoActiveProjectError, ProjectNotFoundError
from keel.models.project import Project
from keel.services.debounce import Scheduler
from keel.services.store import ProjectStore
from keel.storage.base import ProjectRepository

logger = logging.getLogger(__name__)


def render_artifacts(project: Project) -> dict[str, dict[str, str]]:
    """プロジェクトの全コンテナ設定・マニフェスト・耐障害性・可観測性設定から成果物を生成する。

    キーはサービス名（サービスが見つからない場合はservice_id）。
    耐障害性パターンのみパターンIDをキーにする（1サービスに複数あり得る）。
    """
    def service_name(service_id: str) -> str:
        service = project.find_service(service_id)
        return service.name if service is not None else service_id

    dockerfiles = {
        service_name(c.service_id): render_dockerfile(c, service_name(c.service_id)) for c in project.container_configs
    }
    manifests = {
        service_name(m.service_id): render_k8s_manifest(
            m, service_name(m.service_id), project.container_config_for(m.service_id)
        )
        for m in project.k8s_manifests
    }
    resilience = {p.id: render_resilience_code(p) for p in project.resilience_patterns}
    observability = {
        service_name(o.service_id): render_observability_code(o, service_name(o.service_id))
        for o in project.observability_configs
    }
    return {
        "dockerfiles": dockerfiles,
        "manifests": manifests,
        "resilience": resilience,
        "observability": observability,
    }


class ProjectService:
    """プロジェクトの永続化操作と、セッション内で唯一のアクティブプロジェクトを管理する。"""

    def __init__(
        self,
        storage: ProjectRepository,
        *,
        debounce_seconds: float = 1.0,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._storage = storage
        self._debounce_seconds = debounce_seconds
        self._scheduler = scheduler
        self._active: ProjectStore | None = None

    @property
    def active(self) -> ProjectStore:
        """アクティブなプロジェクトストアを返す。

        Raises:
            NoActiveProjectError: プロジェクトが開かれていない場合。
        """
        if self._active is None:
            raise NoActiveProjectError()
        return self._active

    @property
    def has_active(self) -> bool:
        return self._active is not None

    async def create_project(self, name: str, description: str = "", *, open_after: bool = True) -> Project:
        """プロジェクトを作成する。既定では作成したプロジェクトをアクティブにする。

        Raises:
            InvalidPayloadError: プロジェクト名が空の場合。
        """
        project = await self._storage.create(name, description)
        logger.info("Created project %s (%s)", project.id, project.name)
        if open_after:
            await self.open_project(project.id)
        return project

    async def get_project(self, project_id: str) -> Project:
        """プロジェクトを取得する。アクティブなプロジェクトはローカルの最新状態を返す。

        Raises:
            ProjectNotFoundError: プロジェクトが存在しない場合。
        """
        if self._active is not None and self._active.project.id == project_id:
            return self._active.project
        return await self._storage.get(project_id)

    async def list_projects(self) -> list[Project]:
        return await self._storage.list_projects()

    async def patch_project(self, project_id: str, fields: dict[str, Any]) -> Project:
        """永続化済みプロジェクトを部分更新する。

        アクティブなプロジェクトを更新した場合は、ストアを再オープンしてローカル状態を置き換える。

        Raises:
            ProjectNotFoundError: プロジェクトが存在しない場合。
            InvalidPayloadError: 更新内容が不正な場合。
        """
        is_active = self._active is not None and self._active.project.id == project_id
        if is_active:
            await self.active.flush()
        project = await self._storage.patch(project_id, fields)
        if is_active:
            self._active = self._new_store(project)
        return project

    async def delete_project(self, project_id: str) -> bool:
        """プロジェクトを削除する。アクティブなプロジェクトの場合は破棄する。"""
        if self._active is not None and self._active.project.id == project_id:
            store, self._active = self._active, None
            await store.discard()
        deleted = await self._storage.delete(project_id)
        if deleted:
            logger.info("Deleted project %s", project_id)
        return deleted

    async def open_project(self, project_id: str) -> ProjectStore:
        """プロジェクトを読み込みアクティブにする。既存のアクティブプロジェクトは閉じる。

        Raises:
            ProjectNotFoundError: プロジェクトが存在しない場合。
        """
        project = await self._storage.get(project_id)
        await self.close_project()
        self._active = self._new_store(project)
        return self._active

    async def close_project(self) -> None:
        """アクティブプロジェクトの保存を確定して閉じる。"""
        if self._active is None:
            return
        store, self._active = self._active, None
        await store.close()

    def _new_store(self, project: Project) -> ProjectStore:
        return ProjectStore(
            project,
            self._storage.save,
            debounce_seconds=self._debounce_seconds,
            scheduler=self._scheduler,
        )

    async def export_json(self, project_id: str) -> str:
        """プロジェクト全体を整形済みJSONとして出力する。

        Raises:
            ProjectNotFoundError: プロジェクトが存在しない場合。
        """
        project = await self.get_project(project_id)
        return project.model_dump_json(indent=2)

    async def import_json(self, document: str, *, overwrite: bool = False) -> Project:
        """エクスポートしたJSONからプロジェクトを復元して保存する。

        Raises:
            InvalidPayloadError: JSONが不正、または同一IDのプロジェクトが既に存在する場合（overwrite=False）。
        """
        try:
            project = Project.model_validate_json(document)
        except ValidationError as e:
            raise InvalidPayloadError(str(e)) from e

        if not overwrite:
            try:
                await self._storage.get(project.id)
            except ProjectNotFoundError:
                pass
            else:
                raise InvalidPayloadError(f"Project already exists: {project.id}", field="id")

        replaces_active = self._active is not None and self._active.project.id == project.id
        if replaces_active:
            await self.active.discard()
        await self._storage.save(project)
        if replaces_active:
            self._active = self._new_store(project)
        logger.info("Imported project %s", project.id)
        return project
