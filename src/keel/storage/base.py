"""プロジェクト永続化層の共通インターフェース。"""

import uuid
from datetime import UTC, datetime
from typing import Any, Protocol

from pydantic import ValidationError

from keel.models.errors import InvalidPayloadError
from keel.models.project import PATCHABLE_FIELDS, Project


class ProjectRepository(Protocol):
    """プロジェクトのCRUD境界。ファイルシステム実装とインメモリ実装を差し替え可能。"""

    async def create(self, name: str, description: str = "") -> Project: ...

    async def get(self, project_id: str) -> Project: ...

    async def list_projects(self) -> list[Project]: ...

    async def patch(self, project_id: str, fields: dict[str, Any]) -> Project: ...

    async def delete(self, project_id: str) -> bool: ...

    async def save(self, project: Project) -> None: ...


def new_project(name: str, description: str = "") -> Project:
    """空のコレクションを持つフェーズAのプロジェクトを生成する。

    Raises:
        InvalidPayloadError: プロジェクト名が空の場合。
    """
    if not name or not name.strip():
        raise InvalidPayloadError("Project name is required", field="name")
    return Project(id=str(uuid.uuid4()), name=name, description=description or "")


def apply_patch(project: Project, fields: dict[str, Any]) -> Project:
    """部分更新を適用した新しいプロジェクトを返す。

    指定されなかったフィールドは変更しない。検証に失敗した場合は元のプロジェクトに影響しない。

    Raises:
        InvalidPayloadError: 更新不可のフィールドや不正な値が含まれる場合。
    """
    unknown = sorted(set(fields) - PATCHABLE_FIELDS)
    if unknown:
        raise InvalidPayloadError(f"Unknown or read-only fields: {', '.join(unknown)}", field=unknown[0])

    data = project.model_dump()
    data.update(fields)
    data["updated_at"] = datetime.now(UTC)
    try:
        return Project.model_validate(data)
    except ValidationError as e:
        raise InvalidPayloadError(str(e)) from e
