"""フェーズバリデーション関連のデータモデル。"""

from typing import Literal

from pydantic import BaseModel

from keel.models.project import Phase

# passed/warning/failedに加えて、ルールセットはinfoとerrorも出力する
ValidationStatus = Literal["passed", "warning", "failed", "info", "error"]


class ValidationResult(BaseModel):
    """フェーズバリデーションの個別検証結果。永続化はせず都度再計算する。"""

    id: str
    phase: Phase
    category: str
    status: ValidationStatus
    message: str
    details: str | None = None
