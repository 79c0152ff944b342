"""AI推奨関連のデータモデル。"""

from typing import Literal

from pydantic import BaseModel

RecommendationType = Literal["decomposition", "pattern", "anti-pattern", "optimization", "validation"]


class AIRecommendation(BaseModel):
    """外部LLMから取得した設計推奨。永続化はしない。"""

    id: str
    type: RecommendationType
    title: str
    description: str
    rationale: str
    severity: Literal["info", "warning", "error"] = "info"
    actionable: bool = False
    suggested_action: str | None = None
