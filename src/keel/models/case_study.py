"""ケーススタディ関連のデータモデル。"""

from typing import Literal

from pydantic import BaseModel


class CaseStudyMetrics(BaseModel):
    p95_latency: float
    availability: float
    throughput: float
    mttr: float


class CaseStudyImprovements(BaseModel):
    latency_reduction: float
    availability_increase: float
    throughput_increase: float
    mttr_reduction: float


class CaseStudy(BaseModel):
    """4フェーズ適用前後の指標を比較するケーススタディ。"""

    id: str
    name: str
    domain: Literal["e-commerce", "iot-pipeline"]
    baseline: CaseStudyMetrics
    optimized: CaseStudyMetrics
    improvements: CaseStudyImprovements
