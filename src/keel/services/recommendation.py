"""外部LLMからAI推奨を取得するゲートウェイ。"""

import json
import logging
import time
from typing import Any

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from keel.models.errors import RecommendationConfigError, RecommendationError
from keel.models.project import Project
from keel.models.recommendation import AIRecommendation

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = """You are a cloud-native architecture expert. Analyze the provided architecture \
and generate specific, actionable recommendations.

Return a JSON object with this structure:
{
  "recommendations": [
    {
      "type": "decomposition" | "pattern" | "anti-pattern" | "optimization" | "validation",
      "title": "Short title",
      "description": "Brief description",
      "rationale": "Why this matters",
      "severity": "info" | "warning" | "error",
      "actionable": true | false,
      "suggested_action": "What to do (if actionable)"
    }
  ]
}

Provide 3-5 relevant recommendations for the current phase. Be specific and actionable."""

# フェーズ → ユーザープロンプトテンプレート
_PHASE_PROMPTS: dict[str, str] = {
    "A": """Analyze this microservice architecture for domain-driven design best practices:
- Services: {services}
- Bounded Contexts: {bounded_contexts}

Identify:
1. Anti-patterns like chatty services or circular dependencies
2. Missing bounded contexts
3. Services that should be merged or split
4. Communication pattern improvements""",
    "B": """Analyze these container configurations for best practices:
- Configurations: {container_configs}

Check for:
1. Security issues (running as root, missing health checks)
2. Build optimization opportunities
3. Resource limit recommendations
4. Base image suggestions""",
    "C": """Analyze these Kubernetes configurations:
- SLOs: {slo_definitions}
- Autoscaling: {autoscaling_strategies}
- Manifests: {k8s_manifests}

Recommend:
1. SLO improvements based on service criticality
2. Autoscaling strategy optimizations
3. Deployment strategy suggestions
4. Resource allocation improvements""",
    "D": """Analyze these resilience and observability configurations:
- Resilience Patterns: {resilience_patterns}
- Observability: {observability_configs}

Suggest:
1. Missing resilience patterns for service interactions
2. Observability gaps
3. Configuration optimizations
4. Best practice improvements""",
}


def build_phase_prompt(project: Project, phase: str) -> str:
    """フェーズに対応するプロジェクトの断片をJSON化してプロンプトを組み立てる。

    未知のフェーズはフェーズAのプロンプトにフォールバックする。
    """
    template = _PHASE_PROMPTS.get(phase, _PHASE_PROMPTS["A"])
    data = project.model_dump(mode="json")
    slices = {key: json.dumps(value, ensure_ascii=False) for key, value in data.items() if isinstance(value, list)}
    return template.format(**slices)


class RecommendationGateway:
    """OpenAI Chat Completions APIへの薄いアダプター。

    クライアントは初回利用時に生成する。APIキー未設定でも他の機能は動作し、
    エラーは推奨取得時にのみ発生する。
    """

    def __init__(
        self,
        api_key: str = "",
        model: str = "gpt-5",
        max_tokens: int = 2048,
        timeout: float = 60.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        """OpenAIクライアントを遅延初期化して返す。"""
        if self._client is None:
            if not self._api_key:
                raise RecommendationConfigError("OPENAI_API_KEY")
            self._client = AsyncOpenAI(api_key=self._api_key, timeout=self._timeout)
        return self._client

    async def recommend(self, project: Project, phase: str) -> list[AIRecommendation]:
        """プロジェクトの指定フェーズに対するAI推奨を取得する。

        Args:
            project: 分析対象のプロジェクト。
            phase: 対象フェーズ。

        Returns:
            推奨のリスト（件数の下限は保証しない）。

        Raises:
            RecommendationConfigError: APIキーが設定されていない場合。
            RecommendationError: API呼び出しまたは応答の解析に失敗した場合。
        """
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": build_phase_prompt(project, phase)},
                ],
                response_format={"type": "json_object"},
                max_completion_tokens=self._max_tokens,
            )
        except OpenAIError as e:
            logger.warning("AI recommendation request failed: %s", e)
            raise RecommendationError(f"Failed to generate recommendations: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise RecommendationError("No response from AI")
        return self._parse(content)

    @staticmethod
    def _parse(content: str) -> list[AIRecommendation]:
        try:
            payload = json.loads(content)
        except json.JSONDecodeError as e:
            raise RecommendationError(f"AI response is not valid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise RecommendationError("AI response must be a JSON object")

        items: list[Any] = payload.get("recommendations") or []
        stamp = int(time.time() * 1000)
        recommendations: list[AIRecommendation] = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                logger.warning("Skipping malformed recommendation at index %d", index)
                continue
            try:
                recommendations.append(AIRecommendation.model_validate({**item, "id": f"rec-{stamp}-{index}"}))
            except ValidationError as e:
                logger.warning("Skipping invalid recommendation at index %d: %s", index, e)
        return recommendations
