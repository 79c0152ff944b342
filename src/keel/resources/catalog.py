"""フレームワーク定義のMCPリソース定義。"""

from pathlib import Path

import yaml
from fastmcp import FastMCP

from keel.models.case_study import CaseStudy


def load_case_studies(config_dir: Path) -> list[CaseStudy]:
    """ケーススタディ定義を読み込む。"""
    with open(config_dir / "case-studies.yaml", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return [CaseStudy.model_validate(item) for item in data.get("case_studies", [])]


def register_catalog_resources(mcp: FastMCP, config_dir: Path) -> None:
    """ケーススタディ・フェーズ定義のMCPリソースを登録する。"""

    @mcp.resource("keel://case-studies")
    async def case_studies() -> str:
        """ケーススタディを取得する。

        4フェーズのフレームワーク適用前後のp95レイテンシ、可用性、
        スループット、MTTRと改善率を返します。
        """
        studies = load_case_studies(config_dir)
        data = {"case_studies": [s.model_dump() for s in studies]}
        return yaml.dump(data, allow_unicode=True, default_flow_style=False, sort_keys=False)

    @mcp.resource("keel://phases")
    async def phases() -> str:
        """フェーズ定義を取得する。

        各フェーズのタイトル、説明、編集対象のコレクション、到達条件を返します。
        """
        with open(config_dir / "phases.yaml", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return yaml.dump(data, allow_unicode=True, default_flow_style=False, sort_keys=False)
