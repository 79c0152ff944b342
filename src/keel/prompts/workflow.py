"""設計ワークフローのMCPプロンプト定義。"""

from fastmcp import FastMCP


def register_workflow_prompts(mcp: FastMCP) -> None:
    """ワークフロー系のMCPプロンプトを登録する。"""

    def _setup() -> str:
        return (
            "## 準備\n\n"
            "1. `list_projects` ツールで既存プロジェクトを確認してください。\n"
            "2. 新規の場合は `create_project` で作成し、既存の場合は `open_project` で開いてください。\n"
            "3. **プロジェクトID（`id`）を利用者に必ず提示してください。**\n"
            "4. `keel://phases` リソースで各フェーズの到達条件を確認できます。\n\n"
        )

    def _phase_a() -> str:
        return (
            "## Phase A: ドメイン分割\n\n"
            "1. 業務ドメインをヒアリングし、`add_item` で `bounded_contexts` を追加してください。\n"
            "2. 各コンテキストに属するサービスを `services` に追加してください。"
            " `dependencies` には依存先のサービス名を指定します。\n"
            "3. `validate_workspace` で循環依存や責務過多を確認してください。\n\n"
        )

    def _phase_b() -> str:
        return (
            "## Phase B: コンテナ化\n\n"
            "1. `navigate_to_phase` でフェーズBへ移動してください（サービスが1件以上必要です）。\n"
            "2. 各サービスの `container_configs` を追加してください。"
            " ヘルスチェックとリソース制限の設定を推奨します。\n"
            "3. `generate_dockerfile` で生成結果を確認してください。\n\n"
        )

    def _phase_c() -> str:
        return (
            "## Phase C: オーケストレーション\n\n"
            "1. `navigate_to_phase` でフェーズCへ移動してください（コンテナ設定が1件以上必要です）。\n"
            "2. `slo_definitions`、`autoscaling_strategies`、`k8s_manifests` を追加してください。\n"
            "3. `generate_k8s_manifest` でDeploymentとServiceのYAMLを確認してください。\n\n"
        )

    def _phase_d() -> str:
        return (
            "## Phase D: レジリエンス・可観測性\n\n"
            "1. `navigate_to_phase` でフェーズDへ移動してください（K8sマニフェストが1件以上必要です）。\n"
            "2. サービス間の依存に応じて `resilience_patterns` を追加してください。\n"
            "3. 各サービスの `observability_configs` を追加してください。\n"
            "4. `generate_resilience_code` と `generate_observability_code` で実装コード例を確認してください。\n"
            "5. `export_artifacts` で全成果物を出力してください。\n\n"
        )

    def _notes() -> str:
        return (
            "## 注意事項\n\n"
            "- 各フェーズで `refresh_workspace_recommendations` を実行するとAI推奨を取得できます。\n"
            "- バリデーション結果のerror・failedは必ず対応してください。warningは推奨事項です。\n"
            "- 変更は自動保存されます。作業終了時は `close_project` で保存を確定してください。\n"
            "- 前のフェーズにはいつでも戻れます。\n"
        )

    @mcp.prompt()
    async def design_workflow() -> str:
        """マイクロサービス設計の4フェーズをガイドするワークフロー。

        ドメイン分割→コンテナ化→オーケストレーション→レジリエンス・可観測性の順に進めます。
        """
        return (
            "# クラウドネイティブ・マイクロサービス設計ワークフロー\n\n"
            "4つのフェーズを順に進め、設計成果物を作成します。\n\n"
            + _setup()
            + _phase_a()
            + _phase_b()
            + _phase_c()
            + _phase_d()
            + _notes()
        )
