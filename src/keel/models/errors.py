"""Keelのカスタム例外クラス。"""


class KeelError(Exception):
    """Keelの基底例外クラス。"""


class ProjectNotFoundError(KeelError):
    """プロジェクトが見つからない場合の例外。"""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id


class NoActiveProjectError(KeelError):
    """アクティブなプロジェクトが開かれていない場合の例外。"""

    def __init__(self) -> None:
        super().__init__("No active project. Please call open_project or create_project first.")


class InvalidPayloadError(KeelError):
    """作成・更新ペイロードが不正な場合の例外。

    状態変更の前に送出されるため、部分的な更新は発生しない。
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class PhaseLockedError(KeelError):
    """フェーズゲートにより遷移が拒否された場合の例外。"""

    def __init__(self, current_phase: str, target_phase: str) -> None:
        super().__init__(
            f"Cannot advance from phase {current_phase} to phase {target_phase}: "
            "complete the prerequisites of the earlier phases first."
        )
        self.current_phase = current_phase
        self.target_phase = target_phase


class StorageError(KeelError):
    """ストレージ操作のエラー。"""


class RecommendationError(KeelError):
    """AI推奨の取得に失敗した場合の例外。

    0件の推奨結果とは区別して呼び出し元に通知される。
    """


class RecommendationConfigError(RecommendationError):
    """AI推奨に必要な認証情報が設定されていない場合の例外。"""

    def __init__(self, setting_name: str) -> None:
        super().__init__(
            f"{setting_name} is not set. Please configure it to use AI recommendations."
        )
        self.setting_name = setting_name
