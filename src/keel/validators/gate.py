"""フェーズ間の遷移可否を判定するフェーズゲート。"""

from keel.models.project import PHASE_ORDER, Project


def can_advance(project: Project, target_phase: str) -> bool:
    """対象フェーズに到達可能かを判定する。

    各フェーズは直前フェーズの成果物が1件以上あれば解放される。
    既に保存済みのcurrent_phaseは再検証しない。

    Args:
        project: 判定対象のプロジェクト。
        target_phase: 遷移先フェーズ。

    Returns:
        到達可能ならTrue。未知のフェーズはFalse。
    """
    if target_phase == "A":
        return True
    if target_phase == "B":
        return len(project.services) > 0
    if target_phase == "C":
        return len(project.container_configs) > 0
    if target_phase == "D":
        return len(project.k8s_manifests) > 0
    return False


def can_navigate(project: Project, target_phase: str) -> bool:
    """現在フェーズから対象フェーズへ移動できるかを判定する。

    現在フェーズ以前への移動は常に許可し、先のフェーズへの移動のみゲートを適用する。
    """
    if target_phase not in PHASE_ORDER:
        return False
    if PHASE_ORDER.index(target_phase) <= PHASE_ORDER.index(project.current_phase):
        return True
    return can_advance(project, target_phase)
