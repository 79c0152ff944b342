"""コンテナ設定からDockerfileを生成する。"""

from keel.models.project import ContainerConfig, EnvironmentVariable, HealthCheck

_MULTI_STAGE_HEADER = """# Multi-stage build for {service_name}
# Stage 1: Build
FROM {base_image} AS builder
WORKDIR /app
COPY package*.json ./
RUN npm ci
COPY . .
RUN npm run build

# Stage 2: Production
FROM {runtime_image}
WORKDIR /app
COPY --from=builder /app/dist ./dist
COPY --from=builder /app/node_modules ./node_modules
COPY package*.json ./"""

_SINGLE_STAGE_HEADER = """# Single-stage build for {service_name}
FROM {base_image}
WORKDIR /app

COPY package*.json ./
RUN npm ci --only=production

COPY . ."""

_HEALTHCHECK = """HEALTHCHECK --interval={interval}s \\
  CMD wget --quiet --tries=1 --spider http://localhost:{port}{path} || exit 1"""

# ビルド種別 → 起動コマンド
_ENTRYPOINTS: dict[str, str] = {
    "multi-stage": 'CMD ["node", "dist/index.js"]',
    "single-stage": 'CMD ["node", "index.js"]',
}

_RUNTIME_USER = "node"

# ベースイメージのサフィックス置換（-alpine <-> -slim）
_VARIANT_SWAPS: tuple[tuple[str, str], ...] = (("-alpine", "-slim"), ("-slim", "-alpine"))


def runtime_image_for(base_image: str) -> str:
    """マルチステージビルドの実行ステージで使うイメージを導出する。

    末尾の"-alpine"を"-slim"に、"-slim"を"-alpine"に置換する。
    どちらでもない場合はベースイメージをそのまま使う。
    """
    for suffix, replacement in _VARIANT_SWAPS:
        if base_image.endswith(suffix):
            return base_image[: -len(suffix)] + replacement
    return base_image


def _render_env(variables: list[EnvironmentVariable]) -> str:
    # シークレットの値は出力に含めない
    lines = [
        f"# {var.key} - Set via secrets management" if var.is_secret else f'ENV {var.key}="{var.value}"'
        for var in variables
    ]
    return "\n".join(lines)


def _render_expose(ports: list[int]) -> str:
    return "\n".join(f"EXPOSE {port}" for port in ports)


def _render_healthcheck(health_check: HealthCheck | None) -> str:
    if health_check is None:
        return ""
    return _HEALTHCHECK.format(
        interval=health_check.interval_seconds,
        port=health_check.port,
        path=health_check.path,
    )


def render_dockerfile(config: ContainerConfig, service_name: str) -> str:
    """ContainerConfigからDockerfileテキストを生成する。

    同一入力に対して常にバイト単位で同一の出力を返す。

    Args:
        config: コンテナ設定。
        service_name: サービスの表示名。

    Returns:
        Dockerfileの内容。
    """
    if config.build_type == "multi-stage":
        header = _MULTI_STAGE_HEADER.format(
            service_name=service_name,
            base_image=config.base_image,
            runtime_image=runtime_image_for(config.base_image),
        )
    else:
        header = _SINGLE_STAGE_HEADER.format(service_name=service_name, base_image=config.base_image)

    footer = f"USER {_RUNTIME_USER}\n{_ENTRYPOINTS[config.build_type]}"

    sections = [
        header,
        _render_env(config.environment_variables),
        _render_expose(config.exposed_ports),
        _render_healthcheck(config.health_check),
        footer,
    ]
    return "\n\n".join(s for s in sections if s) + "\n"
