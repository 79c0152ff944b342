"""可観測性設定からメトリクス・ログ・トレースの初期化コードを生成する。"""

from keel.models.project import LoggingConfig, MetricsConfig, ObservabilityConfig, TracingConfig

_METRICS = """// Metrics Setup
const metrics = new PrometheusMetrics({{
  endpoint: '{endpoint}',
  scrapeInterval: '{scrape_interval}',
  labels: {{ service: '{service}' }},
}});

// Custom metrics
const requestCounter = metrics.counter('http_requests_total', 'Total HTTP requests');
const requestDuration = metrics.histogram('http_request_duration_seconds', 'HTTP request latency');"""

_LOGGING = """// Logging Setup
const logger = new StructuredLogger({{
  level: '{level}',
  format: '{format}',
  service: '{service}',
}});

// Usage
logger.info('Request processed', {{ requestId, userId, duration }});"""

_TRACING = """// Distributed Tracing Setup
const tracer = new OpenTelemetryTracer({{
  serviceName: '{service}',
  samplingRate: {sampling_rate},
  exporter: '{exporter}',
}});

// Usage
const span = tracer.startSpan('processOrder');
try {{
  // ... operation
}} finally {{
  span.end();
}}"""

# 未設定の項目のフォールバック値
_DEFAULT_METRICS_ENDPOINT = "/metrics"
_DEFAULT_SCRAPE_INTERVAL = "15s"
_DEFAULT_SAMPLING_RATE = 0.1
_DEFAULT_EXPORTER = "otlp"


def _metrics_section(metrics: MetricsConfig, service: str) -> str:
    return _METRICS.format(
        endpoint=metrics.endpoint or _DEFAULT_METRICS_ENDPOINT,
        scrape_interval=metrics.scrape_interval or _DEFAULT_SCRAPE_INTERVAL,
        service=service,
    )


def _logging_section(logging_config: LoggingConfig, service: str) -> str:
    return _LOGGING.format(level=logging_config.level, format=logging_config.format, service=service)


def _tracing_section(tracing: TracingConfig, service: str) -> str:
    sampling_rate = tracing.sampling_rate if tracing.sampling_rate is not None else _DEFAULT_SAMPLING_RATE
    return _TRACING.format(
        service=service,
        sampling_rate=sampling_rate,
        exporter=tracing.exporter or _DEFAULT_EXPORTER,
    )


def render_observability_code(config: ObservabilityConfig, service_name: str) -> str:
    """有効化されている項目（metrics/logging/tracing）の初期化コードを生成する。

    無効な項目は出力しない。同一入力に対して常に同一の出力を返す。

    Args:
        config: 可観測性設定。
        service_name: サービスの表示名。

    Returns:
        TypeScriptのコードスニペット。
    """
    service = service_name.lower()
    sections = [f"// Observability Configuration for {service_name}"]
    if config.metrics.enabled:
        sections.append(_metrics_section(config.metrics, service))
    if config.logging.enabled:
        sections.append(_logging_section(config.logging, service))
    if config.tracing.enabled:
        sections.append(_tracing_section(config.tracing, service))
    return "\n\n".join(sections) + "\n"
