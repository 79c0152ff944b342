"""耐障害性パターン設定から利用コードのスニペットを生成する。"""

from keel.models.project import (
    BulkheadConfig,
    CircuitBreakerConfig,
    RateLimiterConfig,
    ResiliencePattern,
    RetryConfig,
    TimeoutConfig,
)

_EXECUTE_USAGE = "// Usage\nconst result = await {name}.execute(() => serviceCall());"

_RATE_LIMITER_USAGE = "// Usage\nawait rateLimiter.acquire();\nconst result = await serviceCall();"


def _number(value: float) -> str:
    """数値をJavaScriptリテラルとして出力する（整数値の小数点以下は省略）。"""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _block(title: str, variable: str, class_name: str, options: list[tuple[str, float]], usage: str) -> str:
    lines = [f"// {title} Configuration", f"const {variable} = new {class_name}({{"]
    lines += [f"  {key}: {_number(value)}," for key, value in options]
    lines.append("});")
    return "\n".join(lines) + "\n\n" + usage


def render_resilience_code(pattern: ResiliencePattern) -> str:
    """パターン種別に応じた設定・利用コードを生成する。

    同一入力に対して常に同一の出力を返す。

    Args:
        pattern: 耐障害性パターン。

    Returns:
        TypeScriptのコードスニペット。
    """
    config = pattern.config
    if isinstance(config, CircuitBreakerConfig):
        return _block(
            "Circuit Breaker",
            "circuitBreaker",
            "CircuitBreaker",
            [
                ("failureThreshold", config.failure_threshold),
                ("successThreshold", config.success_threshold),
                ("timeout", config.timeout_ms),
                ("halfOpenRequests", config.half_open_requests),
            ],
            _EXECUTE_USAGE.format(name="circuitBreaker"),
        )
    if isinstance(config, BulkheadConfig):
        return _block(
            "Bulkhead",
            "bulkhead",
            "Bulkhead",
            [
                ("maxConcurrent", config.max_concurrent),
                ("maxQueue", config.max_queue),
                ("queueTimeout", config.queue_timeout_ms),
            ],
            _EXECUTE_USAGE.format(name="bulkhead"),
        )
    if isinstance(config, RetryConfig):
        return _block(
            "Retry",
            "retryPolicy",
            "RetryPolicy",
            [
                ("maxAttempts", config.max_attempts),
                ("initialDelay", config.initial_delay_ms),
                ("maxDelay", config.max_delay_ms),
                ("backoffMultiplier", config.backoff_multiplier),
            ],
            _EXECUTE_USAGE.format(name="retryPolicy"),
        )
    if isinstance(config, TimeoutConfig):
        return _block(
            "Timeout",
            "timeoutPolicy",
            "TimeoutPolicy",
            [
                ("connectionTimeout", config.connection_timeout_ms),
                ("requestTimeout", config.request_timeout_ms),
            ],
            _EXECUTE_USAGE.format(name="timeoutPolicy"),
        )
    if isinstance(config, RateLimiterConfig):
        return _block(
            "Rate Limiter",
            "rateLimiter",
            "RateLimiter",
            [
                ("requestsPerSecond", config.requests_per_second),
                ("burstSize", config.burst_size),
            ],
            _RATE_LIMITER_USAGE,
        )
    return "// Unknown pattern type"
