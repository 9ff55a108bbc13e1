"""Build the agent configuration from environment variables."""

from __future__ import annotations

import math
import os
import re
import socket
from datetime import timedelta
from fractions import Fraction
from urllib.parse import urlsplit

from otelagent.types import (
    AuthConfig,
    CardinalityConfig,
    Config,
    FeaturesConfig,
    HTTPConfig,
    LogsConfig,
    MetricsConfig,
    PerformanceConfig,
    ResourceConfig,
    RouteExclusionConfig,
    SamplingConfig,
    ScrubConfig,
    TLSConfig,
    TracesConfig,
)

DEFAULT_ENDPOINT = "signoz-otel-collector.signoz.svc.cluster.local:4317"

DEFAULT_EXCLUDED_PATHS = (
    "/health", "/healthz", "/health_check", "/metrics", "/ready", "/live",
)

DEFAULT_EXCLUDED_PATTERNS = (
    "/*/health", "/*/healthz", "/*/health_check",
    "/*/metrics", "/*/ready", "/*/live",
    "/*/*/health", "/*/*/healthz", "/*/*/health_check",
    "/*/*/metrics", "/*/*/ready", "/*/*/live",
)

DEFAULT_HTTP_LATENCY_BOUNDARIES = (
    0.005, 0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0,
)

DEFAULT_DB_LATENCY_BOUNDARIES = (
    0.001, 0.005, 0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0,
)

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_INT_RE = re.compile(r"[+-]?[0-9]+")

_DURATION_UNITS_NS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_DURATION_PART_RE = re.compile(r"([0-9]*(?:\.[0-9]*)?)([^0-9.]*)")

_SIGNOZ_HEADER_VARIABLE = "SIGNOZ_ACCESS_TOKEN"
_SIGNOZ_HEADER_NAME = "signoz-access-token"


def _env(key: str) -> str:
    return os.environ.get(key, "")


def _parse_int(value: str) -> int:
    if not _INT_RE.fullmatch(value):
        raise ValueError(f"invalid integer: {value!r}")
    number = int(value)
    if not _INT64_MIN <= number <= _INT64_MAX:
        raise ValueError(f"integer out of range: {value!r}")
    return number


def _parse_float(value: str) -> float:
    if not value or value != value.strip() or "_" in value:
        raise ValueError(f"invalid float: {value!r}")
    number = float(value)
    if math.isinf(number) and "inf" not in value.lower():
        raise ValueError(f"float out of range: {value!r}")
    return number


def parse_duration(value: str) -> timedelta:
    """Parse a duration such as ``"300ms"``, ``"1.5s"`` or ``"1h30m"``.

    Accepts an optional sign followed by one or more number-unit pairs, where
    the unit is one of ns, us, µs, ms, s, m or h. A bare ``"0"`` is allowed.
    Raises ValueError on anything else.
    """
    original = value
    negative = False
    if value[:1] in ("+", "-"):
        negative = value[0] == "-"
        value = value[1:]
    if value == "0":
        return timedelta(0)
    if not value:
        raise ValueError(f"invalid duration: {original!r}")

    total_ns = Fraction(0)
    pos = 0
    while pos < len(value):
        match = _DURATION_PART_RE.match(value, pos)
        number, unit = match.group(1), match.group(2)
        if not any(ch.isdigit() for ch in number):
            raise ValueError(f"invalid duration: {original!r}")
        if not unit:
            raise ValueError(f"missing unit in duration: {original!r}")
        if unit not in _DURATION_UNITS_NS:
            raise ValueError(f"unknown unit {unit!r} in duration: {original!r}")
        int_part, _, frac_part = number.partition(".")
        amount = Fraction(int(int_part or "0"))
        if frac_part:
            amount += Fraction(int(frac_part), 10 ** len(frac_part))
        total_ns += amount * _DURATION_UNITS_NS[unit]
        pos = match.end()

    limit = -_INT64_MIN if negative else _INT64_MAX
    if total_ns > limit:
        raise ValueError(f"duration out of range: {original!r}")

    micros = int(total_ns / 1000)
    return timedelta(microseconds=-micros if negative else micros)


def get_string_env(default: str, *keys: str) -> str:
    """Return the first non-empty variable among ``keys``, or ``default``."""
    for key in keys:
        value = _env(key)
        if value:
            return value
    return default


def get_bool_env(default: bool, *keys: str) -> bool:
    """Return the first non-empty variable among ``keys`` read as a flag.

    Only ``true``, ``1`` and ``yes`` count as true; any other non-empty value
    is false. With no variable set, ``default`` is returned.
    """
    for key in keys:
        value = _env(key)
        if value:
            return value in ("true", "1", "yes")
    return default


def get_int_env(key: str, default: int) -> int:
    """Return the variable as a decimal integer, or ``default`` if unset or invalid."""
    value = _env(key)
    if value:
        try:
            return _parse_int(value)
        except ValueError:
            pass
    return default


def get_float_env(key: str, default: float) -> float:
    """Return the variable as a float, or ``default`` if unset or invalid."""
    value = _env(key)
    if value:
        try:
            return _parse_float(value)
        except ValueError:
            pass
    return default


def get_duration_env(key: str, default: timedelta) -> timedelta:
    """Return the variable as a duration.

    A duration string is tried first, then a plain integer number of
    milliseconds; ``default`` is returned if neither parses.
    """
    value = _env(key)
    if value:
        try:
            return parse_duration(value)
        except ValueError:
            pass
        try:
            return timedelta(milliseconds=_parse_int(value))
        except (ValueError, OverflowError):
            pass
    return default


def get_string_list_env(key: str, default: list[str] | tuple[str, ...] | None) -> list[str]:
    """Return the comma-separated variable as a list of trimmed, non-empty items.

    ``default`` (or an empty list) is returned if the variable yields no items.
    """
    value = _env(key)
    if value:
        items = [part.strip() for part in value.split(",")]
        items = [item for item in items if item]
        if items:
            return items
    return list(default or [])


def get_float_list_env(key: str, default: list[float] | tuple[float, ...] | None) -> list[float]:
    """Return the comma-separated variable as floats, skipping invalid items.

    ``default`` (or an empty list) is returned if no item parses.
    """
    value = _env(key)
    if value:
        numbers = []
        for part in value.split(","):
            try:
                numbers.append(_parse_float(part.strip()))
            except ValueError:
                continue
        if numbers:
            return numbers
    return list(default or [])


def default_sampling_rate(env: str) -> float:
    """Return the default trace sampling rate for a deployment environment."""
    if env == "production":
        return 0.1
    if env == "staging":
        return 0.5
    return 1.0


def parse_key_value_pairs(value: str) -> dict[str, str]:
    """Parse ``"k1=v1,k2=v2"`` into a dict; entries without ``=`` are skipped."""
    result: dict[str, str] = {}
    if not value:
        return result
    for pair in value.split(","):
        name, sep, item = pair.partition("=")
        if sep:
            result[name.strip()] = item.strip()
    return result


def parse_per_route_sampling(value: str) -> dict[str, float]:
    """Parse ``"/route:0.5,/other:1"`` into a route-to-rate dict.

    Entries without ``:`` or with an unparsable rate are skipped.
    """
    result: dict[str, float] = {}
    if not value:
        return result
    for pair in value.split(","):
        route, sep, rate = pair.partition(":")
        if not sep:
            continue
        try:
            result[route.strip()] = _parse_float(rate.strip())
        except ValueError:
            continue
    return result


def strip_url_scheme(endpoint: str) -> str:
    """Return the host part of a URL endpoint, or the endpoint unchanged."""
    if not endpoint:
        return endpoint
    try:
        netloc = urlsplit(endpoint).netloc
    except ValueError:
        return endpoint
    host = netloc.rpartition("@")[2]
    return host or endpoint


def _hostname() -> str:
    try:
        return socket.gethostname() or "unknown"
    except OSError:
        return "unknown"


def _load_auth_config() -> AuthConfig:
    auth = AuthConfig()
    header_value = _env(_SIGNOZ_HEADER_VARIABLE)
    if header_value:
        auth.headers[_SIGNOZ_HEADER_NAME] = header_value
    auth.headers.update(parse_key_value_pairs(_env("OTEL_EXPORTER_OTLP_HEADERS")))
    return auth


def _load_tls_config() -> TLSConfig:
    return TLSConfig(
        insecure=get_bool_env(True, "OTEL_EXPORTER_OTLP_INSECURE"),
        ca_file=get_string_env("", "OTEL_EXPORTER_OTLP_CERTIFICATE"),
        cert_file=get_string_env("", "OTEL_EXPORTER_OTLP_CLIENT_CERTIFICATE"),
        key_file=get_string_env("", "OTEL_EXPORTER_OTLP_CLIENT_KEY"),
        insecure_skip_verify=get_bool_env(False, "OTEL_EXPORTER_OTLP_TLS_SKIP_VERIFY"),
        min_version=get_string_env("1.2", "OTEL_EXPORTER_OTLP_TLS_MIN_VERSION"),
    )


def _load_resource_config(env: str) -> ResourceConfig:
    return ResourceConfig(
        service_namespace=get_string_env("", "OTEL_SERVICE_NAMESPACE"),
        service_instance=get_string_env(_hostname(), "OTEL_SERVICE_INSTANCE"),
        deployment_environment=env,
        k8s_pod_name=get_string_env("", "POD_NAME", "K8S_POD_NAME"),
        k8s_pod_ip=get_string_env("", "POD_IP", "K8S_POD_IP"),
        k8s_namespace=get_string_env("", "POD_NAMESPACE", "K8S_NAMESPACE"),
        k8s_node_name=get_string_env("", "NODE_NAME", "K8S_NODE_NAME"),
        k8s_cluster_name=get_string_env("", "K8S_CLUSTER_NAME"),
        container_name=get_string_env("", "CONTAINER_NAME"),
        container_id=get_string_env("", "CONTAINER_ID"),
        custom_attributes=parse_key_value_pairs(_env("OTEL_RESOURCE_ATTRIBUTES")),
    )


def _load_traces_config(env: str) -> TracesConfig:
    return TracesConfig(
        enabled=get_bool_env(True, "OTEL_TRACES_ENABLED"),
        sampling=SamplingConfig(
            type=get_string_env("parent_based", "OTEL_TRACES_SAMPLER"),
            rate=get_float_env("OTEL_TRACES_SAMPLER_ARG", default_sampling_rate(env)),
            per_route=parse_per_route_sampling(_env("OTEL_TRACES_SAMPLING_ROUTES")),
        ),
        max_attributes_per_span=get_int_env("OTEL_SPAN_ATTRIBUTE_COUNT_LIMIT", 128),
        max_events_per_span=get_int_env("OTEL_SPAN_EVENT_COUNT_LIMIT", 128),
        max_links_per_span=get_int_env("OTEL_SPAN_LINK_COUNT_LIMIT", 128),
        batch_timeout=get_duration_env("OTEL_BSP_SCHEDULE_DELAY", timedelta(seconds=5)),
        batch_size=get_int_env("OTEL_BSP_MAX_EXPORT_BATCH_SIZE", 512),
        queue_size=get_int_env("OTEL_BSP_MAX_QUEUE_SIZE", 2048),
        max_export_batch=get_int_env("OTEL_BSP_EXPORT_BATCH_SIZE", 512),
        excluded_paths=get_string_list_env("OTEL_TRACES_EXCLUDED_PATHS", DEFAULT_EXCLUDED_PATHS),
    )


def _load_metrics_config() -> MetricsConfig:
    return MetricsConfig(
        enabled=get_bool_env(True, "OTEL_METRICS_ENABLED"),
        default_interval=get_duration_env("OTEL_METRIC_EXPORT_INTERVAL", timedelta(seconds=30)),
        runtime_interval=get_duration_env("OTEL_RUNTIME_METRIC_INTERVAL", timedelta(seconds=10)),
        http=get_bool_env(True, "OTEL_METRICS_HTTP_ENABLED"),
        database=get_bool_env(True, "OTEL_METRICS_DATABASE_ENABLED"),
        redis=get_bool_env(True, "OTEL_METRICS_REDIS_ENABLED"),
        amqp=get_bool_env(True, "OTEL_METRICS_AMQP_ENABLED"),
        runtime=get_bool_env(True, "OTEL_METRICS_RUNTIME_ENABLED"),
        business=get_bool_env(True, "OTEL_METRICS_BUSINESS_ENABLED"),
        cpu=get_bool_env(True, "OTEL_METRICS_CPU_ENABLED"),
        memory=get_bool_env(True, "OTEL_METRICS_MEMORY_ENABLED"),
        disk=get_bool_env(False, "OTEL_METRICS_DISK_ENABLED"),
        http_latency_boundaries=get_float_list_env(
            "OTEL_HTTP_LATENCY_BOUNDARIES", DEFAULT_HTTP_LATENCY_BOUNDARIES
        ),
        db_latency_boundaries=get_float_list_env(
            "OTEL_DB_LATENCY_BOUNDARIES", DEFAULT_DB_LATENCY_BOUNDARIES
        ),
        cardinality=CardinalityConfig(
            drop_attributes=get_string_list_env(
                "OTEL_METRICS_DROP_ATTRIBUTES", ["error_message", "user_id"]
            ),
            max_attribute_length=get_int_env("OTEL_METRICS_MAX_ATTR_LENGTH", 256),
            use_exponential_hist=get_bool_env(False, "OTEL_METRICS_EXPONENTIAL_HIST"),
        ),
    )


def _load_logs_config() -> LogsConfig:
    return LogsConfig(
        enabled=get_bool_env(True, "OTEL_LOGS_ENABLED"),
        trace_correlation=get_bool_env(True, "OTEL_LOGS_TRACE_CORRELATION"),
        span_correlation=get_bool_env(True, "OTEL_LOGS_SPAN_CORRELATION"),
        export_levels=get_string_list_env("OTEL_LOGS_EXPORT_LEVELS", ["info", "warn", "error"]),
        batch_timeout=get_duration_env("OTEL_BLRP_SCHEDULE_DELAY", timedelta(seconds=5)),
        batch_size=get_int_env("OTEL_BLRP_MAX_EXPORT_BATCH_SIZE", 512),
        queue_size=get_int_env("OTEL_BLRP_MAX_QUEUE_SIZE", 2048),
        structured_fields=get_bool_env(True, "OTEL_LOGS_STRUCTURED"),
        custom_fields=parse_key_value_pairs(_env("OTEL_LOGS_CUSTOM_FIELDS")),
    )


def _load_performance_config() -> PerformanceConfig:
    return PerformanceConfig(
        max_memory_usage=get_int_env("OTEL_MAX_MEMORY_USAGE", 128 * 1024 * 1024),
        memory_limit_percent=get_int_env("OTEL_MEMORY_LIMIT_PERCENT", 10),
        max_cpu_usage=get_float_env("OTEL_MAX_CPU_USAGE", 0.1),
        worker_pool_size=get_int_env("OTEL_WORKER_POOL_SIZE", 4),
        queue_buffer_size=get_int_env("OTEL_QUEUE_BUFFER_SIZE", 1000),
        max_batch_size=get_int_env("OTEL_MAX_BATCH_SIZE", 1000),
        flush_timeout=get_duration_env("OTEL_FLUSH_TIMEOUT", timedelta(seconds=5)),
        retry_attempts=get_int_env("OTEL_RETRY_ATTEMPTS", 3),
        retry_backoff=get_duration_env("OTEL_RETRY_BACKOFF", timedelta(seconds=1)),
        connection_pool=get_int_env("OTEL_CONNECTION_POOL", 5),
        adaptive_sampling=get_bool_env(True, "OTEL_ADAPTIVE_SAMPLING"),
        error_sampling_boost=get_float_env("OTEL_ERROR_SAMPLING_BOOST", 5.0),
    )


def _load_features_config(env: str) -> FeaturesConfig:
    return FeaturesConfig(
        auto_http=get_bool_env(True, "OTEL_AUTO_HTTP"),
        auto_database=get_bool_env(True, "OTEL_AUTO_DATABASE"),
        auto_redis=get_bool_env(True, "OTEL_AUTO_REDIS"),
        auto_amqp=get_bool_env(True, "OTEL_AUTO_AMQP"),
        distributed_tracing=get_bool_env(True, "OTEL_DISTRIBUTED_TRACING"),
        error_tracking=get_bool_env(True, "OTEL_ERROR_TRACKING"),
        performance_monitor=get_bool_env(True, "OTEL_PERFORMANCE_MONITOR"),
        business_metrics=get_bool_env(True, "OTEL_BUSINESS_METRICS"),
        health_checks=get_bool_env(True, "OTEL_HEALTH_CHECKS"),
        readiness_probes=get_bool_env(True, "OTEL_READINESS_PROBES"),
        liveness_probes=get_bool_env(True, "OTEL_LIVENESS_PROBES"),
        debug_mode=get_bool_env(env == "development", "OTEL_DEBUG_MODE"),
        dry_run=get_bool_env(False, "OTEL_DRY_RUN"),
    )


def _load_route_exclusion_config() -> RouteExclusionConfig:
    return RouteExclusionConfig(
        exact_paths=get_string_list_env("OTEL_TRACES_EXCLUDED_PATHS", DEFAULT_EXCLUDED_PATHS),
        prefix_paths=get_string_list_env("OTEL_TRACES_EXCLUDED_PREFIXES", None),
        patterns=get_string_list_env("OTEL_TRACES_EXCLUDED_PATTERNS", DEFAULT_EXCLUDED_PATTERNS),
    )


def _load_scrub_config() -> ScrubConfig:
    return ScrubConfig(
        enabled=get_bool_env(False, "OTEL_PII_SCRUB_ENABLED"),
        sensitive_keys=get_string_list_env(
            "OTEL_PII_SENSITIVE_KEYS", ["password", "token", "secret", "key", "email"]
        ),
        sensitive_patterns=get_string_list_env(
            "OTEL_PII_SENSITIVE_PATTERNS", [".*password.*", ".*token.*", ".*secret.*"]
        ),
        redacted_value=get_string_env("[REDACTED]", "OTEL_PII_REDACTED_VALUE"),
        db_statement_max_length=get_int_env("OTEL_PII_DB_STATEMENT_MAX_LENGTH", 2048),
    )


def _load_http_config() -> HTTPConfig:
    return HTTPConfig(
        capture_request_headers=get_bool_env(True, "OTEL_HTTP_CAPTURE_REQUEST_HEADERS"),
        capture_response_headers=get_bool_env(True, "OTEL_HTTP_CAPTURE_RESPONSE_HEADERS"),
        allowed_request_headers=get_string_list_env("OTEL_HTTP_ALLOWED_REQUEST_HEADERS", None),
        allowed_response_headers=get_string_list_env("OTEL_HTTP_ALLOWED_RESPONSE_HEADERS", None),
        capture_query_params=get_bool_env(True, "OTEL_HTTP_CAPTURE_QUERY_PARAMS"),
        capture_request_body=get_bool_env(False, "OTEL_HTTP_CAPTURE_REQUEST_BODY"),
        capture_response_body=get_bool_env(False, "OTEL_HTTP_CAPTURE_RESPONSE_BODY"),
        request_body_max_size=get_int_env("OTEL_HTTP_REQUEST_BODY_MAX_SIZE", 8192),
        response_body_max_size=get_int_env("OTEL_HTTP_RESPONSE_BODY_MAX_SIZE", 8192),
        body_allowed_content_types=get_string_list_env(
            "OTEL_HTTP_BODY_ALLOWED_CONTENT_TYPES",
            ["application/json", "application/xml", "text/plain"],
        ),
        record_exception_events=get_bool_env(True, "OTEL_HTTP_RECORD_EXCEPTION_EVENTS"),
        sensitive_headers=get_string_list_env(
            "OTEL_HTTP_SENSITIVE_HEADERS",
            ["authorization", "cookie", "set-cookie", "x-api-key", "x-auth-token"],
        ),
    )


def load_config_from_env() -> Config:
    """Return a configuration read from environment variables, with defaults."""
    env = get_string_env("development", "ENV", "DEPLOYMENT_ENVIRONMENT")
    return Config(
        enabled=get_bool_env(True, "SIGNOZ_ENABLED", "OTEL_ENABLED"),
        service_name=get_string_env("", "OTEL_SERVICE_NAME"),
        namespace=get_string_env("", "OTEL_SERVICE_NAMESPACE"),
        version=get_string_env("0.0.0", "OTEL_SERVICE_VERSION", "VERSION"),
        environment=env,
        endpoint=strip_url_scheme(get_string_env(DEFAULT_ENDPOINT, "OTEL_EXPORTER_OTLP_ENDPOINT")),
        exporter_protocol=get_string_env("grpc", "OTEL_EXPORTER_OTLP_PROTOCOL"),
        insecure=get_bool_env(True, "OTEL_EXPORTER_OTLP_INSECURE"),
        timeout=get_duration_env("OTEL_EXPORTER_OTLP_TIMEOUT", timedelta(seconds=10)),
        compression=get_string_env("gzip", "OTEL_EXPORTER_OTLP_COMPRESSION"),
        auth=_load_auth_config(),
        tls=_load_tls_config(),
        resource=_load_resource_config(env),
        traces=_load_traces_config(env),
        metrics=_load_metrics_config(),
        logs=_load_logs_config(),
        performance=_load_performance_config(),
        features=_load_features_config(env),
        route_exclusion=_load_route_exclusion_config(),
        scrub=_load_scrub_config(),
        http=_load_http_config(),
    )