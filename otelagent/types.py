"""Configuration data model for the observability agent."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta


@dataclass
class AuthConfig:
    """Authentication headers for OTLP exporters.

    ``headers`` are sent verbatim; ``headers_from_env`` maps a header name to
    the name of an environment variable that holds its value.
    """

    headers: dict[str, str] = field(default_factory=dict)
    headers_from_env: dict[str, str] = field(default_factory=dict)


@dataclass
class TLSConfig:
    """TLS settings for OTLP exporters."""

    insecure: bool = False
    ca_file: str = ""
    cert_file: str = ""
    key_file: str = ""
    insecure_skip_verify: bool = False
    min_version: str = ""


@dataclass
class ResourceConfig:
    """Resource attributes attached to all telemetry."""

    service_namespace: str = ""
    service_instance: str = ""
    deployment_environment: str = ""

    k8s_pod_name: str = ""
    k8s_pod_ip: str = ""
    k8s_namespace: str = ""
    k8s_node_name: str = ""
    k8s_cluster_name: str = ""

    container_name: str = ""
    container_id: str = ""

    custom_attributes: dict[str, str] = field(default_factory=dict)


@dataclass
class SamplingConfig:
    """Trace sampling strategy; ``per_route`` maps a route to its rate."""

    type: str = ""
    rate: float = 0.0
    per_route: dict[str, float] = field(default_factory=dict)


@dataclass
class TracesConfig:
    """Tracing behaviour."""

    enabled: bool = False
    sampling: SamplingConfig = field(default_factory=SamplingConfig)

    max_attributes_per_span: int = 0
    max_events_per_span: int = 0
    max_links_per_span: int = 0

    batch_timeout: timedelta = field(default_factory=timedelta)
    batch_size: int = 0
    queue_size: int = 0
    max_export_batch: int = 0

    excluded_paths: list[str] = field(default_factory=list)


@dataclass
class CardinalityConfig:
    """Controls on metric attribute cardinality."""

    drop_attributes: list[str] = field(default_factory=list)
    max_attribute_length: int = 0
    use_exponential_hist: bool = False


@dataclass
class MetricsConfig:
    """Metrics behaviour."""

    enabled: bool = False

    default_interval: timedelta = field(default_factory=timedelta)
    runtime_interval: timedelta = field(default_factory=timedelta)

    http: bool = False
    database: bool = False
    redis: bool = False
    amqp: bool = False
    runtime: bool = False
    business: bool = False

    cpu: bool = False
    memory: bool = False
    disk: bool = False

    http_latency_boundaries: list[float] = field(default_factory=list)
    db_latency_boundaries: list[float] = field(default_factory=list)

    cardinality: CardinalityConfig = field(default_factory=CardinalityConfig)


@dataclass
class LogsConfig:
    """Log export behaviour."""

    enabled: bool = False

    trace_correlation: bool = False
    span_correlation: bool = False
    export_levels: list[str] = field(default_factory=list)

    batch_timeout: timedelta = field(default_factory=timedelta)
    batch_size: int = 0
    queue_size: int = 0

    structured_fields: bool = False
    custom_fields: dict[str, str] = field(default_factory=dict)


@dataclass
class PerformanceConfig:
    """Resource budgets and export tuning."""

    max_memory_usage: int = 0
    memory_limit_percent: int = 0
    max_cpu_usage: float = 0.0
    worker_pool_size: int = 0
    queue_buffer_size: int = 0

    max_batch_size: int = 0
    flush_timeout: timedelta = field(default_factory=timedelta)
    retry_attempts: int = 0
    retry_backoff: timedelta = field(default_factory=timedelta)
    connection_pool: int = 0

    adaptive_sampling: bool = False
    error_sampling_boost: float = 0.0


@dataclass
class FeaturesConfig:
    """Feature switches."""

    auto_http: bool = False
    auto_database: bool = False
    auto_redis: bool = False
    auto_amqp: bool = False

    distributed_tracing: bool = False
    error_tracking: bool = False
    performance_monitor: bool = False
    business_metrics: bool = False

    health_checks: bool = False
    readiness_probes: bool = False
    liveness_probes: bool = False

    debug_mode: bool = False
    dry_run: bool = False


@dataclass
class RouteExclusionConfig:
    """Routes excluded from tracing and metrics."""

    exact_paths: list[str] = field(default_factory=list)
    prefix_paths: list[str] = field(default_factory=list)
    patterns: list[str] = field(default_factory=list)


@dataclass
class ScrubConfig:
    """PII scrubbing settings."""

    enabled: bool = False
    sensitive_keys: list[str] = field(default_factory=list)
    sensitive_patterns: list[str] = field(default_factory=list)
    redacted_value: str = ""
    db_statement_max_length: int = 0


@dataclass
class HTTPConfig:
    """HTTP request and response capture settings for spans."""

    capture_request_headers: bool = False
    capture_response_headers: bool = False
    allowed_request_headers: list[str] = field(default_factory=list)
    allowed_response_headers: list[str] = field(default_factory=list)
    capture_query_params: bool = False
    capture_request_body: bool = False
    capture_response_body: bool = False
    request_body_max_size: int = 0
    response_body_max_size: int = 0
    body_allowed_content_types: list[str] = field(default_factory=list)
    record_exception_events: bool = False
    sensitive_headers: list[str] = field(default_factory=list)


@dataclass
class Config:
    """Complete observability configuration."""

    enabled: bool = False
    service_name: str = ""
    namespace: str = ""
    version: str = ""
    environment: str = ""

    endpoint: str = ""
    exporter_protocol: str = ""
    insecure: bool = False
    timeout: timedelta = field(default_factory=timedelta)
    compression: str = ""

    auth: AuthConfig = field(default_factory=AuthConfig)
    tls: TLSConfig = field(default_factory=TLSConfig)
    resource: ResourceConfig = field(default_factory=ResourceConfig)

    traces: TracesConfig = field(default_factory=TracesConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    logs: LogsConfig = field(default_factory=LogsConfig)

    performance: PerformanceConfig = field(default_factory=PerformanceConfig)
    features: FeaturesConfig = field(default_factory=FeaturesConfig)
    route_exclusion: RouteExclusionConfig = field(default_factory=RouteExclusionConfig)
    scrub: ScrubConfig = field(default_factory=ScrubConfig)
    http: HTTPConfig = field(default_factory=HTTPConfig)

    def resolved_auth_headers(self) -> dict[str, str]:
        """Return the static auth headers merged with those read from the environment.

        A header taken from a non-empty environment variable overrides a static
        header of the same name; empty or unset variables are ignored.
        """
        headers = dict(self.auth.headers)
        for name, env_key in self.auth.headers_from_env.items():
            value = os.environ.get(env_key, "")
            if value:
                headers[name] = value
        return headers