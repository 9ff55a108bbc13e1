# otelagent

Configuration and metric collectors for an observability agent. The
configuration is read from the standard `OTEL_*` environment variables, with
a default for every setting. The collectors record interpreter, business,
performance and system metrics on a meter that you supply, each in its own
background thread.

## Installation

```
pip install otelagent
```

To run the test suite:

```
pip install "otelagent[test]"
pytest
```

## Configuration

`otelagent.env.load_config_from_env()` builds an `otelagent.types.Config` from
the process environment:

```python
from otelagent.env import load_config_from_env

config = load_config_from_env()
print(config.service_name, config.endpoint, config.environment)
print(config.traces.sampling.rate)         # 1.0 in development, 0.5 in staging, 0.1 in production
print(config.route_exclusion.exact_paths)  # ["/health", "/healthz", ...]
print(config.metrics.default_interval)     # a datetime.timedelta, 30 seconds by default
```

`Config` is a dataclass made of smaller dataclasses: `AuthConfig`,
`TLSConfig`, `ResourceConfig`, `TracesConfig` (with `SamplingConfig`),
`MetricsConfig` (with `CardinalityConfig`), `LogsConfig`,
`PerformanceConfig`, `FeaturesConfig`, `RouteExclusionConfig`,
`ScrubConfig` and `HTTPConfig`, all in `otelagent.types`. Durations are
`datetime.timedelta` values.

Some of the variables read:

| Variable | Meaning | Default |
| --- | --- | --- |
| `OTEL_ENABLED` / `SIGNOZ_ENABLED` | turn observability on or off | `true` |
| `OTEL_SERVICE_NAME` | service name | empty |
| `OTEL_SERVICE_VERSION` / `VERSION` | service version | `0.0.0` |
| `ENV` / `DEPLOYMENT_ENVIRONMENT` | deployment environment | `development` |
| `OTEL_EXPORTER_OTLP_ENDPOINT` | collector address; a URL is reduced to its host and port | `signoz-otel-collector.signoz.svc.cluster.local:4317` |
| `OTEL_EXPORTER_OTLP_HEADERS` | extra exporter headers as `k=v,k=v` | none |
| `SIGNOZ_ACCESS_TOKEN` | sent as the `signoz-access-token` header | none |
| `OTEL_TRACES_SAMPLER_ARG` | trace sampling rate | depends on the environment |
| `OTEL_TRACES_SAMPLING_ROUTES` | per-route rates as `/route:0.5,/other:1` | none |
| `OTEL_METRIC_EXPORT_INTERVAL` | default collection interval | `30s` |
| `OTEL_RUNTIME_METRIC_INTERVAL` | runtime collection interval | `10s` |

Flags count as true only when set to `true`, `1` or `yes`. Durations accept
forms such as `500ms`, `1.5s`, `1m30s` and `2h`; a bare integer is read as
milliseconds. A value that does not parse falls back to the default. List
variables are comma separated; empty items are dropped.

Auth headers can also be taken from other environment variables.
`Config.resolved_auth_headers()` merges the static headers with the non-empty
ones of those:

```python
config.auth.headers_from_env["authorization"] = "COLLECTOR_AUTH"
headers = config.resolved_auth_headers()
```

The helpers in `otelagent.env` can be used on their own: `get_string_env`,
`get_bool_env`, `get_int_env`, `get_float_env`, `get_duration_env`,
`get_string_list_env`, `get_float_list_env`, `parse_duration`,
`default_sampling_rate`, `parse_key_value_pairs`, `parse_per_route_sampling`
and `strip_url_scheme`. `parse_duration` raises `ValueError` on a malformed
duration.

## Metric collectors

Each collector takes a meter and an interval (a `timedelta`). The meter is
any object with `create_counter`, `create_gauge` and `create_histogram`
methods accepting a name and the keyword arguments `unit` and `description`.
The instruments they return are used as follows: counters with
`add(value)` or `add(value, attributes)`, gauges with `set(value)` and
histograms with `record(value)`.

- `otelagent.runtime.RuntimeCollector` samples interpreter statistics:
  tracemalloc memory (when tracing), peak resident set size, allocated
  blocks, pending GC objects, GC collections, GC pause time, thread count and
  the fraction of CPU time spent in GC. `record()` takes one sample.
- `otelagent.business.BusinessCollector` creates business instruments
  (`active_users`, `request_rate`, `feature_usage_total`, ...).
  `record_feature_usage(feature)` counts one use of a feature.
  `create_custom_counter`, `create_custom_gauge` and
  `create_custom_histogram` create a named instrument on first use and
  return the same one on later calls.
- `otelagent.performance.PerformanceCollector` creates latency percentile,
  throughput, CPU, memory and cache gauges for your own code to set.
- `otelagent.system.SystemCollector` creates connection, queue and health
  gauges and records `uptime_seconds`; `record()` records it once. An
  optional `clock` argument supplies monotonic seconds.

Each has a `collect(stop)` method that runs until the given
`threading.Event` is set, and raises `ValueError` for a non-positive
interval.

`otelagent.collector.MetricCollector` runs the collectors you pass it, each
in a daemon thread:

```python
from datetime import timedelta
from otelagent.collector import MetricCollector
from otelagent.runtime import RuntimeCollector
from otelagent.system import SystemCollector

with MetricCollector(
    runtime=RuntimeCollector(meter, timedelta(seconds=10)),
    system=SystemCollector(meter, timedelta(seconds=30)),
) as collector:
    assert collector.running
    ...
```

`start()` on a collector that is already running raises `RuntimeError`;
`stop()` on one that is not running does nothing. `stop()` waits for the
threads to finish. An optional `logging.Logger` can be passed as `logger`.
`CollectorConfig` is a dataclass that records which sub-collectors are
enabled and their intervals.

## What this package does not do

It does not export telemetry. There are no trace, metric or log providers,
no OTLP exporters, and no agent object with a start-up and shutdown
lifecycle or health and readiness checks. It reads the configuration such a
setup would use and records metrics on whatever meter you hand it.