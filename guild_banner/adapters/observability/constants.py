"""Constants for OpenTelemetry metrics."""

# Metric name prefixes
METRIC_PREFIX = "guild_banner"

# Upstream provider metrics
UPSTREAM_CALLS_TOTAL = f"{METRIC_PREFIX}.upstream.calls_total"
UPSTREAM_CALL_DURATION = f"{METRIC_PREFIX}.upstream.call_duration"
AUTH_LOGINS_TOTAL = f"{METRIC_PREFIX}.auth.logins_total"

# Aggregation metrics
DEGRADED_SOURCES_TOTAL = f"{METRIC_PREFIX}.sources.degraded_total"

# Rendering metrics
BANNERS_RENDERED_TOTAL = f"{METRIC_PREFIX}.banners.rendered_total"
BANNER_RENDER_DURATION = f"{METRIC_PREFIX}.banners.render_duration"

# Common label keys
LABEL_PROVIDER = "provider"
LABEL_ENDPOINT = "endpoint"
LABEL_STATUS_CODE = "status_code"
LABEL_ERROR_TYPE = "error_type"
LABEL_SOURCE = "source"
LABEL_OUTCOME = "outcome"
LABEL_THEME = "theme"
