"""OpenTelemetry metrics provider for the guild banner service."""

import logging
from typing import Optional

from opentelemetry import metrics
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import SERVICE_NAME, Resource

from ...config import Config
from .constants import (
    AUTH_LOGINS_TOTAL,
    BANNER_RENDER_DURATION,
    BANNERS_RENDERED_TOTAL,
    DEGRADED_SOURCES_TOTAL,
    LABEL_ENDPOINT,
    LABEL_ERROR_TYPE,
    LABEL_OUTCOME,
    LABEL_PROVIDER,
    LABEL_SOURCE,
    LABEL_STATUS_CODE,
    LABEL_THEME,
    UPSTREAM_CALL_DURATION,
    UPSTREAM_CALLS_TOTAL,
)

logger = logging.getLogger(__name__)


class MetricsProvider:
    """Manages OpenTelemetry metrics for the guild banner service.

    Every ``record_*`` method is a no-op until ``initialize()`` has run with
    ``otel_enabled`` set, so components can always be handed a provider.
    """

    def __init__(self, config: Config):
        """Initialize the metrics provider.

        Args:
            config: Application configuration
        """
        self.config = config
        self._meter_provider: Optional[MeterProvider] = None
        self._meter: Optional[metrics.Meter] = None
        self._initialized = False

        # Metric instruments - initialized in _create_instruments()
        self._upstream_calls_counter = None
        self._upstream_duration_histogram = None
        self._auth_logins_counter = None
        self._degraded_sources_counter = None
        self._banners_rendered_counter = None
        self._render_duration_histogram = None

    @property
    def enabled(self) -> bool:
        return self._initialized and self.config.otel_enabled and self._meter is not None

    def initialize(self) -> None:
        """Initialize the OpenTelemetry metrics provider."""
        if self._initialized:
            logger.warning("Metrics provider already initialized")
            return

        if not self.config.otel_enabled:
            logger.info("OpenTelemetry metrics disabled")
            self._initialized = True
            return

        try:
            resource = Resource.create({
                SERVICE_NAME: self.config.otel_service_name,
                "environment": self.config.environment.value,
            })

            if self.config.otel_exporter_type == "console":
                exporter = ConsoleMetricExporter()
                logger.info("Using console metric exporter")
            elif self.config.otel_exporter_type == "otlp":
                exporter = OTLPMetricExporter(
                    endpoint=self.config.otel_otlp_endpoint,
                    insecure=True,
                )
                logger.info(f"Using OTLP metric exporter: {self.config.otel_otlp_endpoint}")
            else:
                logger.info("Metrics export disabled (exporter_type='none')")
                self._initialized = True
                return

            reader = PeriodicExportingMetricReader(
                exporter=exporter,
                export_interval_millis=self.config.otel_export_interval_millis,
                export_timeout_millis=self.config.otel_export_timeout_millis,
            )

            self._meter_provider = MeterProvider(
                resource=resource,
                metric_readers=[reader],
            )
            self._meter = self._meter_provider.get_meter(__name__)

            self._create_instruments()

            self._initialized = True
            logger.info("Metrics provider initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize metrics provider: {e}")
            self._initialized = False
            raise

    def _create_instruments(self) -> None:
        """Create all metric instruments."""
        if not self._meter:
            return

        self._upstream_calls_counter = self._meter.create_counter(
            name=UPSTREAM_CALLS_TOTAL,
            description="Total number of upstream provider calls",
            unit="1",
        )

        self._upstream_duration_histogram = self._meter.create_histogram(
            name=UPSTREAM_CALL_DURATION,
            description="Duration of upstream provider calls in seconds",
            unit="s",
        )

        self._auth_logins_counter = self._meter.create_counter(
            name=AUTH_LOGINS_TOTAL,
            description="Total number of login exchanges with the authenticated provider",
            unit="1",
        )

        self._degraded_sources_counter = self._meter.create_counter(
            name=DEGRADED_SOURCES_TOTAL,
            description="Total number of sources replaced with placeholders",
            unit="1",
        )

        self._banners_rendered_counter = self._meter.create_counter(
            name=BANNERS_RENDERED_TOTAL,
            description="Total number of banner render attempts",
            unit="1",
        )

        self._render_duration_histogram = self._meter.create_histogram(
            name=BANNER_RENDER_DURATION,
            description="Duration of banner generation in seconds",
            unit="s",
        )

    def shutdown(self) -> None:
        """Shutdown the metrics provider and flush any pending metrics."""
        if self._meter_provider:
            try:
                self._meter_provider.shutdown()
                logger.info("Metrics provider shut down")
            except Exception as e:
                logger.error(f"Error shutting down metrics provider: {e}")

    # Upstream metrics

    def record_upstream_call(
        self,
        provider: str,
        endpoint: str,
        status_code: int,
        duration: float,
        error_type: Optional[str] = None,
    ) -> None:
        """Record one upstream call."""
        if not self.enabled:
            return

        labels = {
            LABEL_PROVIDER: provider,
            LABEL_ENDPOINT: endpoint,
            LABEL_STATUS_CODE: str(status_code),
        }
        if error_type:
            labels[LABEL_ERROR_TYPE] = error_type

        self._upstream_calls_counter.add(1, labels)
        self._upstream_duration_histogram.record(duration, labels)

    def record_login(self, outcome: str) -> None:
        """Record a login exchange (``success`` or ``failure``)."""
        if not self.enabled:
            return
        self._auth_logins_counter.add(1, {LABEL_OUTCOME: outcome})

    # Aggregation metrics

    def record_degraded_source(self, source: str, error_type: str) -> None:
        """Record a source replaced with its placeholder."""
        if not self.enabled:
            return
        self._degraded_sources_counter.add(1, {
            LABEL_SOURCE: source,
            LABEL_ERROR_TYPE: error_type,
        })

    # Rendering metrics

    def record_banner_rendered(self, theme: str, outcome: str, duration: float) -> None:
        """Record a banner generation attempt."""
        if not self.enabled:
            return
        labels = {LABEL_THEME: theme, LABEL_OUTCOME: outcome}
        self._banners_rendered_counter.add(1, labels)
        self._render_duration_histogram.record(duration, labels)
