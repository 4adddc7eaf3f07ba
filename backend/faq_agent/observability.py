"""Lightweight observability helpers (metrics)."""

from __future__ import annotations

import logging
from collections import defaultdict
from threading import Lock
from typing import Iterable, Protocol

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

from faq_agent.core.config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_BUCKETS_MS = [1, 5, 10, 50, 100, 250, 500, 1000, 2500, 5000, 10000]


class MetricsBackend(Protocol):
    """Metrics backend interface."""

    def observe_external_api(
        self,
        provider: str,
        operation: str,
        status_code: int,
        duration_ms: float,
    ) -> None:
        ...

    def observe_retrieval(
        self,
        builder: str,
        documents: int,
        fallback: bool,
        duration_ms: float,
    ) -> None:
        ...

    def render_prometheus(self) -> str:
        ...


class MetricsCollector:
    """In-process metrics collector with Prometheus text output."""

    def __init__(self, buckets_ms: Iterable[int] | None = None) -> None:
        self._lock = Lock()
        self._external_counts: dict[tuple[str, str, str], int] = defaultdict(int)
        self._external_duration_sum_ms: dict[tuple[str, str], float] = defaultdict(float)
        self._external_duration_count: dict[tuple[str, str], int] = defaultdict(int)
        self._external_duration_buckets: dict[tuple[str, str], dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )
        self._retrieval_counts: dict[tuple[str, str], int] = defaultdict(int)
        self._retrieval_documents: dict[str, int] = defaultdict(int)
        self._retrieval_duration_sum_ms: dict[str, float] = defaultdict(float)
        self._retrieval_duration_count: dict[str, int] = defaultdict(int)
        self._retrieval_duration_buckets: dict[str, dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )
        self._buckets_ms = list(buckets_ms or DEFAULT_BUCKETS_MS)

    def observe_external_api(
        self,
        provider: str,
        operation: str,
        status_code: int,
        duration_ms: float,
    ) -> None:
        """Record an external API call observation."""
        duration_key = (provider, operation)
        bucket_key = self._bucket_for(duration_ms)
        status = str(status_code)

        with self._lock:
            self._external_counts[(provider, operation, status)] += 1
            self._external_duration_sum_ms[duration_key] += duration_ms
            self._external_duration_count[duration_key] += 1
            self._external_duration_buckets[duration_key][bucket_key] += 1

    def observe_retrieval(
        self,
        builder: str,
        documents: int,
        fallback: bool,
        duration_ms: float,
    ) -> None:
        """Record one context retrieval."""
        outcome = "fallback" if fallback else "matched"
        bucket_key = self._bucket_for(duration_ms)

        with self._lock:
            self._retrieval_counts[(builder, outcome)] += 1
            self._retrieval_documents[builder] += documents
            self._retrieval_duration_sum_ms[builder] += duration_ms
            self._retrieval_duration_count[builder] += 1
            self._retrieval_duration_buckets[builder][bucket_key] += 1

    def render_prometheus(self) -> str:
        """Render metrics in Prometheus text format."""
        lines: list[str] = [
            "# HELP external_api_requests_total External API requests",
            "# TYPE external_api_requests_total counter",
        ]
        with self._lock:
            for (provider, operation, status), count in sorted(self._external_counts.items()):
                lines.append(
                    "external_api_requests_total"
                    f'{{provider="{provider}",operation="{operation}",status="{status}"}} {count}'
                )

            lines.extend(
                [
                    "# HELP external_api_duration_ms External API duration in milliseconds",
                    "# TYPE external_api_duration_ms histogram",
                ]
            )
            for (provider, operation), total in sorted(self._external_duration_sum_ms.items()):
                buckets = self._external_duration_buckets[(provider, operation)]
                labels = f'provider="{provider}",operation="{operation}"'
                lines.extend(self._histogram_lines("external_api_duration_ms", labels, buckets))
                count = self._external_duration_count[(provider, operation)]
                lines.append(f"external_api_duration_ms_sum{{{labels}}} {total:.2f}")
                lines.append(f"external_api_duration_ms_count{{{labels}}} {count}")

            lines.extend(
                [
                    "# HELP context_retrievals_total Context retrievals by outcome",
                    "# TYPE context_retrievals_total counter",
                ]
            )
            for (builder, outcome), count in sorted(self._retrieval_counts.items()):
                lines.append(
                    f'context_retrievals_total{{builder="{builder}",outcome="{outcome}"}} {count}'
                )

            lines.extend(
                [
                    "# HELP context_documents_total Documents placed in model context",
                    "# TYPE context_documents_total counter",
                ]
            )
            for builder, count in sorted(self._retrieval_documents.items()):
                lines.append(f'context_documents_total{{builder="{builder}"}} {count}')

            lines.extend(
                [
                    "# HELP context_retrieval_duration_ms Context retrieval duration in milliseconds",
                    "# TYPE context_retrieval_duration_ms histogram",
                ]
            )
            for builder, total in sorted(self._retrieval_duration_sum_ms.items()):
                labels = f'builder="{builder}"'
                lines.extend(
                    self._histogram_lines(
                        "context_retrieval_duration_ms",
                        labels,
                        self._retrieval_duration_buckets[builder],
                    )
                )
                count = self._retrieval_duration_count[builder]
                lines.append(f"context_retrieval_duration_ms_sum{{{labels}}} {total:.2f}")
                lines.append(f"context_retrieval_duration_ms_count{{{labels}}} {count}")
        return "\n".join(lines) + "\n"

    def _histogram_lines(self, name: str, labels: str, buckets: dict[str, int]) -> list[str]:
        lines: list[str] = []
        cumulative = 0
        for bound in self._buckets_ms:
            cumulative += buckets.get(str(bound), 0)
            lines.append(f'{name}_bucket{{{labels},le="{bound}"}} {cumulative}')
        cumulative += buckets.get("+Inf", 0)
        lines.append(f'{name}_bucket{{{labels},le="+Inf"}} {cumulative}')
        return lines

    def _bucket_for(self, duration_ms: float) -> str:
        for bound in self._buckets_ms:
            if duration_ms <= bound:
                return str(bound)
        return "+Inf"


class PrometheusMetrics:
    """Prometheus client-based metrics backend."""

    def __init__(self, buckets_ms: Iterable[int]) -> None:
        self._registry = CollectorRegistry()
        self._buckets_ms = list(buckets_ms)

        self._external_api_requests_total = Counter(
            "external_api_requests_total",
            "External API requests",
            ["provider", "operation", "status"],
            registry=self._registry,
        )
        self._external_api_duration_ms = Histogram(
            "external_api_duration_ms",
            "External API duration in milliseconds",
            ["provider", "operation"],
            buckets=self._buckets_ms,
            registry=self._registry,
        )
        self._context_retrievals_total = Counter(
            "context_retrievals_total",
            "Context retrievals by outcome",
            ["builder", "outcome"],
            registry=self._registry,
        )
        self._context_documents_total = Counter(
            "context_documents_total",
            "Documents placed in model context",
            ["builder"],
            registry=self._registry,
        )
        self._context_retrieval_duration_ms = Histogram(
            "context_retrieval_duration_ms",
            "Context retrieval duration in milliseconds",
            ["builder"],
            buckets=self._buckets_ms,
            registry=self._registry,
        )

    def observe_external_api(
        self,
        provider: str,
        operation: str,
        status_code: int,
        duration_ms: float,
    ) -> None:
        self._external_api_requests_total.labels(
            provider, operation, str(status_code)
        ).inc()
        self._external_api_duration_ms.labels(provider, operation).observe(duration_ms)

    def observe_retrieval(
        self,
        builder: str,
        documents: int,
        fallback: bool,
        duration_ms: float,
    ) -> None:
        outcome = "fallback" if fallback else "matched"
        self._context_retrievals_total.labels(builder, outcome).inc()
        if documents > 0:
            self._context_documents_total.labels(builder).inc(documents)
        self._context_retrieval_duration_ms.labels(builder).observe(duration_ms)

    def render_prometheus(self) -> str:
        return generate_latest(self._registry).decode("utf-8")


_metrics_backend: MetricsBackend | None = None


def get_metrics_backend() -> MetricsBackend:
    """Return a cached metrics backend instance."""
    global _metrics_backend
    if _metrics_backend is None:
        settings = get_settings()
        _metrics_backend = _build_metrics_backend(settings.metrics_backend)
    return _metrics_backend


def _build_metrics_backend(backend: str) -> MetricsBackend:
    if backend == "prometheus":
        return PrometheusMetrics(DEFAULT_BUCKETS_MS)
    if backend != "inmemory":
        logger.warning("Unknown metrics backend %r, using in-memory metrics", backend)
    return MetricsCollector(DEFAULT_BUCKETS_MS)
