"""Prometheus counters and gauges for the realtime fan-out layer."""

from __future__ import annotations

from prometheus_client import Counter, Gauge

from ..monitoring.prometheus_metrics import REGISTRY

# Client events by name and how they ended (handled, dropped, unauthorized, error).
REALTIME_EVENTS_RECEIVED_TOTAL = Counter(
    "groupo_realtime_events_received_total",
    "Client events received on the live transport",
    ["event", "outcome"],
    registry=REGISTRY,
)

REALTIME_EVENTS_PUBLISHED_TOTAL = Counter(
    "groupo_realtime_events_published_total",
    "Server events published to rooms",
    ["event"],
    registry=REGISTRY,
)

# Outbox dispatch failures; the write they follow has already committed.
REALTIME_PUBLISH_FAILURES_TOTAL = Counter(
    "groupo_realtime_publish_failures_total",
    "Server events that failed to publish",
    ["event"],
    registry=REGISTRY,
)

REALTIME_CONNECTIONS = Gauge(
    "groupo_realtime_connections",
    "Live connections currently open in this process",
    registry=REGISTRY,
)

CONVERSATION_SUMMARY_FAILURES_TOTAL = Counter(
    "groupo_conversation_summary_failures_total",
    "Denormalized conversation summary updates that failed",
    registry=REGISTRY,
)
