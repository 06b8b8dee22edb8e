"""Tests for the metrics registry."""

from __future__ import annotations

from hl_indexer import metrics


class TestRegistry:
    """Tests for metric exposition."""

    def test_generate_metrics_text_format(self) -> None:
        """Output is Prometheus text exposition."""
        output = metrics.generate_metrics().decode()

        assert "# HELP hl_sync_cycles_total" in output
        assert "# TYPE hl_tip_height gauge" in output

    def test_dedicated_registry(self) -> None:
        """Default process metrics are not exported."""
        assert "process_cpu_seconds_total" not in metrics.generate_metrics().decode()

    def test_labelled_counters(self) -> None:
        """Per-label series appear once used."""
        metrics.sync_stage_failures.labels(stage="probe-test").inc()

        value = metrics.REGISTRY.get_sample_value(
            "hl_sync_stage_failures_total", {"stage": "probe-test"}
        )

        assert value is not None
        assert value >= 1
