from unittest import TestCase

import pytest

from openapi_schema_resolver.pipeline.instrumentation import CacheMetrics, PerformanceTracker


class TestPerformanceTracker(TestCase):
    """Timers, counters and reports"""

    def setUp(self):
        self.tracker = PerformanceTracker(enabled=True)

    def test_timer(self):
        self.tracker.start_timer("schemaResolution")
        duration = self.tracker.end_timer("schemaResolution")

        self.assertGreaterEqual(duration, 0.0)
        self.assertEqual(self.tracker.metrics.schema_resolution_time, duration)

    def test_timer_not_started(self):
        with self.assertRaises(ValueError) as ctx:
            self.tracker.end_timer("schemaResolution")
        self.assertEqual(str(ctx.exception), "Timer 'schemaResolution' was not started")

    def test_track_accumulates(self):
        with self.tracker.track("cacheOperation"):
            pass
        with self.tracker.track("cacheOperation"):
            pass

        self.assertGreaterEqual(self.tracker.metrics.cache_operation_time, 0.0)

    def test_memory_cleanup_is_counted(self):
        with self.tracker.track("memoryCleanup"):
            pass

        self.assertEqual(self.tracker.metrics.memory_cleanup_count, 1)

    def test_cache_counters(self):
        self.tracker.record_cache_hit("reference")
        self.tracker.record_cache_hit("reference")
        self.tracker.record_cache_miss("reference")
        self.tracker.record_cache_eviction("schema", 4)

        reference = self.tracker.cache_metrics["reference"]
        self.assertEqual(reference.total_requests, 3)
        self.assertAlmostEqual(reference.hit_rate, 2 / 3)
        self.assertEqual(self.tracker.cache_metrics["schema"].evictions, 4)
        self.assertEqual(self.tracker.overall_cache_metrics().hits, 2)

    def test_unknown_eviction_source_is_ignored(self):
        self.tracker.record_cache_eviction("failure", 3)

        self.assertEqual(self.tracker.overall_cache_metrics().evictions, 0)

    def test_disabled_tracker_records_nothing(self):
        tracker = PerformanceTracker(enabled=False)
        tracker.record_cache_hit("schema")
        tracker.record_schema_processed()
        tracker.take_memory_snapshot()
        tracker.start_timer("schemaResolution")

        self.assertEqual(tracker.end_timer("schemaResolution"), 0.0)
        self.assertEqual(tracker.cache_metrics["schema"].hits, 0)
        self.assertEqual(tracker.metrics.schemas_processed, 0)
        self.assertEqual(tracker.memory_snapshots, [])

    def test_tracking_session(self):
        self.tracker.start_tracking()
        self.tracker.record_schema_processed()
        self.tracker.end_tracking()

        self.assertEqual(len(self.tracker.memory_snapshots), 2)
        self.assertGreater(self.tracker.metrics.peak_memory_usage, 0)
        self.assertGreaterEqual(self.tracker.metrics.total_processing_time, 0.0)

    def test_reset(self):
        self.tracker.record_cache_hit("schema")
        self.tracker.record_schema_processed()
        self.tracker.reset()

        self.assertEqual(self.tracker.metrics.schemas_processed, 0)
        self.assertEqual(self.tracker.cache_metrics["schema"].hits, 0)

    def test_report_structure(self):
        self.tracker.record_cache_hit("composition")
        self.tracker.record_schema_processed()

        report = self.tracker.get_performance_report()

        self.assertEqual(set(report), {"summary", "cache", "memory", "efficiency"})
        self.assertEqual(set(report["cache"]), {"schema", "composition", "reference", "overall"})
        self.assertEqual(report["summary"]["schemas_processed"], 1)
        self.assertEqual(report["efficiency"]["cache_efficiency"], 1.0)

    def test_formatted_report(self):
        self.tracker.start_tracking()
        self.tracker.record_cache_hit("reference")
        self.tracker.record_cache_miss("reference")
        self.tracker.end_tracking()

        text = self.tracker.generate_formatted_report()

        self.assertTrue(text.startswith("=== PERFORMANCE REPORT ==="))
        for section in ["SUMMARY", "EFFICIENCY", "CACHE PERFORMANCE", "MEMORY USAGE", "TIMING BREAKDOWN"]:
            self.assertIn(section, text)
        self.assertIn("Reference Cache: 50.0% hit rate (1/2)", text)


@pytest.mark.parametrize("hits, misses, rate", [(0, 0, 0.0), (1, 0, 1.0), (1, 3, 0.25)])
def test_hit_rate(hits, misses, rate):
    assert CacheMetrics(hits=hits, misses=misses).hit_rate == rate
