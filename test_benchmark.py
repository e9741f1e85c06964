#!/usr/bin/env python
"""
Smoke tests for the benchmark script.
"""
import io
import unittest

from rich.console import Console

from benchmark import BenchmarkResult, print_results, run_benchmarks, time_it


class TestBenchmark(unittest.TestCase):

    def test_time_it_counts_runs(self):
        calls = []
        result = time_it("noop", lambda: calls.append(1), 5)
        # One warm-up call plus the timed runs
        self.assertEqual(len(calls), 6)
        self.assertEqual(result.runs, 5)
        self.assertGreaterEqual(result.total, 0.0)
        self.assertGreater(result.per_second, 0.0)

    def test_run_benchmarks(self):
        results = run_benchmarks(repeat=2, seed=0, workers=2)
        self.assertEqual(len(results), 6)
        self.assertTrue(all(r.runs >= 1 for r in results))
        self.assertIn("playout", results[0].name)

    def test_print_results(self):
        buffer = io.StringIO()
        console = Console(file=buffer, width=120, color_system=None)
        print_results([BenchmarkResult(name="playout", runs=4, total=0.002)], console)
        text = buffer.getvalue()
        self.assertIn("playout", text)
        self.assertIn("500.0", text)


if __name__ == "__main__":
    unittest.main()
