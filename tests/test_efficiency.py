"""
Tests for per-sample efficiency factors, aggregation, windowed trends and
recommendations.
"""

import dataclasses

import pytest

from conftest import make_sample, make_series
from gpuscope.analyzers.efficiency import EfficiencyCalculator, EfficiencyMetrics
from gpuscope.runtime.settings import EfficiencySettings, EfficiencyWeights


def _metrics(compute, memory, power, thermal, overall=0.0):
    return EfficiencyMetrics(
        compute_efficiency=compute,
        memory_efficiency=memory,
        power_efficiency=power,
        thermal_efficiency=thermal,
        overall_efficiency=overall,
    )


class TestFactors:

    def test_compute_against_baseline_clock(self, small_baseline):
        calc = EfficiencyCalculator(baseline=small_baseline)
        assert calc.compute_efficiency(make_sample(utilGPU=80.0, smClock=2000.0)) == pytest.approx(80.0)
        assert calc.compute_efficiency(make_sample(utilGPU=80.0, smClock=1000.0)) == pytest.approx(40.0)

    def test_compute_default_clock_without_baseline(self):
        calc = EfficiencyCalculator()
        assert calc.base_clock == 1500.0
        assert calc.compute_efficiency(make_sample(utilGPU=80.0, smClock=1500.0)) == pytest.approx(80.0)

    def test_compute_can_exceed_100_when_boosting(self):
        calc = EfficiencyCalculator()
        assert calc.compute_efficiency(make_sample(utilGPU=100.0, smClock=3000.0)) == pytest.approx(200.0)

    def test_memory(self):
        calc = EfficiencyCalculator()
        sample = make_sample(utilMemory=50.0, memoryBandwidth=500.0)
        assert calc.memory_efficiency(sample) == pytest.approx(25.0)

    def test_power(self):
        calc = EfficiencyCalculator()
        assert calc.power_efficiency(make_sample(utilGPU=80.0, power=200.0)) == pytest.approx(40.0)

    def test_power_fallback_when_unreported(self):
        calc = EfficiencyCalculator()
        assert calc.power_efficiency(make_sample(utilGPU=80.0, power=0.0)) == pytest.approx(40.0)

    def test_power_tiny_reading_is_floored(self):
        calc = EfficiencyCalculator()
        # 0.001 W is read as 1 W
        assert calc.power_efficiency(make_sample(utilGPU=80.0, power=0.001)) == pytest.approx(8000.0)
        assert calc.power_efficiency(make_sample(utilGPU=100.0, power=0.5)) == pytest.approx(10000.0)

        calc = EfficiencyCalculator(EfficiencySettings(min_power_w=10.0))
        assert calc.power_efficiency(make_sample(utilGPU=80.0, power=2.0)) == pytest.approx(800.0)

    def test_thermal_below_target(self):
        calc = EfficiencyCalculator()
        assert calc.thermal_target == 80.0
        assert calc.thermal_efficiency(make_sample(utilGPU=80.0, temperature=60.0)) == pytest.approx(80.0)

    def test_thermal_above_target(self):
        calc = EfficiencyCalculator()
        # penalty (100 - 80) / 80 = 0.25
        assert calc.thermal_efficiency(make_sample(utilGPU=80.0, temperature=100.0)) == pytest.approx(60.0)

    def test_thermal_never_negative(self, small_baseline):
        baseline = dataclasses.replace(small_baseline, thermal_target=40.0)
        calc = EfficiencyCalculator(baseline=baseline)
        assert calc.thermal_efficiency(make_sample(utilGPU=80.0, temperature=120.0)) == 0.0

    def test_instantaneous_overall(self):
        calc = EfficiencyCalculator()
        sample = make_sample(
            timestamp=5.0,
            utilGPU=80.0,
            smClock=1500.0,
            utilMemory=50.0,
            memoryBandwidth=500.0,
            power=200.0,
            temperature=60.0,
        )
        m = calc.calculate_instantaneous(sample)
        # 80*.30 + 25*.25 + 40*.25 + 80*.20
        assert m.overall_efficiency == pytest.approx(56.25)
        assert m.timestamp == 5.0

    def test_custom_weights(self):
        weights = EfficiencyWeights(compute=1.0, memory=0.0, power=0.0, thermal=0.0)
        calc = EfficiencyCalculator(EfficiencySettings(weights=weights))
        m = calc.calculate_instantaneous(make_sample(utilGPU=60.0, smClock=1500.0))
        assert m.overall_efficiency == pytest.approx(60.0)

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValueError):
            EfficiencyWeights(compute=0.5, memory=0.5, power=0.5, thermal=0.0)


class TestAggregation:

    def test_empty(self):
        assert EfficiencyCalculator().aggregate([]) is None

    def test_overall_recomputed_from_factor_means(self):
        # per-sample overall values are deliberately inconsistent (0.0)
        aggregated = EfficiencyCalculator().aggregate(
            [_metrics(10.0, 20.0, 30.0, 40.0), _metrics(30.0, 40.0, 50.0, 60.0)]
        )
        assert aggregated.compute_efficiency == pytest.approx(20.0)
        assert aggregated.memory_efficiency == pytest.approx(30.0)
        assert aggregated.power_efficiency == pytest.approx(40.0)
        assert aggregated.thermal_efficiency == pytest.approx(50.0)
        # 20*.30 + 30*.25 + 40*.25 + 50*.20
        assert aggregated.overall_efficiency == pytest.approx(33.5)

    def test_aggregate_has_no_timestamp(self):
        aggregated = EfficiencyCalculator().aggregate([_metrics(1.0, 1.0, 1.0, 1.0)])
        assert "timestamp" not in aggregated.to_wire()


class TestTrendWindows:

    @pytest.mark.parametrize(
        "n,count,size",
        [(100, 5, 20), (103, 5, 20), (1000, 20, 50), (3, 3, 1)],
    )
    def test_window_sizes(self, n, count, size):
        calc = EfficiencyCalculator()
        windows = calc.trend_windows([_metrics(1.0, 1.0, 1.0, 1.0)] * n)
        assert len(windows) == count
        assert all(w.end_index - w.start_index + 1 == size for w in windows)
        assert windows[0].start_index == 0

    def test_empty(self):
        assert EfficiencyCalculator().trend_windows([]) == []

    def test_window_values(self):
        calc = EfficiencyCalculator()
        metrics = [_metrics(float(i), 0.0, 0.0, 0.0) for i in range(10)]
        windows = calc.trend_windows(metrics)
        # size max(1, min(50, 10 // 5)) = 2
        assert [w.efficiency.compute_efficiency for w in windows] == pytest.approx(
            [0.5, 2.5, 4.5, 6.5, 8.5]
        )


class TestRecommendations:

    def test_all_rules(self):
        recs = EfficiencyCalculator().recommendations(_metrics(10.0, 10.0, 10.0, 10.0))
        assert [r.type for r in recs] == [
            "compute_optimization",
            "memory_optimization",
            "power_optimization",
            "thermal_optimization",
        ]
        assert [r.priority for r in recs] == ["high", "high", "medium", "medium"]
        assert all(len(r.suggestions) == 3 for r in recs)

    def test_healthy(self):
        assert EfficiencyCalculator().recommendations(_metrics(90.0, 90.0, 90.0, 90.0)) == []

    def test_thresholds_are_strict(self):
        recs = EfficiencyCalculator().recommendations(_metrics(70.0, 60.0, 50.0, 60.0))
        assert recs == []

    def test_none(self):
        assert EfficiencyCalculator().recommendations(None) == []


class TestSessionEfficiency:

    def test_analyze_session(self):
        samples = make_series(100, utilGPU=lambda i: 20.0 + 0.5 * i)
        analysis = EfficiencyCalculator().analyze_session(samples)
        assert analysis.overall is not None
        assert len(analysis.trends) == 5
        computes = [w.efficiency.compute_efficiency for w in analysis.trends]
        assert computes == sorted(computes)
        assert set(analysis.to_wire()) == {"overall", "trends", "recommendations"}

    def test_empty_session(self):
        analysis = EfficiencyCalculator().analyze_session([])
        assert analysis.overall is None
        assert analysis.trends == []
        assert analysis.recommendations == []
