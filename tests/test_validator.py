"""
Tests for telemetry validation: every scalar must be a finite number in
its documented range, and the per-SM list must match the baseline.
"""

import math

import pytest

from conftest import make_record, make_sample
from gpuscope.samplers.validator import TelemetryValidator, validate


class TestFieldRanges:

    def test_default_record_is_valid(self):
        assert validate(make_record())

    @pytest.mark.parametrize(
        "key,value",
        [
            ("utilGPU", 0.0),
            ("utilGPU", 100.0),
            ("utilMemory", 100.0),
            ("temperature", 0.0),
            ("temperature", 120.0),
            ("power", 0.0),
            ("power", 1000.0),
            ("fanSpeed", 100.0),
            ("pcieUtilization", 0.0),
            ("smClock", 0.0),
            ("memoryBandwidth", 5000.0),
        ],
    )
    def test_boundaries_accepted(self, key, value):
        assert validate(make_record(**{key: value}))

    @pytest.mark.parametrize(
        "key,value",
        [
            ("utilGPU", -0.1),
            ("utilGPU", 100.1),
            ("utilMemory", 101.0),
            ("temperature", -1.0),
            ("temperature", 120.5),
            ("power", -5.0),
            ("power", 1000.1),
            ("fanSpeed", 100.5),
            ("pcieUtilization", -1.0),
            ("smClock", -1.0),
            ("memoryUsed", -1.0),
            ("timestamp", -10.0),
        ],
    )
    def test_out_of_range_rejected(self, key, value):
        assert not validate(make_record(**{key: value}))

    def test_integer_values_accepted(self):
        assert validate(make_record(utilGPU=50, temperature=70, power=200))


class TestMalformedRecords:

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite_rejected(self, value):
        assert not validate(make_record(temperature=value))

    @pytest.mark.parametrize("value", [True, "50", None, [50.0]])
    def test_non_numeric_rejected(self, value):
        assert not validate(make_record(utilGPU=value))

    def test_missing_field_rejected(self):
        record = make_record()
        del record["power"]
        assert not validate(record)

    def test_non_mapping_rejected(self):
        assert not validate([1, 2, 3])
        assert not validate(None)

    def test_sm_utilization_out_of_range(self):
        assert not validate(make_record(smUtilizations=[50.0, 101.0, 20.0, 30.0]))

    def test_sm_utilization_not_a_list(self):
        assert not validate(make_record(smUtilizations="70,70"))
        assert not validate(make_record(smUtilizations=70.0))
        assert not validate(make_record(smUtilizations={"0": 70.0}))

    def test_sm_utilization_one_shot_iterable_rejected(self):
        assert not validate(make_record(smUtilizations=(v for v in [70.0] * 4)))
        assert not validate(make_record(smUtilizations=iter([70.0] * 4)))
        assert validate(make_record(smUtilizations=(70.0,) * 4))

    def test_missing_sm_utilizations(self):
        record = make_record()
        del record["smUtilizations"]
        assert not validate(record)


class TestBaselineChecks:

    def test_sm_count_must_match_baseline(self, small_baseline):
        validator = TelemetryValidator(small_baseline)
        assert validator.validate(make_record(smUtilizations=[10.0] * 4))
        assert not validator.validate(make_record(smUtilizations=[10.0] * 3))
        assert not validator.validate(make_record(smUtilizations=[10.0] * 5))

    def test_any_length_without_baseline(self):
        validator = TelemetryValidator()
        assert validator.validate(make_record(smUtilizations=[]))
        assert validator.validate(make_record(smUtilizations=[10.0] * 7))

    def test_set_baseline_later(self, small_baseline):
        validator = TelemetryValidator()
        record = make_record(smUtilizations=[10.0] * 2)
        assert validator.validate(record)
        validator.set_baseline(small_baseline)
        assert not validator.validate(record)

    def test_accepts_sample_instances(self, small_baseline):
        assert TelemetryValidator(small_baseline).validate(make_sample())
