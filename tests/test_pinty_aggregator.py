"""Tests for the closest-to-mean (PINTY) aggregator."""

from __future__ import annotations

import math

import numpy as np
import pytest

from vegdata.binning.aggregator import AggregatorConfig, Observation, SpatialCandidate
from vegdata.binning.context import BinContext, VariableContext
from vegdata.binning.pinty import PintyAggregator, select_representative
from vegdata.binning.registry import create_aggregator, get_descriptor
from vegdata.schemas.mask_flags import MASK_INVALID, MASK_VALID

NAN = float("nan")


def obs(mjd: float, *values: float) -> Observation:
    return Observation(mjd, values)


def f32(value: float) -> np.float32:
    return np.float32(value)


class TestMetadata:
    """Tests for aggregator naming and feature names."""

    def test_feature_names(self, var_ctx: VariableContext) -> None:
        agg = PintyAggregator(var_ctx, "a", "va")

        assert agg.name == "PINTY"
        assert agg.spatial_feature_names == ["a", "a_mjd"]
        assert agg.temporal_feature_names == ["a", "a_mjd", "a_count", "a_sigma"]
        assert agg.output_feature_names == ["a", "a_mjd", "a_count", "a_sigma"]

    def test_resolves_indices(self, var_ctx: VariableContext) -> None:
        agg = PintyAggregator(var_ctx, "b", "vb")
        assert agg.var_index == 2
        assert agg.mask_index == 3

    def test_repr_lists_indices_and_features(self, var_ctx: VariableContext) -> None:
        text = repr(PintyAggregator(var_ctx, "a", "va"))
        assert "var_index=0" in text
        assert "mask_index=1" in text
        assert "'a_sigma'" in text


class TestConstruction:
    """Tests for construction-time validation."""

    def test_none_var_ctx_raises(self) -> None:
        with pytest.raises(ValueError, match="var_ctx"):
            PintyAggregator(None, "a")

    def test_unknown_variable_raises(self, var_ctx: VariableContext) -> None:
        with pytest.raises(ValueError, match="Unknown variable 'c'"):
            PintyAggregator(var_ctx, "c")

    def test_unknown_mask_means_no_masking(self, var_ctx: VariableContext) -> None:
        """An unresolvable mask name is not an error."""
        agg = PintyAggregator(var_ctx, "a", "no_such_mask")
        assert agg.mask_index is None

        candidate = agg.reduce_spatial([obs(10.0, 1.5, MASK_INVALID, 2.5, 0.0)])
        assert candidate.value == f32(1.5)


class TestSpatialPass:
    """Tests for init/aggregate/complete spatial."""

    def test_init_is_nan(self, var_ctx: VariableContext, ctx: BinContext) -> None:
        candidate = PintyAggregator(var_ctx, "a", "va").init_spatial(ctx)
        assert np.isnan(candidate.value)
        assert np.isnan(candidate.time)
        assert candidate.is_empty

    def test_valid_observation_is_taken(self, var_ctx: VariableContext, ctx: BinContext) -> None:
        agg = PintyAggregator(var_ctx, "a", "va")
        candidate = agg.init_spatial(ctx)

        agg.aggregate_spatial(ctx, obs(2013.38, 1.5, 1.0, 2.5, 0.0), candidate)
        assert candidate.value == f32(1.5)
        assert candidate.time == f32(2013.38)

        agg.complete_spatial(ctx, 1, candidate)
        assert candidate.value == f32(1.5)
        assert candidate.time == f32(2013.38)

    def test_masked_observation_is_rejected(self, var_ctx: VariableContext, ctx: BinContext) -> None:
        """Mask 0.0 rejects a numeric value."""
        agg = PintyAggregator(var_ctx, "a", "va")
        candidate = agg.init_spatial(ctx)

        agg.aggregate_spatial(ctx, obs(2013.38, 1.5, MASK_INVALID, 2.5, 0.0), candidate)

        assert candidate.is_empty
        assert np.isnan(candidate.time)

    @pytest.mark.parametrize("mask_value", [0.5, 2.0, NAN, 0.99999])
    def test_only_exact_valid_mask_accepts(
        self, var_ctx: VariableContext, mask_value: float
    ) -> None:
        agg = PintyAggregator(var_ctx, "a", "va")
        candidate = agg.reduce_spatial([obs(10.0, 1.5, mask_value, 0.0, 0.0)])
        assert candidate.is_empty

    def test_no_mask_accepts_any_numeric(self, var_ctx: VariableContext) -> None:
        agg = PintyAggregator(var_ctx, "a")
        candidate = agg.reduce_spatial([obs(10.0, 1.5, MASK_INVALID, 0.0, 0.0)])
        assert candidate.value == f32(1.5)

    def test_nan_value_is_rejected(self, var_ctx: VariableContext) -> None:
        agg = PintyAggregator(var_ctx, "a", "va")
        candidate = agg.reduce_spatial([obs(10.0, NAN, MASK_VALID, 0.0, 0.0)])
        assert candidate.is_empty

    def test_last_valid_observation_wins(self, var_ctx: VariableContext) -> None:
        """No averaging within a period: later valid samples overwrite."""
        agg = PintyAggregator(var_ctx, "a", "va")
        candidate = agg.reduce_spatial(
            [
                obs(10.0, 1.0, MASK_VALID, 0.0, 0.0),
                obs(11.0, 3.0, MASK_VALID, 0.0, 0.0),
                obs(12.0, 9.0, MASK_INVALID, 0.0, 0.0),
                obs(13.0, NAN, MASK_VALID, 0.0, 0.0),
            ]
        )
        assert candidate.value == f32(3.0)
        assert candidate.time == f32(11.0)

    def test_uses_own_variable_and_mask(self, var_ctx: VariableContext) -> None:
        """Variable b is masked by vb, not by va."""
        agg = PintyAggregator(var_ctx, "b", "vb")
        candidate = agg.reduce_spatial([obs(10.0, 1.5, MASK_INVALID, 2.5, MASK_VALID)])
        assert candidate.value == f32(2.5)


class TestTemporalPass:
    """Tests for the full temporal lifecycle."""

    def test_full_lifecycle(self, var_ctx: VariableContext, ctx: BinContext, candidate) -> None:
        """1.6 is closest to the mean of [1.5, 1.6, 1.8]; the NaN period is dropped."""
        agg = PintyAggregator(var_ctx, "a", "va")

        agg.init_temporal(ctx)
        agg.aggregate_temporal(ctx, candidate(1.5, 2013.38))
        agg.aggregate_temporal(ctx, candidate(1.6, 2013.48))
        agg.aggregate_temporal(ctx, candidate(1.8, 2013.58))
        agg.aggregate_temporal(ctx, SpatialCandidate())

        result = agg.complete_temporal(ctx, 4)

        assert result.value == f32(1.6)
        assert result.time == f32(2013.48)
        assert result.count == 3
        assert result.sigma == pytest.approx(0.124721855, abs=1e-5)

    def test_compute_output_is_verbatim(self, var_ctx: VariableContext, ctx: BinContext, candidate) -> None:
        agg = PintyAggregator(var_ctx, "a", "va")
        agg.init_temporal(ctx)
        agg.aggregate_temporal(ctx, candidate(1.5, 2013.38))
        agg.aggregate_temporal(ctx, candidate(1.6, 2013.48))
        result = agg.complete_temporal(ctx)

        out = agg.compute_output(result)

        assert list(out) == ["a", "a_mjd", "a_count", "a_sigma"]
        assert out["a"] == result.value
        assert out["a_mjd"] == result.time
        assert out["a_count"] == result.count
        assert out["a_sigma"] == result.sigma

    def test_empty_input(self, var_ctx: VariableContext, ctx: BinContext) -> None:
        agg = PintyAggregator(var_ctx, "a")
        agg.init_temporal(ctx)

        result = agg.complete_temporal(ctx, 0)

        assert np.isnan(result.value)
        assert np.isnan(result.time)
        assert result.count == 0
        assert np.isnan(result.sigma)
        assert result.is_empty

    def test_all_nan_periods_give_empty_result(
        self, var_ctx: VariableContext, ctx: BinContext
    ) -> None:
        agg = PintyAggregator(var_ctx, "a")
        agg.init_temporal(ctx)
        for _ in range(5):
            agg.aggregate_temporal(ctx, SpatialCandidate())

        assert agg.complete_temporal(ctx).count == 0

    def test_single_entry(self, var_ctx: VariableContext, ctx: BinContext, candidate) -> None:
        agg = PintyAggregator(var_ctx, "a")
        agg.init_temporal(ctx)
        agg.aggregate_temporal(ctx, candidate(0.37, 56413.5))

        result = agg.complete_temporal(ctx)

        assert result.value == f32(0.37)
        assert result.time == f32(56413.5)
        assert result.count == 1
        assert result.sigma == 0.0

    def test_completion_is_idempotent(self, var_ctx: VariableContext, ctx: BinContext, candidate) -> None:
        agg = PintyAggregator(var_ctx, "a")
        agg.init_temporal(ctx)
        for value, time in [(0.2, 1.0), (0.5, 2.0), (0.4, 3.0)]:
            agg.aggregate_temporal(ctx, candidate(value, time))

        first = agg.complete_temporal(ctx)
        second = agg.complete_temporal(ctx)

        assert first == second
        assert len(ctx.get(agg.state_key)) == 3

    def test_count_matches_non_nan_periods(self, var_ctx: VariableContext, ctx: BinContext) -> None:
        rng = np.random.default_rng(42)
        values = rng.uniform(0.0, 1.0, size=40).astype(np.float32)
        values[rng.uniform(size=40) < 0.3] = np.nan

        agg = PintyAggregator(var_ctx, "a")
        agg.init_temporal(ctx)
        for i, value in enumerate(values):
            agg.aggregate_temporal(ctx, SpatialCandidate(value, np.float32(i)))

        assert agg.complete_temporal(ctx).count == int(np.sum(~np.isnan(values)))

    def test_aggregate_before_init_raises(self, var_ctx: VariableContext, ctx: BinContext, candidate) -> None:
        agg = PintyAggregator(var_ctx, "a")
        with pytest.raises(KeyError):
            agg.aggregate_temporal(ctx, candidate(1.0, 1.0))


class TestSelection:
    """Tests for select_representative."""

    def test_closest_to_mean(self) -> None:
        result = select_representative([1.5, 1.6, 1.8], [2013.38, 2013.48, 2013.58])

        assert result.value == f32(1.6)
        assert result.time == f32(2013.48)
        assert result.count == 3
        assert result.sigma == pytest.approx(np.std([1.5, 1.6, 1.8]), abs=1e-5)

    @pytest.mark.parametrize(
        "values,times",
        [
            ([1.4, 1.6], [1.0, 2.0]),
            ([1.6, 1.4], [2.0, 1.0]),
        ],
    )
    def test_distance_tie_prefers_larger_value(self, values, times) -> None:
        """Equidistant from mean 1.5: 1.6 wins regardless of order."""
        result = select_representative(values, times)
        assert result.value == f32(1.6)
        assert result.time == f32(2.0)

    def test_equal_value_prefers_earlier_time(self) -> None:
        result = select_representative([2.0, 2.0], [10.0, 5.0])
        assert result.value == f32(2.0)
        assert result.time == f32(5.0)

    def test_equal_value_keeps_earlier_time(self) -> None:
        result = select_representative([2.0, 2.0], [5.0, 10.0])
        assert result.time == f32(5.0)

    def test_earlier_duplicate_after_closer_value(self) -> None:
        """The duplicate rule applies against the current best mid-scan."""
        result = select_representative([1.0, 2.0, 2.0, 3.0], [1.0, 20.0, 15.0, 4.0])
        assert result.value == f32(2.0)
        assert result.time == f32(15.0)

    def test_closer_within_tolerance_does_not_win(self) -> None:
        """A smaller candidate closer by less than 1e-6 keeps the current best."""
        result = select_representative([1.0000004, 1.0, 1.0, 1.0], [1.0, 2.0, 3.0, 4.0])
        assert result.value == f32(1.0000004)
        assert result.time == f32(1.0)

    def test_empty(self) -> None:
        result = select_representative([], [])
        assert result.count == 0
        assert math.isnan(result.value)
        assert math.isnan(result.time)
        assert math.isnan(result.sigma)

    def test_length_mismatch_raises(self) -> None:
        with pytest.raises(ValueError, match="same length"):
            select_representative([1.0, 2.0], [1.0])


class TestSigma:
    """Tests for the dispersion estimate."""

    def test_identical_values_give_zero(self) -> None:
        result = select_representative([10000.1] * 7, list(range(7)))
        assert result.sigma == 0.0

    def test_never_negative(self) -> None:
        rng = np.random.default_rng(0)
        for _ in range(200):
            n = int(rng.integers(1, 30))
            values = rng.normal(loc=1e4, scale=1e-3, size=n)
            result = select_representative(values, np.arange(n))
            assert result.sigma >= 0.0
            assert not np.isnan(result.sigma)

    def test_welford_matches_naive_on_small_values(self) -> None:
        values = [0.21, 0.35, 0.33, 0.48, 0.29]
        naive = select_representative(values, range(5))
        welford = select_representative(values, range(5), sigma_method="welford")

        assert welford.value == naive.value
        assert welford.sigma == pytest.approx(naive.sigma, abs=1e-6)

    def test_welford_is_stable_for_large_offsets(self) -> None:
        values = [10000.0, 10000.5, 10001.0]
        result = select_representative(values, [1.0, 2.0, 3.0], sigma_method="welford")

        assert result.value == f32(10000.5)
        assert result.sigma == pytest.approx(math.sqrt(1 / 6), abs=1e-5)

    def test_aggregator_uses_configured_method(self, var_ctx: VariableContext, ctx: BinContext, candidate) -> None:
        agg = PintyAggregator(var_ctx, "a", sigma_method="welford")
        agg.init_temporal(ctx)
        for i, value in enumerate([10000.0, 10000.5, 10001.0]):
            agg.aggregate_temporal(ctx, candidate(value, float(i)))

        assert agg.complete_temporal(ctx).sigma == pytest.approx(math.sqrt(1 / 6), abs=1e-5)


class TestRegistry:
    """Tests for aggregator lookup by type name."""

    def test_create_pinty(self, var_ctx: VariableContext) -> None:
        agg = create_aggregator(var_ctx, AggregatorConfig(var_name="a", mask_name="va"))

        assert isinstance(agg, PintyAggregator)
        assert agg.mask_index == 1

    def test_descriptor_creates_config(self) -> None:
        config = get_descriptor("PINTY").create_config(var_name="a", mask_name="va")

        assert config.type == "PINTY"
        assert config.var_names == ["a", "va"]

    def test_passes_capacity_and_method(self, var_ctx: VariableContext) -> None:
        config = AggregatorConfig(var_name="a", initial_capacity=16, sigma_method="welford")
        agg = create_aggregator(var_ctx, config)

        assert agg.initial_capacity == 16
        assert agg.sigma_method == "welford"

    def test_unknown_type_raises(self, var_ctx: VariableContext) -> None:
        with pytest.raises(ValueError, match="Unknown aggregator type"):
            create_aggregator(var_ctx, AggregatorConfig(var_name="a", type="MEDIAN"))

    def test_invalid_sigma_method_raises(self) -> None:
        with pytest.raises(ValueError, match="sigma_method"):
            AggregatorConfig(var_name="a", sigma_method="twopass")
