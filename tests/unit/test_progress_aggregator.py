import pytest

from obsidian_client.progress_aggregator import (
    PERCENT_TOTAL,
    ByteProgressAggregator,
    ProgressState,
    RatioProgressAggregator,
    UnitProgressAggregator,
    clamp_fraction,
)


def test_unit_aggregator_reports_zero_until_total_known():
    aggregator = UnitProgressAggregator()

    state = aggregator.mark_completed("lib/rt.jar")

    assert state.progress == 0.0
    assert state.completed_units == 1
    assert not aggregator.total_resolved


def test_unit_aggregator_counts_completions_in_any_order():
    aggregator = UnitProgressAggregator(["a", "b", "c", "d"])

    assert aggregator.mark_completed("c").progress == 0.25
    assert aggregator.mark_completed("a").progress == 0.5
    assert aggregator.mark_completed("a").progress == 0.5
    state = aggregator.mark_completed("d")

    assert state.completed_units == 3
    assert state.total_units == 4
    assert state.progress == 0.75
    assert state.installed == ("c", "a", "d")
    assert state.to_install == ("a", "b", "c", "d")


def test_unit_aggregator_ignores_units_outside_manifest():
    aggregator = UnitProgressAggregator(["a", "b"])

    state = aggregator.mark_completed("unexpected")

    assert state.progress == 0.0
    assert state.completed_units == 0


def test_unit_aggregator_keeps_early_completions_in_manifest():
    aggregator = UnitProgressAggregator()
    aggregator.mark_completed("a")
    aggregator.mark_completed("stray")

    state = aggregator.resolve_total(["a", "b"])

    assert state.progress == 0.5
    assert state.completed_units == 1
    assert state.installed == ("a",)


def test_empty_manifest_is_complete():
    state = UnitProgressAggregator([]).snapshot()

    assert state.progress == 1.0
    assert state.is_complete


def test_ratio_aggregator_boundaries():
    assert RatioProgressAggregator().snapshot().progress == 0.0
    assert RatioProgressAggregator(0).snapshot().progress == 1.0
    assert RatioProgressAggregator(200).update(50).progress == 0.25
    assert RatioProgressAggregator(10).update(25).progress == 1.0


def test_ratio_aggregator_rejects_negative_total():
    with pytest.raises(ValueError):
        RatioProgressAggregator(-1)


def test_ratio_aggregator_learns_total_from_update():
    aggregator = ByteProgressAggregator()

    assert aggregator.update(512).progress == 0.0
    state = aggregator.update(512, 2048)

    assert state.progress == 0.25
    assert state.processed == 512
    assert state.total == 2048


def test_ratio_aggregator_never_goes_backwards():
    aggregator = RatioProgressAggregator(PERCENT_TOTAL)
    seen = [aggregator.update(value).progress for value in (10, 40, 20, 90, 30, 100)]

    assert seen == sorted(seen)
    assert seen[-1] == 1.0


def test_percent_and_fraction_helpers():
    aggregator = RatioProgressAggregator()

    assert aggregator.update_percent(25).progress == 0.25
    assert aggregator.update_fraction(0.5).progress == 0.5


def test_clamp_fraction():
    assert clamp_fraction(float("nan")) == 0.0
    assert clamp_fraction(-0.5) == 0.0
    assert clamp_fraction(1.5) == 1.0


def test_complete_progress_state():
    state = ProgressState.complete()

    assert state.is_complete
    assert state.progress == 1.0


def test_byte_progress_names_no_units():
    state = ByteProgressAggregator(10).update(4)

    assert state.installed == ()
    assert state.to_install == ()
