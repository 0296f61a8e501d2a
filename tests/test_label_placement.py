"""Unit tests for highlight label collision handling."""

import pytest

from recipe_gallery.core.label_placement import LabelCandidate, candidate_positions, place_labels


def test_candidates_anchor_first_then_above_then_below():
    assert candidate_positions(0.5, 0.1) == pytest.approx([0.5, 0.6, 0.4])
    assert candidate_positions(0.98, 0.05) == pytest.approx([0.98, 1.0, 0.93])


def test_candidates_clamped_to_axis():
    assert candidate_positions(0.0, 0.05) == pytest.approx([0.0, 0.05])
    assert candidate_positions(1.0, 0.05) == pytest.approx([1.0, 0.95])


def test_isolated_labels_sit_at_their_anchor():
    placed = place_labels([
        LabelCandidate("a", anchor=0.2, priority=2.0),
        LabelCandidate("b", anchor=0.8, priority=8.0),
    ], min_gap=0.05)
    assert [p.text for p in placed] == ["b", "a"]
    assert placed[0].position == pytest.approx(0.8)
    assert placed[1].position == pytest.approx(0.2)


def test_colliding_label_moves_to_next_free_candidate():
    placed = place_labels([
        LabelCandidate("high", anchor=0.50, priority=10.0),
        LabelCandidate("low", anchor=0.49, priority=9.0),
    ], min_gap=0.05)
    positions = {p.text: p.position for p in placed}
    assert positions["high"] == pytest.approx(0.50)
    # 0.49 and 0.54 are too close to 0.50; 0.44 is free
    assert positions["low"] == pytest.approx(0.44)
    assert abs(positions["high"] - positions["low"]) >= 0.05


def test_collision_prefers_the_position_above():
    placed = place_labels([
        LabelCandidate("high", anchor=0.30, priority=10.0),
        LabelCandidate("low", anchor=0.30, priority=9.0),
    ], min_gap=0.05)
    positions = {p.text: p.position for p in placed}
    assert positions == pytest.approx({"high": 0.30, "low": 0.35})


def test_persistent_overlap_drops_lowest_priority():
    candidates = [
        LabelCandidate("first", anchor=0.5, priority=3.0),
        LabelCandidate("second", anchor=0.5, priority=2.0),
        LabelCandidate("third", anchor=0.5, priority=1.0),
        LabelCandidate("fourth", anchor=0.5, priority=0.5),
    ]
    placed = place_labels(candidates, min_gap=0.05)
    assert [p.text for p in placed] == ["first", "second", "third"]
    assert [p.position for p in placed] == pytest.approx([0.5, 0.55, 0.45])


def test_no_candidates():
    assert place_labels([]) == []
