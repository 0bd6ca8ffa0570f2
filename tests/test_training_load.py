"""Tests for the training load classifier."""

import pytest

from services.scoring_models import TrainingLoad
from services.training_load import (
    classify_activity,
    classify_from_active_minutes,
    classify_planned,
    determine_training_load,
)


def run(distance_km=None, duration_minutes=None, intensity=None, activity_type="run"):
    return {
        "activity_type": activity_type,
        "distance_km": distance_km,
        "duration_minutes": duration_minutes,
        "intensity": intensity,
    }


def test_exactly_20km_is_long():
    assert classify_activity(run(distance_km=20, duration_minutes=100, intensity="moderate")) == TrainingLoad.LONG


def test_just_under_20km_moderate_run_is_moderate():
    assert classify_activity(run(distance_km=19.9, duration_minutes=90, intensity="moderate")) == TrainingLoad.MODERATE


def test_two_hours_is_long():
    assert classify_activity(run(duration_minutes=120)) == TrainingLoad.LONG


@pytest.mark.parametrize("activity", [
    run(activity_type="rest", distance_km=30, duration_minutes=180, intensity="high"),
    run(activity_type="Rest", duration_minutes=45),
    {"activity_type": "rest"},
])
def test_rest_type_always_rest(activity):
    assert classify_activity(activity) == TrainingLoad.REST


def test_high_intensity_and_workout_types_are_quality():
    assert classify_activity(run(duration_minutes=40, intensity="high")) == TrainingLoad.QUALITY
    assert classify_activity(run(activity_type="tempo run", duration_minutes=45)) == TrainingLoad.QUALITY
    assert classify_activity(run(activity_type="intervals", duration_minutes=50)) == TrainingLoad.QUALITY


def test_short_easy_run():
    assert classify_activity(run(distance_km=5, duration_minutes=30, intensity="low")) == TrainingLoad.EASY


def test_planned_day_takes_highest_load():
    activities = [run(duration_minutes=30), run(distance_km=21, duration_minutes=110)]
    assert classify_planned(activities) == TrainingLoad.LONG


def test_easy_sessions_adding_to_an_hour_are_moderate():
    assert classify_planned([run(duration_minutes=30), run(duration_minutes=40)]) == TrainingLoad.MODERATE


def test_empty_plan_is_rest():
    assert classify_planned([]) == TrainingLoad.REST


@pytest.mark.parametrize("minutes, expected", [
    (None, TrainingLoad.REST),
    (0, TrainingLoad.REST),
    (30, TrainingLoad.REST),
    (31, TrainingLoad.EASY),
    (60, TrainingLoad.EASY),
    (61, TrainingLoad.QUALITY),
])
def test_active_minutes_fallback(minutes, expected):
    assert classify_from_active_minutes(minutes) == expected


def test_plan_wins_over_active_minutes():
    assert determine_training_load([{"activity_type": "rest"}], active_minutes=95) == TrainingLoad.REST
    assert determine_training_load([], active_minutes=95) == TrainingLoad.QUALITY


def test_load_ordering():
    ranks = [load.rank for load in (TrainingLoad.REST, TrainingLoad.EASY, TrainingLoad.MODERATE,
                                    TrainingLoad.LONG, TrainingLoad.QUALITY)]
    assert ranks == sorted(ranks)
    assert TrainingLoad.LONG.is_hard and TrainingLoad.QUALITY.is_hard
    assert not TrainingLoad.MODERATE.is_hard
