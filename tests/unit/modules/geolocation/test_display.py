"""Marker and status message shown for an accepted guess."""

import pytest

from src.modules.geolocation.display import (
    NARROW_RADIUS_METERS,
    WIDE_RADIUS_METERS,
    build_display_policy,
    radius_for_preference,
)
from tests.utils.stubs import make_guess


@pytest.mark.parametrize(
    "confidence, has_marker",
    [(0.0, False), (0.29, False), (0.3, True), (0.95, True)],
)
def test_marker_only_at_or_above_threshold(confidence, has_marker):
    guess = make_guess(confidence=confidence, source="Gemini-3-Flash AI")

    policy = build_display_policy(guess, preference=None)

    assert (policy.marker is not None) is has_marker
    assert policy.low_confidence is not has_marker


def test_low_confidence_message():
    policy = build_display_policy(make_guess(confidence=0.1), preference="Japan")

    assert policy.status_message == "Very Low confidence"
    assert policy.marker is None


def test_marker_uses_guess_coordinates_and_engine_label():
    guess = make_guess(source="Fallback: Local Heuristic", confidence=0.4)

    policy = build_display_policy(guess, preference=None)

    assert policy.marker.latitude == guess.latitude
    assert policy.marker.longitude == guess.longitude
    assert policy.status_message == "Active Engine: Fallback: Local Heuristic"


def test_preference_narrows_radius():
    guess = make_guess(confidence=0.8)

    assert build_display_policy(guess, None).marker.radius_m == WIDE_RADIUS_METERS
    assert build_display_policy(guess, "Hanoi").marker.radius_m == NARROW_RADIUS_METERS
    assert WIDE_RADIUS_METERS == 1000
    assert NARROW_RADIUS_METERS == 500


@pytest.mark.parametrize("preference", [None, "", "   "])
def test_blank_preference_keeps_wide_radius(preference):
    assert radius_for_preference(preference) == WIDE_RADIUS_METERS


def test_custom_threshold():
    policy = build_display_policy(
        make_guess(confidence=0.5), None, low_confidence_threshold=0.6
    )

    assert policy.low_confidence
