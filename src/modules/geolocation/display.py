"""How an accepted guess should be shown to the user."""

from pydantic import BaseModel

from src.modules.geolocation.models import LocationGuess

WIDE_RADIUS_METERS = 1000
NARROW_RADIUS_METERS = 500
DEFAULT_LOW_CONFIDENCE_THRESHOLD = 0.3


class Marker(BaseModel):
    latitude: float
    longitude: float
    radius_m: int


class DisplayPolicy(BaseModel):
    low_confidence: bool
    marker: Marker | None = None
    status_message: str


def radius_for_preference(preference: str | None) -> int:
    """A stated preference narrows the area of uncertainty drawn around the marker."""
    if preference and preference.strip():
        return NARROW_RADIUS_METERS
    return WIDE_RADIUS_METERS


def build_display_policy(
    guess: LocationGuess,
    preference: str | None,
    low_confidence_threshold: float = DEFAULT_LOW_CONFIDENCE_THRESHOLD,
) -> DisplayPolicy:
    if guess.confidence < low_confidence_threshold:
        return DisplayPolicy(low_confidence=True, status_message="Very Low confidence")

    return DisplayPolicy(
        low_confidence=False,
        marker=Marker(
            latitude=guess.latitude,
            longitude=guess.longitude,
            radius_m=radius_for_preference(preference),
        ),
        status_message=f"Active Engine: {guess.source}",
    )
