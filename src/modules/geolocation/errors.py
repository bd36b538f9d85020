"""Failure taxonomy for the geolocation pipeline.

Only AllEnginesExhausted is meant to leave the orchestrator; everything else
is caught and logged at the adapter that raised it.
"""


class GeolocationError(Exception):
    """Base class for pipeline errors."""


class HintUnavailable(GeolocationError):
    """Reverse image search produced no usable context."""


class DatasetUnavailable(GeolocationError):
    """The local location dataset could not be fetched or parsed."""


class EngineError(GeolocationError):
    """An inference engine could not produce a guess."""

    def __init__(self, engine: str, reason: str):
        self.engine = engine
        self.reason = reason
        super().__init__(f"{engine}: {reason}")


class EngineInvalidResponse(EngineError):
    """Response was received but is not a structurally valid guess."""


class EngineTransportError(EngineError):
    """Network failure, timeout or upstream API error."""


class AllEnginesExhausted(GeolocationError):
    """Every engine, the local fallback included, failed to run."""


class SubmissionSuperseded(GeolocationError):
    """A newer submission for the same session replaced this one."""
