"""Exception types shared across the engine."""


class OracleError(Exception):
    """Base for every failure of the external semantic oracle."""


class OracleUnavailableError(OracleError):
    """No oracle backend or credential configured."""


class AnalysisParseError(OracleError):
    """Oracle replied, but not with the JSON shape that was asked for."""


class QuestionSourceError(Exception):
    """Session could not be bootstrapped from the question source."""


class UnknownEventError(ValueError):
    """Raised for unrecognized events when the controller runs in strict mode."""

    def __init__(self, event_type: str) -> None:
        self.event_type = event_type
        super().__init__(f"Unknown session event: {event_type!r}")
