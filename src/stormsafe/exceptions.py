"""Exception types raised inside StormSafe."""


class StormSafeError(Exception):
    """Base class for all StormSafe errors."""


class SourceUnavailable(StormSafeError):
    """An upstream feed or API could not be reached or returned non-OK."""


class MalformedPayload(StormSafeError):
    """An upstream payload did not have the expected shape."""


class ReasoningUnavailable(StormSafeError):
    """The language model could not be called."""


class ReasoningContractViolation(StormSafeError, ValueError):
    """The language model returned text that is not a JSON object."""


class AdvisoryError(StormSafeError):
    """The advisory pipeline failed to produce a result at all."""
