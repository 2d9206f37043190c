# advisor/errors.py
"""
Failures a prediction run can end with.

Every AdvisorError is terminal for the current run only: pipelines log it
and hand it back next to an empty prediction. DuplicateCompletionError is
different, it signals a broken data source and is allowed to propagate.
"""

from typing import Iterable, Optional


class AdvisorError(Exception):
    code = "advisor_error"

    def to_dict(self) -> dict:
        return {"code": self.code, "message": str(self)}


class AuthorizationDenied(AdvisorError):
    code = "authorization_denied"

    def __init__(self, message: str = "Read access to health data was denied"):
        super().__init__(message)


class SampleUnavailable(AdvisorError):
    code = "sample_unavailable"

    def __init__(self, kind, reason: str = "no data available"):
        self.kind = kind
        self.reason = reason
        super().__init__(f"{getattr(kind, 'value', kind)}: {reason}")


class IncompleteFeatureVector(AdvisorError):
    code = "incomplete_feature_vector"

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__("Incomplete biometric data, missing: " + ", ".join(self.missing))


class ModelInvocationFailure(AdvisorError):
    code = "model_invocation_failure"

    def __init__(self, model: str, cause: Optional[BaseException] = None):
        self.model = model
        self.cause = cause
        detail = f": {cause!r}" if cause is not None else ""
        super().__init__(f"Model '{model}' failed{detail}")


class InputParseFailure(AdvisorError):
    code = "input_parse_failure"

    def __init__(self, field: str, reason: str = "not a number"):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid answer for '{field}': {reason}")


class DuplicateCompletionError(RuntimeError):
    """A fetch reported back more than once."""

    def __init__(self, kind):
        self.kind = kind
        super().__init__(f"Completion for {getattr(kind, 'value', kind)} delivered twice")
