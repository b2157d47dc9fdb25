"""Failure taxonomy for an evaluation round.

Every class carries the HTTP status the API layer answers with, so endpoints
can let these propagate and ``main.py`` translates them in one place.
"""


class EvaluationError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(EvaluationError):
    """Malformed or constraint-violating input; raised before any model or store call."""
    status_code = 422


class NotFound(EvaluationError):
    status_code = 404


class ModelContractViolation(EvaluationError):
    """The model call failed or its reply did not match the EvaluationResult schema."""
    status_code = 502


class ApplicantUnidentifiable(EvaluationError):
    """The model produced a result without a usable applicant name."""
    status_code = 422


class PersistenceFailure(EvaluationError):
    status_code = 503


class AdvisoryFailure(EvaluationError):
    """The advice call failed; callers fall back to a fixed message."""
    status_code = 502
