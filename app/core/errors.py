class AppError(Exception):
    status_code: int = 500
    code: str = "ERROR"

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found.")
        self.resource = resource


class ValidationError(AppError):
    # Also raised for ownership mismatches, e.g. cancelling another user's bundle.
    status_code = 400
    code = "VALIDATION_ERROR"


class QuotaExceededError(AppError):
    status_code = 403
    code = "QUOTA_EXCEEDED"

    def __init__(self, message: str = "Quota exceeded. Please upgrade your subscription."):
        super().__init__(message)


class InvalidSubscriptionError(AppError):
    status_code = 403
    code = "INVALID_SUBSCRIPTION"

    def __init__(self, message: str = "Invalid or inactive subscription."):
        super().__init__(message)


class AnswerGenerationError(AppError):
    status_code = 502
    code = "ANSWER_FAILED"


class ConflictError(AppError):
    # The row kept changing under a read-modify-write; retrying the request is safe.
    status_code = 409
    code = "CONFLICT"
