"""
Error taxonomy for progress-service

Every rule engine raises one of these. Routers translate them into HTTP
responses using ``status_code`` and ``to_dict()``.

Kinds:
- InvalidInput: malformed or out-of-range caller data, never retried
- NotFound: referenced entity absent
- Conflict: business-rule violation (already owned, already referred...)
- InsufficientResource: funds or requirement shortfall, reports the amounts
- ExternalFailure: store/transaction failure, safe to retry the operation
"""
from typing import Any, Dict


class ProgressError(Exception):
    """Base class for every error raised by the reward engines"""

    status_code: int = 500
    code: str = "PROGRESS_ERROR"
    retryable: bool = False

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "error": self.code,
            "message": self.message,
            "retryable": self.retryable,
        }
        payload.update(self.details)
        return payload


# ============= INVALID INPUT =============

class InvalidInput(ProgressError):
    status_code = 400
    code = "INVALID_INPUT"


class InvalidFormat(InvalidInput):
    code = "INVALID_FORMAT"


class TypeMismatch(InvalidInput):
    code = "TYPE_MISMATCH"


# ============= NOT FOUND =============

class NotFound(ProgressError):
    status_code = 404
    code = "NOT_FOUND"


class UserNotFound(NotFound):
    code = "USER_NOT_FOUND"


class CodeNotFound(NotFound):
    code = "CODE_NOT_FOUND"


class ItemNotFound(NotFound):
    code = "ITEM_NOT_FOUND"


# ============= CONFLICT =============

class Conflict(ProgressError):
    status_code = 409
    code = "CONFLICT"


class AlreadyOwned(Conflict):
    code = "ALREADY_OWNED"


class AlreadyReferred(Conflict):
    code = "ALREADY_REFERRED"


class AlreadyCompleted(Conflict):
    code = "ALREADY_COMPLETED"


class SelfReferral(Conflict):
    code = "SELF_REFERRAL"


class UserAlreadyExists(Conflict):
    code = "USER_ALREADY_EXISTS"


class ReferralCodeTaken(Conflict):
    """Raised by the store when a generated code is already reserved"""
    code = "REFERRAL_CODE_TAKEN"


# ============= INSUFFICIENT RESOURCE =============

class InsufficientResource(ProgressError):
    status_code = 402
    code = "INSUFFICIENT_RESOURCE"

    def __init__(self, message: str, required: int, current: int, **details: Any):
        super().__init__(
            message,
            required=required,
            current=current,
            shortfall=max(0, required - current),
            **details
        )

    @property
    def shortfall(self) -> int:
        return self.details["shortfall"]


class InsufficientFunds(InsufficientResource):
    code = "INSUFFICIENT_FUNDS"


class RequirementNotMet(InsufficientResource):
    code = "REQUIREMENT_NOT_MET"


# ============= EXTERNAL FAILURE =============

class ExternalFailure(ProgressError):
    status_code = 503
    code = "EXTERNAL_FAILURE"
    retryable = True


class StoreUnavailable(ExternalFailure):
    code = "STORE_UNAVAILABLE"


class ConcurrentModification(ExternalFailure):
    status_code = 409
    code = "CONCURRENT_MODIFICATION"


class CodeGenerationExhausted(ExternalFailure):
    code = "CODE_GENERATION_EXHAUSTED"
    retryable = False
