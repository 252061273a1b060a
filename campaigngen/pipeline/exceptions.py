"""
Pipeline error taxonomy.

These are the only errors a caller sees from a run. Provider-level
transient/quota/permanent classes stay inside the segment synthesizer.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"
    TIER_NOT_ELIGIBLE = "TIER_NOT_ELIGIBLE"
    INVALID_ANALYSIS = "INVALID_ANALYSIS"
    ALL_SEGMENTS_FAILED = "ALL_SEGMENTS_FAILED"
    NARRATION_FAILED = "NARRATION_FAILED"
    ASSEMBLY_FAILED = "ASSEMBLY_FAILED"
    CANCELLED = "CANCELLED"
    LEDGER_FAILED = "LEDGER_FAILED"


class PipelineError(Exception):
    """Base pipeline error."""

    code: ErrorCode

    def __init__(self, message: str, code: ErrorCode, cause: Optional[BaseException] = None):
        self.message = message
        self.code = code
        self.cause = cause
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"error": self.message, "code": self.code.value}
        if self.cause is not None:
            data["cause"] = str(self.cause)
        return data


class CreditReservationError(PipelineError):
    """Account could not cover the run."""

    def __init__(self, account_id: str, required: int, available: int, cause: Optional[BaseException] = None):
        self.account_id = account_id
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient credits: required={required}, available={available}",
            ErrorCode.INSUFFICIENT_CREDITS,
            cause,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"required": self.required, "available": self.available})
        return data


class TierNotEligibleError(PipelineError):
    """Account tier does not include campaign generation."""

    def __init__(self, account_tier: str):
        self.account_tier = account_tier
        super().__init__(
            f"Tier '{account_tier}' is not eligible for campaign generation",
            ErrorCode.TIER_NOT_ELIGIBLE,
        )


class InvalidAnalysisError(PipelineError):
    """Analysis response was malformed or had the wrong scene count."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, ErrorCode.INVALID_ANALYSIS, cause)


class AllSegmentsFailedError(PipelineError):
    """No scene produced a usable visual."""

    def __init__(self, scene_count: int, last_error: Optional[str] = None):
        self.scene_count = scene_count
        self.last_error = last_error
        message = f"All {scene_count} segments failed"
        if last_error:
            message += f" (last error: {last_error})"
        super().__init__(message, ErrorCode.ALL_SEGMENTS_FAILED)


class NarrationFailedError(PipelineError):
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, ErrorCode.NARRATION_FAILED, cause)


class AssemblyFailedError(PipelineError):
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, ErrorCode.ASSEMBLY_FAILED, cause)


class PipelineCancelledError(PipelineError):
    """Caller cancelled the run between stages."""

    def __init__(self, stage: str):
        self.stage = stage
        super().__init__(f"Cancelled before {stage}", ErrorCode.CANCELLED)


class CreditSettlementError(PipelineError):
    """Ledger refused to commit a reservation after a successful assembly."""

    def __init__(self, reservation_id: str, cause: Optional[BaseException] = None):
        self.reservation_id = reservation_id
        super().__init__(
            f"Could not commit credit reservation {reservation_id}",
            ErrorCode.LEDGER_FAILED,
            cause,
        )
