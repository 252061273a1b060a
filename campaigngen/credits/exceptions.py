"""
Credit-related exceptions.
"""


class CreditError(Exception):
    """Base credit error."""

    def __init__(self, message: str, code: str = "CREDIT_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class InsufficientCreditsError(CreditError):
    """Raised when an account can't cover a reservation."""

    def __init__(self, account_id: str, required: int = 1, available: int = 0):
        self.account_id = account_id
        self.required = required
        self.available = available
        super().__init__(
            message=f"Insufficient credits: required={required}, available={available}",
            code="INSUFFICIENT_CREDITS",
        )

    def to_dict(self) -> dict:
        return {
            "error": "Insufficient credits",
            "code": self.code,
            "required": self.required,
            "available": self.available,
        }


class ReservationNotFoundError(CreditError):
    """Raised when commit/release names a reservation the ledger never issued."""

    def __init__(self, reservation_id: str):
        self.reservation_id = reservation_id
        super().__init__(
            message=f"Unknown credit reservation: {reservation_id}",
            code="RESERVATION_NOT_FOUND",
        )
