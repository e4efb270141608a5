"""Exception types raised by the budget allocator.

Every exception carries a machine-readable ``code`` so callers can tell
malformed input apart from an unsatisfiable budget.
"""


class AllocationError(Exception):
    """Base exception for all allocation failures."""

    def __init__(self, message: str, code: str = "ALLOCATION_ERROR") -> None:
        self.code = code
        super().__init__(message)


class InvalidInputError(AllocationError, ValueError):
    """Raised when options, programs, or the budget are malformed or out of range."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message, code="INVALID_INPUT")


class InfeasibleError(AllocationError):
    """Raised when no one-option-per-program selection fits within the budget.

    Also raised when the solver terminates without proving optimality, in
    which case ``status`` holds the solver's termination status.
    """

    def __init__(self, message: str, status: str = "Infeasible") -> None:
        self.status = status
        super().__init__(message, code="INFEASIBLE")
