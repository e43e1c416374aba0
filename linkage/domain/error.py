"""Domain layer errors."""


class DomainError(Exception):
    """Base domain error."""

    pass


class ConflictRejection(DomainError):
    """Expected, user-actionable refusal.

    Raised for duplicate links and duplicate emails. The message is the
    remediation text shown to the user.
    """

    pass


class IntegrityRejection(DomainError):
    """Directory refused a write because of a uniqueness constraint.

    Usually the losing side of a concurrent signup or link race.
    """

    def __init__(self, constraint: str, detail: str | None = None):
        self.constraint = constraint
        self.detail = detail
        message = f"Directory constraint violated: {constraint}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
