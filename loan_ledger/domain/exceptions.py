"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Requested mutation has a bad type or amount; nothing was applied"""

    pass


class StoreError(DomainException):
    """Persistence layer failed; the mutation must be treated as not applied"""

    pass


class ConcurrentUpdateError(StoreError):
    """Loan state changed between read and commit"""

    pass


class UnauthorizedError(DomainException):
    """Caller did not present the expected credential"""

    pass
