"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidLoanRecordError(DomainException):
    """Loan record is structurally malformed (not just missing numbers)"""

    pass


class AuditSinkError(DomainException):
    """Risk audit sink rejected or failed to store a log entry"""

    pass
