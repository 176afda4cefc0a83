"""
Error taxonomy for report and feedback operations
"""
from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "NotFound"
    INVALID_STATE = "InvalidState"
    INVALID_ARGUMENT = "InvalidArgument"


class FeedbackError(Exception):
    """Base error raised by services to trusted internal callers"""
    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(FeedbackError):
    """Referenced record does not exist or belongs to someone else"""
    kind = ErrorKind.NOT_FOUND


class InvalidStateError(FeedbackError):
    """Record exists but is not in a state that allows the operation"""
    kind = ErrorKind.INVALID_STATE


class InvalidArgumentError(FeedbackError):
    """Caller supplied a value outside the accepted set"""
    kind = ErrorKind.INVALID_ARGUMENT
