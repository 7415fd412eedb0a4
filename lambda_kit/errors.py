# lambda_kit/errors.py
"""
Application error hierarchy shared by every Lambda handler.

An AppError carries two messages: `message` is safe to hand back to a caller,
`error` is the detailed text that only ever goes to the logs.
"""
import traceback
from typing import Optional

DEFAULT_USER_MESSAGE = "An unexpected error occurred."


class AppError(Exception):
    """Base class for expected, handleable failures."""

    def __init__(self, error: str, readable: Optional[str] = None):
        message = readable or error
        super().__init__(message)
        self.name = type(self).__name__
        self.message = message
        # The original detailed error message. Keep it out of responses so
        # internal data does not leak to the client.
        self.error = error or readable
        self.stack = self._capture_stack()

    def _capture_stack(self) -> str:
        try:
            # Skip the constructor frames so the trace ends at the raise site.
            frames = [frame for frame in traceback.extract_stack() if frame.filename != __file__]
            return "".join(traceback.format_list(frames))
        except Exception:
            return f"{self.name}: {self.message}"

    @classmethod
    def convert(cls, error: BaseException, message: Optional[str] = None) -> "AppError":
        """
        Normalizes any exception into an AppError.

        AppErrors (and subclasses) are returned as-is, anything else is wrapped
        with a generic readable message and its own text kept as the detail.
        """
        if isinstance(error, AppError):
            return error

        return AppError(str(error), message or DEFAULT_USER_MESSAGE)

    def to_dict(self) -> dict:
        return {"name": self.name, "message": self.message, "error": self.error}


class NotFoundError(AppError):
    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class NotYetImplementedError(AppError):
    def __init__(self, message: str = "Not yet implemented"):
        super().__init__(message)


class NotSupportedError(AppError):
    def __init__(self, message: str = "Not supported"):
        super().__init__(message)


class InputInvalidError(AppError):
    def __init__(self, message: str = "The input data supplied is invalid and/or does not meet expectation"):
        super().__init__(message)
