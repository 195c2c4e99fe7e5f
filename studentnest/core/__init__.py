"""Core cross-cutting concerns: exceptions and logging."""

from studentnest.core.exceptions import BaseAppException, ErrorCode

__all__ = ["BaseAppException", "ErrorCode"]
