"""LLM-call failures surfaced to the strategy engines."""
from __future__ import annotations

from typing import Optional

from utils.logger import get_logger

logger = get_logger(__name__)


class LLMError(Exception):
    """Base exception for failed LLM calls."""

    def __init__(self, message: str):
        super().__init__(message)
        logger.warning("llm_error", error_type=self.__class__.__name__, message=message)


class LLMAPIError(LLMError):
    """The provider rejected the request or retries were exhausted."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class NoCompletionError(LLMError):
    """A successful response carried no message body."""

    def __init__(self, message: str = "No completion returned from API"):
        super().__init__(message)
