from __future__ import annotations
from typing import Any, Dict, List, Optional


class InterpreterError(Exception):
    """Base class for every failure raised by the interpretation core."""


class UnknownProviderError(InterpreterError):
    def __init__(self, provider_id: str) -> None:
        super().__init__(f"Provider {provider_id} is not configured.")
        self.provider_id = provider_id


class InvalidConfigurationError(InterpreterError):
    """Provider configuration failed its schema.

    ``errors`` holds the pydantic error list so callers can show field-level detail.
    """

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class ProviderRequestError(InterpreterError):
    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.body = body


class InterpretationCancelled(InterpreterError):
    def __init__(self, provider_id: str) -> None:
        super().__init__(f"{provider_id} request was cancelled.")
        self.provider_id = provider_id


class ProviderNotReadyError(InterpreterError):
    pass


class ProviderUnavailableError(InterpreterError):
    pass


class MissingISOValueError(InterpreterError):
    def __init__(self, provider_id: str, candidate: Any, raw_response: Any) -> None:
        super().__init__("LLM response missing ISO value.")
        self.provider_id = provider_id
        self.candidate = candidate
        self.raw_response = raw_response
