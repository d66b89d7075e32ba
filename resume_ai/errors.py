"""
resume_ai/errors.py
===================
Failure taxonomy shared by the adapter, orchestrator, validator and stores.

Every error is recoverable: callers receive it inside a tagged result
(success=False) and decide whether to retry with another model.
"""

from __future__ import annotations


class GenerationError(Exception):
    """Base class for everything the AI layer surfaces to a caller."""

    kind = "GenerationError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message or self.kind


class MissingCredential(GenerationError):
    kind = "MissingCredential"

    def __init__(self, message: str = "API key and service are required") -> None:
        super().__init__(message)


class ProviderError(GenerationError):
    """Network or HTTP failure. ``status`` is None when no response arrived."""

    kind = "ProviderError"

    def __init__(self, status: int | None, message: str) -> None:
        super().__init__(message)
        self.status = status

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.message} (HTTP {self.status})"


class EmptyResponse(GenerationError):
    kind = "EmptyResponse"

    def __init__(self, message: str = "The model returned no usable text") -> None:
        super().__init__(message)


class InvalidTemplateStructure(GenerationError):
    kind = "InvalidTemplateStructure"


class ValidationSyntaxError(GenerationError):
    kind = "ValidationSyntaxError"
