from typing import Any


class DpmaError(Exception):
    """Base class for everything the filing engine raises on purpose."""

    error_code = "DPMA_ERROR"

    def __init__(self, message: str, *, stage: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    def with_stage(self, stage: int) -> "DpmaError":
        if self.stage is None:
            self.stage = stage
        return self


class UninitializedSessionError(DpmaError):
    error_code = "UninitializedSessionError"

    def __init__(self, message: str = "Session not initialized") -> None:
        super().__init__(message)


class SessionInitError(DpmaError):
    error_code = "SessionInitError"


class TokenExtractionError(DpmaError):
    error_code = "TokenExtractionError"

    def __init__(self, which: str, message: str | None = None, *, stage: int | None = None) -> None:
        super().__init__(message or f"Failed to extract {which} from response", stage=stage)
        self.which = which


class TransportError(DpmaError):
    error_code = "TransportError"


class StageFailure(DpmaError):
    error_code = "StageFailure"

    def __init__(self, stage: int | None, reason: str) -> None:
        super().__init__(reason, stage=stage)
        self.reason = reason


class ServerErrorPage(StageFailure):
    error_code = "ServerErrorPage"


class FieldValidationError(StageFailure):
    error_code = "FieldValidationError"

    def __init__(
        self,
        stage: int | None,
        reason: str,
        field_errors: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(stage, reason)
        self.field_errors = field_errors or []


class UnsupportedMarkType(StageFailure):
    error_code = "UnsupportedMarkType"


class SelectionNotFound(DpmaError):
    error_code = "SelectionNotFound"

    def __init__(
        self, term: str, category: int, reason: str | None = None, suggestions: list[str] | None = None
    ) -> None:
        super().__init__(reason or f'Could not find a selectable entry for "{term}" in class {category}', stage=5)
        self.term = term
        self.category = category
        self.suggestions = suggestions or []


class FinalSubmitDisabled(DpmaError):
    error_code = "FinalSubmitDisabled"


class FinalizationError(DpmaError):
    error_code = "FinalizationError"


class TaxonomyLoadError(DpmaError):
    error_code = "TaxonomyLoadError"
