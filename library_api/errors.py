"""
Error kinds the routers raise besides plain ``HTTPException`` (400/404), and
the handlers that render them.

- ``ValidationProblem``: 422 with a ``{key: [messages]}`` map.
- ``PersistenceError``: a failed commit. Never retried; rendered as 500.
"""

import logging
from typing import Dict, Iterable, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("library_api.errors")

DESCRIPTION_EQUALS_TITLE = "The provided description should be different from the title."

UNPROCESSABLE_ENTITY = 422


class ValidationErrors:
    """Accumulates field-level messages, keyed by field or DTO name."""

    def __init__(self):
        self._errors: Dict[str, List[str]] = {}

    def add(self, key: str, message: str) -> None:
        self._errors.setdefault(key, []).append(message)

    def add_pydantic(self, errors: Iterable[dict]) -> None:
        for err in errors:
            self.add(error_key(err["loc"]), err["msg"])

    @property
    def is_valid(self) -> bool:
        return not self._errors

    def as_dict(self) -> Dict[str, List[str]]:
        return {key: list(messages) for key, messages in self._errors.items()}


class ValidationProblem(Exception):
    def __init__(self, errors: ValidationErrors):
        super().__init__("Validation failed")
        self.errors = errors


class PersistenceError(Exception):
    """Raised when the unit of work could not be committed."""


def error_key(loc) -> str:
    # FastAPI prefixes request errors with where the value came from
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def check_description_differs(title, description, dto_name: str, errors: ValidationErrors) -> None:
    if description == title:
        errors.add(dto_name, DESCRIPTION_EQUALS_TITLE)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationProblem)
    async def validation_problem_handler(request: Request, exc: ValidationProblem):
        return JSONResponse(
            status_code=UNPROCESSABLE_ENTITY,
            content=exc.errors.as_dict(),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        # An unreadable body is a bad request, not a validation failure
        if any(err.get("type") == "json_invalid" for err in exc.errors()):
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"detail": "The request body is not valid JSON"},
            )
        errors = ValidationErrors()
        errors.add_pydantic(exc.errors())
        return JSONResponse(
            status_code=UNPROCESSABLE_ENTITY,
            content=errors.as_dict(),
        )

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        logger.error(
            "method=%s path=%s error=%s", request.method, request.url.path, exc, exc_info=exc
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": str(exc)},
        )
