"""Exception handlers producing the {success: false, error, kind, message} envelope"""

import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from contract_ledger.api.dependencies import get_request_id
from contract_ledger.api.v1.schemas import ErrorResponse
from contract_ledger.domain.exceptions import (
    CONFLICT,
    NOT_FOUND,
    PERSISTENCE_FAILURE,
    VALIDATION,
    DomainException,
)

STATUS_BY_KIND = {
    NOT_FOUND: 404,
    CONFLICT: 409,
    VALIDATION: 400,
    PERSISTENCE_FAILURE: 500,
}


def error_response(status_code: int, error: str, kind: str, message: str, data=None) -> JSONResponse:
    body = ErrorResponse(error=error, kind=kind, message=message, data=data)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code = STATUS_BY_KIND.get(exc.kind, 500)
    log = logging.error if status_code >= 500 else logging.warning
    log(f"{exc.code}: {exc.message}", extra={"request_id": get_request_id(request), "kind": exc.kind})
    return error_response(status_code, exc.code, exc.kind, exc.message, exc.data)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}"
        for err in exc.errors()
    )
    return error_response(400, "validation_error", VALIDATION, f"Invalid request: {problems}")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    kind = NOT_FOUND if exc.status_code == 404 else PERSISTENCE_FAILURE if exc.status_code >= 500 else VALIDATION
    error = "internal_error" if exc.status_code >= 500 else "http_error"
    return error_response(exc.status_code, error, kind, str(exc.detail))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
