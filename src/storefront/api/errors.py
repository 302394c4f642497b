"""Map storefront errors to JSON responses."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ValidationError

from storefront.domain import logger
from storefront.errors import InvalidInput, StorefrontError


def error_response(error: StorefrontError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def _describe(errors) -> str:
    if not errors:
        return InvalidInput.default_message
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "is invalid")
    return f"{location}: {message}" if location else message


async def handle_storefront_error(request: Request, exc: StorefrontError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("api.upstream_failure", path=request.url.path, code=exc.code, error=exc.message)
    else:
        logger.info("api.rejected", path=request.url.path, code=exc.code, error=exc.message)
    return error_response(exc)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(InvalidInput(_describe(exc.errors())))


async def handle_domain_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    fields = ", ".join(sorted(exc.messages)) if isinstance(exc.messages, dict) else ""
    return error_response(InvalidInput(f"Invalid fields: {fields}" if fields else None))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, handle_storefront_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(ValidationError, handle_domain_validation_error)
