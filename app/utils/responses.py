"""
Standardized response utilities
"""

from typing import Any, List, Optional
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.core.errors import AppError
from app.schemas.common import StandardResponse, ErrorResponse

def success_response(
    message: str,
    data: Any = None,
    status_code: int = 200
) -> JSONResponse:
    """Create standardized success response"""
    response = StandardResponse(
        success=True,
        message=message,
        data=jsonable_encoder(data)
    )
    return JSONResponse(
        content=response.model_dump(),
        status_code=status_code
    )

def error_response(
    message: str,
    error_code: Optional[str] = None,
    details: Any = None,
    status_code: int = 400
) -> JSONResponse:
    """Create standardized error response"""
    response = ErrorResponse(
        message=message,
        error_code=error_code,
        details=jsonable_encoder(details)
    )
    return JSONResponse(
        content=response.model_dump(),
        status_code=status_code
    )

def app_error_response(exc: AppError) -> JSONResponse:
    """Render an application error through the error envelope"""
    return error_response(
        message=exc.message,
        error_code=exc.error_code,
        details=exc.details,
        status_code=exc.status_code
    )

def request_validation_response(errors: List[dict]) -> JSONResponse:
    """Render FastAPI's request validation errors through the error envelope.

    ``details.field`` names the first offending field, matching the shape of
    ``ValidationError`` raised by the services.
    """
    fields = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")),
            "message": err.get("msg", "Invalid value"),
        }
        for err in errors
    ]
    first = fields[0] if fields else {"field": None, "message": "Invalid request"}
    return error_response(
        message=f"Invalid {first['field']}: {first['message']}" if first["field"] else first["message"],
        error_code="validation_error",
        details={"field": first["field"], "errors": fields},
        status_code=422
    )
