from fastapi import APIRouter, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..coordinator import METHOD_NOT_ALLOWED

router = APIRouter()

# Common methods are routed here so the coordinator owns the 405 contract.
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"]


@router.api_route("/api/summary/", methods=ALL_METHODS)
@router.api_route("/api/summary", methods=ALL_METHODS, include_in_schema=False)
async def summary(request: Request) -> JSONResponse:
    coordinator = request.app.state.coordinator
    body = await request.body() if request.method == "POST" else None
    result = await coordinator.handle(
        request.method,
        body,
        request_id=request.headers.get("X-Request-Id"),
    )
    return JSONResponse(status_code=result.status_code, content=result.payload)


async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    """Router-level 405s (methods outside ALL_METHODS) keep the ``{"message"}`` body."""
    if exc.status_code != 405:
        return await http_exception_handler(request, exc)
    return JSONResponse(status_code=405, content={"message": METHOD_NOT_ALLOWED}, headers=exc.headers)
