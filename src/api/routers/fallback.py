"""Catch-all for API paths no other route handles. Must be included last."""
from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from schemas.common import ErrorResponse

router = APIRouter(include_in_schema=False)

ALLOWED_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
ALLOWED_HEADERS = "Content-Type, Authorization"


@router.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"],
)
async def unmatched_api_path(request: Request, path: str) -> Response:
    """
    Answer OPTIONS with a permissive preflight and everything else with a JSON 404.

    Browser preflights carrying an Origin header are answered earlier by the CORS
    middleware; this covers bare OPTIONS requests.
    """
    if request.method == "OPTIONS":
        return Response(
            status_code=200,
            headers={
                "Access-Control-Allow-Origin": "*",
                "Access-Control-Allow-Methods": ALLOWED_METHODS,
                "Access-Control-Allow-Headers": ALLOWED_HEADERS,
            },
        )
    return JSONResponse(
        status_code=404,
        content=ErrorResponse(error="API endpoint not found").model_dump(),
    )
