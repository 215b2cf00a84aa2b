# middleware.py
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

CORS_ALLOW_HEADERS = (
    'Content-Type, user-id, Authorization, x-file-name, x-file-size, '
    'x-upload-method, x-image-type, x-image-height, x-image-width'
)

CORS_PREFLIGHT_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'POST, OPTIONS',
    'Access-Control-Allow-Headers': CORS_ALLOW_HEADERS,
}


class CORSHeaderMiddleware(BaseHTTPMiddleware):
    """Every response, errors included, is readable from any origin."""

    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)
        response.headers.setdefault('Access-Control-Allow-Origin', '*')
        return response
