"""トークン認証ミドルウェア。"""

import hmac

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp


def _presented_token(request: Request) -> str:
    """Authorization: Bearer ヘッダー、なければ token クエリパラメータの値を返す。"""
    auth = request.headers.get("authorization", "")
    scheme, _, credentials = auth.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return request.query_params.get("token", "")


class TokenAuthMiddleware(BaseHTTPMiddleware):
    """TRADEGUARD_URL_TOKEN が設定されている場合にトークンを検証する。

    /health はヘルスチェック用のため検証をスキップする。
    """

    SKIP_PATHS = frozenset({"/health"})

    def __init__(self, app: ASGIApp, url_token: str = "") -> None:
        super().__init__(app)
        self.url_token = url_token

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.url_token or request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        if not hmac.compare_digest(_presented_token(request).encode(), self.url_token.encode()):
            return JSONResponse(
                {"error": "Unauthorized", "message": "Invalid or missing token"},
                status_code=401,
            )

        return await call_next(request)
