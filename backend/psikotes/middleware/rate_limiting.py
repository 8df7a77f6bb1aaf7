import json
import time
import logging
from typing import Callable, Dict, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.cache import cache
from ..core.config import settings

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window limiter for the expensive routes: question generation and auth."""

    def __init__(self, app, generation_rpm: Optional[int] = None, auth_rpm: Optional[int] = None):
        super().__init__(app)
        root = settings.api_root
        self.endpoint_limits: Dict[str, int] = {
            f"{root}/generate-questions": generation_rpm or settings.generation_rate_limit,
            f"{root}/kreplin-results/": generation_rpm or settings.generation_rate_limit,
            f"{root}/auth/": auth_rpm or settings.auth_rate_limit,
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method != "POST":
            return await call_next(request)

        prefix, limit = self._match(request)
        if prefix is None:
            return await call_next(request)

        window = int(time.time() // WINDOW_SECONDS)
        key = f"ratelimit:{prefix}:{self._get_client_ip(request)}:{window}"
        count = await cache.aincr(key, WINDOW_SECONDS)

        # cache unavailable: let the request through
        if count is not None and count > limit:
            retry_after = WINDOW_SECONDS - int(time.time() % WINDOW_SECONDS)
            logger.warning(f"Rate limit exceeded for {key} ({count}/{limit})")
            response = Response(
                content=json.dumps({"error": "Terlalu banyak permintaan. Coba lagi nanti."}),
                status_code=429,
                media_type="application/json",
            )
            response.headers["Retry-After"] = str(retry_after)
            response.headers["X-RateLimit-Limit"] = str(limit)
            response.headers["X-RateLimit-Remaining"] = "0"
            return response

        response = await call_next(request)
        if count is not None:
            response.headers["X-RateLimit-Limit"] = str(limit)
            response.headers["X-RateLimit-Remaining"] = str(max(limit - count, 0))
        return response

    def _match(self, request: Request):
        path = request.url.path
        for prefix, limit in self.endpoint_limits.items():
            if path.startswith(prefix):
                # only the analyze action under kreplin-results calls the model
                if prefix.endswith("/kreplin-results/") and not path.endswith("/analyze"):
                    continue
                return prefix, limit
        return None, 0

    def _get_client_ip(self, request: Request) -> str:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        return request.client.host if request.client else "unknown"
