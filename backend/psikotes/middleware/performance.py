import time
import logging
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable
from ..core.cache import cache
import psutil


perf_logger = logging.getLogger("performance")


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id, times it, and keeps hourly aggregates in the cache"""

    def __init__(self, app, slow_request_threshold: float = 1.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold
        self.request_count = 0
        self.total_response_time = 0.0
        self._process = psutil.Process()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        memory_before = self._process.memory_info().rss

        self.request_count += 1
        request_id = f"req_{self.request_count}_{int(start_time)}"
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as e:
            perf_logger.error(
                f"Request error: {request.method} {request.url.path} - "
                f"Error: {e} - Time: {time.time() - start_time:.3f}s"
            )
            raise

        process_time = time.time() - start_time
        self.total_response_time += process_time
        memory_delta = self._process.memory_info().rss - memory_before

        metrics = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "response_time": round(process_time, 3),
            "memory_delta_mb": round(memory_delta / (1024 * 1024), 2),
            "timestamp": start_time,
        }

        response.headers["X-Process-Time"] = str(round(process_time, 4))
        response.headers["X-Request-ID"] = request_id

        if process_time > self.slow_request_threshold:
            perf_logger.warning(
                f"Slow request: {request.method} {request.url.path} "
                f"took {process_time:.3f}s (threshold: {self.slow_request_threshold}s)"
            )

        perf_logger.info(
            f"{request.method} {request.url.path} - "
            f"{response.status_code} - {process_time:.3f}s"
        )

        await self._update_aggregated_metrics(metrics)
        return response

    async def _update_aggregated_metrics(self, metrics: dict):
        hour_key = f"metrics_hour:{int(time.time() // 3600)}"
        aggregated = await cache.aget(hour_key) or {
            "request_count": 0,
            "total_response_time": 0.0,
            "status_codes": {},
            "slow_requests": 0,
        }

        aggregated["request_count"] += 1
        aggregated["total_response_time"] += metrics["response_time"]
        status_code = str(metrics["status_code"])
        aggregated["status_codes"][status_code] = aggregated["status_codes"].get(status_code, 0) + 1
        if metrics["response_time"] > self.slow_request_threshold:
            aggregated["slow_requests"] += 1

        await cache.aset(hour_key, aggregated, ttl=7200)
