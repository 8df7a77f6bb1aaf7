"""
Middleware zona waktu: menambahkan informasi WIB ke header setiap respons API.
"""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from ..utils.timezone import get_jakarta_timezone_info


class TimezoneMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        timezone_info = get_jakarta_timezone_info()
        response.headers["X-Timezone"] = timezone_info["timezone"]
        response.headers["X-Timezone-Offset"] = timezone_info["offset"]
        response.headers["X-Current-Time-WIB"] = timezone_info["current_time"]

        return response
