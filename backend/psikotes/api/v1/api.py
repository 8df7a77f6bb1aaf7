from fastapi import APIRouter

from .endpoints import (
    auth, users, test_sessions, quick_sessions, public_sessions,
    kreplin_results, kreplin_duels, test_duels, dashboard, admin, health
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(users.router, tags=["users"])
api_router.include_router(test_sessions.router, prefix="/test-sessions", tags=["test-sessions"])
api_router.include_router(quick_sessions.router, tags=["quick-sessions"])
api_router.include_router(public_sessions.router, prefix="/public-sessions", tags=["public-sessions"])
api_router.include_router(kreplin_results.router, prefix="/kreplin-results", tags=["kreplin"])
api_router.include_router(kreplin_duels.router, prefix="/kreplin-duels", tags=["kreplin-duels"])
api_router.include_router(test_duels.router, prefix="/test-duels", tags=["test-duels"])
api_router.include_router(dashboard.router, tags=["dashboard"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(health.router, tags=["health"])
