"""
API module - FastAPI routers and the error boundary.

Usage:
    from app.api.routes import api_router
    app.include_router(api_router, prefix="/api/v1")
"""
