from fastapi import FastAPI

from . import assignments, auth, dashboard, health, projects, users


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the FastAPI application."""
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(projects.router)
    app.include_router(assignments.router)
    app.include_router(dashboard.router)
