import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from archive.service import ArchiveManager
from auth import router as auth_router
from core.db import Database, QueryExecutor
from core.errors import RecordsError
from core.http import records_error_handler
from core.log import configure_logging
from core.schema import SchemaCapabilities, probe_capabilities
from courses import router as courses_router
from dashboard import router as dashboard_router
from enrollments import router as enrollments_router
from grades import router as grades_router
from majors import router as majors_router
from programs import router as programs_router
from students import router as students_router
from students.photos import upload_dir
from users import router as users_router

DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173"


def cors_origins() -> list[str]:
    raw = os.environ.get("CORS_ORIGINS", "").strip() or DEFAULT_CORS_ORIGINS
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def create_app(database: Database | None = None, capabilities: SchemaCapabilities | None = None) -> FastAPI:
    """
    Build the API. Tests pass a `Database` wrapping their own pool and, when
    they want to pin the majors schema, explicit `capabilities`.
    """
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # One pool per process; probe the schema once, not per request.
        db = database or Database()
        await db.connect()
        executor = QueryExecutor(db)
        caps = capabilities or await probe_capabilities(executor)

        app.state.executor = executor
        app.state.capabilities = caps
        app.state.archive = ArchiveManager(executor, caps)
        try:
            yield
        finally:
            await db.close()

    app = FastAPI(lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RecordsError, records_error_handler)
    app.mount("/uploads", StaticFiles(directory=str(upload_dir()), check_dir=False), name="uploads")

    app.include_router(auth_router.router, tags=["auth"])
    app.include_router(students_router.router, tags=["students"])
    app.include_router(programs_router.router, tags=["programs"])
    app.include_router(majors_router.router, tags=["majors"])
    app.include_router(courses_router.router, tags=["courses"])
    app.include_router(enrollments_router.router, tags=["enrollments"])
    app.include_router(grades_router.router, tags=["grades"])
    app.include_router(users_router.router, tags=["users"])
    app.include_router(dashboard_router.router, tags=["dashboard"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/")
    def root() -> dict:
        return {"message": "academic records api"}

    return app


app = create_app()
