import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import API_TITLE, API_VERSION, CORS_ORIGINS, HOST, LOG_FORMAT, LOG_LEVEL, PORT
from database import PatientStore, init_database
from exceptions import InternalError, PortalError
from realtime.hub import Hub
from routers import auth_router, patients_router, records_router, socket_router
from services import PatientWriteService

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


def _error_body(message: str) -> dict:
    return {"success": False, "message": message}


def create_app(store: Optional[PatientStore] = None, hub: Optional[Hub] = None) -> FastAPI:
    """Build an app with its own store and notification hub"""
    app = FastAPI(title=API_TITLE, version=API_VERSION)

    app.state.store = store if store is not None else init_database()
    app.state.hub = hub if hub is not None else Hub()
    app.state.write_service = PatientWriteService(app.state.store, app.state.hub)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(PortalError)
    async def portal_error_handler(request: Request, exc: PortalError):
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=_error_body("Invalid request body"))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return await portal_error_handler(request, InternalError("Internal server error"))

    # Include routers
    app.include_router(auth_router.router)
    app.include_router(patients_router.router)
    app.include_router(records_router.router)
    app.include_router(socket_router.router)

    @app.get("/api/health")
    def health_check():
        return {"status": "OK", "message": "Server is running"}

    @app.get("/")
    def root():
        return {
            "message": "Swasth Saathi Healthcare Portal API",
            "docs": "/docs",
            "endpoints": {
                "login": "POST /api/login",
                "patient": "GET /api/patient/{id}",
                "add_record": "POST /api/add-record",
                "add_prescription": "POST /api/add-prescription",
                "health": "GET /api/health",
                "realtime": "WS /ws",
            },
            "default_users": {
                "drmehta": "docpass123",
                "pharma1": "pharmapass",
                "vishwakarma_4294@sbx": "saurabh4294!",
            },
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=HOST, port=PORT)
