import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rentacar.config import settings, configure_logging
from rentacar.api import routes
from rentacar.worker import start_function_host, stop_function_host

configure_logging()
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(routes.router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Unknown path or method -> 404 Route not found"""
    if exc.status_code in (404, 405):
        return JSONResponse(status_code=404, content={"message": "Route not found"})
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})


@app.on_event("startup")
async def startup_event():
    """Start the in-process function host when enabled"""
    if settings.run_functions_in_process:
        start_function_host()
    logger.info(f"BFF Service running on port {settings.port}")
    logger.info(f"Health check: http://localhost:{settings.port}/api/health")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop the in-process function host"""
    stop_function_host()


def run():
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
