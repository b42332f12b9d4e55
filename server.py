# FastAPI Server for creator collaborations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from dotenv import load_dotenv

from config.app_config import LOG_LEVEL
from database.config import init_db
from services.errors import CollaborationError

from routers import (
    requests_router,
    contracts_router,
    payments_router,
    availability_router,
    creators_router,
    notifications_router,
)

load_dotenv()

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Collaboration API",
    description="Brand and creator collaboration requests with escrow settlement",
    version="2.0.0"
)


@app.on_event("startup")
def startup_event():
    init_db()
    logger.info("Database tables initialized")


@app.exception_handler(CollaborationError)
async def collaboration_error_handler(request: Request, exc: CollaborationError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# CORS Setup - Allow all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Required when using "*"
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

app.include_router(requests_router, prefix="/api/v2")
app.include_router(contracts_router, prefix="/api/v2")
app.include_router(payments_router, prefix="/api/v2")
app.include_router(availability_router, prefix="/api/v2")
app.include_router(creators_router, prefix="/api/v2")
app.include_router(notifications_router, prefix="/api/v2")


@app.get("/")
def root():
    return {"name": "Collaboration API", "version": app.version}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server:app", host="0.0.0.0", port=8000, reload=False)
