"""Progress Service API - FastAPI with DynamoDB and Cognito"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chemquest.config import get_settings
from chemquest.core.db import get_dynamodb_client
from chemquest.middleware.request_context import RequestIDMiddleware, RequestLoggingMiddleware
from chemquest.routers import auth, challenges, leaderboard, progress, referrals, shop

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{settings.VERSION} ({settings.ENVIRONMENT})")
    if settings.CREATE_TABLES_ON_STARTUP:
        get_dynamodb_client().create_tables_if_not_exist()
    yield
    logger.info(f"Shutting down {settings.APP_NAME}")


app = FastAPI(
    title="ChemQuest Progress Service API",
    description="XP, ranks, streaks, daily challenges, referrals and shop",
    version=settings.VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

# Added last runs first: the request id must exist before the logger reads it
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

app.include_router(auth.router, prefix="/api/v1")
app.include_router(progress.router, prefix="/api/v1")
app.include_router(challenges.router, prefix="/api/v1")
app.include_router(referrals.router, prefix="/api/v1")
app.include_router(shop.router, prefix="/api/v1")
app.include_router(leaderboard.router, prefix="/api/v1")


@app.get("/")
async def root():
    return {"service": "progress-service", "status": "running", "version": settings.VERSION}


@app.get("/health")
@app.get("/api/v1/health")
async def health():
    try:
        client = get_dynamodb_client()
        client.dynamodb.meta.client.describe_table(TableName=settings.DYNAMODB_PROGRESS_TABLE)
        return {"status": "healthy", "dynamodb": "connected"}
    except Exception as e:
        logger.warning(f"Health check DynamoDB connection failed: {e}")
        # Still healthy for the load balancer; the table may come up later
        return {"status": "healthy", "dynamodb": "unavailable"}
