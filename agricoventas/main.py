# agricoventas/main.py

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from agricoventas.core import logging_config  # noqa: F401  configures logging on import
from agricoventas.core.config import get_settings
from agricoventas.core.responses import register_exception_handlers
from agricoventas.database import engine
from agricoventas.routes import (
    auth,
    categories,
    certifications,
    health,
    locations,
    notifications,
    orders,
    products,
    reviews,
    uploads,
    users,
)

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting Agricoventas API ({settings.ENVIRONMENT})")
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Database engine disposed")


app = FastAPI(
    title="Agricoventas API",
    description="Marketplace connecting Colombian agricultural producers and buyers",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)


# Add middleware to handle HTTPS behind proxy
@app.middleware("http")
async def proxy_headers_middleware(request: Request, call_next):
    forwarded_proto = request.headers.get("x-forwarded-proto")
    if forwarded_proto == "https":
        request.scope["scheme"] = "https"
    response = await call_next(request)
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Uploaded files are served straight from MEDIA_ROOT
media_dir = Path(settings.MEDIA_ROOT).expanduser()
media_dir.mkdir(parents=True, exist_ok=True)
app.mount(settings.MEDIA_URL_PREFIX, StaticFiles(directory=str(media_dir)), name="media")

app.include_router(auth.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(locations.router, prefix="/api")
app.include_router(categories.router, prefix="/api")
app.include_router(products.router, prefix="/api")
app.include_router(orders.router, prefix="/api")
app.include_router(certifications.router, prefix="/api")
app.include_router(reviews.router, prefix="/api")
app.include_router(notifications.router, prefix="/api")
app.include_router(uploads.router, prefix="/api")
app.include_router(health.router)


@app.get("/")
async def root():
    return {"name": "Agricoventas API", "docs": "/docs", "health": "/health"}
