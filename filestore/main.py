"""
Admin/ops FastAPI application for the file store bot.
Serves health, admin API and metrics; the bot itself runs in filestore.bot.main.
"""
from fastapi import FastAPI

from filestore.api.routes import admin, health
from filestore.core.logging import configure_logging
from filestore.utils.metrics import router as metrics_router


configure_logging()

app = FastAPI(
    title="File Store API",
    description="Admin API for the file store bot",
    version="1.0.0",
)

# Routers
app.include_router(health.router, tags=["health"])
app.include_router(admin.router)
app.include_router(metrics_router)
