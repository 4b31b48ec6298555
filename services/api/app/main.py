"""orderbridge API service entrypoint."""

from fastapi import FastAPI

from services.api.app.db.init_db import init_db
from services.api.app.logging_config import configure_logging
from services.api.app.routers.orders import router as orders_router
from services.api.app.routers.workflows import router as workflows_router

app = FastAPI(title="orderbridge API")

app.include_router(orders_router)
app.include_router(workflows_router)


@app.on_event("startup")
def _startup() -> None:
    configure_logging()
    init_db()


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
