# shopcore/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from shopcore.data.database import Base, engine
from shopcore.api.routers import carts, orders, health
from shopcore.services.runtime_controls import RuntimeControls
from shopcore.utils.settings import SERVICE_ROLE
from shopcore.utils.logging import get_logger

# import wszystkich modeli przed create_all
import shopcore.data.models  # noqa: F401

logger = get_logger(__name__)

ROLES = ("all", "cart", "order")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Initializing database, tables: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    yield


def create_app(role: str = SERVICE_ROLE) -> FastAPI:
    """
    Jeden kod, osobne deploymenty: role "cart", "order" albo "all".
    """
    if role not in ROLES:
        raise ValueError(f"Unknown service role {role!r}, expected one of {ROLES}")

    app = FastAPI(
        title=f"Shop {role} service",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.controls = RuntimeControls()

    app.include_router(health.router)
    if role in ("all", "cart"):
        app.include_router(carts.router)
    if role in ("all", "order"):
        app.include_router(orders.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
