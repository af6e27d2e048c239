from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from loguru import logger

from proxy.app.composition import create_proxy_dependencies
from proxy.app.config.settings import Settings
from proxy.app.constants import SERVICE_NAME
from proxy.app.routers.fetch import fetch_router
from proxy.app.routers.health import health_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.bind(service_name=SERVICE_NAME, event="proxy_starting").info("")
    deps = create_proxy_dependencies()
    try:
        deps.connect()
    except Exception as e:
        logger.exception("fetch client setup failed: {}", e)
        raise

    app.state.settings = deps.settings
    app.state.client = deps.client
    try:
        yield
    finally:
        logger.bind(service_name=SERVICE_NAME, event="proxy_stopping").info("")
        app.state.client = None
        deps.close()


app = FastAPI(
    title="HTTP to NWEP Proxy",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(fetch_router)


def main() -> None:
    settings = Settings()
    logger.bind(service_name=SERVICE_NAME, event="proxy_listening", host=settings.host, port=settings.port).info("")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
