import fastapi
from contextlib import asynccontextmanager
from loguru import logger

from pendant.routers.health import factory as health_factory
from pendant.routers.jog import factory as jog_factory
from pendant.schemas.config import PendantConfig
from pendant.services.pendant import PendantService
from pendant import utils

def lifespan_factory(config: PendantConfig, service: PendantService | None = None):
    @asynccontextmanager
    async def lifespan(app: fastapi.FastAPI):
        logger.info("Starting cncjs-pendant-gamepad")

        pendant = service if service is not None else PendantService(config)
        try:
            pendant.start()
            app.state.pendant = pendant
        except Exception as e:
            logger.error(f"Failed to start pendant: {e}")
            pendant.stop()
            raise

        yield

        logger.info("Shutting down cncjs-pendant-gamepad")
        try:
            app.state.pendant.stop()
            logger.info("Pendant stopped")
        except Exception as e:
            logger.error(f"Error stopping pendant: {e}")

    return lifespan

def factory(config: PendantConfig, service: PendantService | None = None):
    utils.setup_loguru(config.log_level)

    app = fastapi.FastAPI(lifespan=lifespan_factory(config, service))

    app.include_router(health_factory(app))
    app.include_router(jog_factory(app))

    return app
