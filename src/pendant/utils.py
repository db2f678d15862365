import logging
import sys

from fastapi import HTTPException
from fastapi import Request
from loguru import logger

from pendant.services.pendant import PendantService

def setup_loguru(level="INFO"):
    class PropagateHandler(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            record.extra = []
            logging.getLogger(record.name).handle(record)

    logger.remove()
    logger.add(sink=sys.stdout, level=level)
    logger.add(PropagateHandler(), level=level, format="{message}")

def get_pendant_service(request: Request) -> PendantService:
    """
    Get the running pendant service from application state.

    Args:
        request: FastAPI request object

    Returns:
        Pendant service started by the application lifespan

    Raises:
        HTTPException: 503 if the pendant service is not available
    """
    if not hasattr(request.app.state, 'pendant'):
        raise HTTPException(status_code=503, detail="Pendant service not available")
    return request.app.state.pendant
