import logging

from aiogram import Router
from aiogram.types import ErrorEvent

logger = logging.getLogger(__name__)

router = Router(name="errors")

@router.error()
async def on_error(event: ErrorEvent):
    update_id = getattr(event.update, "update_id", "-")
    logger.error(
        "Error in handler: %s", event.exception,
        exc_info=event.exception,
        extra={"update_id": update_id},
    )
