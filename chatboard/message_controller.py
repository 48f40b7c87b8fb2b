"""
Message board routes.

The router is built by `create_router(notifier)` so the real-time channel is
supplied by whoever assembles the application.
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from sqlalchemy.orm import Session

from chatboard import message_service
from chatboard.logging_utils import log_message_data
from chatboard.metrics import record_message_outcome
from chatboard.notifier import MESSAGE_UPDATE, Notifier
from chatboard.schemas import INVALID_REQUEST, ServiceError, validate_add_message_request
from chatboard.storage import get_db
from chatboard.utils import read_json_body

logger = logging.getLogger(__name__)


def create_router(notifier: Notifier) -> APIRouter:
    router = APIRouter(tags=["messages"])

    def _add_failed(request: Request, error: str) -> Response:
        record_message_outcome("error")
        log_message_data(request=request, result="error")
        return PlainTextResponse(
            f"Error when adding a message: {error}",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    @router.post("/addMessage", response_model=None)
    async def add_message_route(request: Request, db: Session = Depends(get_db)) -> Response:
        """
        Validate and save a message, then broadcast it to realtime subscribers.

        - 400 "Invalid request" when messageToAdd is missing or null
        - 400 "Invalid message body" when msg, msgFrom or msgDateTime is unusable
        - 500 "Error when adding a message: ..." when the save fails
        - 200 with the saved message otherwise
        """
        body = await read_json_body(request)
        validation = validate_add_message_request(body)

        if not validation.valid:
            result = "invalid_request" if validation.reason == INVALID_REQUEST else "invalid_body"
            logger.warning(f"Rejected message: {validation.reason}")
            record_message_outcome(result)
            log_message_data(request=request, result=result)
            return PlainTextResponse(validation.reason, status_code=status.HTTP_400_BAD_REQUEST)

        try:
            saved = message_service.save_message(db, validation.value)
        except Exception as e:
            logger.error(f"Unexpected error while saving message: {e}")
            return _add_failed(request, str(e))

        if isinstance(saved, ServiceError):
            logger.error(f"Message was not saved: {saved.error}")
            return _add_failed(request, saved.error)

        payload = saved.model_dump(mode="json", by_alias=True)
        # The realtime channel is public; direct messages are never broadcast
        if saved.type == "global":
            notifier.emit(MESSAGE_UPDATE, {"msg": payload})

        record_message_outcome("created")
        log_message_data(request=request, message_id=saved.id, result="created")
        return JSONResponse(payload, status_code=status.HTTP_200_OK)

    @router.get("/getMessages", response_model=None)
    async def get_messages_route(db: Session = Depends(get_db)) -> Response:
        """Return every global message, oldest first."""
        try:
            messages = message_service.get_messages(db)
        except Exception as e:
            logger.error(f"Unexpected error while listing messages: {e}")
            return JSONResponse(
                {"error": str(e)},
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return JSONResponse(
            [message.model_dump(mode="json", by_alias=True) for message in messages],
            status_code=status.HTTP_200_OK,
        )

    return router
