"""
User account routes.

Service calls hash passwords, so they run in the threadpool to keep the
event loop free.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from chatboard import user_service
from chatboard.schemas import NewUser, SafeUser, ServiceError, validate_user_body
from chatboard.storage import get_db
from chatboard.utils import read_json_body

logger = logging.getLogger(__name__)

LOGIN_FAILED = "Login failed"


def _user_json(user: SafeUser) -> JSONResponse:
    return JSONResponse(user.model_dump(mode="json", by_alias=True), status_code=status.HTTP_200_OK)


def _error_json(message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def create_router() -> APIRouter:
    router = APIRouter(tags=["users"])

    @router.post("/signup", response_model=None)
    async def create_user(request: Request, db: Session = Depends(get_db)) -> Response:
        """Create an account; the join date is set server-side."""
        validation = validate_user_body(await read_json_body(request))
        if not validation.valid:
            return PlainTextResponse(validation.reason, status_code=status.HTTP_400_BAD_REQUEST)

        user = NewUser(
            username=validation.value.username,
            password=validation.value.password,
            date_joined=datetime.now(timezone.utc),
        )

        try:
            result = await run_in_threadpool(user_service.save_user, db, user)
        except Exception as e:
            result = ServiceError(error=str(e))

        if isinstance(result, ServiceError):
            logger.error(f"Signup failed for {user.username}: {result.error}")
            return PlainTextResponse(
                f"Error occured while creating user: {result.error}",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return _user_json(result)

    @router.post("/login", response_model=None)
    async def user_login(request: Request, db: Session = Depends(get_db)) -> Response:
        """
        Check credentials.

        Every failure, unknown user or wrong password alike, is reported as
        a generic 500 "Login failed".
        """
        validation = validate_user_body(await read_json_body(request))
        if not validation.valid:
            return PlainTextResponse(validation.reason, status_code=status.HTTP_400_BAD_REQUEST)

        try:
            result = await run_in_threadpool(user_service.login_user, db, validation.value)
        except Exception as e:
            result = ServiceError(error=str(e))

        if isinstance(result, ServiceError):
            logger.warning(f"Login failed for {validation.value.username}: {result.error}")
            return PlainTextResponse(LOGIN_FAILED, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return _user_json(result)

    @router.get("/getUser/{username}", response_model=None)
    async def get_user(username: str, db: Session = Depends(get_db)) -> Response:
        try:
            result = await run_in_threadpool(user_service.get_user_by_username, db, username)
        except Exception as e:
            result = ServiceError(error=str(e))

        if isinstance(result, ServiceError):
            return _error_json(f"Error occured when getting user by username: {result.error}")
        return _user_json(result)

    @router.delete("/deleteUser/{username}", response_model=None)
    async def delete_user(username: str, db: Session = Depends(get_db)) -> Response:
        try:
            result = await run_in_threadpool(user_service.delete_user_by_username, db, username)
        except Exception as e:
            result = ServiceError(error=str(e))

        if isinstance(result, ServiceError):
            return _error_json(f"Error occured when deleting user by username: {result.error}")
        return _user_json(result)

    @router.patch("/resetPassword", response_model=None)
    async def reset_password(request: Request, db: Session = Depends(get_db)) -> Response:
        """Replace the password of the named user."""
        validation = validate_user_body(await read_json_body(request))
        if not validation.valid:
            return PlainTextResponse(validation.reason, status_code=status.HTTP_400_BAD_REQUEST)

        try:
            result = await run_in_threadpool(
                user_service.update_user,
                db,
                validation.value.username,
                {"password": validation.value.password},
            )
        except Exception as e:
            result = ServiceError(error=str(e))

        if isinstance(result, ServiceError):
            return _error_json(f"Error when updating user password: {result.error}")
        return _user_json(result)

    return router
