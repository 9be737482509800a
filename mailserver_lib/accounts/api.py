from typing import Optional

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from mailserver_lib.accounts.errors import AuthenticationError
from mailserver_lib.services.resolver import resolve_service
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

BAD_REQUEST_MESSAGE = 'Request must contain username, oldPassword and newPassword'


class PasswordChangePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    old_password: Optional[str] = Field(default=None, alias='oldPassword')
    new_password: Optional[str] = Field(default=None, alias='newPassword')


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={'success': False, 'code': status_code, 'message': message},
    )


# Plain `def`: the store does blocking file I/O, so FastAPI runs this in its threadpool.
@router.post('/user/{username}')
def change_password(username: str, request: Request, payload: Optional[PasswordChangePayload] = Body(default=None)):
    """Change the password of `username` after checking the old one."""
    if payload is None or payload.old_password is None or payload.new_password is None:
        logger.info('Rejected password change for %s: incomplete request', username)
        return error_response(400, BAD_REQUEST_MESSAGE)

    store = resolve_service(request, 'account_store')
    try:
        store.verify_and_update_user_password(username, payload.old_password, payload.new_password)
    except AuthenticationError:
        return error_response(403, 'Bad username or password')
    except Exception:
        logger.exception('Failed to change password for %s', username)
        return error_response(500, 'Internal server error')

    logger.info('Password changed for %s', username)
    return {'success': True, 'username': username}
