from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Header, Request

from chat_relay.api.deps import DispatcherDep
from chat_relay.api.v1.schemas.message import ErrorResponse, SendMessageResponse

router = APIRouter(prefix="/api/v1/messages", tags=["messages"])

CONNECTION_HEADER = "X-Connection-ID"


@router.post(
    "",
    response_model=SendMessageResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def send_message(
    request: Request,
    dispatcher: DispatcherDep,
    connection_id: Annotated[str | None, Header(alias=CONNECTION_HEADER)] = None,
) -> SendMessageResponse:
    """Relay a message from the sender's live connection to a friend."""
    body = await request.body()
    outcome = await dispatcher.dispatch(connection_id, body)
    return SendMessageResponse.from_outcome(outcome)
