"""Realtime router - pin change feed over WebSocket."""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from relief_tracker.core.database import get_db
from relief_tracker.core.security import load_profile, verify_id_token
from relief_tracker.services.notifications import PinChangeBroker, get_change_broker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime", tags=["realtime"])


@router.websocket("/pins")
async def pin_changes(
    ws: WebSocket,
    token: str = Query(...),
    broker: PinChangeBroker = Depends(get_change_broker),
    db: AsyncSession = Depends(get_db),
):
    """Push a message for every committed pin change.

    Messages look like ``{"kind": "update", "pin_id": "..."}``. They carry
    no pin data; the client re-runs its pin query when one arrives.
    Browsers cannot set headers on WebSocket requests, so the Firebase ID
    token comes in the ``token`` query parameter. Deactivated accounts are
    refused with close code 1008, like an invalid token.
    """
    try:
        user = verify_id_token(token)
    except HTTPException:
        await ws.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    profile = await load_profile(db, user)
    # The socket outlives the request, so the connection goes back to the pool now
    await db.close()
    if not profile.is_active:
        logger.warning(f"[REALTIME] Refused deactivated account {user.uid}")
        await ws.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    # Subscribed before accepting so no change committed after the handshake is missed
    queue = broker.subscribe()
    logger.info(f"[REALTIME] {user.uid} subscribed ({broker.subscriber_count} listening)")
    receiver = None
    try:
        await ws.accept()
        receiver = asyncio.create_task(ws.receive_text())
        while True:
            getter = asyncio.create_task(queue.get())
            done, _ = await asyncio.wait(
                {getter, receiver}, return_when=asyncio.FIRST_COMPLETED
            )
            if getter in done:
                await ws.send_json(getter.result().model_dump(mode="json"))
            else:
                getter.cancel()
            if receiver in done:
                # Client messages are ignored; this only detects disconnects
                receiver.result()
                receiver = asyncio.create_task(ws.receive_text())
    except WebSocketDisconnect:
        pass
    finally:
        if receiver is not None:
            receiver.cancel()
        broker.unsubscribe(queue)
        logger.info(f"[REALTIME] {user.uid} unsubscribed")
