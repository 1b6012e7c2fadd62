import asyncio

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

router = APIRouter()

logger = structlog.get_logger()


@router.websocket("/ws/panels")
async def panels_ws(websocket: WebSocket):
    """Push panel updates: a full snapshot on connect, then each re-render."""
    board = websocket.app.state.panel_board
    await websocket.accept()
    queue = board.subscribe()

    async def push_updates():
        while True:
            state = await queue.get()
            await websocket.send_json({"type": "panel", "panel": state.model_dump(mode="json")})

    async def wait_for_disconnect():
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass

    try:
        await websocket.send_json({
            "type": "snapshot",
            "panels": [s.model_dump(mode="json") for s in board.states()],
        })

        # Run both concurrently; whichever finishes first cancels the other
        done, pending = await asyncio.wait(
            [
                asyncio.create_task(push_updates()),
                asyncio.create_task(wait_for_disconnect()),
            ],
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in pending:
            task.cancel()
    except WebSocketDisconnect:
        pass
    finally:
        board.unsubscribe(queue)
        logger.debug("panels_ws_closed")
