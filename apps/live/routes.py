import json
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger
from .hub import hub

router = APIRouter()


@router.websocket("/ws")
async def live_channel(websocket: WebSocket):
    """实时通道

    消息格式: {"event": "locationUpdate" | "deviceStatusUpdate", "data": {...}}
    """
    connection_id = await hub.connect(websocket)
    try:
        while True:
            text = await websocket.receive_text()
            try:
                message = json.loads(text)
            except ValueError:
                logger.warning(f"{connection_id} 发送了无法解析的消息")
                continue
            if not isinstance(message, dict) or "event" not in message:
                logger.warning(f"{connection_id} 发送的消息缺少 event 字段")
                continue
            hub.submit(message["event"], message.get("data"))
    except WebSocketDisconnect:
        pass
    finally:
        hub.disconnect(connection_id)
