"""实时广播中心

队员终端通过 WebSocket 上报位置和设备状态，广播中心先写入位置台账，
写入成功后再原样转发给所有在线连接（包括上报者自己）。

所有事件进入同一个有界队列，由唯一的后台任务按到达顺序处理，
在线连接表只在事件循环内修改，不需要加锁。
"""

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional
from uuid import uuid4

from fastapi import WebSocket, WebSocketDisconnect
from loguru import logger
from pydantic import ValidationError

from core.exceptions import StorageError
from core.settings import settings
from apps.rescuers import crud as ledger
from apps.rescuers.schemas import DeviceStatusUpdate, LocationUpdate


class HubEvent(str, Enum):
    """实时通道事件名"""
    LOCATION_UPDATE = "locationUpdate"
    DEVICE_STATUS_UPDATE = "deviceStatusUpdate"


Persister = Callable[[dict], Awaitable[Any]]


async def persist_location(payload: dict) -> None:
    update = LocationUpdate.model_validate(payload)
    await ledger.record_location(
        update.user_id,
        update.latitude,
        update.longitude,
        altitude=update.altitude,
        accuracy=update.accuracy,
        timestamp=update.timestamp,
    )


async def persist_device_status(payload: dict) -> None:
    update = DeviceStatusUpdate.model_validate(payload)
    await ledger.record_device_status(update.user_id, update.battery_level, update.battery_status)


DEFAULT_PERSISTERS: Dict[HubEvent, Persister] = {
    HubEvent.LOCATION_UPDATE: persist_location,
    HubEvent.DEVICE_STATUS_UPDATE: persist_device_status,
}


class BroadcastHub:
    def __init__(self, persisters: Optional[Dict[HubEvent, Persister]] = None, maxsize: Optional[int] = None):
        self.active_connections: Dict[str, WebSocket] = {}
        self._persisters = dict(DEFAULT_PERSISTERS if persisters is None else persisters)
        self._maxsize = settings.HUB_QUEUE_MAXSIZE if maxsize is None else maxsize
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self):
        """启动后台处理任务"""
        if self.running:
            return
        self._queue = asyncio.Queue(maxsize=self._maxsize)
        self._worker = asyncio.create_task(self._run())
        logger.info("广播中心已启动")

    async def stop(self):
        """停止后台处理任务，队列中未处理的事件直接丢弃"""
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        self._queue = None
        logger.info("广播中心已停止")

    async def join(self):
        """等待队列中的事件全部处理完"""
        if self._queue is not None:
            await self._queue.join()

    async def connect(self, websocket: WebSocket) -> str:
        await websocket.accept()
        connection_id = uuid4().hex
        self.active_connections[connection_id] = websocket
        logger.info(f"实时连接建立: {connection_id}，当前在线 {len(self.active_connections)}")
        return connection_id

    def disconnect(self, connection_id: str):
        if self.active_connections.pop(connection_id, None) is not None:
            logger.info(f"实时连接断开: {connection_id}，当前在线 {len(self.active_connections)}")

    def submit(self, event: Any, payload: Any) -> bool:
        """把事件放入处理队列

        Returns:
            bool: 队列已满被丢弃时返回False
        """
        if not self.running:
            raise RuntimeError("广播中心未启动")
        try:
            self._queue.put_nowait((event, payload))
        except asyncio.QueueFull:
            logger.warning(f"广播队列已满，丢弃 {event} 事件")
            return False
        return True

    async def _run(self):
        while True:
            event, payload = await self._queue.get()
            try:
                await self.dispatch(event, payload)
            except Exception:
                logger.exception(f"处理实时事件 {event} 时发生未预期的错误")
            finally:
                self._queue.task_done()

    async def dispatch(self, event: Any, payload: Any) -> int:
        """先持久化再广播

        持久化失败或数据无效时只记日志，不广播，也不通知上报者。

        Returns:
            int: 成功投递的连接数
        """
        try:
            hub_event = HubEvent(event)
        except ValueError:
            logger.warning(f"忽略未知的实时事件: {event}")
            return 0

        if not isinstance(payload, dict):
            logger.warning(f"忽略格式错误的 {hub_event.value} 事件: {payload!r}")
            return 0

        try:
            await self._persisters[hub_event](payload)
        except ValidationError as e:
            logger.warning(f"丢弃无效的 {hub_event.value} 事件: {e.errors()}")
            return 0
        except StorageError:
            logger.error(f"{hub_event.value} 事件持久化失败，未广播: {payload}")
            return 0

        return await self.broadcast(hub_event, payload)

    async def broadcast(self, event: HubEvent, payload: dict) -> int:
        """原样转发给所有在线连接，发送失败的连接从连接表中移除"""
        message = {"event": event.value, "data": payload}
        delivered = 0
        for connection_id, websocket in list(self.active_connections.items()):
            try:
                await websocket.send_json(message)
                delivered += 1
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                logger.warning(f"向 {connection_id} 发送失败，移除连接: {str(e)}")
                self.disconnect(connection_id)
        return delivered


# 全局广播中心实例，在应用生命周期中启动和停止
hub = BroadcastHub()
