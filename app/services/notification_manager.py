"""
Notification Manager Service for the Walk Check-in service.

Notification sink for participants: stores each message and pushes it to
the recipient's open WebSocket connections. Delivery is best-effort; a
failure is logged here and never reaches the caller, whose state change
has already committed.
"""

import asyncio
import logging
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import AsyncSessionLocal
from app.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)


class NotificationManager:
    """
    Manages participant notifications.

    Provides functionality to:
    - Send a message to a participant (stored, then pushed live)
    - Track connected WebSocket clients by participant id
    - List and acknowledge stored notifications
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        self._session_factory = session_factory or AsyncSessionLocal
        # Maps participant_id -> set of WebSocket connections
        self._connections: dict[str, set[Any]] = {}
        self._lock = asyncio.Lock()

    async def register_connection(self, participant_id: str, websocket: Any) -> None:
        async with self._lock:
            self._connections.setdefault(participant_id, set()).add(websocket)
            logger.info(
                f"Participant {participant_id} connected to notifications. "
                f"Total: {len(self._connections[participant_id])}"
            )

    async def unregister_connection(self, participant_id: str, websocket: Any) -> None:
        async with self._lock:
            if participant_id in self._connections:
                self._connections[participant_id].discard(websocket)
                if not self._connections[participant_id]:
                    del self._connections[participant_id]
                logger.info(f"Participant {participant_id} disconnected from notifications")

    async def broadcast_to_participant(self, participant_id: str, message: dict[str, Any]) -> int:
        """
        Send a payload to all connections of one participant.

        Returns:
            Number of connections the message was sent to
        """
        sent = 0
        async with self._lock:
            connections = self._connections.get(participant_id, set()).copy()

        for websocket in connections:
            try:
                await websocket.send_json(message)
                sent += 1
            except Exception as e:
                logger.error(f"Error sending to participant {participant_id}: {e}")

        return sent

    async def send(
        self,
        message: str,
        recipient_id: str,
        notification_type: NotificationType = NotificationType.TEAM,
        related_team_id: int | None = None,
    ) -> Notification | None:
        """
        Fire-and-forget delivery of one message.

        Uses its own session so it never joins the caller's transaction.

        Returns:
            The stored Notification, or None when delivery failed
        """
        try:
            async with self._session_factory() as session:
                notification = Notification(
                    recipient_id=recipient_id,
                    message=message,
                    notification_type=notification_type.value,
                    is_read=False,
                    related_team_id=related_team_id,
                )
                session.add(notification)
                await session.commit()
                await session.refresh(notification)

            await self.broadcast_to_participant(
                recipient_id,
                {
                    "type": "notification",
                    "data": {
                        "id": notification.id,
                        "message": notification.message,
                        "notification_type": notification.notification_type,
                        "related_team_id": notification.related_team_id,
                        "created_at": notification.created_at.isoformat(),
                    },
                },
            )
        except Exception as e:
            logger.error(f"Failed to notify participant {recipient_id}: {e}", exc_info=True)
            return None

        logger.info(f"Sent {notification_type.value} notification to participant {recipient_id}")
        return notification

    async def get_notifications(
        self,
        session: AsyncSession,
        participant_id: str,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Notification]:
        query = select(Notification).where(Notification.recipient_id == participant_id)

        if unread_only:
            query = query.where(Notification.is_read == False)  # noqa: E712

        query = query.order_by(Notification.id.desc()).offset(offset).limit(limit)

        result = await session.execute(query)
        return list(result.scalars().all())

    async def mark_as_read(
        self,
        session: AsyncSession,
        notification_id: int,
        participant_id: str,
    ) -> Notification | None:
        """
        Acknowledge one of the participant's notifications.

        Returns:
            The updated Notification or None if not found or not owned
        """
        result = await session.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.recipient_id == participant_id,
            )
        )
        notification = result.scalar_one_or_none()

        if notification:
            notification.is_read = True
            await session.commit()
            await session.refresh(notification)

        return notification

    async def mark_all_as_read(self, session: AsyncSession, participant_id: str) -> int:
        result = await session.execute(
            update(Notification)
            .where(Notification.recipient_id == participant_id, Notification.is_read == False)  # noqa: E712
            .values(is_read=True)
        )
        await session.commit()
        return result.rowcount

    def get_connected_count(self) -> int:
        """Open notification sockets across all participants."""
        return sum(len(connections) for connections in self._connections.values())


# Shared by the WebSocket endpoint and the request-scoped services
notification_manager = NotificationManager()
