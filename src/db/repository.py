"""Repository utilities for persisting call records."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from db.base import AsyncSessionFactory, session_scope
from db.models import CallRecord
from realtime.errors import DatabaseOperationError


class CallRepository:
    """Async repository encapsulating storage operations."""

    async def create_call(
        self,
        *,
        call_id: str,
        caller_phone: str,
        responder_email: str,
        call_duration: int = 0,
        source: str = "postman",
        call_name: str | None = None,
    ) -> CallRecord:
        record = CallRecord(
            call_id=call_id,
            caller_phone=caller_phone,
            responder_email=responder_email,
            call_duration=call_duration,
            source=source,
            call_name=call_name,
        )
        try:
            async with session_scope() as session:
                session.add(record)
                await session.flush()
        except SQLAlchemyError as exc:
            raise DatabaseOperationError(f"Could not save call {call_id}: {exc}") from exc
        return record

    async def get_call(self, call_id: str) -> CallRecord | None:
        async with AsyncSessionFactory() as session:
            query = select(CallRecord).where(CallRecord.call_id == call_id)
            result = await session.execute(query)
            return result.scalar_one_or_none()
