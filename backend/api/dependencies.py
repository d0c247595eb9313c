"""Shared dependencies for API routes."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from services.repository import SqlRepository


async def get_repository(db: AsyncSession = Depends(get_db)) -> SqlRepository:
    return SqlRepository(db)
