"""Persistence for users, the global skill catalog and certifications.

Find-or-create on the skill catalog and membership inserts are single
INSERT ... ON CONFLICT DO NOTHING statements, so two users reconciling
the same skill name concurrently cannot create duplicate rows.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import nullcontext
from dataclasses import dataclass

from sqlalchemy import delete, exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.schemas.skills import SkillRecord
from models.tables import Certification, Skill, User, user_skills
from services.errors import InvalidInputError

logger = logging.getLogger(__name__)

skills_table = Skill.__table__


@dataclass(frozen=True)
class HolderRemoval:
    removed: bool  # the user held the skill
    skill_deleted: bool  # it was the last holder, so the catalog row is gone


class SkillStore(ABC):
    """Storage operations the skill reconciler depends on."""

    @abstractmethod
    async def get_user(self, user_id: int) -> User | None:
        """Return the user or None."""

    @abstractmethod
    async def upsert_skill(self, name: str, category: str, level: str) -> SkillRecord:
        """Atomically find the skill named `name` or create it."""

    @abstractmethod
    async def add_holder(self, skill_id: int, user_id: int) -> bool:
        """Add the user to the skill's holders. False if already a holder."""

    @abstractmethod
    async def remove_holder(self, skill_id: int, user_id: int) -> HolderRemoval:
        """Remove the user; delete the skill if no holders remain."""

    @abstractmethod
    async def list_user_skills(self, user_id: int) -> list[SkillRecord]:
        """All skills the user holds, sorted by name."""

    def savepoint(self):
        """Async context around one proposal; transactional stores roll it back on error."""
        return nullcontext()


class SqlRepository(SkillStore):
    """SQLAlchemy-backed store working inside the caller's session.

    Writes are flushed, not committed: the request's `get_db` dependency
    owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def savepoint(self):
        # SAVEPOINT keeps a failed statement from aborting the whole
        # transaction on PostgreSQL
        return self.session.begin_nested()

    def _insert(self, table):
        # ON CONFLICT is dialect-specific; both dialects share the API
        if self.session.get_bind().dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        else:
            from sqlalchemy.dialects.sqlite import insert
        return insert(table)

    async def _holders(self, skill_ids: list[int]) -> dict[int, list[int]]:
        holders: dict[int, list[int]] = {skill_id: [] for skill_id in skill_ids}
        if not skill_ids:
            return holders
        rows = await self.session.execute(
            select(user_skills.c.skill_id, user_skills.c.user_id)
            .where(user_skills.c.skill_id.in_(skill_ids))
            .order_by(user_skills.c.user_id)
        )
        for skill_id, user_id in rows:
            holders[skill_id].append(user_id)
        return holders

    @staticmethod
    def _record(skill: Skill, holders: list[int]) -> SkillRecord:
        return SkillRecord(
            id=skill.id,
            name=skill.name,
            category=skill.category,
            level=skill.level,
            description=skill.description,
            users_holding=holders,
        )

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get_user(self, user_id: int) -> User | None:
        return await self.session.get(User, user_id)

    async def create_user(self, name: str, email: str) -> User:
        user = User(name=name, email=email.strip().lower())
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            raise InvalidInputError("This email is already registered") from e
        return user

    # ------------------------------------------------------------------
    # Skills
    # ------------------------------------------------------------------

    async def get_skill(self, skill_id: int) -> SkillRecord | None:
        # Catalog rows are deleted with Core statements, so bypass the identity map
        result = await self.session.execute(
            select(Skill).where(Skill.id == skill_id).execution_options(populate_existing=True)
        )
        skill = result.scalar_one_or_none()
        if skill is None:
            return None
        holders = await self._holders([skill.id])
        return self._record(skill, holders[skill.id])

    async def find_skill_by_name(self, name: str) -> SkillRecord | None:
        result = await self.session.execute(
            select(Skill).where(Skill.name == name).execution_options(populate_existing=True)
        )
        skill = result.scalar_one_or_none()
        if skill is None:
            return None
        holders = await self._holders([skill.id])
        return self._record(skill, holders[skill.id])

    async def upsert_skill(self, name: str, category: str, level: str) -> SkillRecord:
        stmt = (
            self._insert(skills_table)
            .values(name=name, category=category, level=level)
            .on_conflict_do_nothing(index_elements=["name"])
        )
        result = await self.session.execute(stmt)
        if result.rowcount:
            logger.info("Created new skill: %s", name)
        record = await self.find_skill_by_name(name)
        if record is None:
            raise RuntimeError(f"Skill {name!r} missing after upsert")
        return record

    async def add_holder(self, skill_id: int, user_id: int) -> bool:
        stmt = (
            self._insert(user_skills)
            .values(user_id=user_id, skill_id=skill_id)
            .on_conflict_do_nothing(index_elements=["user_id", "skill_id"])
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def remove_holder(self, skill_id: int, user_id: int) -> HolderRemoval:
        result = await self.session.execute(
            delete(user_skills).where(
                user_skills.c.skill_id == skill_id,
                user_skills.c.user_id == user_id,
            )
        )
        removed = result.rowcount > 0

        # Garbage-collect on write: a skill nobody holds must not persist
        has_holders = exists().where(user_skills.c.skill_id == skill_id)
        result = await self.session.execute(
            delete(skills_table).where(skills_table.c.id == skill_id, ~has_holders)
        )
        skill_deleted = result.rowcount > 0
        if skill_deleted:
            logger.info("Deleted skill %d: last holder removed", skill_id)
        return HolderRemoval(removed=removed, skill_deleted=skill_deleted)

    async def list_user_skills(self, user_id: int) -> list[SkillRecord]:
        result = await self.session.execute(
            select(Skill)
            .join(user_skills, user_skills.c.skill_id == Skill.id)
            .where(user_skills.c.user_id == user_id)
            .order_by(Skill.name)
        )
        skills = list(result.scalars())
        holders = await self._holders([s.id for s in skills])
        return [self._record(s, holders[s.id]) for s in skills]

    # ------------------------------------------------------------------
    # Certifications
    # ------------------------------------------------------------------

    async def add_certification(self, user_id: int, **fields) -> Certification:
        certification = Certification(user_id=user_id, **fields)
        self.session.add(certification)
        await self.session.flush()
        await self.session.refresh(certification)
        return certification

    async def list_certifications(self, user_id: int) -> list[Certification]:
        result = await self.session.execute(
            select(Certification)
            .where(Certification.user_id == user_id)
            .order_by(Certification.created_at.desc(), Certification.id.desc())
        )
        return list(result.scalars())

    async def get_certification(self, certification_id: int) -> Certification | None:
        return await self.session.get(Certification, certification_id)

    async def delete_certification(self, certification: Certification) -> None:
        await self.session.delete(certification)
        await self.session.flush()
