"""Attach proposed skills to a user without duplicating catalog entries."""

import logging

from models.schemas.skills import ProposedSkill, SkillRecord
from services.errors import NotFoundError
from services.repository import SkillStore

logger = logging.getLogger(__name__)

MAX_SKILL_NAME_LENGTH = 100


def normalize_skill_name(name: str | None) -> str:
    """Dedup key for the skill catalog: lowercase, trimmed."""
    return (name or "").strip().lower()


async def reconcile_skills_to_user(
    store: SkillStore,
    user_id: int,
    proposed_skills: list[ProposedSkill],
) -> list[SkillRecord]:
    """Add each proposed skill to the user; return the ones actually added.

    Re-running with the same proposals is a no-op. A failure on one
    proposal is logged and does not abort the rest of the batch.
    """
    if await store.get_user(user_id) is None:
        raise NotFoundError(f"User {user_id} not found")

    logger.info("Reconciling %d proposed skills for user %d", len(proposed_skills), user_id)
    added: list[SkillRecord] = []

    for proposal in proposed_skills:
        try:
            name = normalize_skill_name(proposal.name)
            if not name:
                logger.info("Skipping empty skill name")
                continue
            if len(name) > MAX_SKILL_NAME_LENGTH:
                logger.warning("Skipping skill name longer than %d chars", MAX_SKILL_NAME_LENGTH)
                continue

            async with store.savepoint():
                skill = await store.upsert_skill(
                    name,
                    category=proposal.category or "General",
                    level=proposal.level or "beginner",
                )
                is_new_holder = await store.add_holder(skill.id, user_id)
            if not is_new_holder:
                logger.info("User already has skill: %s", name)
                continue

            if user_id not in skill.users_holding:
                skill.users_holding.append(user_id)
            added.append(skill)
            logger.info("Added skill to user: %s", name)
        except Exception as e:
            logger.error("Error processing skill %r: %s", proposal.name, e)

    # Read back the user's skill set to confirm the writes landed
    current = await store.list_user_skills(user_id)
    current_ids = {s.id for s in current}
    missing = [s.name for s in added if s.id not in current_ids]
    if missing:
        logger.error("Skills missing after reconciliation for user %d: %s", user_id, missing)
    logger.info("User %d now holds %d skills", user_id, len(current))
    return added
