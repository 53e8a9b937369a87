import logging
from typing import Any, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select

from leadflow.models.transition_rule import TransitionRule
from leadflow.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class TransitionRuleRepository(BaseRepository):
    """Encapsulates queries against the ``transition_rules`` table.

    There is no cross-tenant "all active rules" query: callers list the
    organizations first and then load one organization's rules at a time.
    """

    async def get_organizations_with_active_rules(
        self, organization_id: Optional[UUID] = None
    ) -> List[UUID]:
        """Return the organizations that own at least one active rule."""
        query = select(TransitionRule.organization_id).where(
            TransitionRule.active.is_(True)
        )
        if organization_id is not None:
            query = query.where(TransitionRule.organization_id == organization_id)
        result = await self._db.execute(
            query.distinct().order_by(TransitionRule.organization_id)
        )
        return list(result.scalars().all())

    async def get_active_rules(self, organization_id: UUID) -> List[TransitionRule]:
        """Return an organization's active rules in evaluation order."""
        result = await self._db.execute(
            select(TransitionRule)
            .where(
                TransitionRule.organization_id == organization_id,
                TransitionRule.active.is_(True),
            )
            .order_by(
                TransitionRule.priority.asc(),
                TransitionRule.created_at.asc(),
                TransitionRule.id.asc(),
            )
        )
        return list(result.scalars().all())

    async def list_rules(self, organization_id: UUID) -> List[TransitionRule]:
        """Return every rule of the organization, active or not, by priority."""
        result = await self._db.execute(
            select(TransitionRule)
            .where(TransitionRule.organization_id == organization_id)
            .order_by(TransitionRule.priority.asc(), TransitionRule.created_at.asc())
        )
        return list(result.scalars().all())

    async def get_by_id(
        self, organization_id: UUID, rule_id: UUID
    ) -> Optional[TransitionRule]:
        """Return one rule of the organization, or ``None``."""
        result = await self._db.execute(
            select(TransitionRule).where(
                TransitionRule.id == rule_id,
                TransitionRule.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_many(
        self, organization_id: UUID, rule_ids: Sequence[UUID]
    ) -> List[TransitionRule]:
        """Return the organization's rules whose id is in *rule_ids*."""
        result = await self._db.execute(
            select(TransitionRule).where(
                TransitionRule.organization_id == organization_id,
                TransitionRule.id.in_(rule_ids),
            )
        )
        return list(result.scalars().all())

    async def get_max_priority(self, organization_id: UUID) -> Optional[int]:
        """Return the highest priority number in use, or ``None``."""
        result = await self._db.execute(
            select(func.max(TransitionRule.priority)).where(
                TransitionRule.organization_id == organization_id
            )
        )
        return result.scalar()

    async def create(self, **kwargs: Any) -> TransitionRule:
        """Insert a new rule and flush so server defaults are populated."""
        rule = TransitionRule(**kwargs)
        self._db.add(rule)
        await self._db.flush()
        await self._db.refresh(rule)
        return rule

    async def update_fields(self, rule: TransitionRule, **values: Any) -> None:
        """Set attributes on an existing rule instance."""
        for field, value in values.items():
            setattr(rule, field, value)

    async def delete(self, rule: TransitionRule) -> None:
        """Remove a rule."""
        await self._db.delete(rule)

    async def seed_defaults_if_empty(self, organization_id: UUID) -> int:
        """Insert the default rules when the organization has none.

        Uses a row-count check so this is idempotent: calling it for an
        organization that already has rules is a cheap no-op.  Returns
        the number of rules inserted.

        The canonical rule definitions live in
        ``leadflow.core.default_transition_rules.DEFAULT_TRANSITION_RULES``.
        """
        from leadflow.core.default_transition_rules import DEFAULT_TRANSITION_RULES

        count_result = await self._db.execute(
            select(func.count())
            .select_from(TransitionRule)
            .where(TransitionRule.organization_id == organization_id)
        )
        if count_result.scalar():
            return 0  # rules already present

        logger.info(
            "Organization %s has no transition rules, seeding defaults",
            organization_id,
        )
        for rule_data in DEFAULT_TRANSITION_RULES:
            self._db.add(TransitionRule(organization_id=organization_id, **rule_data))
        await self._db.flush()
        logger.info("Seeded %d default transition rules", len(DEFAULT_TRANSITION_RULES))
        return len(DEFAULT_TRANSITION_RULES)
