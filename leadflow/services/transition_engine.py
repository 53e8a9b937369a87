import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.config import settings
from leadflow.core.exceptions import RuleSetUnavailableError
from leadflow.core.locks import OrganizationLock
from leadflow.repositories.lead_repository import CandidateCriteria, LeadRepository
from leadflow.repositories.transition_rule_repository import TransitionRuleRepository
from leadflow.schemas.common import HotSubstatus, Temperature, TriggerEvent
from leadflow.schemas.transition_rule import actions_from_columns

logger = logging.getLogger(__name__)


@dataclass
class TransitionRunResult:
    """Totals of one engine invocation."""

    success: bool = True
    transitions_made: int = 0
    substatuses_cleared: int = 0
    organizations_processed: int = 0
    organizations_skipped: int = 0
    rules_applied: int = 0
    errors: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "transitions_made": self.transitions_made,
            "substatuses_cleared": self.substatuses_cleared,
            "organizations_processed": self.organizations_processed,
            "organizations_skipped": self.organizations_skipped,
            "rules_applied": self.rules_applied,
            "timestamp": self.timestamp,
            "errors": self.errors or None,
        }


@dataclass
class _RuleOutcome:
    matched: int
    transitions: int
    cleared: int


def excluded_substatus_for(rule: Any) -> Optional[str]:
    """Sub-status a rule must leave alone even though it does not filter on one.

    A generic ``quente`` inactivity rule must not sweep leads that are
    already waiting for a reply, unless the rule names a sub-status
    itself.  Leads without a sub-status stay candidates.
    """
    if (
        not rule.from_substatus
        and rule.trigger_event == TriggerEvent.INACTIVITY_TIMER.value
        and rule.from_temperature == Temperature.QUENTE.value
    ):
        return HotSubstatus.AGUARDANDO_RESPOSTA.value
    return None


def sets_substatus_only(rule: Any) -> bool:
    """True when a rule gives leads a sub-status but leaves the temperature."""
    return bool(
        rule.action_set_substatus
        and not rule.action_clear_substatus
        and not rule.action_set_temperature
    )


def build_candidate_criteria(
    rule: Any, organization_id: UUID, threshold: datetime
) -> CandidateCriteria:
    """Translate a rule's filters into the repository's candidate query.

    ``no_response`` presumes an earlier interaction, so leads that never
    interacted are not candidates for it.  A rule that only sets a
    sub-status and names no temperature applies to ``quente`` leads.
    """
    temperature = rule.from_temperature or None
    if temperature is None and sets_substatus_only(rule):
        temperature = Temperature.QUENTE.value
    return CandidateCriteria(
        organization_id=organization_id,
        threshold=threshold,
        temperature=temperature,
        substatus=rule.from_substatus or None,
        excluded_substatus=excluded_substatus_for(rule),
        include_never_interacted=rule.trigger_event != TriggerEvent.NO_RESPONSE.value,
    )


def is_past_threshold(lead: Any, threshold: datetime) -> bool:
    """True when the lead's last activity (or creation) is before *threshold*."""
    anchor = lead.last_interaction_at or lead.created_at
    if anchor is None:
        return False
    if anchor.tzinfo is None:
        anchor = anchor.replace(tzinfo=timezone.utc)
    return anchor < threshold


def build_lead_write(actions: List[Any], now: datetime) -> Dict[str, Any]:
    """Return the column values a rule writes to every matched lead."""
    values: Dict[str, Any] = {"updated_at": now}

    for action in actions:
        if action.kind == "set_temperature":
            values["temperature"] = action.temperature.value

    if any(action.kind == "clear_substatus" for action in actions):
        values["hot_substatus"] = None
    else:
        for action in actions:
            if action.kind == "set_substatus":
                values["hot_substatus"] = action.substatus.value

    # frio and a sub-status never coexist
    if values.get("temperature") == Temperature.FRIO.value:
        values["hot_substatus"] = None

    return values


def takes_write(lead: Any, values: Dict[str, Any]) -> bool:
    """False when *values* would leave a sub-status on a lead that is not quente."""
    if values.get("hot_substatus") is None:
        return True
    temperature = values.get("temperature", lead.temperature)
    return temperature == Temperature.QUENTE.value


class TransitionRuleEngine:
    """Apply each organization's transition rules to its leads.

    Organizations are processed one at a time and their rules strictly
    in priority order, so a lead moved by one rule can be picked up by
    the next rule in the same run (``quente → frio → perdido``).

    Each rule runs inside its own savepoint.  A failing rule is rolled
    back, recorded in ``errors`` and the run carries on with the next
    rule.  Work is committed once per organization.
    """

    def __init__(
        self,
        rule_repo: TransitionRuleRepository,
        lead_repo: LeadRepository,
        lock: Optional[OrganizationLock] = None,
    ) -> None:
        self._rule_repo = rule_repo
        self._lead_repo = lead_repo
        self._lock = lock or OrganizationLock()

    async def run(
        self,
        organization_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> TransitionRunResult:
        """Evaluate every active rule once.

        Never raises for rule or store failures: an unreadable rule set
        gives ``success=False`` with zero transitions.
        """
        now = now or datetime.now(timezone.utc)
        result = TransitionRunResult(timestamp=now)

        try:
            organizations = await self._load_organizations(organization_id)
        except RuleSetUnavailableError as exc:
            result.success = False
            result.errors.append(exc.detail)
            return result

        if not organizations:
            logger.info("No active transition rules, nothing to evaluate")
            return result

        for org_id in organizations:
            token = await self._lock.acquire(org_id)
            if token is None:
                logger.info(
                    "Organization %s is being processed by another run, skipping",
                    org_id,
                )
                result.organizations_skipped += 1
                continue
            try:
                await self._process_organization(org_id, now, result)
            finally:
                await self._lock.release(org_id, token)

        logger.info(
            "Transition run complete: %d organization(s), %d rule(s) applied, "
            "%d transition(s), %d sub-status clear(s), %d error(s)",
            result.organizations_processed,
            result.rules_applied,
            result.transitions_made,
            result.substatuses_cleared,
            len(result.errors),
        )
        return result

    async def _load_organizations(self, organization_id: Optional[UUID]) -> List[UUID]:
        try:
            return await self._rule_repo.get_organizations_with_active_rules(
                organization_id
            )
        except Exception as exc:
            logger.error("Failed to load transition rules", exc_info=True)
            raise RuleSetUnavailableError(
                f"Transition rules could not be loaded: {exc}"
            ) from exc

    async def _process_organization(
        self, organization_id: UUID, now: datetime, result: TransitionRunResult
    ) -> None:
        try:
            rules = await self._rule_repo.get_active_rules(organization_id)
        except Exception as exc:
            logger.warning(
                "Failed to load rules for organization %s",
                organization_id,
                exc_info=True,
            )
            result.errors.append(
                f"organization {organization_id}: rules could not be loaded: {exc}"
            )
            return

        rules_applied = transitions = cleared = 0
        for rule in rules:
            try:
                async with self._lead_repo.savepoint():
                    outcome = await self._apply_rule(organization_id, rule, now)
            except Exception as exc:
                logger.warning(
                    "Transition rule %s (%s) failed for organization %s",
                    rule.name,
                    rule.id,
                    organization_id,
                    exc_info=True,
                )
                result.errors.append(f"rule {rule.name} ({rule.id}): {exc}")
                continue

            if outcome is None:
                continue
            rules_applied += 1
            transitions += outcome.transitions
            cleared += outcome.cleared
            logger.info(
                "Rule %s matched %d lead(s): %d transition(s), %d clear(s)",
                rule.name,
                outcome.matched,
                outcome.transitions,
                outcome.cleared,
            )

        try:
            await self._lead_repo.commit()
        except Exception as exc:
            logger.error(
                "Commit failed for organization %s", organization_id, exc_info=True
            )
            await self._lead_repo.rollback()
            result.errors.append(f"organization {organization_id}: commit failed: {exc}")
            return

        result.organizations_processed += 1
        result.rules_applied += rules_applied
        result.transitions_made += transitions
        result.substatuses_cleared += cleared

    async def _apply_rule(
        self, organization_id: UUID, rule: Any, now: datetime
    ) -> Optional[_RuleOutcome]:
        threshold = now - timedelta(minutes=rule.timer_minutes or 0)
        actions = actions_from_columns(rule)

        criteria = build_candidate_criteria(rule, organization_id, threshold)
        candidates = await self._lead_repo.find_transition_candidates(criteria)
        values = build_lead_write(actions, now)
        matched = [
            lead
            for lead in candidates
            if is_past_threshold(lead, threshold) and takes_write(lead, values)
        ]
        if not matched:
            return None

        await self._lead_repo.apply_transition(
            organization_id, [lead.id for lead in matched], values
        )

        transitions = 0
        if "temperature" in values:
            transitions = sum(
                1 for lead in matched if lead.temperature != values["temperature"]
            )
        cleared = 0
        if "hot_substatus" in values and values["hot_substatus"] is None:
            cleared = sum(1 for lead in matched if lead.hot_substatus is not None)

        return _RuleOutcome(matched=len(matched), transitions=transitions, cleared=cleared)


async def run_scheduled_transitions(
    session_factory: Callable[..., AsyncSession],
    lock: Optional[OrganizationLock] = None,
) -> TransitionRunResult:
    """One-shot: run the engine in a fresh session.

    Parameters:
        session_factory: An async context-manager callable that yields
            an ``AsyncSession`` (e.g. ``AsyncSessionLocal``).
        lock: Per-organization lock; a no-op lock is used when omitted.
    """
    async with session_factory() as session:
        engine = TransitionRuleEngine(
            rule_repo=TransitionRuleRepository(session),
            lead_repo=LeadRepository(session),
            lock=lock,
        )
        return await engine.run()


async def start_transition_loop(
    session_factory: Callable[..., AsyncSession],
) -> None:
    """Infinite loop that runs the engine and then drains the lead sync
    outbox every ``TRANSITION_INTERVAL_SECONDS``.

    Parameters:
        session_factory: An async context-manager callable that yields
            an ``AsyncSession``.
    """
    from leadflow.dependencies import get_redis_client
    from leadflow.services.appointment_service import drain_pending_syncs

    logger.info(
        "Transition background task started (interval=%ds)",
        settings.TRANSITION_INTERVAL_SECONDS,
    )
    while True:
        redis_client = await get_redis_client()
        try:
            lock = OrganizationLock(
                redis_client, ttl=settings.ORGANIZATION_LOCK_TTL_SECONDS
            )
            result = await run_scheduled_transitions(session_factory, lock=lock)
            if result.transitions_made or result.substatuses_cleared:
                logger.info(
                    "Transition cycle complete: %d transition(s), %d clear(s)",
                    result.transitions_made,
                    result.substatuses_cleared,
                )
        except Exception:
            logger.error("Transition cycle failed", exc_info=True)
        finally:
            if redis_client is not None:
                await redis_client.aclose()

        try:
            await drain_pending_syncs(session_factory)
        except Exception:
            logger.error("Lead sync retry cycle failed", exc_info=True)

        await asyncio.sleep(settings.TRANSITION_INTERVAL_SECONDS)
