"""Knowledge-Gap Analyzer - pair experts with learners for missing critical skills."""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timezone

from teamengine.config import EngineConfig
from teamengine.engine.events import EventBus, EventType
from teamengine.models import (
    ExpertiseLevel,
    GapAnalysis,
    KnowledgeTransfer,
    Role,
    SkillGap,
    TeamMember,
    TransferType,
)
from teamengine.scoring.factors import covers, expertise_level, urgency
from teamengine.storage.store import InMemoryStore, RecordStore, StoreError
from teamengine.team.registry import TeamModel

logger = logging.getLogger(__name__)

# Members in these roles are never treated as learners
NON_LEARNER_ROLES = frozenset({Role.SENIOR, Role.LEAD})
# Experts must hold the skill above beginner level
MIN_EXPERT_LEVEL = ExpertiseLevel.INTERMEDIATE


def transfer_type_for(urgency_value: float) -> TransferType:
    if urgency_value > 0.8:
        return TransferType.PAIR_PROGRAMMING
    if urgency_value > 0.6:
        return TransferType.MENTORING_SESSION
    if urgency_value > 0.4:
        return TransferType.CODE_WALKTHROUGH
    return TransferType.DOCUMENTATION


def find_expert(members: Sequence[TeamMember], skill: str, exclude: str) -> str | None:
    """
    Strongest holder of ``skill`` other than ``exclude``.

    Ranking is strict on expertise level (expert > advanced >
    intermediate); beginners never qualify. Ties keep the first member
    in team order.
    """
    best: tuple[int, str] | None = None
    for member in members:
        if member.id == exclude:
            continue
        level = expertise_level(member, skill)
        if level is None or level.rank < MIN_EXPERT_LEVEL.rank:
            continue
        if best is None or level.rank > best[0]:
            best = (level.rank, member.id)
    return best[1] if best else None


class KnowledgeGapAnalyzer:
    """Finds critical-skill gaps among learners and proposes transfers."""

    def __init__(
        self,
        team: TeamModel,
        config: EngineConfig | None = None,
        store: RecordStore[KnowledgeTransfer] | None = None,
        events: EventBus | None = None,
    ) -> None:
        self.team = team
        self.config = config or EngineConfig()
        self.store: RecordStore[KnowledgeTransfer] = (
            store if store is not None else InMemoryStore()
        )
        self.events = events or EventBus()
        self._lock = threading.Lock()

    def skill_gaps(self, members: Sequence[TeamMember]) -> list[SkillGap]:
        """Missing critical skills of learners, most urgent first."""
        cfg = self.config
        gaps = []
        for member in members:
            if member.role in NON_LEARNER_ROLES:
                continue
            for skill in cfg.critical_skills:
                if covers(member.skills, skill):
                    continue
                gaps.append(
                    SkillGap(
                        member_id=member.id,
                        skill=skill,
                        urgency=urgency(
                            skill,
                            member.role,
                            cfg.critical_skills,
                            cfg.role_multipliers,
                            cfg.default_urgency,
                            cfg.default_role_multiplier,
                        ),
                    )
                )
        gaps.sort(key=lambda g: g.urgency, reverse=True)
        return gaps

    def analyze(self) -> GapAnalysis:
        """
        Run one gap pass over a team snapshot.

        Gaps with no qualifying expert are reported as unaddressable.
        A gap that already has an open transfer for the same learner and
        topic is skipped. The pass is all-or-nothing: if any transfer
        cannot be stored, the ones already written are removed again and
        StoreError propagates without a notification.
        """
        cfg = self.config
        with self._lock:
            members = self.team.all()
            open_pairs = {(t.target, t.topic) for t in self.open_transfers()}
            now = datetime.now(timezone.utc)

            transfers: list[KnowledgeTransfer] = []
            unaddressable: list[SkillGap] = []
            for gap in self.skill_gaps(members):
                if (gap.member_id, gap.skill) in open_pairs:
                    continue
                expert = find_expert(members, gap.skill, exclude=gap.member_id)
                if expert is None:
                    logger.debug(f"No expert for {gap.skill}; gap of {gap.member_id} unaddressable")
                    unaddressable.append(gap)
                    continue

                transfers.append(
                    KnowledgeTransfer(
                        id=f"transfer-{uuid.uuid4().hex[:8]}",
                        type=transfer_type_for(gap.urgency),
                        source=expert,
                        target=gap.member_id,
                        topic=gap.skill,
                        skill_gap=(gap.skill,),
                        suggested_approach=cfg.transfer_approaches.get(
                            gap.skill, cfg.default_transfer_approach
                        ),
                        estimated_hours=cfg.transfer_durations.get(
                            gap.skill, cfg.default_transfer_hours
                        ),
                        priority=gap.urgency,
                        created_at=now,
                    )
                )
            self._persist(transfers)

        analysis = GapAnalysis(transfers=tuple(transfers), unaddressable=tuple(unaddressable))
        logger.info(
            f"Identified {len(transfers)} knowledge transfer opportunities "
            f"({len(unaddressable)} unaddressable gaps)"
        )
        self.events.publish(EventType.KNOWLEDGE_GAPS_IDENTIFIED, analysis)
        return analysis

    def _persist(self, transfers: Sequence[KnowledgeTransfer]) -> None:
        stored: list[str] = []
        try:
            for transfer in transfers:
                self.store.put(transfer.id, transfer)
                stored.append(transfer.id)
        except StoreError:
            logger.error(f"Gap pass aborted after {len(stored)} of {len(transfers)} transfers")
            for transfer_id in stored:
                self.store.delete(transfer_id)
            raise

    # ── lifecycle ──────────────────────────────────────────────────────────

    def get(self, transfer_id: str) -> KnowledgeTransfer:
        transfer = self.store.get(transfer_id)
        if transfer is None:
            raise KeyError(transfer_id)
        return transfer

    def schedule(self, transfer_id: str, at: datetime) -> KnowledgeTransfer:
        with self._lock:
            updated = replace(self.get(transfer_id), scheduled_at=at)
            self.store.put(transfer_id, updated)
        return updated

    def complete(self, transfer_id: str) -> KnowledgeTransfer:
        with self._lock:
            current = self.get(transfer_id)
            if current.completed_at is not None:
                return current
            updated = replace(current, completed_at=datetime.now(timezone.utc))
            self.store.put(transfer_id, updated)
        logger.info(f"Knowledge transfer {transfer_id} completed: {current.topic} -> {current.target}")
        return updated

    def all(self) -> list[KnowledgeTransfer]:
        return self.store.list()

    def open_transfers(self) -> list[KnowledgeTransfer]:
        return [t for t in self.store.list() if t.completed_at is None]
