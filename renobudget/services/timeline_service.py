# renobudget/services/timeline_service.py
import datetime as dt
from typing import Any, Dict, List, Optional, Sequence
from uuid import uuid4

from pydantic import ValidationError

from renobudget.db.enums import PhaseStatus
from renobudget.db.timeline_repository import TimelineRepository
from renobudget.errors import NotFound, PersistenceFailure, ValidationFailure, validation_failure_from_pydantic
from renobudget.logger import get_logger
from renobudget.schemas.dto.timeline_dto import PhaseDTO, TimelineDTO
from renobudget.schemas.dto.user_dto import CallerContext
from renobudget.services.validation_service import ValidationService

logger = get_logger(__name__)


# ======================================================
# 📐 Derived values (never stored)
# ======================================================

def compute_overall_progress(phases: Sequence[PhaseDTO]) -> int:
    '''Percent of completed phases, rounded half up; 0 without phases.'''
    if not phases:
        return 0
    completed = sum(1 for p in phases if p.status == PhaseStatus.Completed)
    return int(completed * 100 / len(phases) + 0.5)


def find_current_phase(phases: Sequence[PhaseDTO]) -> Optional[PhaseDTO]:
    '''First phase In Progress, else first Not Started, else None.'''
    for status in (PhaseStatus.InProgress, PhaseStatus.NotStarted):
        for phase in phases:
            if phase.status == status:
                return phase
    return None


class TimelineService:
    """
    Remodel timeline: ordered phases with embedded subtasks, learnings and references.

    Every write replaces the stored phase list; ids are minted server-side for
    anything sent without one.
    """

    def __init__(
        self,
        timeline_repository: TimelineRepository,
        validation_service: Optional[ValidationService] = None,
    ):
        self.timeline_repository = timeline_repository
        self.validation_service = validation_service or ValidationService()

    # ======================================================
    # 🔌 Internal helpers
    # ======================================================

    @staticmethod
    def _from_document(doc: Dict[str, Any]) -> PhaseDTO:
        try:
            return PhaseDTO.model_validate(doc)
        except ValidationError as e:
            raise PersistenceFailure(f"Timeline holds a malformed phase {doc.get('id')}") from e

    def _load(self) -> List[PhaseDTO]:
        docs, _ = self.timeline_repository.load_phases()
        return [self._from_document(doc) for doc in docs]

    @staticmethod
    def _complete_ids(phase: PhaseDTO) -> PhaseDTO:
        today = dt.date.today()
        learnings = [
            le.model_copy(update={"id": le.id or str(uuid4()), "date": le.date or today})
            for le in phase.learnings
        ]
        references = [
            r.model_copy(update={"id": r.id or str(uuid4()), "uploaded_at": r.uploaded_at or today})
            for r in phase.references
        ]
        subtasks = []
        for s in phase.subtasks:
            sub_learnings = [
                le.model_copy(update={"id": le.id or str(uuid4()), "date": le.date or today})
                for le in s.learnings
            ]
            subtasks.append(s.model_copy(update={"id": s.id or str(uuid4()), "learnings": sub_learnings}))
        return phase.model_copy(update={
            "id": phase.id or str(uuid4()),
            "learnings": learnings,
            "references": references,
            "subtasks": subtasks,
        })

    @staticmethod
    def _auto_complete(phase: PhaseDTO) -> PhaseDTO:
        # 所有子任务都完成（且至少一个）时阶段自动完成
        if phase.subtasks and all(s.completed for s in phase.subtasks) and phase.status != PhaseStatus.Completed:
            return phase.model_copy(update={"status": PhaseStatus.Completed})
        return phase

    def _store(self, phases: List[PhaseDTO]) -> TimelineDTO:
        # 1️⃣ whole-list rules, nothing written on failure
        self.validation_service.validate_phases(phases)

        # 2️⃣ ids + auto completion, stable sort by order
        phases = [self._auto_complete(self._complete_ids(p)) for p in phases]
        phases.sort(key=lambda p: p.order)

        # 3️⃣ one write of the phase list
        updated_at = self.timeline_repository.save_phases([p.to_wire() for p in phases])
        return self.build_timeline(phases, updated_at)

    @staticmethod
    def build_timeline(phases: List[PhaseDTO], updated_at: Optional[dt.datetime] = None) -> TimelineDTO:
        return TimelineDTO(
            phases=phases,
            overall_progress=compute_overall_progress(phases),
            current_phase=find_current_phase(phases),
            updated_at=updated_at,
        )

    # ======================================================
    # 📖 Read path
    # ======================================================

    def get_timeline(self) -> TimelineDTO:
        docs, updated_at = self.timeline_repository.load_phases()
        return self.build_timeline([self._from_document(doc) for doc in docs], updated_at)

    # ======================================================
    # ✍️ Write path
    # ======================================================

    def save_timeline(self, raw_phases: Sequence[Any], *, caller: CallerContext) -> TimelineDTO:
        '''
        Replace the whole phase list.

        :param raw_phases: list of phase dicts from the request
        :param caller: writer identity, for the log
        :raises ValidationFailure: keyed "phases.<n>.<field>"
        '''
        phases = self.validation_service.parse_list(PhaseDTO, raw_phases, "phases")
        timeline = self._store(phases)
        logger.info("Timeline saved by %s: %d phases, %d%% complete",
                    caller.caller_id, len(timeline.phases), timeline.overall_progress)
        return timeline

    def update_phase(self, phase_id: str, raw_phase: Any, *, caller: CallerContext) -> TimelineDTO:
        '''
        Replace one phase in place; the id in the path wins over any id in the body.

        :raises NotFound: no phase with phase_id
        '''
        if not isinstance(raw_phase, dict):
            raise ValidationFailure("phase is required", {"phase": "must be an object"})
        try:
            incoming = PhaseDTO.model_validate({**raw_phase, "id": phase_id})
        except ValidationError as e:
            raise validation_failure_from_pydantic(e, "phase")

        phases = self._load()
        index = next((i for i, p in enumerate(phases) if p.id == phase_id), None)
        if index is None:
            raise NotFound(f"Phase not found: {phase_id}")
        phases[index] = incoming

        timeline = self._store(phases)
        logger.info("Phase %s updated by %s", phase_id, caller.caller_id)
        return timeline

    def delete_phase(self, phase_id: str, *, caller: CallerContext) -> TimelineDTO:
        '''
        :raises NotFound: no phase with phase_id
        '''
        phases = self._load()
        remaining = [p for p in phases if p.id != phase_id]
        if len(remaining) == len(phases):
            raise NotFound(f"Phase not found: {phase_id}")

        timeline = self._store(remaining)
        logger.info("Phase %s deleted by %s", phase_id, caller.caller_id)
        return timeline
