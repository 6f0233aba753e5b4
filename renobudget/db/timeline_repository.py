# renobudget/db/timeline_repository.py
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from renobudget.db.store_guard import store_guard
from renobudget.logger import get_logger
from renobudget.models.timeline import Timeline

logger = get_logger(__name__)


class TimelineRepository:
    """
    Storage of the single timeline row. Phases are written as a whole list,
    so a timeline write is atomic.
    """

    def __init__(self, db: Session):
        self.db = db

    def _find(self) -> Optional[Timeline]:
        return self.db.execute(select(Timeline).limit(1)).scalar_one_or_none()

    def load_phases(self) -> Tuple[List[Dict[str, Any]], Optional[datetime]]:
        '''
        :return: (stored phase documents, last update time); ([], None) before the first save
        '''
        with store_guard(self.db, "load timeline"):
            timeline = self._find()
            if timeline is None:
                return [], None
            return [dict(doc) for doc in (timeline.phases or [])], timeline.updated_at

    def save_phases(self, phases: List[Dict[str, Any]]) -> datetime:
        '''
        Replace the stored phase list, creating the timeline row on first save.

        :return: update time of the row
        '''
        with store_guard(self.db, "save timeline"):
            timeline = self._find()
            if timeline is None:
                timeline = Timeline(id=str(uuid4()), phases=phases)
                self.db.add(timeline)
                logger.info("Timeline created with %s phases", len(phases))
            else:
                timeline.phases = phases
            self.db.commit()
            self.db.refresh(timeline)
            return timeline.updated_at
