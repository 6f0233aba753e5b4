import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from renobudget.db.enums import LearningCategory, PhaseStatus, ReferenceType
from renobudget.schemas.dto.base_dto import BaseDTO


def _date_or_none(v):
    if isinstance(v, str):
        v = v.strip()
        if not v:
            return None
        # 兼容 ISO datetime 字符串
        return v[:10]
    return v


def _id_or_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


class LearningDTO(BaseDTO):
    id: Optional[str] = None
    content: str = ""
    date: Optional[dt.date] = None
    category: LearningCategory = LearningCategory.note

    @field_validator("id", mode="before")
    @classmethod
    def _blank_id(cls, v):
        return _id_or_none(v)

    @field_validator("date", mode="before")
    @classmethod
    def _blank_date(cls, v):
        return _date_or_none(v)


class ReferenceDTO(BaseDTO):
    id: Optional[str] = None
    type: ReferenceType = ReferenceType.link
    name: str = ""
    url: str = ""
    data: str = ""
    description: str = ""
    uploaded_at: Optional[dt.date] = Field(default=None, alias="uploadedAt")

    @field_validator("id", mode="before")
    @classmethod
    def _blank_id(cls, v):
        return _id_or_none(v)

    @field_validator("uploaded_at", mode="before")
    @classmethod
    def _blank_date(cls, v):
        return _date_or_none(v)


class SubtaskDTO(BaseDTO):
    id: Optional[str] = None
    title: str = ""
    completed: bool = False
    notes: str = ""
    learnings: List[LearningDTO] = Field(default_factory=list)
    images: List[Dict[str, Any]] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _blank_id(cls, v):
        return _id_or_none(v)


class PhaseDTO(BaseDTO):
    '''
    One stage of the remodel. Subtasks, learnings and references are embedded.

    A phase whose subtasks are all completed is stored as Completed.
    '''
    id: Optional[str] = None
    title: str = ""
    description: str = ""
    status: PhaseStatus = PhaseStatus.NotStarted
    start_date: Optional[dt.date] = Field(default=None, alias="startDate")
    end_date: Optional[dt.date] = Field(default=None, alias="endDate")
    order: int = 0
    notes: str = ""
    learnings: List[LearningDTO] = Field(default_factory=list)
    references: List[ReferenceDTO] = Field(default_factory=list)
    subtasks: List[SubtaskDTO] = Field(default_factory=list)
    images: List[Dict[str, Any]] = Field(default_factory=list)
    related_rooms: List[str] = Field(default_factory=list, alias="relatedRooms")

    @field_validator("id", mode="before")
    @classmethod
    def _blank_id(cls, v):
        return _id_or_none(v)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _blank_dates(cls, v):
        return _date_or_none(v)


class TimelineDTO(BaseDTO):
    phases: List[PhaseDTO] = Field(default_factory=list)
    overall_progress: int = Field(default=0, alias="overallProgress")
    current_phase: Optional[PhaseDTO] = Field(default=None, alias="currentPhase")
    updated_at: Optional[dt.datetime] = Field(default=None, alias="updatedAt")
