from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class JobApplicationCreate(BaseModel):
    company: str = Field(min_length=1, max_length=255)
    position: str = Field(min_length=1, max_length=255)
    recruiter_name: Optional[str] = None
    hiring_manager: Optional[str] = None
    recruiter_screen: Optional[str] = None
    technical_screen: Optional[str] = None
    onsite_round1: Optional[str] = None
    onsite_round2: Optional[str] = None
    onsite_round3: Optional[str] = None
    onsite_round4: Optional[str] = None
    decision: Optional[str] = None
    notes: Optional[str] = None
    hiring_manager_notes: Optional[str] = None


class JobApplicationUpdate(JobApplicationCreate):
    """Full edit from the job form (PUT)."""


class StageUpdate(BaseModel):
    field: str
    value: str


class JobApplicationOut(BaseModel):
    id: int
    company: str
    position: str
    recruiter_name: str
    hiring_manager: str
    recruiter_screen: str
    technical_screen: str
    onsite_round1: str
    onsite_round2: str
    onsite_round3: str
    onsite_round4: str
    decision: str
    notes: str
    hiring_manager_notes: str
    created_at: datetime
    updated_at: datetime
    pills: Dict[str, str] = {}

    @field_serializer("created_at", "updated_at")
    def serialize_dt(self, dt: Optional[datetime]):
        if dt is None:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    model_config = ConfigDict(from_attributes=True)


class StageUpdateOut(BaseModel):
    job: JobApplicationOut
    # "success" / "error" animation to play, or None
    celebration: Optional[str] = None


class DecisionCount(BaseModel):
    decision: str
    count: int


class JobStatsOut(BaseModel):
    total: int
    by_decision: List[DecisionCount]
    in_progress: int
    completed_interviews: int
    rejected: int
    offers: int
