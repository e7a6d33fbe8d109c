from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class LogCreate(BaseModel):
    # Required fields are checked in the route so a missing one is a 400, like the original API.
    timestamp: Optional[Union[str, int, float]] = None
    action: Optional[str] = None
    username: Optional[str] = None
    job_title: Optional[str] = Field(default=None, alias="jobTitle")
    company: Optional[str] = None
    details: Optional[str] = None
    job_id: Optional[Union[int, str]] = Field(default=None, alias="jobId")
    hiring_manager: Optional[str] = Field(default=None, alias="hiringManager")
    metadata: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(populate_by_name=True)


class LogBulkIn(BaseModel):
    logs: Any = None


class LogOut(BaseModel):
    id: Union[int, str]
    timestamp: str
    action: str
    username: Optional[str] = None
    company: Optional[str] = None
    job_title: Optional[str] = Field(default=None, alias="jobTitle")
    details: Optional[str] = None
    job_id: Optional[Union[int, str]] = Field(default=None, alias="jobId")
    hiring_manager: Optional[str] = Field(default=None, alias="hiringManager")
    metadata: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(populate_by_name=True)


class LogCreatedOut(BaseModel):
    success: bool = True
    id: int
    message: str = "Log entry created successfully"


class LogListOut(BaseModel):
    success: bool = True
    count: int
    data: List[LogOut]


class LogDetailOut(BaseModel):
    success: bool = True
    data: LogOut


class LogStat(BaseModel):
    action: str
    count: int


class LogStatsOut(BaseModel):
    success: bool = True
    data: List[LogStat]


class LogBulkError(BaseModel):
    index: int
    error: str


class LogBulkOut(BaseModel):
    success: bool = True
    imported: int
    total: int
    errors: Optional[List[LogBulkError]] = None


class LogDeletedOut(BaseModel):
    success: bool = True
    message: str


class LogCleanupOut(BaseModel):
    success: bool = True
    deleted: int
    message: str


class TimelineEntryOut(BaseModel):
    id: Union[int, str]
    title: str
    details: str
    username: str
    action: str
    action_label: str
    tone: Dict[str, str]
    relative_time: str
    chips: List[List[str]]
    is_last: bool


class TimelineOut(BaseModel):
    total: int
    counts: Dict[str, int]
    entries: List[TimelineEntryOut]
