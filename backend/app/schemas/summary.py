from typing import List, Optional

from pydantic import BaseModel, Field


class SummaryQueryIn(BaseModel):
    query: str = Field(max_length=500)


class ReportLineOut(BaseModel):
    kind: str
    text: str
    label: Optional[str] = None
    number: Optional[int] = None


class SummaryOut(BaseModel):
    outcome: str
    company: Optional[str] = None
    lines: List[ReportLineOut]
    text: str


class SuggestionsOut(BaseModel):
    quick_queries: List[str]
    examples: List[str]
