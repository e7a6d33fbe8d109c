from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.types import JSON

from app.core.base import Base


class LogEntry(Base):
    __tablename__ = "log_entries"

    id = Column(Integer, primary_key=True, index=True)

    job_id = Column(
        Integer,
        ForeignKey("job_applications.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # created, updated, deleted, status_update (free text is allowed)
    action = Column(String(50), nullable=False, index=True)

    details = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes, so the attribute is `meta`.
    meta = Column("metadata", JSON, nullable=True)

    # Snapshots survive job deletion / renames.
    company_snapshot = Column(String(255), nullable=True)
    job_title_snapshot = Column(String(255), nullable=True)
    hiring_manager_snapshot = Column(String(255), nullable=True)

    # Client-supplied event time, not insert time.
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)

    job = relationship("JobApplication", back_populates="log_entries")
    user = relationship("User")

    @property
    def company(self) -> str | None:
        if self.job is not None and self.job.company:
            return self.job.company
        return self.company_snapshot

    @property
    def job_title(self) -> str | None:
        if self.job is not None and self.job.position:
            return self.job.position
        return self.job_title_snapshot

    @property
    def hiring_manager(self) -> str | None:
        if self.job is not None and self.job.hiring_manager:
            return self.job.hiring_manager
        return self.hiring_manager_snapshot

    @property
    def username(self) -> str | None:
        return self.user.username if self.user is not None else None
