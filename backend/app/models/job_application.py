from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.base import Base
from app.services.records import stage_pills


class JobApplication(Base):
    __tablename__ = "job_applications"

    id = Column(Integer, primary_key=True, index=True)

    # ✅ ownership
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    company = Column(String(255), nullable=False, index=True)
    position = Column(String(255), nullable=False, server_default="")
    recruiter_name = Column(String(255), nullable=False, server_default="")
    hiring_manager = Column(String(255), nullable=False, server_default="")

    # Screens: Not Started, In Progress, Completed, Rejected
    recruiter_screen = Column(String(32), nullable=False, default="Not Started", server_default="Not Started")
    technical_screen = Column(String(32), nullable=False, default="Not Started", server_default="Not Started")

    # Onsite rounds: Not Started, Scheduled, Completed, Passed, Failed
    onsite_round1 = Column(String(32), nullable=False, default="Not Started", server_default="Not Started")
    onsite_round2 = Column(String(32), nullable=False, default="Not Started", server_default="Not Started")
    onsite_round3 = Column(String(32), nullable=False, default="Not Started", server_default="Not Started")
    onsite_round4 = Column(String(32), nullable=False, default="Not Started", server_default="Not Started")

    # Pending, Offer Extended, Accepted, Rejected, Declined
    decision = Column(String(32), nullable=False, default="Pending", server_default="Pending", index=True)

    notes = Column(Text, nullable=False, server_default="")
    hiring_manager_notes = Column(Text, nullable=False, server_default="")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    user = relationship("User", back_populates="job_applications")

    # Deleting a job keeps its log entries; their job_id is nulled and reads fall back to snapshots.
    log_entries = relationship("LogEntry", back_populates="job")

    @property
    def pills(self) -> dict[str, str]:
        return stage_pills(self)
