# app/models/user.py
from sqlalchemy import Boolean, Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from app.core.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    username = Column(String(50), unique=True, index=True, nullable=False)
    # Users created implicitly by the log API (POST /api/logs) have no password and cannot log in.
    password_hash = Column(String(255), nullable=True)
    # User preference: appearance theme (dark/light)
    theme = Column(String(20), nullable=False, default="dark", server_default="dark")

    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    job_applications = relationship(
        "JobApplication",
        back_populates="user",
        cascade="all, delete-orphan",
    )
