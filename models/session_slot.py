from sqlalchemy import JSON, Column, DateTime, Integer, String, UniqueConstraint, func

from database import Base


class SessionSlot(Base):
    """One key of a client's session storage (e.g. purchaseState_{projectId})."""

    __tablename__ = "session_slots"
    __table_args__ = (UniqueConstraint("session_id", "key", name="uq_session_slot_key"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(128), nullable=False, index=True)
    key = Column(String(256), nullable=False, index=True)
    value = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
