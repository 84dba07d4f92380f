# ------------------------------ IMPORTS ------------------------------
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text
from core.database.connection import Base
from core.utils.data_helpers import utcnow

# ------------------------------ MODERATION LOG MODEL ------------------------------

class ModerationLog(Base):
    """Audit row written in the same transaction as each moderator decision."""

    __tablename__ = "moderation_logs"

    id = Column(Integer, primary_key=True, index=True)
    target_type = Column(String(32), nullable=False, default="CONTRIBUTION")
    target_id = Column(Integer, nullable=False, index=True)
    action = Column(String(16), nullable=False)
    moderator_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<ModerationLog(target={self.target_type}:{self.target_id}, action={self.action})>"

# ------------------------------ END OF FILE ------------------------------
