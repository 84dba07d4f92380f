# ------------------------------ IMPORTS ------------------------------
from sqlalchemy import Column, Integer, String, DateTime
from core.database.connection import Base
from core.utils.data_helpers import utcnow

# ------------------------------ USER MODEL ------------------------------

class User(Base):
    """User model - identity mirror plus the in-app currency balance."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    role = Column(String(16), nullable=False, default="MEMBER")
    app_currency_balance = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, role={self.role}, balance={self.app_currency_balance})>"

# ------------------------------ END OF FILE ------------------------------
