from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from shared.config.database import Base


class Admin(Base):
    __tablename__ = "admins"
    __table_args__ = {"schema": "admin_schema"}

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(150), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    # Normalised (trimmed, lower-cased) answer, hashed like the password
    security_answer_hash = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
