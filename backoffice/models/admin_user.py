from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from backoffice.core.database import Base


class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="outlet_manager")
    active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
