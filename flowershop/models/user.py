from sqlalchemy import Column, DateTime, Integer, String, func
from .base import Base


class User(Base):
    __tablename__ = "user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    role = Column(String(16), nullable=False, default="customer")
    created_at = Column(DateTime, nullable=False, server_default=func.now())
