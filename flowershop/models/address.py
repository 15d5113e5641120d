from sqlalchemy import Column, ForeignKey, Integer, String
from .base import Base


class Address(Base):
    __tablename__ = "address"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False)
    recipient = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    street = Column(String(255), nullable=False)
    city = Column(String(128), nullable=False)
    province = Column(String(128), nullable=False)
