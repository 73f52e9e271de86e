"""
Database models for wallrot.
"""

from sqlalchemy import Column, String, Integer, DateTime, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ApiCall(Base):
    """
    Request counter for served URLs.

    One row per distinct request URL (path and query string).
    """
    __tablename__ = "api_calls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    api_url = Column(String(2048), nullable=False, unique=True)
    call_count = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
