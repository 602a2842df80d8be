"""Database table definitions for the build manifest"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, String, Text
from sqlmodel import Field, SQLModel


class BuildRecord(SQLModel, table=True):
    """What the last build wrote for one source document"""
    __tablename__ = "build_records"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    path: str = Field(..., sa_column=Column(Text, nullable=False, unique=True))
    slug: str = Field(..., index=True, nullable=False)
    permalink: str = Field(..., sa_column=Column(Text, nullable=False))
    layout: Optional[str] = Field(default=None, nullable=True)
    output: str = Field(..., sa_column=Column(Text, nullable=False), description="Output file, relative to the output dir")
    hash: str = Field(..., sa_column=Column(String(64), nullable=False), description="SHA-256 of the rendered page")
    built_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
