from sqlalchemy import Column, String, DateTime, Text
from database import Base
import utils


class SessionRecord(Base):
    """A tasting session stored as one JSON document."""
    __tablename__ = "sessions"

    id = Column(String, primary_key=True, default=utils.generate_uuid)
    code = Column(String(4), unique=True, index=True, nullable=False)
    document = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utils.get_utc_now)


class SeriesRecord(Base):
    __tablename__ = "series"

    id = Column(String, primary_key=True, default=utils.generate_uuid)
    document = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utils.get_utc_now)
