from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, Integer, JSON, String, UniqueConstraint

from taskboard.db.base import Base


def now_utc() -> datetime:
    return datetime.now(tz=timezone.utc)


class Document(Base):
    """Одна запись документного хранилища (коллекция + id + JSON данные)"""

    __tablename__ = "documents"

    # Порядок вставки, используется для стабильной сортировки
    seq = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String(64), nullable=False, index=True)
    doc_id = Column("id", String(64), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        UniqueConstraint("collection", "id", name="uq_documents_collection_id"),
    )
