from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, text

from filedrop.core.database import Base
from filedrop.utils.timeutils import utcnow

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class Upload(Base):
    """One stored object.

    ``file_id`` is the object-store key. Single uploads have
    ``file_id == group_id``; directory members are keyed
    ``"{group_id}/{relative_path}"``.
    """

    __tablename__ = "uploads"
    __table_args__ = (
        Index(
            "idx_expires_at",
            "expires_at",
            sqlite_where=text("expires_at IS NOT NULL"),
            postgresql_where=text("expires_at IS NOT NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    file_id = Column(String, unique=True, index=True, nullable=False)
    group_id = Column(String, index=True, nullable=False)
    original_name = Column(String, nullable=False)
    relative_path = Column(String, nullable=True)
    size = Column(Integer, nullable=False)
    content_type = Column(String, default=DEFAULT_CONTENT_TYPE)
    api_key_id = Column(Integer, ForeignKey("api_keys.id"), nullable=False, index=True)
    uploaded_at = Column(DateTime, default=utcnow)
    last_accessed_at = Column(DateTime, nullable=True)
    access_count = Column(Integer, default=0, server_default="0", nullable=False)
    expires_at = Column(DateTime, nullable=True)

    @property
    def is_directory_item(self) -> bool:
        return self.file_id != self.group_id

    def is_expired(self, now) -> bool:
        return self.expires_at is not None and self.expires_at <= now
