"""
RefreshToken model: one row per active login session.
Fields:
- user_id (String(36)) - FK to users.id, cascades on account deletion
- token_hash - argon2 hash of the refresh JWT; the plaintext is never stored
- expires_at - naive UTC; the record is usable only while now < expires_at
"""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(255), nullable=False)
    expires_at = Column(DateTime, nullable=False)

    user = relationship("User", back_populates="refresh_tokens")

    def is_expired(self, now) -> bool:
        return self.expires_at <= now

    def __repr__(self):
        return f"<RefreshToken user={self.user_id} expires_at={self.expires_at}>"
