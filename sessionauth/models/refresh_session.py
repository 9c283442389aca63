from sqlalchemy import Column, Integer, Text, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sessionauth.database import Base


class RefreshSession(Base):
    """One outstanding refresh token, i.e. one logged-in device."""

    __tablename__ = "user_tokens"

    id           = Column(Integer, primary_key=True, index=True)
    userId       = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    refreshToken = Column(Text, nullable=False, unique=True)
    userAgent    = Column(Text, nullable=False)
    ipAddress    = Column(Text, nullable=False)
    deviceInfo   = Column(Text, nullable=False)
    lastUsedAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    expiresAt    = Column(TIMESTAMP(timezone=True), nullable=False)
    createdAt    = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt    = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                          onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    user = relationship("User", back_populates="sessions")

    def __repr__(self):
        return f"<RefreshSession id={self.id} userId={self.userId} expiresAt={self.expiresAt}>"
