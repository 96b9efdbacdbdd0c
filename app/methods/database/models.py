from sqlalchemy import Column, Integer, String, Text, DateTime, UniqueConstraint, Index
from .database import Base

class Account(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    hashed_password = Column(String(60), nullable=False)
    created = Column(DateTime, nullable=False)
    __table_args__ = (
        UniqueConstraint("email", name="users_uc_email"),
    )


class Snippet(Base):
    __tablename__ = "snippets"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    content = Column(Text, nullable=False)
    created = Column(DateTime, nullable=False)
    expires = Column(DateTime, nullable=False)
    __table_args__ = (
        Index("idx_snippets_created", "created"),
        Index("idx_snippets_expires", "expires"),
    )
