"""SQLAlchemy tables for users, the global skill catalog and certifications."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Table, Text
from sqlalchemy.sql import func

from database import Base

# Junction table for User <-> Skill. A skill's holders and a user's skill
# set are both read from here, so the two can never disagree.
user_skills = Table(
    "user_skills",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("skill_id", Integer, ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True),
    Column("added_at", DateTime(timezone=True), server_default=func.now()),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Skill(Base):
    """Catalog row. `name` is the normalized (lowercase, trimmed) dedup key."""
    __tablename__ = "skills"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    category = Column(String(100), nullable=False, default="General")
    level = Column(String(20), nullable=False, default="beginner")
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Certification(Base):
    __tablename__ = "certifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    issuer = Column(String(255), nullable=False)
    issue_date = Column(String(32), nullable=True)  # ISO date as supplied
    credential_id = Column(String(255), nullable=True)
    credential_url = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    file_name = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default="pending")  # pending, approved, rejected

    # Gemini analysis snapshot taken at submission time
    ai_analysis = Column(JSON, nullable=True)
    authenticity = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
