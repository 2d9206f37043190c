from sqlalchemy import Boolean, Column, Date, DateTime, Float, Integer, String
from sqlalchemy.sql import func
from .database import Base


class Answer(Base):
    """One cached questionnaire answer; the table is a flat id -> text map."""

    __tablename__ = "answers"

    question_id = Column(String(64), primary_key=True)
    value = Column(String(255), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Sample(Base):
    __tablename__ = "samples"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String(40), nullable=False, index=True)   # QuantityKind value
    value = Column(Float, nullable=False)
    unit = Column(String(16), nullable=False)
    start_date = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Profile(Base):
    __tablename__ = "profile"

    id = Column(Integer, primary_key=True)
    biological_sex = Column(String(10), nullable=False, default="not_set")
    date_of_birth = Column(Date, nullable=True)


class AuthorizationGrant(Base):
    __tablename__ = "authorization_grants"

    data_type = Column(String(40), primary_key=True)
    granted = Column(Boolean, nullable=False, default=False)
