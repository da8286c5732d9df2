"""
Survey models.

- Survey: one respondent session, carries the stored negative score
- SurveyAnswer: one persisted answer row (the analytics source)
- LowSatisfactionContact: contact details left by an escalated respondent
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from satisfaction_api.database import Base


class Survey(Base):
    """A single survey session."""

    __tablename__ = "surveys"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)

    # Set on final submission
    negative_score = Column(Float)
    submitted_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    answers = relationship("SurveyAnswer", back_populates="survey", cascade="all, delete-orphan")
    contacts = relationship("LowSatisfactionContact", back_populates="survey", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Survey id={self.id} score={self.negative_score}>"


class SurveyAnswer(Base):
    """
    A persisted answer. Rows are append-only; the only later write is the
    sentiment analysis attached to the free-text feedback row.
    """

    __tablename__ = "responses"

    id = Column(Integer, primary_key=True, index=True)
    survey_id = Column(Integer, ForeignKey("surveys.id"), nullable=False, index=True)
    question_id = Column(Integer, nullable=False, index=True)

    answer = Column(Text)
    optional_answer = Column(Text)
    responded_at = Column(DateTime(timezone=True), nullable=False)

    # Verbatim sentiment analyzer output, feedback question only
    nlp_analysis = Column(JSON(none_as_null=True))

    survey = relationship("Survey", back_populates="answers")

    def __repr__(self):
        return f"<SurveyAnswer id={self.id} survey={self.survey_id} question={self.question_id}>"


class LowSatisfactionContact(Base):
    """Contact details collected when a survey was escalated."""

    __tablename__ = "low_satisfaction_responses"

    id = Column(Integer, primary_key=True, index=True)
    survey_id = Column(Integer, ForeignKey("surveys.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    email = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    survey = relationship("Survey", back_populates="contacts")

    def __repr__(self):
        return f"<LowSatisfactionContact id={self.id} survey={self.survey_id}>"
