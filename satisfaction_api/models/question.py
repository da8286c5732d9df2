"""
Question catalog model.

Rows are managed through the catalog edit endpoint; the scoring engine only
ever reads them.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Text, JSON
from sqlalchemy.sql import func
from satisfaction_api.database import Base


class Question(Base):
    """A catalog question with its scoring configuration."""

    __tablename__ = "questions"

    # Ids are chosen by the catalog editor
    id = Column(Integer, primary_key=True, autoincrement=False)
    question_text = Column(Text, nullable=False)

    question_type = Column(String(20), nullable=False)  # 'rating', 'stars', 'choice', 'text'
    max_value = Column(Integer)  # rating/stars scale maximum
    category = Column(String(100))  # e.g. 'Satisfaction générale', 'Qualité du service'

    # Share of the overall negative score, in percent
    importance = Column(Float, default=0.0)

    # Choice labels, best first: ["Très satisfait", ..., "Pas du tout satisfait"]
    options = Column(JSON)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Question id={self.id} type={self.question_type} importance={self.importance}>"
