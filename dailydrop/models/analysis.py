"""
Analysis Models

An Analysis is an AI-written reflection over a batch of a user's drops.
AnalysisDrop records which drops went into each analysis.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from dailydrop.database import Base


class Analysis(Base):
    __tablename__ = "analyses"

    id = Column(Integer, primary_key=True)
    user_id = Column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content = Column(Text, nullable=False)        # Up to three paragraphs
    summary = Column(Text, nullable=False)        # One line
    bullet_points = Column(Text, nullable=False)  # Newline separated insights
    is_favorited = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    # Relationships
    user = relationship("User", back_populates="analyses")
    analysis_drops = relationship(
        "AnalysisDrop",
        back_populates="analysis",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_analyses_user_favorited_created", "user_id", "is_favorited", "created_at"),
    )

    @property
    def drop_ids(self):
        return [link.drop_id for link in self.analysis_drops]

    def __repr__(self):
        return f"<Analysis {self.id} user:{self.user_id}>"


class AnalysisDrop(Base):
    __tablename__ = "analysis_drops"

    id = Column(Integer, primary_key=True)
    analysis_id = Column(
        Integer,
        ForeignKey("analyses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    drop_id = Column(
        Integer,
        ForeignKey("drops.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    analysis = relationship("Analysis", back_populates="analysis_drops")
    drop = relationship("Drop")

    def __repr__(self):
        return f"<AnalysisDrop analysis:{self.analysis_id} drop:{self.drop_id}>"
