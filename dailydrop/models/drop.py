"""
Drop Model

A drop is one journal entry: the user's answer to a question. Drops are
append-only. The question wording is copied onto the row when it is created
so later edits to the question pool never rewrite history.

journaling_date is the UTC-7 date of created_at. A user can answer a given
question at most once per journaling day.
"""

from datetime import datetime
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Date,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from dailydrop.database import Base


class Drop(Base):
    __tablename__ = "drops"

    id = Column(Integer, primary_key=True)
    user_id = Column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False)
    question_text = Column(Text, nullable=False)
    # Column is "answer" in the database
    text = Column("answer", Text, nullable=False)
    journaling_date = Column(Date, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    # Relationships
    user = relationship("User", back_populates="drops")
    question = relationship("Question", back_populates="drops")
    messages = relationship(
        "Message",
        back_populates="drop",
        order_by="Message.created_at",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "question_id", "journaling_date",
            name="uq_drops_user_question_day",
        ),
        Index("ix_drops_user_created", "user_id", "created_at"),
    )

    @property
    def message_count(self):
        return len(self.messages)

    def __repr__(self):
        return f"<Drop {self.id} user:{self.user_id} q:{self.question_id}>"
