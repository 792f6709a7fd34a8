from datetime import datetime
from sqlalchemy import Column, Integer, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from dailydrop.database import Base


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True)
    drop_id = Column(
        Integer,
        ForeignKey("drops.id", ondelete="CASCADE"),
        nullable=False,
    )
    text = Column(Text, nullable=False)
    from_user = Column(Boolean, nullable=False, default=False)  # False = coach
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    drop = relationship("Drop", back_populates="messages")

    __table_args__ = (
        Index("ix_messages_drop_created", "drop_id", "created_at"),
    )

    @property
    def role(self):
        """Role of the message in an Anthropic conversation."""
        return "user" if self.from_user else "assistant"

    def __repr__(self):
        return f"<Message {self.id} drop:{self.drop_id}>"
