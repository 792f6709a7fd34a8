from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from sqlalchemy.orm import relationship
from dailydrop.database import Base


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True)
    text = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    category = Column(String(50), nullable=True, default="general")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    drops = relationship("Drop", back_populates="question")

    def __repr__(self):
        return f"<Question {self.id}: {self.text[:40]}>"


# Built-in pool, seeded in this order so ids follow list position
DEFAULT_QUESTIONS = [
    "What brought you joy today, even if just for a moment?",
    "What small step did you take toward your goals yesterday?",
    "What made you feel grateful today?",
    "What challenge did you overcome recently?",
    "What's something you learned about yourself this week?",
    "When did you feel most at peace today?",
    "What's one thing you'd like to improve about tomorrow?",
    "Who made a positive impact on your day and why?",
    "What boundaries did you set or maintain today?",
    "What's something you're looking forward to?",
    "How did you show yourself compassion today?",
    "What was a moment when you felt proud of yourself?",
    "What's something you want to remember about today?",
    "How did you take care of your physical health today?",
    "What was the most meaningful conversation you had recently?",
    "What are you currently learning or want to learn?",
    "When did you feel most connected to others today?",
    "What worry can you let go of tonight?",
    "What inspired you today?",
    "How did you find balance today?",
]
