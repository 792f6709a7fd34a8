from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import relationship
from dailydrop.database import Base


class User(Base):
    __tablename__ = "users"

    # Subject claim issued by the identity provider
    id = Column(String(255), primary_key=True)
    username = Column(String(255), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    name = Column(String(255), nullable=True, index=True)  # Display name from settings
    bio = Column(Text, nullable=True)
    profile_image_url = Column(String(1024), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    last_analysis_date = Column(DateTime, nullable=True, index=True)

    # Relationships
    drops = relationship(
        "Drop",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    analyses = relationship(
        "Analysis",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def display_name(self):
        if self.name:
            return self.name
        full = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full or self.username

    def __repr__(self):
        return f"<User {self.username}>"
