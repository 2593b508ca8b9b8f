"""Tricoteuse (worker) model"""
from sqlalchemy import Column, Integer, String, DateTime
from datetime import datetime
from atelier.database import Base


class Tricoteuse(Base):
    """Worker profile"""

    __tablename__ = "tricoteuses"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False, index=True)
    email = Column(String(200), unique=True, nullable=False)
    color = Column(String(20))        # UI avatar color
    photo_url = Column(String(1000))
    gender = Column(String(20))
    password_hash = Column(String(100))  # bcrypt, optional
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        """Public form (never includes the password hash)"""
        return {
            "id": self.id,
            "firstName": self.first_name,
            "email": self.email,
            "color": self.color,
            "photoUrl": self.photo_url,
            "gender": self.gender,
            "hasPassword": bool(self.password_hash),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Tricoteuse(name='{self.first_name}', email='{self.email}')>"
