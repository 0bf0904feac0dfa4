"""User model for authentication and Strava connection."""

from sqlalchemy import Column, Integer, String, BigInteger, DateTime, Text
from datetime import datetime

from lfg.database import Base


class User(Base):
    """User account, local or created through Strava sign-in."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False, default="")  # Empty for Strava-only users
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")

    # Strava integration
    strava_user_id = Column(BigInteger, unique=True, index=True, nullable=True)
    strava_access_token = Column(Text, nullable=True)
    strava_refresh_token = Column(Text, nullable=True)
    strava_token_expires_at = Column(DateTime, nullable=True)

    # Profile
    profile_photo_url = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    bike_type = Column(String(50), nullable=True)
    experience_level = Column(String(20), nullable=True)  # beginner, intermediate, advanced

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def strava_connected(self) -> bool:
        return self.strava_access_token is not None

    def __repr__(self):
        return f"<User {self.id} {self.email}>"
