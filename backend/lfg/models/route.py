"""Route model for routes imported from Strava or RideWithGPS."""

from sqlalchemy import Column, Integer, String, BigInteger, DateTime, Text, JSON
from datetime import datetime

from lfg.database import Base


class Route(Base):
    """Imported route, unique per remote route id."""

    __tablename__ = "routes"

    id = Column(Integer, primary_key=True, index=True)

    # Remote identity
    strava_route_id = Column(BigInteger, unique=True, index=True, nullable=True)
    ridewithgps_route_id = Column(String(50), unique=True, index=True, nullable=True)
    route_source = Column(String(20), default="strava")  # strava, ridewithgps, manual

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Metrics
    distance_meters = Column(Integer, nullable=False)
    elevation_gain_meters = Column(Integer, nullable=True)
    estimated_moving_time = Column(Integer, nullable=True)  # seconds

    # Geometry
    polyline = Column(Text, nullable=True)  # encoded polyline
    track = Column(JSON, nullable=True)  # {latlng: [...], distance: [...], altitude: [...]}

    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<Route {self.id} {self.name} ({self.route_source})>"
