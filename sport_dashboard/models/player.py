from sqlalchemy import Column, String, DateTime
from sport_dashboard.database import Base
from sport_dashboard.models.records import utcnow
import uuid

class Player(Base):
    __tablename__ = "players"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
