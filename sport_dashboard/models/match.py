from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sport_dashboard.database import Base
import uuid

class Match(Base):
    __tablename__ = "matches"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    sport_type = Column(String, nullable=False)   # padel or badminton
    match_type = Column(String, nullable=False)   # singles or doubles

    # No foreign keys: a match must outlive the players it references.
    player1_id = Column(String, nullable=False, index=True)
    player2_id = Column(String, nullable=False, index=True)
    player3_id = Column(String, nullable=True, index=True)  # partner of player1
    player4_id = Column(String, nullable=True, index=True)  # partner of player2

    player1_name = Column(String, nullable=False)
    player2_name = Column(String, nullable=False)
    player3_name = Column(String, nullable=True)
    player4_name = Column(String, nullable=True)

    winner = Column(String, nullable=True)
    date = Column(DateTime, nullable=False, index=True)
    duration = Column(Integer, nullable=True)  # minutes
    notes = Column(Text, nullable=True)

    sets = relationship(
        "MatchSet",
        back_populates="match",
        order_by="MatchSet.set_order",
        cascade="all, delete-orphan"
    )


class MatchSet(Base):
    __tablename__ = "sets"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    match_id = Column(String, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    set_order = Column(Integer, nullable=False)

    player1_score = Column(Integer, nullable=False)
    player2_score = Column(Integer, nullable=False)
    winner = Column(String, nullable=False)

    match = relationship("Match", back_populates="sets")
