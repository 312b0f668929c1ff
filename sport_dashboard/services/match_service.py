from datetime import date as date_type, datetime
import logging

from sport_dashboard.models.records import (
    MATCH_TYPES, SPORT_TYPES, MatchRecord, SetRecord, utcnow
)
from sport_dashboard.services.stats_service import to_datetime
from sport_dashboard.services.storage_service import Storage

logger = logging.getLogger(__name__)


class MatchValidationError(ValueError):
    pass


def derive_set_winner(player1_score: int, player2_score: int) -> str:
    return "player1" if player1_score > player2_score else "player2"

def derive_match_winner(sets):
    """Side with strictly more sets won, None on a tie."""
    p1_set_wins = sum(1 for s in sets if s.winner == "player1")
    p2_set_wins = sum(1 for s in sets if s.winner == "player2")
    if p1_set_wins > p2_set_wins:
        return "player1"
    if p2_set_wins > p1_set_wins:
        return "player2"
    return None

def _parse_score(value) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise MatchValidationError("Please enter valid scores")

def _score_pair(item):
    if isinstance(item, dict):
        return item.get("player1_score"), item.get("player2_score")
    if hasattr(item, "player1_score"):
        return item.player1_score, item.player2_score
    return item[0], item[1]

def build_sets(scores):
    """Turn ``(player1_score, player2_score)`` pairs into ordered sets.

    Every call creates fresh set ids: a match's sets are always recreated as
    a whole.
    """
    sets = []
    for order, item in enumerate(scores, start=1):
        raw1, raw2 = _score_pair(item)
        p1 = _parse_score(raw1)
        p2 = _parse_score(raw2)

        if p1 < 0 or p2 < 0:
            raise MatchValidationError("Scores cannot be negative")
        if p1 == p2:
            raise MatchValidationError("Scores cannot be equal - someone must win the set")

        sets.append(SetRecord(
            set_order=order,
            player1_score=p1,
            player2_score=p2,
            winner=derive_set_winner(p1, p2),
        ))
    return sets

def _parse_date(value) -> datetime:
    if value is None or value == "":
        return utcnow()
    if isinstance(value, date_type) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    parsed = to_datetime(value)
    if parsed == datetime.min:
        raise MatchValidationError(f"Invalid date: {value}")
    return parsed

def _parse_duration(value):
    if value is None or value == "":
        return None
    try:
        duration = int(value)
    except (TypeError, ValueError):
        raise MatchValidationError("Duration must be a number of minutes")
    if duration < 0:
        raise MatchValidationError("Duration cannot be negative")
    return duration

def _resolve_name(storage: Storage, player_id: str, previous: MatchRecord = None):
    player = storage.get_player(player_id)
    if player:
        return player.name
    # the player may have been deleted since the match was recorded
    if previous:
        for slot in (1, 2, 3, 4):
            if getattr(previous, f"player{slot}_id") == player_id:
                return getattr(previous, f"player{slot}_name")
    raise MatchValidationError(f"Unknown player: {player_id}")

def build_match(storage: Storage, sport_type, match_type, player1_id, player2_id,
                player3_id=None, player4_id=None, sets=(), date=None,
                duration=None, notes=None, match_id=None, previous=None) -> MatchRecord:
    """Validate a match as entered on a form and return the record to store.

    Player names are copied onto the match from the current players; the
    winner is derived from the sets.
    """
    if sport_type not in SPORT_TYPES:
        raise MatchValidationError(f"Invalid sport type: {sport_type}")
    if match_type not in MATCH_TYPES:
        raise MatchValidationError(f"Invalid match type: {match_type}")

    if not player1_id or not player2_id:
        raise MatchValidationError("Please select both players")
    if player1_id == player2_id:
        raise MatchValidationError("Players cannot play against themselves")

    if match_type == "doubles":
        if not player3_id or not player4_id:
            raise MatchValidationError("Please select all four players for doubles")
        if len({player1_id, player2_id, player3_id, player4_id}) != 4:
            raise MatchValidationError("All players must be different in doubles")
    else:
        player3_id = player4_id = None

    set_records = build_sets(sets)
    if not set_records:
        raise MatchValidationError("Please add at least one set")

    fields = {
        "sport_type": sport_type,
        "match_type": match_type,
        "player1_id": player1_id,
        "player2_id": player2_id,
        "player3_id": player3_id,
        "player4_id": player4_id,
        "player1_name": _resolve_name(storage, player1_id, previous),
        "player2_name": _resolve_name(storage, player2_id, previous),
        "player3_name": _resolve_name(storage, player3_id, previous) if player3_id else None,
        "player4_name": _resolve_name(storage, player4_id, previous) if player4_id else None,
        "sets": set_records,
        "winner": derive_match_winner(set_records),
        "date": _parse_date(date),
        "duration": _parse_duration(duration),
        "notes": (notes or "").strip() or None,
    }
    if match_id:
        fields["id"] = match_id
    return MatchRecord(**fields)

def get_all(storage: Storage):
    return storage.list_matches()

def get_by_id(storage: Storage, match_id: str):
    return storage.get_match(match_id)

def create(storage: Storage, **fields):
    match = build_match(storage, **fields)
    storage.add_match(match)
    logger.info("Created %s %s match %s (%d sets)",
                match.sport_type, match.match_type, match.id, len(match.sets))
    return match

def update(storage: Storage, match_id: str, **fields):
    """Replace a match, sets included. Returns None if it does not exist."""
    existing = get_by_id(storage, match_id)
    if not existing:
        return None
    match = build_match(storage, match_id=match_id, previous=existing, **fields)
    storage.update_match(match)
    logger.info("Updated match %s", match_id)
    return match

def delete(storage: Storage, match_id: str):
    deleted = storage.delete_match(match_id)
    if deleted:
        logger.info("Deleted match %s", match_id)
    return deleted
