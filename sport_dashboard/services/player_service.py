from sport_dashboard.models.records import PlayerRecord
from sport_dashboard.services.storage_service import Storage
import logging

logger = logging.getLogger(__name__)


class PlayerValidationError(ValueError):
    pass


def _clean(value):
    if value is None:
        return None
    value = value.strip()
    return value or None

def get_all(storage: Storage):
    return storage.list_players()

def get_by_id(storage: Storage, player_id: str):
    return storage.get_player(player_id)

def find_by_name(storage: Storage, name: str, exclude_id: str = None):
    """Case-insensitive name lookup, optionally ignoring one player."""
    wanted = name.strip().lower()
    for player in storage.list_players():
        if player.id != exclude_id and player.name.lower() == wanted:
            return player
    return None

def create(storage: Storage, name: str, email: str = None, phone: str = None):
    name_clean = (name or "").strip()
    if not name_clean:
        raise PlayerValidationError("Player name is required")
    if find_by_name(storage, name_clean):
        raise PlayerValidationError(f"Player '{name_clean}' already exists")

    player = PlayerRecord(name=name_clean, email=_clean(email), phone=_clean(phone))
    storage.add_player(player)
    logger.info("Created player %s (%s)", player.name, player.id)
    return player

def update(storage: Storage, player_id: str, name: str, email: str = None, phone: str = None):
    """Replace name, email and phone of a player. Returns None if it does not exist."""
    player = get_by_id(storage, player_id)
    if not player:
        return None

    name_clean = (name or "").strip()
    if not name_clean:
        raise PlayerValidationError("Player name is required")
    if find_by_name(storage, name_clean, exclude_id=player_id):
        raise PlayerValidationError(f"Player '{name_clean}' already exists")

    updated = player.model_copy(update={
        "name": name_clean,
        "email": _clean(email),
        "phone": _clean(phone),
    })
    storage.update_player(updated)
    logger.info("Updated player %s", player_id)
    return updated

def delete(storage: Storage, player_id: str):
    # Matches keep the player's id and name, nothing cascades.
    deleted = storage.delete_player(player_id)
    if deleted:
        logger.info("Deleted player %s", player_id)
    return deleted
