"""Storage backends for players and matches.

A storage hands out whole snapshots (``load``) and takes them back wholesale
(``save``). Per-record helpers are built on those two calls; ``SqlStorage``
overrides them with direct queries.
"""
import logging
import os

from pydantic import ValidationError
from sqlalchemy.orm import Session

from sport_dashboard.models.match import Match, MatchSet
from sport_dashboard.models.player import Player
from sport_dashboard.models.records import MatchRecord, PlayerRecord, Snapshot

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


def _newest_first(records, attr):
    return sorted(records, key=lambda r: getattr(r, attr), reverse=True)


class Storage:
    def load(self) -> Snapshot:
        raise NotImplementedError

    def save(self, players, matches):
        raise NotImplementedError

    # players

    def list_players(self):
        return _newest_first(self.load().players, "created_at")

    def get_player(self, player_id):
        return next((p for p in self.load().players if p.id == player_id), None)

    def add_player(self, player):
        snapshot = self.load()
        snapshot.players.append(player)
        self.save(snapshot.players, snapshot.matches)
        return player

    def update_player(self, player):
        snapshot = self.load()
        for index, existing in enumerate(snapshot.players):
            if existing.id == player.id:
                snapshot.players[index] = player
                self.save(snapshot.players, snapshot.matches)
                return player
        return None

    def delete_player(self, player_id):
        snapshot = self.load()
        players = [p for p in snapshot.players if p.id != player_id]
        if len(players) == len(snapshot.players):
            return False
        self.save(players, snapshot.matches)
        return True

    # matches

    def list_matches(self):
        return _newest_first(self.load().matches, "date")

    def get_match(self, match_id):
        return next((m for m in self.load().matches if m.id == match_id), None)

    def add_match(self, match):
        snapshot = self.load()
        snapshot.matches.append(match)
        self.save(snapshot.players, snapshot.matches)
        return match

    def update_match(self, match):
        snapshot = self.load()
        for index, existing in enumerate(snapshot.matches):
            if existing.id == match.id:
                snapshot.matches[index] = match
                self.save(snapshot.players, snapshot.matches)
                return match
        return None

    def delete_match(self, match_id):
        snapshot = self.load()
        matches = [m for m in snapshot.matches if m.id != match_id]
        if len(matches) == len(snapshot.matches):
            return False
        self.save(snapshot.players, matches)
        return True


class JsonStorage(Storage):
    """Whole dataset in one JSON file, read and rewritten on every change."""

    def __init__(self, path):
        self.path = path

    def load(self) -> Snapshot:
        if not os.path.exists(self.path):
            return Snapshot()
        with open(self.path, "r", encoding="utf-8") as f:
            content = f.read()
        if not content.strip():
            return Snapshot()
        try:
            return Snapshot.model_validate_json(content)
        except ValidationError as e:
            raise StorageError(f"Corrupt storage file {self.path}: {e}") from e

    def save(self, players, matches):
        directory = os.path.dirname(self.path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)
        snapshot = Snapshot(players=list(players), matches=list(matches))
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(snapshot.model_dump_json(indent=2))
        logger.debug("Saved %d players and %d matches to %s",
                     len(snapshot.players), len(snapshot.matches), self.path)


def _player_row(record: PlayerRecord) -> Player:
    return Player(
        id=record.id,
        name=record.name,
        email=record.email,
        phone=record.phone,
        created_at=record.created_at,
    )


def _set_rows(record: MatchRecord):
    return [
        MatchSet(
            id=s.id,
            set_order=s.set_order,
            player1_score=s.player1_score,
            player2_score=s.player2_score,
            winner=s.winner,
        )
        for s in record.sets
    ]


def _copy_match_fields(row: Match, record: MatchRecord):
    row.sport_type = record.sport_type
    row.match_type = record.match_type
    row.player1_id = record.player1_id
    row.player2_id = record.player2_id
    row.player3_id = record.player3_id
    row.player4_id = record.player4_id
    row.player1_name = record.player1_name
    row.player2_name = record.player2_name
    row.player3_name = record.player3_name
    row.player4_name = record.player4_name
    row.winner = record.winner
    row.date = record.date
    row.duration = record.duration
    row.notes = record.notes


class SqlStorage(Storage):
    def __init__(self, db: Session):
        self.db = db

    def load(self) -> Snapshot:
        return Snapshot(players=self.list_players(), matches=self.list_matches())

    def save(self, players, matches):
        self.db.query(MatchSet).delete()
        self.db.query(Match).delete()
        self.db.query(Player).delete()
        self.db.flush()
        self.db.expunge_all()
        for player in players:
            self.db.add(_player_row(player))
        for match in matches:
            row = Match(id=match.id)
            _copy_match_fields(row, match)
            row.sets = _set_rows(match)
            self.db.add(row)
        self.db.commit()

    def list_players(self):
        rows = self.db.query(Player).order_by(Player.created_at.desc()).all()
        return [PlayerRecord.model_validate(row) for row in rows]

    def get_player(self, player_id):
        row = self.db.query(Player).filter(Player.id == player_id).first()
        return PlayerRecord.model_validate(row) if row else None

    def add_player(self, player):
        self.db.add(_player_row(player))
        self.db.commit()
        return player

    def update_player(self, player):
        row = self.db.query(Player).filter(Player.id == player.id).first()
        if not row:
            return None
        row.name = player.name
        row.email = player.email
        row.phone = player.phone
        self.db.commit()
        return PlayerRecord.model_validate(row)

    def delete_player(self, player_id):
        row = self.db.query(Player).filter(Player.id == player_id).first()
        if not row:
            return False
        self.db.delete(row)
        self.db.commit()
        return True

    def list_matches(self):
        rows = self.db.query(Match).order_by(Match.date.desc()).all()
        return [MatchRecord.model_validate(row) for row in rows]

    def get_match(self, match_id):
        row = self.db.query(Match).filter(Match.id == match_id).first()
        return MatchRecord.model_validate(row) if row else None

    def add_match(self, match):
        row = Match(id=match.id)
        _copy_match_fields(row, match)
        row.sets = _set_rows(match)
        self.db.add(row)
        self.db.commit()
        return match

    def update_match(self, match):
        row = self.db.query(Match).filter(Match.id == match.id).first()
        if not row:
            return None
        # the set list is replaced as a unit
        self.db.query(MatchSet).filter(MatchSet.match_id == match.id).delete()
        self.db.flush()
        self.db.expire(row, ["sets"])
        _copy_match_fields(row, match)
        row.sets = _set_rows(match)
        self.db.commit()
        return match

    def delete_match(self, match_id):
        row = self.db.query(Match).filter(Match.id == match_id).first()
        if not row:
            return False
        self.db.delete(row)
        self.db.commit()
        return True
