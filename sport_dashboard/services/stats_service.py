"""Statistics derived from a snapshot of players and matches.

Every function here is pure: it reads the records it is given, never mutates
them and never raises on odd input. Zero matches, zero sets or an unknown
player id give zeroed results (0, 0%, None) instead of errors.

Records are read by attribute, so both ``MatchRecord`` snapshots and the
SQLAlchemy ``Match`` rows are accepted.
"""
import logging
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from sport_dashboard.models.records import SPORT_TYPES

logger = logging.getLogger(__name__)

# Same cut-off pydantic uses to tell epoch milliseconds from seconds
MS_TIMESTAMP_THRESHOLD = 2e10

UNKNOWN_PLAYER = "Unknown Player"
SLOTS = (1, 2, 3, 4)


class PlayerStats(BaseModel):
    player_id: str
    player_name: str
    total_matches: int = 0
    total_wins: int = 0
    total_losses: int = 0
    win_rate: float = 0.0
    total_sets_won: int = 0
    total_sets_lost: int = 0
    average_score_per_set: float = 0.0
    longest_win_streak: int = 0
    current_streak: int = 0
    last_played: Optional[datetime] = None


class SportStats(BaseModel):
    sport_type: str
    total_matches: int = 0
    total_players: int = 0
    average_match_duration: float = 0.0
    most_active_player: str = ""
    highest_scoring_match: str = ""


class MonthlyRecord(BaseModel):
    month: str
    wins: int = 0
    losses: int = 0


class ChartRow(BaseModel):
    """One bucket of a chart: a category label and one value per series."""

    category: str
    series: dict[str, float] = Field(default_factory=dict)


class DashboardStats(BaseModel):
    matches_considered: int = 0
    win_loss: list[ChartRow] = Field(default_factory=list)
    set_win_loss: list[ChartRow] = Field(default_factory=list)
    wins_over_time: list[ChartRow] = Field(default_factory=list)
    set_margins: list[ChartRow] = Field(default_factory=list)
    match_margins: list[ChartRow] = Field(default_factory=list)
    points: list[ChartRow] = Field(default_factory=list)
    points_by_sport: list[ChartRow] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def to_datetime(value) -> datetime:
    """Normalize a match date to a naive UTC datetime.

    Accepts ``datetime``, ``date``, ISO-8601 strings (``Z`` or offset
    suffixes included) and epoch timestamps, in seconds or, past
    ``MS_TIMESTAMP_THRESHOLD``, in milliseconds. Anything unreadable sorts as
    ``datetime.min``.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Unreadable match date %r", value)
            return datetime.min
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = value / 1000 if abs(value) > MS_TIMESTAMP_THRESHOLD else value
        try:
            dt = datetime.fromtimestamp(seconds, timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.debug("Timestamp out of range %r", value)
            return datetime.min
    else:
        return datetime.min

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def month_key(value) -> str:
    dt = to_datetime(value)
    return f"{dt.year:04d}-{dt.month:02d}"


def _match_date(match) -> datetime:
    return to_datetime(match.date)


# ---------------------------------------------------------------------------
# Sides
# ---------------------------------------------------------------------------

def side_of(match, player_id) -> Optional[str]:
    """Return ``"player1"``/``"player2"`` for the side the player is on, else None.

    Doubles partners (slots 3 and 4) count exactly like the primary slot.
    """
    if not player_id:
        return None
    if match.player1_id == player_id or match.player3_id == player_id:
        return "player1"
    if match.player2_id == player_id or match.player4_id == player_id:
        return "player2"
    return None


def participants(match) -> list[str]:
    """Distinct player ids of a match, in slot order."""
    ids = []
    for slot in SLOTS:
        player_id = getattr(match, f"player{slot}_id", None)
        if player_id and player_id not in ids:
            ids.append(player_id)
    return ids


def is_win(match, player_id) -> bool:
    side = side_of(match, player_id)
    return side is not None and match.winner == side


def ordered_sets(match) -> list:
    return sorted(match.sets or [], key=lambda s: getattr(s, "set_order", 0) or 0)


def _scores(set_, side):
    if side == "player1":
        return set_.player1_score, set_.player2_score
    return set_.player2_score, set_.player1_score


def set_margin(set_, side) -> int:
    """Point difference of a set seen from ``side``.

    The sign follows the declared set winner, not the raw score difference.
    """
    own, opponent = _scores(set_, side)
    margin = abs(own - opponent)
    return margin if set_.winner == side else -margin


def player_name(player_id, matches) -> str:
    """Name of a player as recorded on the first match that mentions them."""
    for match in matches:
        for slot in SLOTS:
            if getattr(match, f"player{slot}_id", None) == player_id:
                return getattr(match, f"player{slot}_name", None) or UNKNOWN_PLAYER
    return UNKNOWN_PLAYER


def match_label(match) -> str:
    if match.match_type == "doubles":
        return (f"{match.player1_name} & {match.player3_name} vs "
                f"{match.player2_name} & {match.player4_name}")
    return f"{match.player1_name} vs {match.player2_name}"


def winner_label(match) -> str:
    if not match.winner:
        return "N/A"
    if match.match_type == "doubles":
        if match.winner == "player1":
            return f"{match.player1_name} & {match.player3_name}"
        return f"{match.player2_name} & {match.player4_name}"
    return match.player1_name if match.winner == "player1" else match.player2_name


# ---------------------------------------------------------------------------
# Per-player statistics
# ---------------------------------------------------------------------------

def _win_streaks(player_id, player_matches):
    longest = 0
    run = 0
    for match in sorted(player_matches, key=_match_date):
        if is_win(match, player_id):
            run += 1
            longest = max(longest, run)
        else:
            run = 0
    return longest, run


def calculate_player_stats(player_id, matches) -> PlayerStats:
    player_matches = [m for m in matches if side_of(m, player_id)]

    total_matches = len(player_matches)
    total_wins = sum(1 for m in player_matches if is_win(m, player_id))
    # Drawn matches (winner None) land in the losses.
    total_losses = total_matches - total_wins
    win_rate = (total_wins / total_matches) * 100 if total_matches > 0 else 0.0

    total_sets_won = 0
    total_sets_lost = 0
    total_score = 0
    total_sets = 0

    for match in player_matches:
        side = side_of(match, player_id)
        for set_ in ordered_sets(match):
            own, _ = _scores(set_, side)
            total_score += own
            total_sets += 1
            if set_.winner == side:
                total_sets_won += 1
            else:
                total_sets_lost += 1

    average_score_per_set = total_score / total_sets if total_sets > 0 else 0.0
    longest_win_streak, current_streak = _win_streaks(player_id, player_matches)
    last_played = max((_match_date(m) for m in player_matches), default=None)

    return PlayerStats(
        player_id=player_id,
        player_name=player_name(player_id, matches),
        total_matches=total_matches,
        total_wins=total_wins,
        total_losses=total_losses,
        win_rate=win_rate,
        total_sets_won=total_sets_won,
        total_sets_lost=total_sets_lost,
        average_score_per_set=average_score_per_set,
        longest_win_streak=longest_win_streak,
        current_streak=current_streak,
        last_played=last_played,
    )


def calculate_sport_stats(sport_type, matches, players) -> SportStats:
    sport_matches = [m for m in matches if m.sport_type == sport_type]
    total_matches = len(sport_matches)

    total_duration = sum(m.duration or 0 for m in sport_matches)
    average_match_duration = total_duration / total_matches if total_matches > 0 else 0.0

    match_counts = defaultdict(int)
    for match in sport_matches:
        for player_id in participants(match):
            match_counts[player_id] += 1

    most_active_player = ""
    max_matches = 0
    for player_id, count in match_counts.items():
        if count > max_matches:
            max_matches = count
            most_active_player = player_name(player_id, matches)

    highest_scoring_match = ""
    max_total_score = 0
    for match in sport_matches:
        total_score = sum(s.player1_score + s.player2_score for s in match.sets or [])
        if total_score > max_total_score:
            max_total_score = total_score
            highest_scoring_match = match_label(match)

    return SportStats(
        sport_type=sport_type,
        total_matches=total_matches,
        total_players=len(players),
        average_match_duration=average_match_duration,
        most_active_player=most_active_player,
        highest_scoring_match=highest_scoring_match,
    )


def get_recent_matches(matches, limit=10) -> list:
    # sorted() is stable with reverse=True, equal dates keep input order
    return sorted(matches, key=_match_date, reverse=True)[:limit]


def get_player_match_history(player_id, matches) -> list:
    return sorted(
        (m for m in matches if side_of(m, player_id)),
        key=_match_date,
        reverse=True,
    )


def get_win_loss_by_month(player_id, matches) -> list[MonthlyRecord]:
    monthly = {}
    for match in matches:
        if not side_of(match, player_id):
            continue
        record = monthly.setdefault(month_key(match.date), MonthlyRecord(month=month_key(match.date)))
        if is_win(match, player_id):
            record.wins += 1
        else:
            record.losses += 1
    return [monthly[month] for month in sorted(monthly)]


# ---------------------------------------------------------------------------
# Dashboard aggregates
# ---------------------------------------------------------------------------

def filter_matches(matches, player_ids, sport_type=None, head_to_head_only=False) -> list:
    """Scope matches to a sport and a player selection.

    With ``head_to_head_only`` a match is kept when every selected player is in
    it and nobody else is; otherwise one selected player is enough.
    """
    selected = set(player_ids)
    kept = []
    for match in matches:
        if sport_type and sport_type != "all" and match.sport_type != sport_type:
            continue
        present = set(participants(match))
        if head_to_head_only:
            if selected <= present and len(present) == len(selected):
                kept.append(match)
        elif present & selected:
            kept.append(match)
    return kept


def win_loss_counts(players, matches) -> list[ChartRow]:
    rows = []
    for player in players:
        stats = calculate_player_stats(player.id, matches)
        rows.append(ChartRow(
            category=player.name,
            series={"Wins": stats.total_wins, "Losses": stats.total_losses},
        ))
    return rows


def set_win_loss_counts(players, matches) -> list[ChartRow]:
    rows = []
    for player in players:
        stats = calculate_player_stats(player.id, matches)
        rows.append(ChartRow(
            category=player.name,
            series={"Sets won": stats.total_sets_won, "Sets lost": stats.total_sets_lost},
        ))
    return rows


def wins_over_time(players, matches) -> list[ChartRow]:
    """Monthly win counts, one row per month and one series per player."""
    player_ids = {p.id for p in players}
    months = sorted({
        month_key(m.date) for m in matches if player_ids & set(participants(m))
    })

    wins = {month: {p.name: 0 for p in players} for month in months}
    for match in matches:
        for player in players:
            if is_win(match, player.id):
                wins[month_key(match.date)][player.name] += 1

    return [ChartRow(category=month, series=wins[month]) for month in months]


def average_set_margin(players, matches) -> list[ChartRow]:
    """Average signed margin per set position (``Set 1``, ``Set 2``...).

    A match only contributes to the positions it actually has; a player with
    no set at a position reports 0.
    """
    totals = defaultdict(int)
    counts = defaultdict(int)
    max_sets = 0

    for player in players:
        for match in matches:
            side = side_of(match, player.id)
            if side is None:
                continue
            for position, set_ in enumerate(ordered_sets(match), start=1):
                totals[(player.id, position)] += set_margin(set_, side)
                counts[(player.id, position)] += 1
                max_sets = max(max_sets, position)

    rows = []
    for position in range(1, max_sets + 1):
        series = {}
        for player in players:
            count = counts[(player.id, position)]
            series[player.name] = totals[(player.id, position)] / count if count else 0.0
        rows.append(ChartRow(category=f"Set {position}", series=series))
    return rows


def average_match_margin(players, matches) -> list[ChartRow]:
    rows = []
    for player in players:
        margins = []
        for match in matches:
            side = side_of(match, player.id)
            if side is None:
                continue
            margin = 0
            for set_ in ordered_sets(match):
                own, opponent = _scores(set_, side)
                margin += own - opponent
            margins.append(margin)
        average = sum(margins) / len(margins) if margins else 0.0
        rows.append(ChartRow(category=player.name, series={"Average margin": average}))
    return rows


def points_totals(players, matches, by_sport=False) -> list[ChartRow]:
    rows = []
    for player in players:
        if by_sport:
            series = {}
            for sport in SPORT_TYPES:
                series[f"{sport} won"] = 0
                series[f"{sport} lost"] = 0
        else:
            series = {"Points won": 0, "Points lost": 0}

        for match in matches:
            side = side_of(match, player.id)
            if side is None:
                continue
            won_key, lost_key = "Points won", "Points lost"
            if by_sport:
                won_key, lost_key = f"{match.sport_type} won", f"{match.sport_type} lost"
            for set_ in ordered_sets(match):
                own, opponent = _scores(set_, side)
                series[won_key] = series.get(won_key, 0) + own
                series[lost_key] = series.get(lost_key, 0) + opponent

        rows.append(ChartRow(category=player.name, series=series))
    return rows


def dashboard_stats(players, matches, player_ids=None, sport_type=None,
                    head_to_head_only=False) -> DashboardStats:
    """Every dashboard aggregate for one filter selection.

    ``player_ids`` defaults to all ``players``.
    """
    if player_ids is None:
        selected = list(players)
    else:
        wanted = set(player_ids)
        selected = [p for p in players if p.id in wanted]

    scoped = filter_matches(
        matches,
        [p.id for p in selected],
        sport_type=sport_type,
        head_to_head_only=head_to_head_only,
    )

    return DashboardStats(
        matches_considered=len(scoped),
        win_loss=win_loss_counts(selected, scoped),
        set_win_loss=set_win_loss_counts(selected, scoped),
        wins_over_time=wins_over_time(selected, scoped),
        set_margins=average_set_margin(selected, scoped),
        match_margins=average_match_margin(selected, scoped),
        points=points_totals(selected, scoped),
        points_by_sport=points_totals(selected, scoped, by_sport=True),
    )
