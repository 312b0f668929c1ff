"""Import of match sheets exported from a spreadsheet.

The sheet is read by column position: the first column holds the match date
(``dd/mm/YYYY``), each following pair of columns holds the two players' scores
for one set. Every row becomes a singles match between the same two players.
"""
from dataclasses import dataclass, field
from datetime import datetime
import io
import logging

import pandas as pd

from sport_dashboard.services import match_service, player_service
from sport_dashboard.services.match_service import MatchValidationError
from sport_dashboard.services.stats_service import to_datetime
from sport_dashboard.services.storage_service import Storage

logger = logging.getLogger(__name__)

MAX_SETS = 6


class CsvImportError(ValueError):
    pass


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    errors: list = field(default_factory=list)


@dataclass
class SheetRow:
    line: int
    date: datetime
    sets: list


def parse_date(text: str):
    text = (text or "").strip()
    if not text:
        return None
    parts = text.split("/")
    if len(parts) == 3:
        try:
            day, month, year = (int(p) for p in parts)
            return datetime(year, month, day)
        except ValueError:
            return None
    parsed = to_datetime(text)
    return None if parsed == datetime.min else parsed

def _score(value):
    value = (value or "").strip()
    if not value:
        return None
    try:
        score = float(value)
    except ValueError:
        return None
    # inf, nan and fractions are not scores
    if not score.is_integer():
        return None
    return int(score)

def read_sheet(content) -> pd.DataFrame:
    if isinstance(content, bytes):
        content = content.decode("utf-8-sig")
    try:
        return pd.read_csv(
            io.StringIO(content),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise CsvImportError(f"Failed to parse CSV: {e}") from e

def parse_rows(content, result: ImportResult = None):
    """Yield the usable rows of a sheet, counting the others as skipped."""
    result = result if result is not None else ImportResult()
    frame = read_sheet(content)

    for line, values in enumerate(frame.itertuples(index=False, name=None), start=2):
        values = list(values)
        if not values:
            continue

        match_date = parse_date(values[0])
        if match_date is None:
            logger.info("Skipping line %d - invalid or missing date: %r", line, values[0])
            result.skipped += 1
            continue

        sets = []
        for i in range(MAX_SETS):
            first, second = 1 + 2 * i, 2 + 2 * i
            if second >= len(values):
                break
            p1, p2 = _score(values[first]), _score(values[second])
            if p1 is not None and p2 is not None:
                sets.append((p1, p2))

        if not sets:
            logger.info("Skipping line %d - no complete set", line)
            result.skipped += 1
            continue

        yield SheetRow(line=line, date=match_date, sets=sets)

def _ensure_player(storage: Storage, name: str):
    player = player_service.find_by_name(storage, name)
    if player:
        return player
    return player_service.create(storage, name)

def import_matches(storage: Storage, content, player1_name: str, player2_name: str,
                   sport_type: str = "badminton") -> ImportResult:
    if player1_name.strip().lower() == player2_name.strip().lower():
        raise CsvImportError("The two players must be different")

    result = ImportResult()
    player1 = _ensure_player(storage, player1_name)
    player2 = _ensure_player(storage, player2_name)

    for row in parse_rows(content, result):
        try:
            match_service.create(
                storage,
                sport_type=sport_type,
                match_type="singles",
                player1_id=player1.id,
                player2_id=player2.id,
                sets=row.sets,
                date=row.date,
            )
        except MatchValidationError as e:
            logger.warning("Skipping line %d - %s", row.line, e)
            result.skipped += 1
            result.errors.append(f"Line {row.line}: {e}")
            continue
        result.imported += 1

    logger.info("CSV import finished: %d imported, %d skipped", result.imported, result.skipped)
    return result
