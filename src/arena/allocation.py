"""
Table allocation for matches.

Tables are a fixed, reusable pool numbered 1..max_tables. Within a round the
fixtures take tables in generation order; when a round has more fixtures
than tables, tables are reused and those fixtures run one after another.
"""
import logging
from collections import OrderedDict
from dataclasses import replace
from typing import Dict, List, Sequence, Tuple

from .errors import IllegalStateError, ValidationError
from .formats import next_table
from .models import Match, Tournament

logger = logging.getLogger(__name__)


def assign_tables(matches: Sequence[Match], max_tables: int) -> List[Match]:
    """
    Number tables per round, cycling 1..max_tables.

    Each round keeps its own counter, so matches of different rounds can be
    interleaved in the input without disturbing each other's numbering.
    """
    if max_tables < 1:
        raise ValidationError("max_tables must be at least 1")

    counters: Dict[int, int] = {}
    assigned = []
    for match in matches:
        table = counters.get(match.round, 1)
        counters[match.round] = next_table(table, max_tables)
        assigned.append(replace(match, table_number=table))

    overloaded = [r for r in counters if sum(1 for m in matches if m.round == r) > max_tables]
    if overloaded:
        logger.info("Rounds %s have more matches than the %d available tables; tables are shared",
                    sorted(overloaded), max_tables)
    return assigned


def move_match_to_table(tournament: Tournament, match_id: str, table_number: int) -> Tournament:
    """Manually move one match to another table; sibling matches are left alone."""
    if isinstance(table_number, bool) or not isinstance(table_number, int):
        raise ValidationError(f"Table number must be an integer, got {table_number!r}")
    if not 1 <= table_number <= tournament.max_tables:
        raise ValidationError(f"Table number must be between 1 and {tournament.max_tables}")
    if tournament.match_by_id(match_id) is None:
        raise IllegalStateError(f"Match {match_id} does not exist")

    matches = tuple(
        replace(m, table_number=table_number) if m.id == match_id else m
        for m in tournament.matches
    )
    logger.info("Moved match %s to table %d", match_id, table_number)
    return replace(tournament, matches=matches)


def matches_by_table(matches: Sequence[Match]) -> "OrderedDict[int, List[Match]]":
    """Group matches per table, tables ascending, matches in round order."""
    tables: Dict[int, List[Match]] = {}
    for match in matches:
        tables.setdefault(match.table_number or 0, []).append(match)
    return OrderedDict(
        (table, sorted(table_matches, key=lambda m: m.round))
        for table, table_matches in sorted(tables.items())
    )


def round_table_conflicts(matches: Sequence[Match]) -> List[Tuple[int, int]]:
    """Return (round, table) pairs used by more than one match."""
    seen: Dict[Tuple[int, int], int] = {}
    for match in matches:
        key = (match.round, match.table_number)
        seen[key] = seen.get(key, 0) + 1
    return sorted(key for key, count in seen.items() if count > 1)
