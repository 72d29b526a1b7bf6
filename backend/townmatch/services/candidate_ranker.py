"""Order pattern entries so the most specific town names are tried first."""

from townmatch.services.pattern_compiler import PatternEntry
from townmatch.utils.japanese_address import OAZA_PREFIX


def effective_length(entry: PatternEntry) -> int:
    length = len(entry.name)
    # 大字XX and XXYY both exist in some cities; XXYY has to win
    if entry.name.startswith(OAZA_PREFIX):
        length -= len(OAZA_PREFIX)
    return length


def rank(entries: list[PatternEntry]) -> list[PatternEntry]:
    """Longest effective name first. The sort is stable, so ties keep their input order."""
    return sorted(entries, key=effective_length, reverse=True)
