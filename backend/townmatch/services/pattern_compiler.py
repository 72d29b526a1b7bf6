"""
Turn gazetteer town / city names into regular expressions that tolerate the
spelling variations found in hand-typed addresses.

Town names are scanned once into spans:
- literal text (escaped, optionally fuzzy)
- dash characters (any dash variant)
- 大字 / 字 (optional)
- kanji numeral + counter suffix (kanji or Arabic digits, any counter spelling)
"""

import re
from dataclasses import dataclass

from townmatch.utils.japanese_address import DASH_SYMBOLS, OAZA_PREFIX
from townmatch.utils.kanji_numerals import (
    KANJI_1TO10_SYMBOLS,
    is_kanji_number_followed_by_cho,
    kanji_to_arabic,
)

DASH_CLASS = f"[{re.escape(DASH_SYMBOLS)}]"

# Counter spellings accepted in input after a chōme / jō / banchō number.
# A dash may stand in for the counter word; it is left in the remainder.
COUNTER_GROUP = f"(?:(?:丁|町)目?|番(?:町|丁)|条|軒|線|の町?|地割|号|(?={DASH_CLASS}))"

_SPAN = re.compile(
    f"(?P<numeral>[壱{KANJI_1TO10_SYMBOLS}]+)(?P<counter>丁目?|番[町丁]|条|軒|線|[のノ]町|地割|号)"
    "|(?P<oaza>大?字)"
    f"|(?P<dash>{DASH_CLASS})"
)

_CHOME = re.compile(f"([^{KANJI_1TO10_SYMBOLS}]+)([{KANJI_1TO10_SYMBOLS}]+)(丁目?)")
_COUNTY = re.compile("(.+?郡)")


@dataclass(frozen=True)
class TownUnit:
    """A town-level row of the address base registry."""

    lg_code: str
    town_id: str
    name: str
    koaza: str = ""
    lat: float | None = None
    lon: float | None = None


@dataclass(frozen=True)
class ScopeFlags:
    # Kyoto city: no 町 aliases, street-name prefixes are skipped while matching
    suffix_strict: bool = False


@dataclass(frozen=True)
class PatternEntry:
    town: TownUnit
    name: str
    original_name: str = ""


@dataclass(frozen=True)
class CompiledPattern:
    entry: PatternEntry
    pattern: str
    # Pinned to the start of the address in every anchoring mode
    anchored: bool = False


@dataclass(frozen=True)
class CityPattern:
    prefecture: str
    city: str
    pattern: str


def scope_flags_for(city_name: str) -> ScopeFlags:
    return ScopeFlags(suffix_strict=city_name.startswith("京都市"))


def _literal(text: str, fuzzy: str | None = None) -> str:
    if not fuzzy:
        return re.escape(text)
    wildcard = re.escape(fuzzy)
    return "".join(
        f"(?:{re.escape(char)}|{wildcard})" if ord(char) > 0x7F else re.escape(char)
        for char in text
    )


def _optional(pattern: str) -> str:
    return f"(?:{pattern})?"


def _alternation(options: list[str]) -> str:
    return "(?:" + "|".join(options) + ")"


def _numeral_span(run: str) -> str:
    options = [run]
    if run.startswith("壱"):
        options.extend(["一", "1", "１"])
    else:
        options.append(kanji_to_arabic(run))
    return _alternation(options) + COUNTER_GROUP


def build_matcher(name: str, fuzzy: str | None = None) -> str:
    """Build the regular expression source that matches ``name`` and its spelling variants."""
    parts: list[str] = []
    pos = 0

    for match in _SPAN.finditer(name):
        if match.start() > pos:
            parts.append(_literal(name[pos:match.start()], fuzzy))
        if match.group("numeral"):
            parts.append(_numeral_span(match.group("numeral")))
        elif match.group("oaza"):
            parts.append(_optional("大?字"))
        else:
            parts.append(DASH_CLASS)
        pos = match.end()

    if pos < len(name):
        parts.append(_literal(name[pos:], fuzzy))
    return "".join(parts)


def _drop_town_suffix(name: str) -> str:
    # A leading 町 (町田, 町屋 ...) is part of the name itself
    return name[:1] + name[1:].replace("町", "")


def compile_entries(towns: list[TownUnit], flags: ScopeFlags) -> list[PatternEntry]:
    """
    Expand towns into pattern entries.

    Every town yields its literal name. Outside suffix-strict scopes, a name
    containing 町 also yields an alias with 町 dropped, unless the alias
    collides with another town (as-is or behind 大字) or the 町 follows a
    kanji numeral.
    """
    entries = [PatternEntry(town=town, name=town.name) for town in towns]
    if flags.suffix_strict:
        return entries

    names = {town.name for town in towns}
    for town in towns:
        if "町" not in town.name:
            continue
        alias = _drop_town_suffix(town.name)
        if alias == town.name:
            continue
        if alias in names or f"{OAZA_PREFIX}{alias}" in names:
            continue
        if is_kanji_number_followed_by_cho(town.name):
            continue
        entries.append(PatternEntry(town=town, name=alias, original_name=town.name))

    return entries


def chome_digit_pattern(entry: PatternEntry, fuzzy: str | None = None) -> CompiledPattern | None:
    """
    Pattern for "<name><N>" where the address drops 丁目 after the chōme number.

    西新宿六丁目 also matches 西新宿六 and 西新宿6.
    """
    match = _CHOME.search(entry.name)
    if not match:
        return None
    name_part, number = match.group(1), match.group(2)
    pattern = _literal(name_part, fuzzy) + _alternation([number, kanji_to_arabic(number)])
    return CompiledPattern(entry=entry, pattern=pattern, anchored=True)


def compile_patterns(entries: list[PatternEntry], fuzzy: str | None = None) -> list[CompiledPattern]:
    """Compile ranked entries; bare chōme-digit fallbacks go after every full pattern."""
    patterns = [
        CompiledPattern(entry=entry, pattern=build_matcher(entry.name, fuzzy))
        for entry in entries
    ]
    for entry in entries:
        fallback = chome_digit_pattern(entry, fuzzy)
        if fallback is not None:
            patterns.append(fallback)
    return patterns


def city_pattern(city: str, fuzzy: str | None = None) -> str:
    pattern = _literal(city, fuzzy)
    if city.endswith(("町", "村")):
        county = _COUNTY.match(city)
        if county:
            # 郡 is often omitted: 愛知郡東郷町 -> 東郷町
            pattern = _optional(_literal(county.group(1), fuzzy)) + _literal(
                city[county.end():], fuzzy
            )
    return "^" + pattern


def get_city_regex_patterns(
    prefecture: str, cities: list[str], fuzzy: str | None = None
) -> list[CityPattern]:
    """City patterns of a prefecture, longest name first so short names never shadow long ones."""
    ordered = sorted(cities, key=len, reverse=True)
    return [
        CityPattern(prefecture=prefecture, city=city, pattern=city_pattern(city, fuzzy))
        for city in ordered
    ]
