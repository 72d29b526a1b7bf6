"""Town-level matching: find the town an address starts with and what is left after it."""

import asyncio
import re
from dataclasses import dataclass
from typing import Protocol

import structlog

from townmatch.services.candidate_ranker import rank
from townmatch.services.pattern_compiler import (
    CompiledPattern,
    TownUnit,
    compile_entries,
    compile_patterns,
    scope_flags_for,
)
from townmatch.utils.japanese_address import normalize_address

logger = structlog.get_logger()

START_ANCHOR = "^"
# Kyoto addresses often carry a street name (…通…上る) ahead of the town
ANY_PREFIX = ".*"

ScopeKey = tuple[str, str]


class TownLookup(Protocol):
    async def get_town_list(self, prefecture: str, city_name: str) -> list[TownUnit]: ...


@dataclass(frozen=True)
class MatchResult:
    lg_code: str
    town_id: str
    koaza: str
    lat: float | None
    lon: float | None
    town_name: str
    original_name: str
    matched_length: int
    remainder: str


@dataclass(frozen=True)
class ScopePatterns:
    """Compiled matchers of one (prefecture, city) scope, one tuple per anchoring mode."""

    suffix_strict: bool
    passes: tuple[tuple[tuple[re.Pattern, CompiledPattern], ...], ...]


def _compile_pass(patterns: list[CompiledPattern], prefix: str) -> tuple[tuple[re.Pattern, CompiledPattern], ...]:
    return tuple(
        (re.compile(START_ANCHOR + p.pattern if p.anchored else prefix + p.pattern), p)
        for p in patterns
    )


def build_scope_patterns(
    towns: list[TownUnit], city_name: str, fuzzy: str | None = None
) -> ScopePatterns:
    """Compile, rank and anchor the town patterns of one city. Pure function of its inputs."""
    flags = scope_flags_for(city_name)
    entries = rank(compile_entries(towns, flags))
    patterns = compile_patterns(entries, fuzzy)

    prefixes = [START_ANCHOR]
    if flags.suffix_strict:
        prefixes.append(ANY_PREFIX)

    return ScopePatterns(
        suffix_strict=flags.suffix_strict,
        passes=tuple(_compile_pass(patterns, prefix) for prefix in prefixes),
    )


class TownFinder:
    """
    Match normalized addresses against the towns of a city.

    Compiled patterns are cached per (prefecture, city). A cached scope is
    never mutated after it is published, so concurrent finds can share it.
    """

    def __init__(self, lookup: TownLookup, fuzzy: str | None = None, cache_size: int = 256):
        self.lookup = lookup
        self.fuzzy = fuzzy
        self.cache_size = cache_size
        self._cache: dict[ScopeKey, ScopePatterns] = {}
        self._pending: dict[ScopeKey, asyncio.Task] = {}

    async def get_scope_patterns(self, prefecture: str, city_name: str) -> ScopePatterns:
        key = (prefecture, city_name)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        # Concurrent misses on one scope share a single lookup and compile
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load_scope(key))
            self._pending[key] = task
        # A cancelled waiter must not cancel the load the other waiters share
        return await asyncio.shield(task)

    async def _load_scope(self, key: ScopeKey) -> ScopePatterns:
        prefecture, city_name = key
        try:
            # Lookup errors and cancellation propagate; nothing is cached for this scope
            towns = await self.lookup.get_town_list(prefecture, city_name)
            scope = build_scope_patterns(towns, city_name, self.fuzzy)

            if self.cache_size > 0:
                while len(self._cache) >= self.cache_size:
                    self._cache.pop(next(iter(self._cache)))
                self._cache[key] = scope
        finally:
            self._pending.pop(key, None)

        logger.debug(
            "Town patterns compiled",
            prefecture=prefecture,
            city=city_name,
            towns=len(towns),
            patterns=len(scope.passes[0]),
            suffix_strict=scope.suffix_strict,
        )
        return scope

    def clear_cache(self) -> None:
        self._cache.clear()

    async def find(self, address: str, prefecture: str, city_name: str) -> MatchResult | None:
        """
        Find the town ``address`` begins with inside the given city.

        Returns None when no town matches; the caller keeps the address
        unresolved at town level.
        """
        address = normalize_address(address.strip())
        scope = await self.get_scope_patterns(prefecture, city_name)
        return match_scope(address, scope)


def match_scope(address: str, scope: ScopePatterns) -> MatchResult | None:
    """Try every anchoring mode in order; the first pattern that matches wins."""
    for matchers in scope.passes:
        for regex, compiled in matchers:
            match = regex.match(address)
            if not match:
                continue

            town = compiled.entry.town
            return MatchResult(
                lg_code=town.lg_code,
                town_id=town.town_id,
                koaza=town.koaza,
                lat=town.lat,
                lon=town.lon,
                town_name=town.name,
                original_name=compiled.entry.original_name,
                matched_length=match.end(),
                remainder=address[match.end():],
            )

    return None
