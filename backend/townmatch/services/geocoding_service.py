"""Resolve Japanese addresses to prefecture, city and town using the gazetteer."""

import asyncio
import re
from dataclasses import asdict, dataclass

import structlog

from townmatch.config import settings
from townmatch.services.gazetteer_service import GazetteerService
from townmatch.services.pattern_compiler import CityPattern, get_city_regex_patterns
from townmatch.services.town_finder import TownFinder
from townmatch.utils.japanese_address import (
    DASH,
    PREFECTURES,
    extract_prefecture,
    normalize_address,
)

logger = structlog.get_logger()

# Match levels reported with each result
MATCH_LEVEL_UNKNOWN = 0
MATCH_LEVEL_PREFECTURE = 1
MATCH_LEVEL_CITY = 2
MATCH_LEVEL_TOWN = 3


@dataclass
class GeocodeResult:
    """One resolved (or partially resolved) address."""

    input: str
    output: str = ""
    match_level: int = MATCH_LEVEL_UNKNOWN
    prefecture: str | None = None
    city: str | None = None
    town: str | None = None
    town_id: str | None = None
    lg_code: str | None = None
    other: str = ""
    lat: float | None = None
    lon: float | None = None

    def to_dict(self) -> dict:
        """Unresolved text fields are rendered blank so every record keeps the same shape."""
        data = asdict(self)
        for key in ("prefecture", "city", "town", "town_id", "lg_code"):
            if data[key] is None:
                data[key] = ""
        return data


class AddressResolver:
    """
    Prefecture -> city -> town resolution.

    The prefecture comes from a fixed name list, the city from the city
    patterns of that prefecture, and the town from TownFinder. Resolution stops
    at the first level that cannot be identified and keeps the rest of the
    address in ``other``.
    """

    def __init__(
        self,
        gazetteer: GazetteerService,
        town_finder: TownFinder,
        fuzzy: str | None = None,
        max_concurrency: int = 8,
    ):
        self.gazetteer = gazetteer
        self.town_finder = town_finder
        self.fuzzy = fuzzy
        self.max_concurrency = max_concurrency
        self._city_cache: dict[str, tuple[tuple[re.Pattern, CityPattern], ...]] = {}
        self._pending: dict[str, asyncio.Task] = {}

    async def _city_matchers(self, prefecture: str) -> tuple[tuple[re.Pattern, CityPattern], ...]:
        cached = self._city_cache.get(prefecture)
        if cached is not None:
            return cached

        task = self._pending.get(prefecture)
        if task is None:
            task = asyncio.ensure_future(self._load_city_matchers(prefecture))
            self._pending[prefecture] = task
        return await asyncio.shield(task)

    async def _load_city_matchers(self, prefecture: str) -> tuple[tuple[re.Pattern, CityPattern], ...]:
        try:
            cities = await self.gazetteer.get_city_names(prefecture)
            matchers = tuple(
                (re.compile(p.pattern), p)
                for p in get_city_regex_patterns(prefecture, cities, self.fuzzy)
            )
            self._city_cache[prefecture] = matchers
        finally:
            self._pending.pop(prefecture, None)
        return matchers

    async def _match_city(self, prefecture: str, text: str) -> tuple[str, str] | None:
        """First (longest) city of ``prefecture`` that ``text`` starts with, and the text after it."""
        for regex, city_pattern in await self._city_matchers(prefecture):
            match = regex.match(text)
            if match:
                return city_pattern.city, text[match.end():]
        return None

    async def _infer_prefecture(self, text: str) -> tuple[str, str, str] | None:
        """
        Find the prefecture of an address written without one (千葉市中央区...).

        Every prefecture's city patterns are tried. The prefecture is accepted
        only when exactly one of them has a matching city.
        """
        candidates = []
        for prefecture in PREFECTURES:
            matched = await self._match_city(prefecture, text)
            if matched is not None:
                candidates.append((prefecture, *matched))

        if len(candidates) != 1:
            if candidates:
                logger.debug(
                    "Prefecture ambiguous",
                    address=text[:50],
                    prefectures=[c[0] for c in candidates],
                )
            return None
        return candidates[0]

    async def resolve(self, address: str) -> GeocodeResult:
        normalized = normalize_address(address)
        result = GeocodeResult(input=address, output=normalized, other=normalized)

        prefecture = extract_prefecture(normalized)
        if prefecture is not None:
            rest = normalized[len(prefecture):]
            matched = await self._match_city(prefecture, rest)
        else:
            inferred = await self._infer_prefecture(normalized)
            if inferred is None:
                logger.debug("Prefecture not identified", address=address[:50])
                return result
            prefecture, matched = inferred[0], inferred[1:]
            rest = normalized

        result.prefecture = prefecture
        result.match_level = MATCH_LEVEL_PREFECTURE
        result.other = rest
        result.output = f"{prefecture}{rest}"

        if matched is None:
            logger.debug("City not identified", address=address[:50], prefecture=prefecture)
            return result

        city, rest = matched
        result.city = city
        result.match_level = MATCH_LEVEL_CITY
        result.other = rest
        result.output = f"{prefecture}{city}{rest}"

        town = await self.town_finder.find(rest, prefecture, city)
        if town is None:
            logger.debug("Town not identified", address=address[:50], city=city)
            return result

        result.town = town.town_name
        result.town_id = town.town_id
        result.lg_code = town.lg_code
        result.lat = town.lat
        result.lon = town.lon
        result.other = town.remainder
        result.match_level = MATCH_LEVEL_TOWN
        # A dash that stood in for 丁目 stays in ``other`` but not in the composed address
        remainder = town.remainder[len(DASH):] if town.remainder.startswith(DASH) else town.remainder
        result.output = f"{prefecture}{city}{town.town_name}{remainder}"
        return result

    async def resolve_many(self, addresses: list[str]) -> list[GeocodeResult]:
        """Resolve addresses concurrently (bounded by max_concurrency), keeping input order."""
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _bounded(address: str) -> GeocodeResult:
            async with semaphore:
                return await self.resolve(address)

        results = await asyncio.gather(*(_bounded(address) for address in addresses))

        stats = {
            "total": len(results),
            "town": sum(1 for r in results if r.match_level == MATCH_LEVEL_TOWN),
            "unresolved": sum(1 for r in results if r.match_level == MATCH_LEVEL_UNKNOWN),
        }
        logger.info("Batch geocoding complete", **stats)
        return list(results)

    def clear_cache(self) -> None:
        self._city_cache.clear()
        self.town_finder.clear_cache()


# Singleton instance
_address_resolver: AddressResolver | None = None


def get_address_resolver() -> AddressResolver:
    """Get or create the singleton resolver bound to the configured database."""
    global _address_resolver
    if _address_resolver is None:
        from townmatch.database import async_session

        gazetteer = GazetteerService(async_session, retry_attempts=settings.gazetteer_retry_attempts)
        _address_resolver = AddressResolver(
            gazetteer,
            TownFinder(gazetteer, fuzzy=settings.fuzzy_char, cache_size=settings.pattern_cache_size),
            fuzzy=settings.fuzzy_char,
            max_concurrency=settings.max_concurrency,
        )
    return _address_resolver
