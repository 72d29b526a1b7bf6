"""Gazetteer lookups: the towns of a city and the cities of a prefecture."""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from townmatch.models.location import NON_ADDRESSABLE_TOWN_CODE, City, Town
from townmatch.services.pattern_compiler import TownUnit

logger = structlog.get_logger()

# county + city + designated-city ward, e.g. "" + "名古屋市" + "瑞穂区"
CITY_FULL_NAME = City.county_name + City.city_name + City.od_city_name


class GazetteerService:
    """
    Read-only queries against the cities / towns tables.

    Every call opens its own session, so one service can be shared by
    concurrently running resolutions. Transient connection errors are retried;
    the last error is re-raised unchanged.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], retry_attempts: int = 3):
        self.session_factory = session_factory
        self.retry_attempts = retry_attempts

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_exception_type(OperationalError),
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(min=0.1, max=2),
            reraise=True,
        )

    async def get_town_list(self, prefecture: str, city_name: str) -> list[TownUnit]:
        """Addressable towns of a city, in registry order."""
        query = (
            select(
                Town.lg_code,
                Town.town_id,
                (Town.oaza_town_name + Town.chome_name).label("name"),
                Town.koaza_name,
                Town.rep_pnt_lat,
                Town.rep_pnt_lon,
            )
            .join(City, Town.lg_code == City.lg_code)
            .where(
                City.pref_name == prefecture,
                CITY_FULL_NAME == city_name,
                Town.town_code != NON_ADDRESSABLE_TOWN_CODE,
            )
            .order_by(Town.id)
        )

        async for attempt in self._retrying():
            with attempt:
                async with self.session_factory() as session:
                    rows = (await session.execute(query)).all()

        logger.debug("Town list fetched", prefecture=prefecture, city=city_name, count=len(rows))
        return [
            TownUnit(
                lg_code=row.lg_code,
                town_id=row.town_id,
                name=row.name,
                koaza=row.koaza_name or "",
                lat=row.rep_pnt_lat,
                lon=row.rep_pnt_lon,
            )
            for row in rows
        ]

    async def get_city_names(self, prefecture: str) -> list[str]:
        """Full city names of a prefecture (county + city + ward)."""
        query = (
            select(CITY_FULL_NAME.label("name"))
            .where(City.pref_name == prefecture)
            .distinct()
            .order_by("name")
        )

        async for attempt in self._retrying():
            with attempt:
                async with self.session_factory() as session:
                    result = await session.execute(query)
                    names = list(result.scalars().all())

        return [name for name in names if name]
