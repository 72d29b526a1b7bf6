"""Test configuration and fixtures."""

import asyncio

import pytest

from townmatch.services.pattern_compiler import TownUnit


def make_towns(*names: str, lg_code: str = "231011") -> list[TownUnit]:
    return [
        TownUnit(
            lg_code=lg_code,
            town_id=f"{i + 1:04d}000",
            name=name,
            lat=35.0 + i / 1000,
            lon=136.9 + i / 1000,
        )
        for i, name in enumerate(names)
    ]


class FakeGazetteer:
    """In-memory stand-in for GazetteerService keyed by prefecture and full city name."""

    def __init__(self, cities: dict[str, dict[str, list[str]]] | None = None, delay: float = 0.0):
        self.cities = cities or {}
        self.delay = delay
        self.town_calls: list[tuple[str, str]] = []
        self.city_calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def _pause(self):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1

    async def get_town_list(self, prefecture: str, city_name: str) -> list[TownUnit]:
        self.town_calls.append((prefecture, city_name))
        await self._pause()
        return make_towns(*self.cities.get(prefecture, {}).get(city_name, []))

    async def get_city_names(self, prefecture: str) -> list[str]:
        self.city_calls.append(prefecture)
        await self._pause()
        return list(self.cities.get(prefecture, {}))


@pytest.fixture
def towns():
    return make_towns


@pytest.fixture
def fake_gazetteer():
    return FakeGazetteer


@pytest.fixture
def gazetteer_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'gazetteer.db'}"
