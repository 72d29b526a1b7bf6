"""Tests for prefecture -> city -> town address resolution."""

import asyncio

import pytest

from townmatch.services.geocoding_service import (
    MATCH_LEVEL_CITY,
    MATCH_LEVEL_PREFECTURE,
    MATCH_LEVEL_TOWN,
    MATCH_LEVEL_UNKNOWN,
    AddressResolver,
)
from townmatch.services.town_finder import TownFinder

GAZETTEER = {
    "愛知県": {
        "名古屋市千種区": ["今池一丁目", "今池二丁目"],
        "名古屋市瑞穂区": ["十六町", "十六"],
        "愛知郡東郷町": ["大字春木"],
    },
    "京都府": {
        "京都市中京区": ["本町"],
    },
    "東京都": {
        "府中市": ["宮町"],
    },
    "広島県": {
        "府中市": ["元町"],
    },
}


@pytest.fixture
def gazetteer(fake_gazetteer):
    return fake_gazetteer(GAZETTEER)


@pytest.fixture
def resolver(gazetteer):
    return AddressResolver(gazetteer, TownFinder(gazetteer), max_concurrency=2)


class TestResolve:
    def test_town_level(self, resolver):
        result = asyncio.run(resolver.resolve("愛知県名古屋市千種区今池一丁目１−２"))
        assert result.match_level == MATCH_LEVEL_TOWN
        assert result.prefecture == "愛知県"
        assert result.city == "名古屋市千種区"
        assert result.town == "今池一丁目"
        assert result.town_id == "0001000"
        assert result.other == "1-2"
        assert result.output == "愛知県名古屋市千種区今池一丁目1-2"
        assert result.lat is not None

    def test_arabic_chome(self, resolver):
        result = asyncio.run(resolver.resolve("愛知県名古屋市千種区今池2-3-4"))
        assert result.town == "今池二丁目"
        assert result.other == "-3-4"
        assert result.output == "愛知県名古屋市千種区今池二丁目3-4"

    def test_county_omitted(self, resolver):
        result = asyncio.run(resolver.resolve("愛知県東郷町春木100"))
        assert result.city == "愛知郡東郷町"
        assert result.town == "大字春木"
        assert result.other == "100"

    def test_kyoto_street_name(self, resolver):
        result = asyncio.run(resolver.resolve("京都府京都市中京区烏丸通三条上る本町5"))
        assert result.town == "本町"
        assert result.other == "5"

    def test_town_unresolved_keeps_city(self, resolver):
        result = asyncio.run(resolver.resolve("愛知県名古屋市千種区どこか1"))
        assert result.match_level == MATCH_LEVEL_CITY
        assert result.town is None
        assert result.other == "どこか1"

    def test_city_unresolved_keeps_prefecture(self, resolver):
        result = asyncio.run(resolver.resolve("愛知県豊田市1"))
        assert result.match_level == MATCH_LEVEL_PREFECTURE
        assert result.city is None
        assert result.other == "豊田市1"

    def test_prefecture_unresolved(self, resolver):
        result = asyncio.run(resolver.resolve("千葉市どこか"))
        assert result.match_level == MATCH_LEVEL_UNKNOWN
        assert result.other == "千葉市どこか"
        assert result.output == "千葉市どこか"

    def test_prefecture_inferred_from_city(self, resolver):
        result = asyncio.run(resolver.resolve("名古屋市千種区今池一丁目1-2"))
        assert result.match_level == MATCH_LEVEL_TOWN
        assert result.prefecture == "愛知県"
        assert result.city == "名古屋市千種区"
        assert result.town == "今池一丁目"
        assert result.other == "1-2"
        assert result.output == "愛知県名古屋市千種区今池一丁目1-2"

    def test_prefecture_inferred_city_without_town(self, resolver):
        result = asyncio.run(resolver.resolve("東郷町どこか"))
        assert result.match_level == MATCH_LEVEL_CITY
        assert result.prefecture == "愛知県"
        assert result.city == "愛知郡東郷町"
        assert result.output == "愛知県愛知郡東郷町どこか"

    def test_ambiguous_city_leaves_prefecture_unresolved(self, resolver):
        result = asyncio.run(resolver.resolve("府中市宮町1"))
        assert result.match_level == MATCH_LEVEL_UNKNOWN
        assert result.prefecture is None
        assert result.other == "府中市宮町1"

    def test_city_patterns_cached(self, resolver, gazetteer):
        async def scenario():
            await resolver.resolve("愛知県名古屋市千種区今池一丁目1")
            await resolver.resolve("愛知県名古屋市千種区今池二丁目1")

        asyncio.run(scenario())
        assert gazetteer.city_calls == ["愛知県"]


class TestResultDict:
    def test_unresolved_fields_blank(self, resolver):
        data = asyncio.run(resolver.resolve("どこか")).to_dict()
        assert data["prefecture"] == ""
        assert data["city"] == ""
        assert data["town"] == ""
        assert data["lg_code"] == ""
        assert data["lat"] is None
        assert data["input"] == "どこか"


class TestResolveMany:
    def test_order_preserved(self, resolver):
        addresses = [
            "愛知県名古屋市千種区今池二丁目1",
            "どこか",
            "愛知県名古屋市瑞穂区十六1-1",
        ]
        results = asyncio.run(resolver.resolve_many(addresses))
        assert [r.input for r in results] == addresses
        assert [r.town for r in results] == ["今池二丁目", None, "十六"]

    def test_concurrency_bounded(self, fake_gazetteer):
        gazetteer = fake_gazetteer(GAZETTEER, delay=0.01)
        resolver = AddressResolver(gazetteer, TownFinder(gazetteer), max_concurrency=2)
        cities = ["名古屋市千種区今池一丁目", "名古屋市瑞穂区十六", "東郷町春木"]
        addresses = [f"愛知県{cities[i % 3]}{i}" for i in range(6)]

        results = asyncio.run(resolver.resolve_many(addresses))

        assert len(results) == 6
        assert gazetteer.max_in_flight == 2

    def test_empty(self, resolver):
        assert asyncio.run(resolver.resolve_many([])) == []

    def test_city_list_fetched_once_under_concurrency(self, fake_gazetteer):
        gazetteer = fake_gazetteer(GAZETTEER, delay=0.01)
        resolver = AddressResolver(gazetteer, TownFinder(gazetteer), max_concurrency=8)
        addresses = [f"愛知県名古屋市千種区今池一丁目{i}" for i in range(8)]

        results = asyncio.run(resolver.resolve_many(addresses))

        assert [r.other for r in results] == [str(i) for i in range(8)]
        assert gazetteer.city_calls == ["愛知県"]
        assert gazetteer.town_calls == [("愛知県", "名古屋市千種区")]
