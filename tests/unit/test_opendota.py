"""Unit tests for the OpenDota endpoint helpers."""

import pytest

from dotacoach.exceptions import MalformedDataError, NotFoundError
from dotacoach.ingestion import opendota
from tests.fixtures.sample_api_responses import (
    SAMPLE_MATCH_ID,
    get_sample_benchmarks,
    get_sample_item_constants,
    get_sample_match,
)
from tests.mocks import StubGateway


def test_fetch_match_record():
    gateway = StubGateway({f"/matches/{SAMPLE_MATCH_ID}": get_sample_match()})
    match = opendota.fetch_match_record(gateway, SAMPLE_MATCH_ID)
    assert match.match_id == SAMPLE_MATCH_ID
    assert len(match.players) == 10


def test_fetch_player_matches_passes_filters():
    gateway = StubGateway({"/players/5/matches?hero_id=1&limit=5": [{"match_id": 1}]})
    assert opendota.fetch_player_matches(gateway, 5, limit=5, hero_id=1) == [{"match_id": 1}]
    assert gateway.calls[0]["params"] == {"limit": 5, "hero_id": 1}


def test_fetch_player_matches_rejects_non_list():
    gateway = StubGateway({"/players/5/matches": {"error": "bad"}})
    with pytest.raises(MalformedDataError):
        opendota.fetch_player_matches(gateway, 5, limit=None)


def test_fetch_benchmark_distributions():
    gateway = StubGateway({"/benchmarks?hero_id=1": get_sample_benchmarks()})
    distributions = opendota.fetch_benchmark_distributions(gateway, 1)
    assert distributions["gold_per_min"].points[0].percentile == 10.0


def test_constants_shape_checks():
    gateway = StubGateway({"/heroes": {"1": {}}, "/constants/items": []})
    with pytest.raises(MalformedDataError):
        opendota.fetch_hero_constants(gateway)
    with pytest.raises(MalformedDataError):
        opendota.fetch_item_constants(gateway)


def test_item_names_by_id_skips_entries_without_id():
    names = opendota.item_names_by_id(get_sample_item_constants())
    assert names[116] == "black_king_bar"
    assert names[254] == "glimmer_cape"
    assert "recipe_blink" not in names.values()


def test_warm_matches_reports_failures():
    gateway = StubGateway({"/matches/1": {"match_id": 1}, "/matches/2": NotFoundError("match", 2)})
    results = opendota.warm_matches(gateway, [1, 2])
    assert [r.success for r in results] == [True, False]
