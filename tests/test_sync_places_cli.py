"""Tests for the discovery-sync CLI job."""

import json

import pytest

from discovery_core.core.container import ServiceContainer
from discovery_core.core.errors import ValidationAppError
from discovery_core.core.sync_config import select_searches
from discovery_core.jobs import sync_places
from discovery_core.schemas.venue import SearchPage
from fakes import FakePlacesClient, RecordingSleep, make_place


@pytest.fixture
def places() -> FakePlacesClient:
    return FakePlacesClient(
        {
            ("bar", None): SearchPage(
                results=[make_place("A", types=["bar"]), make_place("B", types=["bar"])],
                next_page_token="t2",
            ),
            ("bar", "t2"): SearchPage(results=[make_place("C", types=["bar"])]),
            ("tacos", None): SearchPage(results=[make_place("A", types=["restaurant"])]),
        }
    )


@pytest.fixture
def container(storage, places) -> ServiceContainer:
    return ServiceContainer(storage=storage, places=places, sleep=RecordingSleep())


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    # The CLI logs to stdout, which would interleave with the printed report.
    monkeypatch.setattr(sync_places, "configure_logging", lambda *args, **kwargs: None)


@pytest.fixture
def patched_container(monkeypatch, container):
    monkeypatch.setattr(sync_places.ServiceContainer, "from_settings", classmethod(lambda cls, cfg=None: container))
    return container


@pytest.mark.asyncio
async def test_run_sync_closes_container_and_drops_cached_responses(container, places, storage):
    await container.cache.get("places:nearby:x", _stale_fill, 60_000)

    report = await sync_places.run_sync(searches=select_searches(["bar", "tacos"]), container=container)

    assert report.upserted == 3
    assert report.duplicates == 1
    assert report.searches_completed == 2
    assert sorted(storage.venues.venues) == ["A", "B", "C"]
    assert container.cache.stats()["entries"] == 0
    assert places.closed is True


@pytest.mark.asyncio
async def test_run_sync_respects_max_pages(container, places):
    report = await sync_places.run_sync(searches=select_searches(["bar"]), max_pages=1, container=container)

    assert report.upserted == 2
    assert ("bar", "t2") not in places.search_calls


async def _stale_fill():
    return {"venues": []}


def test_main_prints_report_and_exits_zero(patched_container, capsys):
    code = sync_places.main(["--only", "bar", "--only", "tacos"])

    assert code == sync_places.EXIT_OK
    report = json.loads(capsys.readouterr().out)
    assert report["upserted"] == 3
    assert report["aborted"] is False


def test_main_aborted_pass_prints_partial_report(patched_container, places, capsys):
    places.failing_labels.add("tacos")

    code = sync_places.main(["--only", "bar", "--only", "tacos"])

    assert code == sync_places.EXIT_ABORTED
    report = json.loads(capsys.readouterr().out)
    assert report["aborted"] is True
    assert report["upserted"] == 3


def test_main_configuration_error_exits_two(monkeypatch, capsys):
    def _missing_credentials(cls, cfg=None):
        raise ValidationAppError(code="storage_missing_credentials", message="missing")

    monkeypatch.setattr(sync_places.ServiceContainer, "from_settings", classmethod(_missing_credentials))

    assert sync_places.main(["--only", "bar"]) == sync_places.EXIT_CONFIG
    assert capsys.readouterr().out == ""


@pytest.mark.parametrize("argv", [["--only", "karaoke"], ["--max-pages", "0"]])
def test_main_rejects_bad_arguments(argv):
    with pytest.raises(SystemExit) as exc_info:
        sync_places.main(argv)

    assert exc_info.value.code == 2
