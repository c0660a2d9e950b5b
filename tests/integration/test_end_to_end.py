"""Integration tests for the ingest, geocode and export workflow."""

import json

import pytest

from store_locator.config.models import AppConfig, SourceConfig
from store_locator.domain.models import location_error
from store_locator.export import ExportAssembler
from store_locator.geocoding.models import GeocodeCandidate
from store_locator.persistence import Database, StoreRepository
from store_locator.pipeline import EnrichmentPipeline, IngestionPipeline
from tests.helpers import FakeGeocodeProvider


RAW_STORES = [
    {"Name": "Bay", "Address": "55 Bloor St W", "City": "Toronto", "Province": "Ontario"},
    {"Name": "Bay", "Address": "55 Bloor St W", "City": "Toronto", "Province": "Ontario"},
    {"Name": "Robson", "Address": "1033 Robson St", "City": "Vancouver", "Province": "BC"},
]


@pytest.fixture
def test_database(tmp_path):
    """Setup test database with file storage."""
    database = Database(f"sqlite:///{tmp_path / 'test_integration.db'}").open()
    yield database
    database.close()


@pytest.fixture
def app_config(tmp_path):
    source = tmp_path / "indigo.json"
    source.write_text(json.dumps(RAW_STORES), encoding="utf-8")
    return AppConfig(
        sources=[
            SourceConfig(
                name="indigo",
                path=str(source),
                constants={"brand": "Indigo"},
                fields={"name": "Name", "address": "Address", "city": "City", "state": "Province"},
                state_codes={"ontario": "ON", "bc": "BC"},
            )
        ]
    )


def all_stores(database):
    with database.session() as session:
        return StoreRepository(session).find_all()


class TestEndToEnd:
    def test_ingest_geocode_export(self, test_database, app_config, tmp_path):
        ingest = IngestionPipeline(test_database, app_config).run()

        assert ingest.total_transcribed == 3
        assert ingest.total_created == 2
        assert ingest.total_duplicates == 1

        provider = FakeGeocodeProvider(
            results={
                "55 Bloor St W, Toronto, ON": GeocodeCandidate(
                    latitude=43.6697, longitude=-79.3866, formatted_address="Toronto"
                )
            },
            failures={"1033 Robson St, Vancouver, BC": "OVER_QUERY_LIMIT"},
        )
        enrich = EnrichmentPipeline(
            test_database, provider, request_delay=0, sleep=lambda seconds: None
        ).run()

        assert enrich.selected_count == 2
        assert enrich.located_count == 1
        assert enrich.failed_count == 1

        output = tmp_path / "results" / "stores.json"
        result = ExportAssembler(test_database, output_path=str(output)).export()

        exported = json.loads(output.read_text(encoding="utf-8"))
        assert result.store_count == 1
        assert exported == [
            {
                "_key_": exported[0]["_key_"],
                "brand": "Indigo",
                "name": "Bay",
                "address": "55 Bloor St W",
                "city": "Toronto",
                "state": "ON",
                "location": {"lat": 43.6697, "lng": -79.3866},
            }
        ]

    def test_reingest_adds_nothing_and_keeps_locations(self, test_database, app_config):
        IngestionPipeline(test_database, app_config).run()
        EnrichmentPipeline(
            test_database, FakeGeocodeProvider(), request_delay=0, sleep=lambda seconds: None
        ).run()

        second = IngestionPipeline(test_database, app_config).run()

        assert second.total_created == 0
        assert second.total_existing == 2
        with test_database.session() as session:
            repo = StoreRepository(session)
            for store in repo.find_all():
                assert repo.find_location(store.identity).latitude == pytest.approx(43.6532)

    def test_failed_geocode_is_retried_on_next_run(self, test_database, app_config):
        IngestionPipeline(test_database, app_config).run()
        robson_address = "1033 Robson St, Vancouver, BC"
        EnrichmentPipeline(
            test_database,
            FakeGeocodeProvider(empty=[robson_address]),
            request_delay=0,
            sleep=lambda seconds: None,
        ).run()

        [robson] = [s for s in all_stores(test_database) if s.name == "Robson"]
        assert robson.error == location_error("returned no results")

        retry_provider = FakeGeocodeProvider()
        result = EnrichmentPipeline(
            test_database, retry_provider, request_delay=0, sleep=lambda seconds: None
        ).run()

        assert retry_provider.calls == [robson_address]
        assert result.located_count == 1
        [robson] = [s for s in all_stores(test_database) if s.name == "Robson"]
        assert robson.error is None

    def test_export_is_sorted_and_stable(self, test_database, app_config, tmp_path):
        IngestionPipeline(test_database, app_config).run()
        assembler = ExportAssembler(test_database)

        first = assembler.export().content
        second = assembler.export().content

        keys = [s["_key_"] for s in json.loads(first)]
        assert keys == sorted(keys)
        assert first == second
