"""Tests para SeasonRegistry."""

import pytest

from conftest import FakeApiClient, make_boxscore
from db.models import Season
from ingestion.api_common import FetchOutcome, SeasonNotFoundError
from ingestion.seasons import SeasonRegistry


class TestDeriveSeasonName:
    """Derivacion del nombre legible desde el codigo."""

    @pytest.mark.parametrize("code, expected", [
        ("E2023", "2023-24 Season"),
        ("E2030", "2030-31 Season"),
        ("E2099", "2099-00 Season"),
        ("U2024", "2024-25 Season"),
    ])
    def test_codes_with_year(self, code, expected):
        assert SeasonRegistry.derive_season_name(code) == expected

    def test_code_without_digits_kept_verbatim(self):
        assert SeasonRegistry.derive_season_name("PRESEASON") == "PRESEASON"


class TestResolveSeason:
    """Tests para resolve_season()."""

    def test_by_explicit_code(self, store):
        store.get_or_create_season('E2024', '2024-25 Season')
        registry = SeasonRegistry(store)
        assert registry.resolve_season('E2024').code == 'E2024'

    def test_unknown_code_raises(self, store):
        store.get_or_create_season('E2024', '2024-25 Season')
        with pytest.raises(SeasonNotFoundError):
            SeasonRegistry(store).resolve_season('E1999')

    def test_uses_configured_current_season(self, store):
        store.get_or_create_season('E2023', '2023-24 Season')
        store.get_or_create_season('E2024', '2024-25 Season')
        registry = SeasonRegistry(store, current_season='E2023')
        assert registry.resolve_season().code == 'E2023'

    def test_configured_current_season_missing_raises(self, store):
        store.get_or_create_season('E2024', '2024-25 Season')
        with pytest.raises(SeasonNotFoundError):
            SeasonRegistry(store, current_season='E2026').resolve_season()

    def test_falls_back_to_latest_created(self, store):
        store.get_or_create_season('E2025', '2025-26 Season')
        store.get_or_create_season('E2019', '2019-20 Season')
        assert SeasonRegistry(store).resolve_season().code == 'E2019'

    def test_no_seasons_raises(self, store):
        with pytest.raises(SeasonNotFoundError):
            SeasonRegistry(store).resolve_season()


class TestEnsureSeason:
    """Tests para ensure_season()."""

    def test_creates_with_derived_name(self, store):
        season = SeasonRegistry(store).ensure_season('E2022')
        assert season.name == '2022-23 Season'

    def test_idempotent(self, store, db_session):
        registry = SeasonRegistry(store)
        first = registry.ensure_season('E2022')
        second = registry.ensure_season('E2022')
        assert first.id == second.id
        assert db_session.query(Season).count() == 1


class TestDiscoverCandidateSeasons:
    """Tests para discover_candidate_seasons()."""

    def test_creates_only_available_unknown_candidates(self, store, db_session):
        store.get_or_create_season('E2024', '2024-25 Season')
        api = FakeApiClient(
            boxscores={('E2025', 1): make_boxscore()},
            outcomes={('Boxscore', 'E2026', 1): FetchOutcome.TRANSIENT},
        )
        registry = SeasonRegistry(store, api)

        created = registry.discover_candidate_seasons(['E2023', 'E2024', 'E2025', 'E2026'])

        assert [s.code for s in created] == ['E2025']
        assert created[0].name == '2025-26 Season'
        # E2024 ya existia: no se sondea
        assert api.calls == [
            ('Boxscore', 'E2023', 1),
            ('Boxscore', 'E2025', 1),
            ('Boxscore', 'E2026', 1),
        ]
        assert {s.code for s in db_session.query(Season).all()} == {'E2024', 'E2025'}

    def test_second_discovery_creates_nothing(self, store):
        api = FakeApiClient(boxscores={('E2025', 1): make_boxscore()})
        registry = SeasonRegistry(store, api)
        registry.discover_candidate_seasons(['E2025'])
        assert registry.discover_candidate_seasons(['E2025']) == []
