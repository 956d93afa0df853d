"""Tests de integracion del orquestador (initialize / update).

Verifica el flujo completo desde el cliente API (falso) hasta la BD en memoria.
"""

from unittest.mock import MagicMock, patch

import pytest

from conftest import FakeApiClient, season_payloads
from db.models import Game, Season
from ingestion.api_common import SeasonNotFoundError
from ingestion.discovery import WalkMode
from ingestion.strategies import IngestionOrchestrator


@pytest.fixture(autouse=True)
def no_sleep():
    with patch('ingestion.discovery.time.sleep'):
        yield


def build_api():
    boxscores, points = season_payloads('E2024', range(1, 4))
    more_boxscores, more_points = season_payloads('E2023', range(1, 3))
    boxscores.update(more_boxscores)
    points.update(more_points)
    return FakeApiClient(boxscores, points)


class TestInitialize:
    """Tests para IngestionOrchestrator.initialize()."""

    def test_creates_configured_seasons_and_walks_them(self, db_session, test_config):
        api = build_api()
        orchestrator = IngestionOrchestrator(db_session, test_config, api_client=api)

        summary = orchestrator.initialize()

        assert summary.mode is WalkMode.INITIALIZE
        assert [s.season_code for s in summary.seasons] == ['E2024', 'E2023']
        assert summary.games_ingested == 5
        assert summary.fetch_failures == 4
        assert {s.code: s.name for s in db_session.query(Season).all()} == {
            'E2024': '2024-25 Season',
            'E2023': '2023-24 Season',
        }
        assert db_session.query(Game).count() == 5

    def test_rerun_is_idempotent(self, db_session, test_config):
        api = build_api()
        IngestionOrchestrator(db_session, test_config, api_client=api).initialize()

        summary = IngestionOrchestrator(db_session, test_config, api_client=api).initialize()

        assert summary.games_ingested == 0
        assert sum(s.skipped_existing for s in summary.seasons) == 5
        assert db_session.query(Game).count() == 5

    def test_reports_progress(self, db_session, test_config):
        reporter = MagicMock()
        IngestionOrchestrator(db_session, test_config, api_client=build_api(), reporter=reporter).initialize()

        reporter.set_total.assert_called_once_with(2)
        assert reporter.increment.call_count == 2
        reporter.complete.assert_called_once()


class TestUpdate:
    """Tests para IngestionOrchestrator.update()."""

    def test_discovers_new_season_and_resumes_known_ones(self, db_session, test_config):
        api = build_api()
        IngestionOrchestrator(db_session, test_config, api_client=api).initialize()

        new_boxscores, new_points = season_payloads('E2024', [4])
        api.boxscores.update(new_boxscores)
        api.points.update(new_points)
        candidate_boxscores, candidate_points = season_payloads('E2025', [1, 2])
        api.boxscores.update(candidate_boxscores)
        api.points.update(candidate_points)
        api.calls.clear()

        summary = IngestionOrchestrator(db_session, test_config, api_client=api).update()

        assert summary.mode is WalkMode.UPDATE
        assert summary.new_seasons == ['E2025']
        by_code = {s.season_code: s for s in summary.seasons}
        assert list(by_code) == ['E2023', 'E2024', 'E2025']
        assert by_code['E2024'].start_game_code == 4
        assert by_code['E2024'].games_ingested == 1
        assert by_code['E2023'].games_ingested == 0
        assert by_code['E2025'].games_ingested == 2
        # Nunca se vuelven a descargar partidos ya guardados de E2024
        assert not set(api.boxscore_calls('E2024')) & {1, 2, 3}
        assert summary.games_ingested == 3

    def test_single_season_update(self, db_session, test_config):
        api = build_api()
        IngestionOrchestrator(db_session, test_config, api_client=api).initialize()
        api.calls.clear()

        summary = IngestionOrchestrator(db_session, test_config, api_client=api).update('E2023')

        assert [s.season_code for s in summary.seasons] == ['E2023']
        assert api.boxscore_calls() == [3, 4, 5]

    def test_unknown_season_aborts(self, db_session, test_config):
        orchestrator = IngestionOrchestrator(db_session, test_config, api_client=FakeApiClient())
        with pytest.raises(SeasonNotFoundError):
            orchestrator.update('E1999')

    def test_no_seasons_aborts(self, db_session, test_config):
        orchestrator = IngestionOrchestrator(db_session, test_config, api_client=FakeApiClient())
        with pytest.raises(SeasonNotFoundError):
            orchestrator.update()

    def test_unexpected_error_marks_task_failed(self, db_session, test_config):
        reporter = MagicMock()
        orchestrator = IngestionOrchestrator(db_session, test_config, api_client=build_api(), reporter=reporter)
        orchestrator.initialize()

        with patch.object(orchestrator.walker, 'walk', side_effect=RuntimeError("bug")):
            with pytest.raises(RuntimeError):
                orchestrator.update()
        reporter.fail.assert_called_once_with("bug")

    def test_summary_description(self, db_session, test_config):
        summary = IngestionOrchestrator(db_session, test_config, api_client=build_api()).initialize()
        text = summary.describe()
        assert "5 partidos nuevos" in text
        assert "E2024" in text
