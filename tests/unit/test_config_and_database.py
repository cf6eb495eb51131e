"""Tests for settings validation, the database manager, pagination and the db CLI."""
import json

import pytest

from config import get_settings, validate_required_settings
from database import DatabaseManager, get_db_manager, reset_db_manager
from shared.models.entities import TPAssignment, Trainee
from shared.utils.pagination import resolve_page, total_pages


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("ALLOW_DIRECT_COMPLETION", raising=False)
        settings = get_settings()
        assert settings.allow_direct_completion is False
        assert settings.default_page_size == 10

    def test_page_size_must_fit_max(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_PAGE_SIZE", "500")
        monkeypatch.setenv("MAX_PAGE_SIZE", "100")
        with pytest.raises(ValueError):
            validate_required_settings()

    def test_valid_settings(self):
        assert validate_required_settings() is True


class TestPagination:

    @pytest.mark.parametrize("page, limit, expected", [
        (None, None, (1, 10)),
        (0, 5, (1, 5)),
        (3, 1000, (3, 100)),
    ])
    def test_resolve_page(self, page, limit, expected):
        assert resolve_page(page, limit) == expected

    @pytest.mark.parametrize("count, limit, pages", [(0, 10, 1), (10, 10, 1), (11, 10, 2)])
    def test_total_pages_at_least_one(self, count, limit, pages):
        assert total_pages(count, limit) == pages


class TestDatabaseManager:

    def test_mask_password(self):
        masked = DatabaseManager._mask_password("postgresql://tpuser:s3cret@db:5432/tp")
        assert masked == "postgresql://tpuser:****@db:5432/tp"

    def test_mask_password_without_credentials(self):
        assert DatabaseManager._mask_password("sqlite:///local.db") == "sqlite:///local.db"

    def test_sqlite_health_check(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'health.db'}")
        reset_db_manager()
        try:
            manager = get_db_manager()
            assert manager.is_sqlite
            assert manager.health_check() is True
        finally:
            reset_db_manager()


class TestDbCli:

    def test_migrate_and_seed(self, monkeypatch, tmp_path):
        import db as db_cli

        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'seed.db'}")
        reset_db_manager()
        seed_file = tmp_path / "seed.json"
        seed_file.write_text(json.dumps({
            "trainees": [{"reg_no": "TP-1", "name": "Amara", "surname": "Okafor"}],
            "supervisors": [{"staff_id": "ST-1", "name": "Ruth", "surname": "Mensah"}],
            "schools": [{"name": "Greenfield Primary"}],
            "assignments": [{
                "reg_no": "TP-1", "staff_id": "ST-1", "school": "Greenfield Primary",
                "start_date": "2025-01-06", "end_date": "2025-03-28",
            }],
        }))

        try:
            db_cli.migrate()
            counts = db_cli.seed(str(seed_file))

            assert counts == {"trainees": 1, "supervisors": 1, "schools": 1, "assignments": 1}
            with get_db_manager().session_scope() as session:
                assert session.query(Trainee).count() == 1
                assignment = session.query(TPAssignment).one()
                assert assignment.school_id is not None
        finally:
            reset_db_manager()

    def test_seed_missing_file(self, tmp_path):
        import db as db_cli

        with pytest.raises(FileNotFoundError):
            db_cli.seed(str(tmp_path / "absent.json"))
