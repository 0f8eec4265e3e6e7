# tests/test_config.py
"""
Tests for environment-driven settings.
"""

import pytest
from pydantic import ValidationError

from portfolio_tracker.config import DEFAULT_DEVELOPMENT_DATABASE_URL, Settings


class TestDatabaseUrl:

    def test_test_environment_uses_memory(self):
        s = Settings(environment="test", database_url=None, _env_file=None)

        assert s.database_url == "sqlite:///:memory:"
        assert s.is_sqlite

    def test_development_uses_local_file(self):
        s = Settings(environment="development", database_url=None, _env_file=None)

        assert s.database_url == DEFAULT_DEVELOPMENT_DATABASE_URL

    def test_production_requires_url(self):
        with pytest.raises(ValidationError):
            Settings(environment="production", database_url=None, _env_file=None)

    def test_explicit_url_kept(self):
        s = Settings(
            environment="production",
            database_url="postgresql://u:p@db:5432/portfolio",
            _env_file=None,
        )

        assert s.database_url == "postgresql://u:p@db:5432/portfolio"
        assert not s.is_sqlite


class TestQuoteSettings:

    def test_defaults(self):
        s = Settings(environment="test", _env_file=None)

        assert s.quote_max_concurrency == 4
        assert s.quote_fetch_timeout == 10.0
        assert s.quote_retry_attempts == 3

    @pytest.mark.parametrize("field,value", [
        ("quote_max_concurrency", 0),
        ("quote_max_concurrency", 33),
        ("quote_fetch_timeout", 0),
        ("quote_retry_attempts", 0),
    ])
    def test_out_of_range_rejected(self, field, value):
        with pytest.raises(ValidationError):
            Settings(environment="test", _env_file=None, **{field: value})

    def test_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("QUOTE_MAX_CONCURRENCY", "1")

        assert Settings(environment="test", _env_file=None).quote_max_concurrency == 1
