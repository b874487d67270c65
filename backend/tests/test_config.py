# tests/test_config.py
"""
Tests for environment-dependent settings.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from portfolio_tracker.config import Settings


class TestTestEnvironment:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)

        config = Settings(environment="test", _env_file=None)

        assert config.database_url == "sqlite:///:memory:"
        assert config.rate_limit_enabled is False
        assert config.default_eur_usd_rate == Decimal("1.09")
        assert config.default_usd_exchange_rate == Decimal("0.92")

    def test_amounts_have_no_configurable_currency(self):
        # All amounts are EUR
        assert "accounting_currency" not in Settings.model_fields


class TestProductionEnvironment:

    def test_requires_postgresql(self):
        with pytest.raises(ValidationError, match="PostgreSQL"):
            Settings(
                environment="production",
                database_url="sqlite:///./portfolio.db",
                snapshot_secret="s3cret",
                _env_file=None,
            )

    def test_rejects_default_snapshot_secret(self):
        with pytest.raises(ValidationError, match="SNAPSHOT_SECRET"):
            Settings(
                environment="production",
                database_url="postgresql://u:p@localhost/portfolio",
                _env_file=None,
            )
