"""Tests for environment-driven crawl configuration."""

import os

import pytest

from content_analyzer.config import CrawlConfig
from content_analyzer.constants import DEFAULT_MAX_PAGES_PER_DOMAIN


@pytest.fixture
def isolated_env(monkeypatch):
    """Private copy of os.environ so load_dotenv writes never leak into other tests."""
    env = {k: v for k, v in os.environ.items() if not k.startswith("ANALYZER_")}
    monkeypatch.setattr(os, "environ", env)
    return env


class TestCrawlConfig:
    def test_defaults(self):
        config = CrawlConfig()
        assert config.max_depth == 2
        assert config.max_pages_per_domain == 20
        assert config.concurrent_requests == 10
        assert config.request_timeout == 15.0
        assert config.retry_attempts == 2
        assert config.check_insurance is True
        assert config.same_domain_only is True

    def test_from_env_overrides(self, isolated_env, tmp_path):
        isolated_env["ANALYZER_MAX_DEPTH"] = "4"
        isolated_env["ANALYZER_SAME_DOMAIN_ONLY"] = "false"
        isolated_env["ANALYZER_REQUEST_TIMEOUT"] = "7.5"

        config = CrawlConfig.from_env(str(tmp_path / "missing.env"))

        assert config.max_depth == 4
        assert config.same_domain_only is False
        assert config.request_timeout == 7.5

    def test_invalid_number_falls_back_to_default(self, isolated_env, tmp_path):
        isolated_env["ANALYZER_MAX_PAGES_PER_DOMAIN"] = "lots"

        config = CrawlConfig.from_env(str(tmp_path / "missing.env"))

        assert config.max_pages_per_domain == DEFAULT_MAX_PAGES_PER_DOMAIN

    def test_env_file_loaded(self, isolated_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("ANALYZER_CONCURRENT_REQUESTS=3\nANALYZER_CHECK_INSURANCE=no\n")

        config = CrawlConfig.from_env(str(env_file))

        assert config.concurrent_requests == 3
        assert config.check_insurance is False

    def test_process_env_wins_over_env_file(self, isolated_env, tmp_path):
        isolated_env["ANALYZER_MAX_DEPTH"] = "1"
        env_file = tmp_path / ".env"
        env_file.write_text("ANALYZER_MAX_DEPTH=5\n")

        assert CrawlConfig.from_env(str(env_file)).max_depth == 1
