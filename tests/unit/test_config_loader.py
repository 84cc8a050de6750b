"""Unit tests for configuration loading."""
import json
import os

import pytest

from blogstore.lib.config_loader import ConfigLoader
from blogstore.models.config import ConfigKey


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for key in list(os.environ):
        if key.startswith("BLOG_"):
            monkeypatch.delenv(key)


class TestConfigLoader:
    """Test ConfigLoader source precedence and validation."""

    async def test_defaults_only(self):
        loader = ConfigLoader()
        config = await loader.load_config()

        assert config[ConfigKey.BLOG_TABLE] == "blogs"
        assert config[ConfigKey.SLUG_MAX_ATTEMPTS] == "1000"
        assert loader.get_config_sources() == ["defaults", "environment"]

    async def test_env_file(self, tmp_path):
        config_file = tmp_path / "blog.env"
        config_file.write_text(
            "# local Supabase\n"
            "BLOG_SUPABASE_URL=https://example.supabase.co\n"
            'BLOG_SUPABASE_KEY="sb_publishable_abc"\n'
            "BLOG_ENVIRONMENT='production'\n"
            "not a setting\n",
            encoding="utf-8",
        )

        config = await ConfigLoader().load_config(config_file=config_file)

        assert config[ConfigKey.SUPABASE_URL] == "https://example.supabase.co"
        assert config[ConfigKey.SUPABASE_KEY] == "sb_publishable_abc"
        assert config[ConfigKey.BLOG_ENVIRONMENT] == "production"

    async def test_json_file(self, tmp_path):
        config_file = tmp_path / "blog.json"
        config_file.write_text(
            json.dumps({"blog.table": "articles", "post.create_retries": 5}), encoding="utf-8"
        )

        config = await ConfigLoader().load_config(config_file=config_file)

        assert config[ConfigKey.BLOG_TABLE] == "articles"
        assert config[ConfigKey.POST_CREATE_RETRIES] == "5"

    async def test_environment_overrides_file(self, tmp_path, monkeypatch):
        config_file = tmp_path / "blog.env"
        config_file.write_text("BLOG_SLUG_MAX_ATTEMPTS=50\n", encoding="utf-8")
        monkeypatch.setenv("BLOG_SLUG_MAX_ATTEMPTS", "20")

        loader = ConfigLoader()
        config = await loader.load_config(config_file=config_file)

        assert config[ConfigKey.SLUG_MAX_ATTEMPTS] == "20"
        assert loader.get_config_sources() == ["defaults", f"file:{config_file}", "environment"]

    async def test_missing_file_is_skipped(self, tmp_path):
        config = await ConfigLoader().load_config(config_file=tmp_path / "absent.env")

        assert config[ConfigKey.BLOG_TABLE] == "blogs"

    async def test_invalid_values_are_reported_together(self, monkeypatch):
        monkeypatch.setenv("BLOG_ENVIRONMENT", "staging")
        monkeypatch.setenv("BLOG_REST_TIMEOUT", "0")

        with pytest.raises(ValueError) as exc_info:
            await ConfigLoader().load_config()

        assert "blog.environment" in str(exc_info.value)
        assert "rest.timeout" in str(exc_info.value)

    async def test_cached_config(self):
        loader = ConfigLoader()
        assert loader.get_cached_config() is None

        config = await loader.load_config()

        assert loader.get_cached_config() == config

    @pytest.mark.parametrize(
        "env_key,config_key",
        [
            ("BLOG_DATABASE_URL", ConfigKey.DATABASE_URL),
            ("BLOG_DATABASE_CONNECTION_TIMEOUT", ConfigKey.DATABASE_CONNECTION_TIMEOUT),
            ("BLOG_SUPABASE_PUBLISHABLE_KEY", ConfigKey.SUPABASE_KEY),
            ("BLOG_TABLE", ConfigKey.BLOG_TABLE),
            ("BLOG_LOG_LEVEL", ConfigKey.LOGGING_LEVEL),
            ("blog.environment", ConfigKey.BLOG_ENVIRONMENT),
        ],
    )
    def test_env_to_config_key(self, env_key, config_key):
        assert ConfigLoader()._env_to_config_key(env_key) == config_key
