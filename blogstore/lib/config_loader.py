"""Configuration loader implementation.

This module implements configuration loading from environment variables and config files.
"""
import json
import logging
import os
from pathlib import Path
from typing import Optional

from ..models.config import DEFAULT_CONFIG, ConfigKey, validate_config_value

logger = logging.getLogger(__name__)


class ConfigLoader:
    """配置載入器，支援環境變數和配置檔案載入."""

    # Flat names accepted in config files, mapped onto dotted keys
    FLAT_KEY_MAPPINGS = {
        "database.url": ConfigKey.DATABASE_URL,
        "supabase.url": ConfigKey.SUPABASE_URL,
        "supabase.key": ConfigKey.SUPABASE_KEY,
        "supabase.publishable.key": ConfigKey.SUPABASE_KEY,
        "supabase.anon.key": ConfigKey.SUPABASE_KEY,
        "blog.table": ConfigKey.BLOG_TABLE,
        "blog.environment": ConfigKey.BLOG_ENVIRONMENT,
        "environment": ConfigKey.BLOG_ENVIRONMENT,
        "table": ConfigKey.BLOG_TABLE,
        "database.connection.timeout": ConfigKey.DATABASE_CONNECTION_TIMEOUT,
        "database.query.timeout": ConfigKey.DATABASE_QUERY_TIMEOUT,
        "rest.timeout": ConfigKey.REST_TIMEOUT,
        "slug.max.attempts": ConfigKey.SLUG_MAX_ATTEMPTS,
        "post.create.retries": ConfigKey.POST_CREATE_RETRIES,
        "log.level": ConfigKey.LOGGING_LEVEL,
        "logging.level": ConfigKey.LOGGING_LEVEL,
        "log.format": ConfigKey.LOGGING_FORMAT,
        "logging.format": ConfigKey.LOGGING_FORMAT,
    }

    def __init__(self, env_prefix: str = "BLOG_"):
        self.env_prefix = env_prefix
        self._cached_config: Optional[dict[str, str]] = None
        self._config_sources: list[str] = []

    async def load_config(
        self,
        config_file: Optional[Path] = None,
        use_environment: bool = True,
        use_defaults: bool = True,
    ) -> dict[str, str]:
        """
        載入配置，按優先順序合併不同來源.

        優先順序: 環境變數 > 配置檔案 > 預設值

        Args:
            config_file: 配置檔案路徑
            use_environment: 是否使用環境變數
            use_defaults: 是否使用預設值

        Returns:
            dict[str, str]: 合併後的配置
        """
        config: dict[str, str] = {}
        self._config_sources = []

        # 1. 載入預設值
        if use_defaults:
            for key, value in DEFAULT_CONFIG.items():
                config[key] = str(value)
            self._config_sources.append("defaults")
            logger.debug("載入預設配置")

        # 2. 載入配置檔案
        if config_file:
            file_config = await self.load_from_file(config_file)
            config.update(file_config)
            self._config_sources.append(f"file:{config_file}")
            logger.debug(f"載入檔案配置: {config_file}")

        # 3. 載入環境變數 (最高優先順序)
        if use_environment:
            env_config = await self.load_from_environment()
            config.update(env_config)
            self._config_sources.append("environment")
            logger.debug("載入環境變數配置")

        # 4. 驗證配置
        validated_config = await self.validate_config(config)

        self._cached_config = validated_config

        logger.debug(f"配置載入完成，來源: {', '.join(self._config_sources)}")
        return validated_config

    async def load_from_file(self, config_file: Path) -> dict[str, str]:
        """從配置檔案載入配置."""
        config: dict[str, str] = {}

        if not config_file.exists():
            logger.warning(f"配置檔案不存在: {config_file}")
            return config

        try:
            if config_file.suffix.lower() == ".json":
                with open(config_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
                    for key, value in data.items():
                        config[self._env_to_config_key(key)] = str(value)
            else:
                # .env 或純文字格式
                with open(config_file, "r", encoding="utf-8") as f:
                    for line_num, line in enumerate(f, 1):
                        line = line.strip()

                        # 跳過空行和註解
                        if not line or line.startswith("#"):
                            continue

                        if "=" in line:
                            key, value = line.split("=", 1)
                            key = key.strip()
                            value = value.strip()

                            # 移除引號
                            if value.startswith('"') and value.endswith('"'):
                                value = value[1:-1]
                            elif value.startswith("'") and value.endswith("'"):
                                value = value[1:-1]

                            config[self._env_to_config_key(key)] = value
                        else:
                            logger.warning(f"無效的配置格式 ({config_file}:{line_num}): {line}")

            logger.debug(f"從檔案載入 {len(config)} 項配置: {config_file}")
            return config

        except Exception as e:
            logger.error(f"載入配置檔案失敗 ({config_file}): {e}")
            raise

    async def load_from_environment(self) -> dict[str, str]:
        """從環境變數載入配置."""
        config: dict[str, str] = {}

        for env_key, env_value in os.environ.items():
            if env_key.startswith(self.env_prefix):
                config[self._env_to_config_key(env_key)] = env_value

        logger.debug(f"從環境變數載入 {len(config)} 項配置")
        return config

    def _env_to_config_key(self, env_key: str) -> str:
        """轉換環境變數名稱為配置鍵."""
        if "." in env_key and env_key == env_key.lower():
            # Already a dotted key, as written in JSON files
            return env_key

        if env_key.startswith(self.env_prefix):
            key = env_key[len(self.env_prefix):].lower()
        else:
            key = env_key.lower()

        key = key.replace("_", ".")

        return self.FLAT_KEY_MAPPINGS.get(key, key)

    async def validate_config(self, config: dict[str, str]) -> dict[str, str]:
        """驗證配置值."""
        validated_config: dict[str, str] = {}
        errors = []

        for key, value in config.items():
            try:
                if validate_config_value(key, value):
                    validated_config[key] = value
            except ValueError as e:
                errors.append(f"配置驗證錯誤 ({key}={value}): {e}")

        if errors:
            error_message = "配置驗證失敗:\n" + "\n".join(errors)
            logger.error(error_message)
            raise ValueError(error_message)

        logger.debug(f"配置驗證通過: {len(validated_config)} 項")
        return validated_config

    def get_config_sources(self) -> list[str]:
        """取得配置來源列表."""
        return self._config_sources.copy()

    def get_cached_config(self) -> Optional[dict[str, str]]:
        """取得快取的配置."""
        return self._cached_config.copy() if self._cached_config else None
