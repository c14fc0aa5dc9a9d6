"""
Configuration settings for the Roster Search application.
"""

from typing import Optional
from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import Field
from dotenv import load_dotenv


load_dotenv()

CONFIG_DIR = Path(__file__).parent


class AzureOpenAISettings(BaseSettings):
    """OpenAI configuration for the natural-language matching strategy."""

    api_key: Optional[str] = Field(default=None)
    endpoint: Optional[str] = Field(default=None)
    api_version: str = Field(default="2024-02-01")
    chat_deployment: str = Field(default="gpt-4o-mini")

    class Config:
        env_prefix = "AZURE_OPENAI_"

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def use_azure(self) -> bool:
        return bool(self.endpoint)


class DatasetSettings(BaseSettings):
    """Roster dataset location (filesystem path or http(s) URL)."""

    source: str = Field(default="data/people_with_github.json")
    timeout_seconds: float = Field(default=10.0)

    class Config:
        env_prefix = "DATASET_"


class SearchSettings(BaseSettings):
    """Search, cache and fallback tuning."""

    cache_ttl_seconds: float = Field(default=300.0)
    cache_max_entries: int = Field(default=100)
    ai_enabled: bool = Field(default=True)
    ai_timeout_seconds: float = Field(default=8.0)
    fuzzy_threshold: float = Field(default=0.6)
    max_results: int = Field(default=50)
    synonyms_path: str = Field(default=str(CONFIG_DIR / "synonym_groups.json"))
    typo_corrections_path: str = Field(default=str(CONFIG_DIR / "typo_corrections.json"))

    class Config:
        env_prefix = "SEARCH_"


class ApplicationSettings(BaseSettings):
    """General application configuration."""

    app_name: str = Field(default="Roster Search API")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_dir: str = Field(default="logs")
    log_to_file: bool = Field(default=True)

    class Config:
        env_prefix = "APP_"


class Settings:
    """Main settings class that combines all configurations."""

    def __init__(self):
        self.azure_openai = AzureOpenAISettings()
        self.dataset = DatasetSettings()
        self.search = SearchSettings()
        self.app = ApplicationSettings()

    @property
    def is_development(self) -> bool:
        return self.app.debug


# Global settings instance
settings = Settings()
