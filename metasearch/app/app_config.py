"""App configuration and engine wiring."""

from pathlib import Path
from typing import Self

from pydantic import BaseModel, Field

from ..search.registry import ProviderRegistry
from ..search.search_provider import Provider
from ..search_providers.duckduckgo import DuckDuckGoProvider
from ..search_providers.wikipedia import WikipediaProvider
from .engine import Engine


class AppConfig(BaseModel):
    """App configuration."""

    providers: list[str] = Field(
        default_factory=lambda: ["wikipedia", "duckduckgo"],
        description="Enabled providers, in fan-out order.",
    )
    wikipedia: WikipediaProvider = Field(default_factory=WikipediaProvider)
    duckduckgo: DuckDuckGoProvider = Field(default_factory=DuckDuckGoProvider)

    @classmethod
    def load(cls, path: Path) -> Self:
        """Read the config file, defaults when it does not exist."""
        if not path.exists():
            return cls()
        return cls.model_validate_json(path.read_text())

    def save(self, path: Path) -> None:
        """Write the config file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2))


def build_providers(config: AppConfig) -> list[Provider]:
    """Instantiate the enabled providers."""
    available: dict[str, Provider] = {
        "wikipedia": config.wikipedia,
        "duckduckgo": config.duckduckgo,
    }
    providers: list[Provider] = []
    for name in config.providers:
        if name not in available:
            raise ValueError(f"Unknown provider: {name}. Supported: {', '.join(available)}")
        providers.append(available[name])
    return providers


def build_engine(config: AppConfig) -> Engine:
    """Build the search engine."""
    return Engine(ProviderRegistry(build_providers(config)))
