from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mnemo.application.scheduler import SchedulerConfig
from mnemo.domain.constants import (
    DEFAULT_EASINESS_FACTOR,
    DEFAULT_SESSION_LIMIT,
    PASS_THRESHOLD,
    RELEARN_INTERVAL,
)


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/mnemo/config.toml",
        Path.home() / ".mnemo.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for the mnemo CLI.
    Supports loading from:
    1. Environment variables (MNEMO_*)
    2. Config file (~/.config/mnemo/config.toml)
    3. Manual overrides (CLI)

    The scheduling engine itself never reads this; it takes explicit
    parameters built by ``scheduler_config()``.
    """

    model_config = SettingsConfigDict(
        env_prefix="MNEMO_",
        extra="ignore",
    )

    # Paths
    deck_path: Path | None = None

    # Scheduling
    pass_threshold: int = Field(default=PASS_THRESHOLD, ge=1, le=5)
    default_easiness_factor: float = Field(default=DEFAULT_EASINESS_FACTOR, ge=1.3)
    relearn_interval: int = Field(default=RELEARN_INTERVAL, ge=1)

    # Sessions
    session_limit: int = DEFAULT_SESSION_LIMIT
    include_review: bool = True
    include_new: bool = True
    max_new: int | None = None

    # 0 errors only, 1 warnings, 2 info, 3+ debug
    verbose: int = Field(default=1, ge=0)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing file wins
        toml_file = next((f for f in config_files() if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("deck_path", mode="before")
    @classmethod
    def resolve_deck_path(cls, v: Any) -> Path | None:
        if v is None or v == "":
            return None
        return Path(v).expanduser().resolve()

    def scheduler_config(self) -> SchedulerConfig:
        return SchedulerConfig(
            pass_threshold=self.pass_threshold,
            default_easiness_factor=self.default_easiness_factor,
            relearn_interval=self.relearn_interval,
        )


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/mnemo/config.toml (if exists)
    3. Environment variables (MNEMO_*)
    4. cli_overrides (passed from Typer), None values ignored
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
