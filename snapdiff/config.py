from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from snapdiff.constants import DEFAULT_GRID_URL


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="SNAPDIFF_", extra="ignore")

    ENV: str = "local"
    GRID_URL: str = DEFAULT_GRID_URL
    DEBUG_MODE: bool = False
    JSON_LOGGING: bool = False
    LOG_LEVEL: str = "INFO"


settings = Settings()


class HttpOptions(BaseModel):
    """Connection options of the HTTP client talking to the WebDriver endpoint."""

    timeout: float | None = None
    keep_alive: bool = True
    ignore_certificates: bool = False


class WindowSize(BaseModel):
    width: int = Field(gt=0)
    height: int = Field(gt=0)

    @classmethod
    def parse(cls, value: str) -> "WindowSize":
        """Parse a ``<width>x<height>`` string such as ``1280x1024``."""
        width, sep, height = value.lower().partition("x")
        if not sep or not width.strip().isdigit() or not height.strip().isdigit():
            raise ValueError(f"Invalid window size {value!r}, expected <width>x<height>")
        return cls(width=int(width), height=int(height))


class BrowserConfig(BaseModel):
    grid_url: str = Field(default_factory=lambda: settings.GRID_URL)
    http: HttpOptions | None = None
    window_size: WindowSize | None = None
    debug: bool = Field(default_factory=lambda: settings.DEBUG_MODE)
    coverage: bool = False
    # overrides the default capabilities, overridden in turn by the capabilities of a browser session
    capabilities: dict[str, Any] = Field(default_factory=dict)
