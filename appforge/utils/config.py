"""Runtime configuration loaded from the environment."""

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

ENV_PREFIX = "APPFORGE_"


class Settings(BaseModel):
    """Settings for the worker, the job runtime and the HTTP surface.

    Every field can be overridden with an ``APPFORGE_<FIELD_NAME>`` environment variable.
    Provider credentials are not stored here; the OpenAI, Anthropic and E2B SDKs read
    ``OPENAI_API_KEY``, ``ANTHROPIC_API_KEY`` and ``E2B_API_KEY`` themselves.
    """

    database_url: str = "sqlite+aiosqlite:///./appforge.db"

    # Sandbox
    sandbox_provider: str = "e2b"
    e2b_template: str = "vibe-nextjs-test-2"
    sandbox_timeout_seconds: int = Field(default=30 * 60, gt=0)
    sandbox_root: str | None = None
    preview_port: int = 3000

    # Agent network
    max_iterations: int = Field(default=10, gt=0)
    max_tool_calls: int = Field(default=25, gt=0)
    llm_provider: str = "openai"
    code_model: str = "gpt-4.1"
    code_temperature: float = 0.1
    postprocess_model: str = "gpt-4o"

    # Usage quota
    free_points: int = 3
    pro_points: int = 100
    usage_duration_seconds: int = 30 * 24 * 60 * 60
    generation_cost: int = 1

    # Runtime
    max_concurrent_jobs: int = Field(default=10, gt=0)
    # Overrides the attempts every job declares when set
    job_max_attempts: int | None = Field(default=None, gt=0)
    retained_executions: int = Field(default=100, ge=0)
    host: str = "0.0.0.0"
    port: int = 8000
    otel_enabled: bool = True
    log_file: str | None = None


def _read_env_overrides() -> dict[str, str]:
    overrides = {}
    for name in Settings.model_fields:
        value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if value is not None and value != "":
            overrides[name] = value
    return overrides


def load_settings(dotenv_path: str | None = None, **overrides) -> Settings:
    """Build Settings from ``.env``, the process environment and explicit overrides.

    Explicit keyword overrides win over environment variables.
    """
    load_dotenv(dotenv_path)
    values: dict[str, object] = _read_env_overrides()
    values.update(overrides)
    settings = Settings.model_validate(values)
    logger.debug("Loaded settings: %s", settings.model_dump(exclude={"database_url"}))
    return settings
