"""Application settings via environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings via environment variables."""

    # Backend task runner
    api_base_url: str = "http://localhost:8000"
    session_id: str = ""
    run_task_path: str = "/session/run_task_v2/{session_id}"
    generate_goals_path: str = "/session/generate_goals/{session_id}"

    # Task request body
    log_iter: int = 3
    red_report: bool = False

    # Transport
    request_timeout_seconds: float = 30.0  # connect/write/pool only, reads never time out
    chunk_timeout_seconds: float | None = None  # idle limit between chunks, off by default

    # Batch execution
    continue_on_failure: bool = False

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def task_url_path(self, session_id: str | None = None) -> str:
        """Endpoint path for streaming a task in the given session."""
        return self.run_task_path.format(session_id=session_id or self.session_id)

    def goals_url_path(self, session_id: str | None = None) -> str:
        """Endpoint path for generating goals in the given session."""
        return self.generate_goals_path.format(session_id=session_id or self.session_id)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
