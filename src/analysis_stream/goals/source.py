"""Goal sources: generated KPI goals and goal files."""

import json
from pathlib import Path
from typing import Any, Mapping

import httpx

from analysis_stream.config.settings import Settings, get_settings
from analysis_stream.execution.models import GoalRecord
from analysis_stream.transport.http import build_client, error_from_response
from analysis_stream.utils.logging import get_logger


logger = get_logger(__name__)


def parse_generated_goals(payload: Mapping[str, Any]) -> list[GoalRecord]:
    """
    Map a goal-generation reply to goal records.

    Expects ``{"tasks": {"complex_kpis": [{"kpi_name": ..., "description": ...}]}}``;
    a missing ``tasks`` or ``complex_kpis`` yields no goals.
    """
    tasks = payload.get("tasks")
    if not isinstance(tasks, Mapping):
        return []
    items = tasks.get("complex_kpis") or []

    goals = []
    for item in items:
        if not isinstance(item, Mapping) or "kpi_name" not in item:
            logger.debug("Skipping malformed KPI entry", entry=item)
            continue
        goals.append(
            GoalRecord(title=str(item["kpi_name"]), description=str(item.get("description", "")))
        )
    return goals


def load_goals_file(path: str | Path) -> list[GoalRecord]:
    """
    Read goals from a JSON file.

    Accepts a list of ``{"title", "description"}`` objects or a saved
    goal-generation reply.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, Mapping):
        return parse_generated_goals(data)
    return [GoalRecord.from_dict(item) for item in data]


class HttpGoalSource:
    """Asks the backend to break a high-level goal into KPI goals."""

    def __init__(
        self,
        settings: Settings | None = None,
        session_id: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self._settings = settings or get_settings()
        self._session_id = session_id or self._settings.session_id
        self._client = client
        self._owns_client = client is None

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def generate(self, goal: str) -> list[GoalRecord]:
        """
        Generate goals for ``goal``.

        Raises:
            ValueError: Empty goal text
            TransportError: Error response from the backend
        """
        if not goal.strip():
            raise ValueError("Please enter a goal first.")

        if self._client is None:
            self._client = build_client(self._settings)

        response = await self._client.post(
            self._settings.goals_url_path(self._session_id),
            json={"goal": goal},
            headers={"Accept": "application/json"},
        )
        if response.is_error:
            raise error_from_response(response, "An API error occurred")

        goals = parse_generated_goals(response.json())
        logger.info("Goals generated", count=len(goals))
        return goals
