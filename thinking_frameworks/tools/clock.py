from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from thinking_frameworks.tools.base import ToolBase


def current_datetime(now: Optional[datetime] = None) -> str:
    now_utc = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    local = now_utc.astimezone()
    iso = now_utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return (
        f"Current date and time (UTC): {iso}. Day of week: {local.strftime('%A')}. "
        f"Local date: {local.strftime('%x')}; local time: {local.strftime('%X')}."
    )


class ClockTool(ToolBase):
    name = "current_datetime"
    description = "Get the current date and time (UTC and local). Input: ignored (no input required)."

    async def execute(self, tool_input: str, credential: Optional[str] = None) -> str:
        return current_datetime()
