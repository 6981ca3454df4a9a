import json
from typing import Any


class InvalidJSON(ValueError):
    pass


def parse_technologies(raw: str | None) -> list[str]:
    """"React, Next.js , ,Go" -> ["React", "Next.js", "Go"]"""
    return [tech.strip() for tech in (raw or "").split(",") if tech.strip()]


def format_technologies(technologies: list[str] | None) -> str:
    return ", ".join(technologies or [])


def parse_json_field(raw: str | None, empty: Any = None) -> Any:
    if not raw or not raw.strip():
        return empty
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidJSON("Invalid JSON format in data field") from exc


def format_json_field(data: Any) -> str:
    if data is None:
        return ""
    return json.dumps(data, indent=2)


def blank_to_none(value: str | None) -> str | None:
    return value if value else None
