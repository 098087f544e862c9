"""
Static chore catalog.

Loaded once per process. `CHORES_FILE` may point at a JSON list of
`{"id", "text", "daysOfWeek"?}` objects; otherwise DEFAULT_CHORES is used.
"""
from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

from loguru import logger
from pydantic import TypeAdapter

from timey.core.config import settings
from timey.schemas.profile import ChoreDefinition

_DEFAULT_CHORE_TEXTS = [
    "Morning: brush teeth, brush hair, deodorant",
    "Take medicine",
    "Math homework",
    "Reading (20 minutes)",
    "Additional homework",
    "Practice piano (10 minutes)",
    "Take a shower",
    "Clean room",
    "Load or rotate laundry",
    "Take out recyclables",
    "Outside time (20 minutes)",
    "Bed: brush teeth, use bathroom",
]

DEFAULT_CHORES: tuple[ChoreDefinition, ...] = tuple(
    ChoreDefinition(id=i, text=text) for i, text in enumerate(_DEFAULT_CHORE_TEXTS)
)

_chore_list = TypeAdapter(list[ChoreDefinition])


def parse_chore_catalog(raw: str) -> tuple[ChoreDefinition, ...]:
    return tuple(_chore_list.validate_python(json.loads(raw)))


@lru_cache(maxsize=1)
def load_chore_catalog() -> tuple[ChoreDefinition, ...]:
    if not settings.CHORES_FILE:
        return DEFAULT_CHORES
    path = Path(settings.CHORES_FILE)
    chores = parse_chore_catalog(path.read_text(encoding="utf-8"))
    logger.info(f"Loaded {len(chores)} chores from {path}")
    return chores
