"""Weekly period quotas for the subjects of one class.

Explicit weekly targets are honoured up to the grid capacity, missing ones
default to an even share of the grid, and an overflowing plan is scaled
down proportionally so the whole week still fits.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from app.services.catalog import SubjectSpec
from app.services.slot_allocator import Grid

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def plan_quotas(subjects: Sequence[SubjectSpec], grid: Grid) -> dict[str, int]:
    capacity = grid.capacity
    if not subjects or capacity <= 0:
        return {subject.id: 0 for subject in subjects}

    even_share = math.ceil(capacity / len(subjects))
    quotas: dict[str, int] = {}
    for subject in subjects:
        target = subject.weekly_hours if subject.weekly_hours and subject.weekly_hours > 0 else even_share
        quotas[subject.id] = min(target, capacity)

    total = sum(quotas.values())
    if total <= capacity:
        return quotas

    ratio = capacity / total
    for subject_id in quotas:
        quotas[subject_id] = max(1, _round_half_up(quotas[subject_id] * ratio))

    _trim_to_capacity(quotas, [subject.id for subject in subjects], capacity)
    return quotas


def _trim_to_capacity(quotas: dict[str, int], order: list[str], capacity: int) -> None:
    # Rounding up can overshoot by a few periods; take them from the largest quotas.
    position = {subject_id: index for index, subject_id in enumerate(order)}
    overflow = sum(quotas.values()) - capacity
    while overflow > 0:
        reducible = [subject_id for subject_id in order if quotas[subject_id] > 1]
        if not reducible:
            break
        largest = max(reducible, key=lambda subject_id: (quotas[subject_id], position[subject_id]))
        quotas[largest] -= 1
        overflow -= 1

    if overflow > 0:
        dropped = []
        for subject_id in reversed(order):
            if overflow <= 0:
                break
            if quotas[subject_id] > 0:
                quotas[subject_id] = 0
                dropped.append(subject_id)
                overflow -= 1
        logger.warning(
            "QUOTA PLAN OVER CAPACITY | capacity=%s | subjects=%s | unplanned_subjects=%s",
            capacity,
            len(order),
            ",".join(reversed(dropped)),
        )
