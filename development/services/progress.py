import logging
import math
from typing import Iterable, Mapping

logger = logging.getLogger(__name__)


def compute_progress(milestones: Iterable[Mapping]) -> int:
    """
    Percentage of completed milestones, rounded half up.

    Zero milestones give 0. Rows may be in either form since only the
    ``completed`` key is read.
    """
    milestones = list(milestones)
    if not milestones:
        return 0
    completed = sum(1 for milestone in milestones if milestone.get('completed'))
    return int(math.floor(completed / len(milestones) * 100 + 0.5))


def recalculate_plan_progress(gateway, plan_id) -> int:
    """
    Recompute a plan's progress from its milestones and persist it.

    Gateway failures propagate as ``GatewayError``.
    """
    milestones = gateway.table('milestones').select(plan_id=plan_id).unwrap()
    progress = compute_progress(milestones)
    gateway.table('development_plans').update({'progress': progress}, id=plan_id).unwrap()
    logger.info(f"Plan {plan_id} progress recalculated: {progress}% of {len(milestones)} milestones")
    return progress
