"""
Daily streak maintenance.
Uses Django-Q2 for the recurring check.
"""

import logging
from datetime import timedelta

from django.db.models import Q
from django.utils import timezone
from django_q.models import Schedule
from django_q.tasks import schedule

from ..models import Habit

logger = logging.getLogger(__name__)

STREAK_CHECK_FUNC = 'development.services.streaks.reset_broken_streaks'

# Days a habit may go without completion before its streak breaks
FREQUENCY_WINDOWS = {
    'daily': 1,
    'weekly': 7,
}


def reset_broken_streaks(today=None) -> int:
    """
    Zero the streak of every habit whose last completion fell out of its window.

    A daily habit done yesterday keeps its streak today; one last done two
    days ago loses it. Returns the number of habits reset.
    """
    today = today or timezone.localdate()
    broken = Q()
    for frequency, window in FREQUENCY_WINDOWS.items():
        cutoff = today - timedelta(days=window)
        broken |= Q(frequency=frequency) & (Q(last_completed__lt=cutoff) | Q(last_completed__isnull=True))

    reset = Habit.objects.filter(broken, streak__gt=0).update(streak=0)
    logger.info(f"Reset {reset} broken habit streaks for {today}")
    return reset


def schedule_daily_streak_check():
    """Register the daily streak check with Django-Q2, once."""
    if Schedule.objects.filter(func=STREAK_CHECK_FUNC).exists():
        return False
    schedule(
        STREAK_CHECK_FUNC,
        name='Daily habit streak check',
        schedule_type=Schedule.DAILY,
        repeats=-1,
    )
    return True
