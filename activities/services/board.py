"""
Activity board.

A user's goals, daily activities, weekly priorities and weekly routines.
Routines are stored as one row per occurrence, tied together by a shared
``routine_id``.
"""

import json
import logging
import uuid
from collections import OrderedDict
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction as db_transaction
from django.db.models import Case, IntegerField, Value, When
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from django_q.models import Schedule
from django_q.tasks import schedule

from shalom.exceptions import ConfirmationRequired, ImportFormatError

from ..forms import ActivityForm
from ..models import WEEK_DAYS, Activity

logger = logging.getLogger(__name__)

OVERDUE_CHECK_FUNC = 'activities.services.board.mark_overdue_activities'

# Occurrences generated for a routine without an end date
ROUTINE_HORIZON_DAYS = 90

DAY_LABELS = ('Dom', 'Seg', 'Ter', 'Qua', 'Qui', 'Sex', 'Sáb')

PRIORITY_RANK = Case(
    When(priority='high', then=Value(0)),
    When(priority='medium', then=Value(1)),
    default=Value(2),
    output_field=IntegerField(),
)


def week_day_name(day: date) -> str:
    # date.weekday() counts from Monday
    return WEEK_DAYS[(day.weekday() + 1) % 7]


def week_start(day: date) -> date:
    """Sunday of the week containing ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def routine_dates(start: date, week_days, end_date: Optional[date] = None) -> List[date]:
    end_date = end_date or start + timedelta(days=ROUTINE_HORIZON_DAYS)
    unknown = set(week_days) - set(WEEK_DAYS)
    if unknown:
        raise ValueError(f"Unknown week days: {', '.join(sorted(unknown))}")
    dates = []
    day = start
    while day <= end_date:
        if week_day_name(day) in week_days:
            dates.append(day)
        day += timedelta(days=1)
    return dates


def activity_as_dict(activity: Activity) -> Dict[str, Any]:
    return {
        'id': activity.id,
        'title': activity.title,
        'description': activity.description,
        'date': activity.date,
        'time': activity.time,
        'type': activity.type,
        'status': activity.status,
        'priority': activity.priority,
        'category': activity.category,
        'frequency': activity.frequency,
        'end_date': activity.end_date,
        'order': activity.order,
        'week_days': activity.week_days,
        'is_routine': activity.is_routine,
        'routine_id': activity.routine_id,
        'notes': activity.notes,
        'tags': activity.tags,
        'estimated_duration': activity.estimated_duration,
        'actual_duration': activity.actual_duration,
        'completed_at': activity.completed_at,
        'created_at': activity.created_at,
    }


def mark_overdue_activities(today=None) -> int:
    """Flag every pending activity dated before today as late."""
    today = today or timezone.localdate()
    marked = Activity.objects.filter(status='pending', date__lt=today).update(status='late')
    logger.info(f"Marked {marked} activities as late for {today}")
    return marked


def schedule_daily_overdue_check():
    """Register the daily overdue check with Django-Q2, once."""
    if Schedule.objects.filter(func=OVERDUE_CHECK_FUNC).exists():
        return False
    schedule(
        OVERDUE_CHECK_FUNC,
        name='Daily overdue activity check',
        schedule_type=Schedule.DAILY,
        repeats=-1,
    )
    return True


class ActivityBoard:
    def __init__(self, user):
        self.user = user

    def activities(self):
        return Activity.objects.filter(user=self.user)

    def add_activity(self, title: str, type: str, date: date, week_days=None, end_date=None,
                     **fields) -> List[Activity]:
        """
        Create an activity, or every occurrence of a routine.

        A routine gets one row per matching week day from ``date`` until
        ``end_date`` (or ``ROUTINE_HORIZON_DAYS`` later when there is none).
        Returns the created rows.
        """
        week_days = list(week_days or [])
        order = self.activities().count()

        if type != 'routine':
            activity = Activity.objects.create(
                user=self.user, title=title, type=type, date=date, end_date=end_date,
                week_days=week_days, order=order, **fields
            )
            return [activity]

        if not week_days:
            raise ValueError("A routine needs at least one week day")
        routine_id = uuid.uuid4()
        occurrences = [
            Activity(
                user=self.user, title=title, type=type, date=day, end_date=end_date,
                week_days=week_days, is_routine=True, routine_id=routine_id,
                order=order + index, **fields
            )
            for index, day in enumerate(routine_dates(date, week_days, end_date))
        ]
        with db_transaction.atomic():
            created = Activity.objects.bulk_create(occurrences)
        logger.info(f"Created routine {routine_id} with {len(created)} occurrences for user {self.user.id}")
        return created

    def update_activity(self, activity_id, **updates) -> Activity:
        activity = self.activities().get(pk=activity_id)
        for field, value in updates.items():
            setattr(activity, field, value)
        if 'status' in updates:
            activity.completed_at = timezone.now() if activity.status == 'completed' else None
        activity.save()
        return activity

    def toggle_status(self, activity_id) -> Activity:
        activity = self.activities().get(pk=activity_id)
        if activity.status == 'completed':
            activity.status = 'pending'
            activity.completed_at = None
        else:
            activity.status = 'completed'
            activity.completed_at = timezone.now()
        activity.save(update_fields=['status', 'completed_at'])
        return activity

    def delete_activity(self, activity_id) -> bool:
        deleted, _ = self.activities().filter(pk=activity_id).delete()
        return deleted > 0

    def delete_routine(self, routine_id, confirm: bool = False) -> int:
        """Delete every occurrence of a routine. Returns how many were removed."""
        if not confirm:
            raise ConfirmationRequired('delete_routine')
        deleted, _ = self.activities().filter(routine_id=routine_id).delete()
        return deleted

    # Views

    def activities_by_date(self, day: date) -> List[Activity]:
        return [
            activity for activity in self.activities().filter(date=day)
            if not activity.is_routine or week_day_name(day) in activity.week_days
        ]

    def daily_activities(self, today: Optional[date] = None) -> List[Activity]:
        """Today's daily activities plus the routine occurrences falling on today."""
        today = today or timezone.localdate()
        rows = self.activities().filter(date=today, type__in=('daily', 'routine')).order_by('order', 'created_at')
        return [
            activity for activity in rows
            if activity.type == 'daily' or week_day_name(today) in activity.week_days
        ]

    def goals(self) -> List[Activity]:
        return list(self.activities().filter(type='goal').order_by(PRIORITY_RANK, 'date', 'order'))

    def priority_activities(self, today: Optional[date] = None) -> List[Activity]:
        """Priority activities in the current Sunday-to-Saturday week, high first then by date."""
        today = today or timezone.localdate()
        start = week_start(today)
        return list(
            self.activities()
            .filter(type='priority', date__range=(start, start + timedelta(days=6)))
            .order_by(PRIORITY_RANK, 'date', 'order')
        )

    def completion_rate(self, today: Optional[date] = None) -> Dict[str, int]:
        daily = self.daily_activities(today)
        return {
            'completed': sum(1 for activity in daily if activity.status == 'completed'),
            'total': len(daily),
        }

    def productivity_data(self, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Status counts for each of the last seven days, oldest first."""
        today = today or timezone.localdate()
        start = today - timedelta(days=6)
        days = OrderedDict(
            (start + timedelta(days=offset), {status: 0 for status, _ in Activity.STATUS_CHOICES})
            for offset in range(7)
        )
        for activity in self.activities().filter(date__range=(start, today)):
            days[activity.date][activity.status] += 1
        return [
            {'day': DAY_LABELS[(day.weekday() + 1) % 7], 'date': day, **counts}
            for day, counts in days.items()
        ]

    def summary(self, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or timezone.localdate()
        return {
            'completionRate': self.completion_rate(today),
            'productivity': self.productivity_data(today),
            'goals': len(self.goals()),
            'priorities': len(self.priority_activities(today)),
        }

    # Export / import

    def export_data(self) -> str:
        payload = {
            'activities': [activity_as_dict(activity) for activity in self.activities()],
            'exportDate': timezone.now().isoformat(),
        }
        return json.dumps(payload, cls=DjangoJSONEncoder, indent=2, ensure_ascii=False)

    @staticmethod
    def _parse_import(payload) -> List[Dict[str, Any]]:
        if isinstance(payload, bytes):
            try:
                payload = payload.decode('utf-8')
            except UnicodeDecodeError as e:
                raise ImportFormatError(f"Activities export must be UTF-8 text: {e}")
        try:
            data = json.loads(payload)
        except (TypeError, json.JSONDecodeError) as e:
            raise ImportFormatError(f"Invalid activities export: {e}")
        if not isinstance(data, dict) or not isinstance(data.get('activities'), list):
            raise ImportFormatError("Activities export must contain an 'activities' list")

        rows = []
        statuses = dict(Activity.STATUS_CHOICES)
        for index, row in enumerate(data['activities']):
            if not isinstance(row, dict):
                raise ImportFormatError("Every activity must be an object")
            form = ActivityForm(data=row)
            if not form.is_valid():
                errors = '; '.join(f"{field}: {' '.join(messages)}" for field, messages in form.errors.items())
                raise ImportFormatError(f"Activity {index} is invalid: {errors}")
            status = row.get('status', 'pending')
            if not isinstance(status, str) or status not in statuses:
                raise ImportFormatError(f"Activity {index} has an unknown status: {status!r}")
            try:
                completed_at = parse_datetime(row['completed_at']) if isinstance(row.get('completed_at'), str) else None
            except ValueError:
                raise ImportFormatError(f"Activity {index} has an invalid completion time")
            rows.append({
                **form.cleaned_data,
                'status': status,
                'is_routine': bool(row.get('routine_id')),
                'routine_id': row.get('routine_id'),
                'completed_at': completed_at,
            })
        return rows

    def import_data(self, payload) -> int:
        """
        Append the activities of an export, with fresh ids.

        Occurrences that shared a routine in the export share a new routine
        id after the import. Nothing is written unless every row is valid.
        """
        rows = self._parse_import(payload)
        routine_ids = {}
        order = self.activities().count()
        activities = []
        for index, row in enumerate(rows):
            old_routine = row.pop('routine_id')
            if old_routine:
                row['routine_id'] = routine_ids.setdefault(str(old_routine), uuid.uuid4())
            activities.append(Activity(user=self.user, order=order + index, **row))

        with db_transaction.atomic():
            Activity.objects.bulk_create(activities)
        logger.info(f"Imported {len(activities)} activities for user {self.user.id}")
        return len(activities)

    def clear_all_data(self, confirm: bool = False) -> None:
        if not confirm:
            raise ConfirmationRequired('clear_all_data')
        with db_transaction.atomic():
            self.activities().delete()
        logger.info(f"Cleared activities for user {self.user.id}")
