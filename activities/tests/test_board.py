"""
Tests for the activity board.
"""

import json
from datetime import date, time
from unittest.mock import patch

from django.contrib.auth.models import User
from django.test import SimpleTestCase, TestCase

from activities.models import Activity
from activities.services.board import (
    ActivityBoard,
    mark_overdue_activities,
    routine_dates,
    schedule_daily_overdue_check,
    week_day_name,
    week_start,
)
from shalom.exceptions import ConfirmationRequired, ImportFormatError

# A Wednesday
WEDNESDAY = date(2026, 4, 15)


class CalendarHelperTests(SimpleTestCase):

    def test_week_day_name(self):
        self.assertEqual(week_day_name(WEDNESDAY), 'wednesday')
        self.assertEqual(week_day_name(date(2026, 4, 12)), 'sunday')

    def test_week_starts_on_sunday(self):
        self.assertEqual(week_start(WEDNESDAY), date(2026, 4, 12))
        self.assertEqual(week_start(date(2026, 4, 12)), date(2026, 4, 12))
        self.assertEqual(week_start(date(2026, 4, 18)), date(2026, 4, 12))

    def test_routine_dates_within_end_date(self):
        dates = routine_dates(date(2026, 4, 13), ['monday', 'wednesday'], date(2026, 4, 26))
        self.assertEqual(dates, [date(2026, 4, 13), date(2026, 4, 15), date(2026, 4, 20), date(2026, 4, 22)])

    def test_routine_defaults_to_ninety_days(self):
        dates = routine_dates(WEDNESDAY, ['wednesday'])
        self.assertEqual(len(dates), 13)
        self.assertEqual(dates[-1], date(2026, 7, 8))

    def test_unknown_week_day(self):
        with self.assertRaises(ValueError):
            routine_dates(WEDNESDAY, ['funday'])


class ActivityBoardTestCase(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username='board', password='testpass123')
        self.board = ActivityBoard(self.user)

    def add(self, title, type='daily', day=WEDNESDAY, **fields):
        return self.board.add_activity(title=title, type=type, date=day, **fields)


class AddActivityTests(ActivityBoardTestCase):

    def test_single_activity_starts_pending(self):
        [activity] = self.add('Ler 20 páginas', time=time(7, 30))
        self.assertEqual(activity.status, 'pending')
        self.assertFalse(activity.is_routine)
        self.assertIsNone(activity.routine_id)
        self.assertEqual(activity.order, 0)

    def test_order_follows_creation(self):
        self.add('Primeira')
        [second] = self.add('Segunda')
        self.assertEqual(second.order, 1)

    def test_routine_expands_to_occurrences(self):
        created = self.add('Academia', type='routine', day=date(2026, 4, 13),
                           week_days=['monday', 'wednesday'], end_date=date(2026, 4, 26))
        self.assertEqual(len(created), 4)
        self.assertEqual(len({a.routine_id for a in created}), 1)
        self.assertTrue(all(a.is_routine for a in created))
        self.assertEqual(Activity.objects.filter(user=self.user).count(), 4)

    def test_routine_without_week_days(self):
        with self.assertRaises(ValueError):
            self.add('Academia', type='routine')
        self.assertFalse(Activity.objects.exists())


class StatusTests(ActivityBoardTestCase):

    def test_toggle_sets_and_clears_completion(self):
        [activity] = self.add('Meditar')
        activity = self.board.toggle_status(activity.id)
        self.assertEqual(activity.status, 'completed')
        self.assertIsNotNone(activity.completed_at)

        activity = self.board.toggle_status(activity.id)
        self.assertEqual(activity.status, 'pending')
        self.assertIsNone(activity.completed_at)

    def test_toggle_other_users_activity(self):
        other = User.objects.create_user(username='other', password='testpass123')
        [activity] = ActivityBoard(other).add_activity(title='Privada', type='daily', date=WEDNESDAY)
        with self.assertRaises(Activity.DoesNotExist):
            self.board.toggle_status(activity.id)

    def test_update_status_stamps_completion(self):
        [activity] = self.add('Meditar')
        activity = self.board.update_activity(activity.id, status='completed', actual_duration=15)
        self.assertIsNotNone(activity.completed_at)
        self.assertEqual(activity.actual_duration, 15)

    def test_mark_overdue_activities(self):
        self.add('Ontem', day=date(2026, 4, 14))
        [done] = self.add('Feito ontem', day=date(2026, 4, 14))
        self.board.toggle_status(done.id)
        self.add('Hoje')

        self.assertEqual(mark_overdue_activities(today=WEDNESDAY), 1)
        self.assertEqual(Activity.objects.get(title='Ontem').status, 'late')
        self.assertEqual(Activity.objects.get(title='Feito ontem').status, 'completed')
        self.assertEqual(Activity.objects.get(title='Hoje').status, 'pending')


class DeleteTests(ActivityBoardTestCase):

    def test_delete_activity(self):
        [activity] = self.add('Remover')
        self.assertTrue(self.board.delete_activity(activity.id))
        self.assertFalse(self.board.delete_activity(activity.id))

    def test_delete_routine_requires_confirmation(self):
        created = self.add('Academia', type='routine', week_days=['wednesday'], end_date=date(2026, 4, 29))
        self.add('Avulsa')
        with self.assertRaises(ConfirmationRequired):
            self.board.delete_routine(created[0].routine_id)
        self.assertEqual(self.board.delete_routine(created[0].routine_id, confirm=True), 3)
        self.assertEqual(list(self.board.activities().values_list('title', flat=True)), ['Avulsa'])


class BoardViewTests(ActivityBoardTestCase):

    def test_daily_activities_include_todays_routines(self):
        self.add('Diária de hoje')
        self.add('Diária de amanhã', day=date(2026, 4, 16))
        self.add('Academia', type='routine', day=date(2026, 4, 13),
                 week_days=['monday', 'wednesday'], end_date=date(2026, 4, 19))
        self.add('Meta', type='goal')

        titles = [a.title for a in self.board.daily_activities(today=WEDNESDAY)]
        self.assertEqual(titles, ['Diária de hoje', 'Academia'])

    def test_goals_sorted_by_priority(self):
        self.add('Baixa', type='goal', priority='low')
        self.add('Alta', type='goal', priority='high')
        self.add('Média', type='goal', priority='medium')
        self.assertEqual([a.title for a in self.board.goals()], ['Alta', 'Média', 'Baixa'])

    def test_priority_activities_this_week(self):
        self.add('Sexta média', type='priority', day=date(2026, 4, 17), priority='medium')
        self.add('Segunda alta', type='priority', day=date(2026, 4, 13), priority='high')
        self.add('Sábado alta', type='priority', day=date(2026, 4, 18), priority='high')
        self.add('Semana que vem', type='priority', day=date(2026, 4, 19), priority='high')

        titles = [a.title for a in self.board.priority_activities(today=WEDNESDAY)]
        self.assertEqual(titles, ['Segunda alta', 'Sábado alta', 'Sexta média'])

    def test_activities_by_date(self):
        self.add('Hoje')
        self.add('Amanhã', day=date(2026, 4, 16))
        self.assertEqual([a.title for a in self.board.activities_by_date(WEDNESDAY)], ['Hoje'])

    def test_completion_rate(self):
        [done] = self.add('Feita')
        self.add('Pendente')
        self.board.toggle_status(done.id)
        self.assertEqual(self.board.completion_rate(today=WEDNESDAY), {'completed': 1, 'total': 2})

    def test_productivity_data_covers_last_week(self):
        [done] = self.add('Feita')
        self.board.toggle_status(done.id)
        self.add('Pendente', day=date(2026, 4, 14))
        self.add('Antiga', day=date(2026, 4, 1))
        mark_overdue_activities(today=WEDNESDAY)

        data = self.board.productivity_data(today=WEDNESDAY)
        self.assertEqual(len(data), 7)
        self.assertEqual(data[0]['day'], 'Qui')
        self.assertEqual(data[-1]['day'], 'Qua')
        self.assertEqual(data[-1]['completed'], 1)
        self.assertEqual(data[-2]['late'], 1)
        self.assertEqual(sum(d['completed'] + d['pending'] + d['late'] for d in data), 2)


class ImportExportTests(ActivityBoardTestCase):

    def test_round_trip_keeps_routines_grouped(self):
        self.add('Meta', type='goal', tags=['saúde'], time=time(6, 0))
        self.add('Academia', type='routine', week_days=['wednesday'], end_date=date(2026, 4, 22))
        exported = self.board.export_data()

        other = User.objects.create_user(username='other', password='testpass123')
        other_board = ActivityBoard(other)
        self.assertEqual(other_board.import_data(exported), 3)

        routine = other_board.activities().filter(type='routine')
        self.assertEqual(routine.count(), 2)
        self.assertEqual(len(set(routine.values_list('routine_id', flat=True))), 1)
        self.assertNotEqual(routine.first().routine_id, self.board.activities().filter(type='routine').first().routine_id)
        self.assertEqual(other_board.activities().get(type='goal').tags, ['saúde'])

    def test_import_appends(self):
        self.add('Existente')
        payload = json.dumps({'activities': [{'title': 'Nova', 'type': 'daily', 'date': '2026-04-15'}]})
        self.assertEqual(self.board.import_data(payload), 1)
        self.assertEqual(self.board.activities().count(), 2)
        self.assertEqual(self.board.activities().get(title='Nova').order, 1)

    def test_invalid_imports_write_nothing(self):
        payloads = (
            'not json',
            json.dumps({'items': []}),
            json.dumps({'activities': ['text']}),
            json.dumps({'activities': [{'title': 'Sem data', 'type': 'daily'}]}),
            json.dumps({'activities': [{'title': 'Tipo', 'type': 'weekly', 'date': '2026-04-15'}]}),
            json.dumps({'activities': [{'title': 'Status', 'type': 'daily', 'date': '2026-04-15',
                                        'status': 'done'}]}),
            json.dumps({'activities': [{'title': 'Lista', 'type': 'daily', 'date': '2026-04-15',
                                        'status': ['completed']}]}),
            b'\xff\xfe{bad',
        )
        for payload in payloads:
            with self.subTest(payload=payload):
                with self.assertRaises(ImportFormatError):
                    self.board.import_data(payload)
        self.assertFalse(Activity.objects.exists())

    def test_clear_all_data(self):
        self.add('Apagar')
        with self.assertRaises(ConfirmationRequired):
            self.board.clear_all_data()
        self.assertTrue(self.board.activities().exists())
        self.board.clear_all_data(confirm=True)
        self.assertFalse(self.board.activities().exists())


class ScheduleTests(TestCase):

    @patch('activities.services.board.schedule')
    def test_overdue_check_is_scheduled_once(self, mock_schedule):
        self.assertTrue(schedule_daily_overdue_check())
        mock_schedule.assert_called_once()
        self.assertEqual(mock_schedule.call_args.args[0], 'activities.services.board.mark_overdue_activities')
