from datetime import date, timedelta
from unittest.mock import patch

from django.contrib.auth.models import User
from django.test import TestCase

from development.models import DevelopmentPlan, Habit
from development.services.streaks import (
    STREAK_CHECK_FUNC,
    reset_broken_streaks,
    schedule_daily_streak_check,
)


class StreakResetTestCase(TestCase):

    def setUp(self):
        user = User.objects.create_user(username='streaks', password='testpass123')
        self.plan = DevelopmentPlan.objects.create(
            user=user, title='Plano', start_date=date(2026, 1, 1), target_date=date(2026, 12, 31)
        )
        self.today = date(2026, 4, 15)

    def habit(self, frequency, days_ago, streak=5):
        last = self.today - timedelta(days=days_ago) if days_ago is not None else None
        return Habit.objects.create(plan=self.plan, title=f'{frequency}-{days_ago}', frequency=frequency,
                                    streak=streak, last_completed=last)

    def test_daily_habits_break_after_a_missed_day(self):
        kept = self.habit('daily', 1)
        broken = self.habit('daily', 2)
        self.assertEqual(reset_broken_streaks(self.today), 1)
        kept.refresh_from_db()
        broken.refresh_from_db()
        self.assertEqual(kept.streak, 5)
        self.assertEqual(broken.streak, 0)

    def test_weekly_habits_have_a_seven_day_window(self):
        kept = self.habit('weekly', 7)
        broken = self.habit('weekly', 8)
        reset_broken_streaks(self.today)
        kept.refresh_from_db()
        broken.refresh_from_db()
        self.assertEqual(kept.streak, 5)
        self.assertEqual(broken.streak, 0)

    def test_never_completed_habit_with_streak_is_reset(self):
        self.habit('daily', None, streak=2)
        self.assertEqual(reset_broken_streaks(self.today), 1)

    @patch('development.services.streaks.schedule')
    def test_schedule_is_registered_once(self, mock_schedule):
        self.assertTrue(schedule_daily_streak_check())
        mock_schedule.assert_called_once()
        self.assertEqual(mock_schedule.call_args[0][0], STREAK_CHECK_FUNC)
