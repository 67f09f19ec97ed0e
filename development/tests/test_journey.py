"""
Tests for the development journey orchestrator.

Covers plan creation, milestone toggling and its progress recalculation,
skill gating, habit completion and the write/refetch status handling.
"""

from datetime import date, datetime, timedelta
from unittest.mock import patch

from django.contrib.auth.models import User
from django.test import TestCase
from django.utils import timezone

from development.models import DevelopmentPlan, Habit, Milestone, Skill
from development.services.ai_service import AIPlanResponse
from development.services.gateway import GatewayError, GatewayErrorDetail, GatewayResponse, TableGateway
from development.services.journey import (
    MESSAGES,
    DevelopmentJourney,
    JourneyNotFoundError,
    JourneyStatus,
    MilestoneLockedError,
)
from development.services.progress import recalculate_plan_progress
from personal.storage import LocalRepository, MemoryStore


class JourneyTestCase(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username='journey', password='testpass123')
        self.repository = LocalRepository(MemoryStore(), 'development')
        self.journey = DevelopmentJourney(self.user, repository=self.repository)
        self.journey.refresh()

    def create_plan(self, title='Learn React', category='programming', days=90):
        self.assertTrue(self.journey.add_plan(title, category, timezone.localdate() + timedelta(days=days)))
        return next(plan for plan in self.journey.plans if plan['title'] == title)

    def root_of(self, plan):
        return self.journey.get_skills_for_plan(plan['id'])


class PlanLifecycleTests(JourneyTestCase):

    def test_learn_react_scenario(self):
        plan = self.create_plan()
        today = timezone.localdate()

        self.assertEqual(plan['progress'], 0)
        self.assertEqual(
            sorted(m['dueDate'] for m in plan['milestones']),
            [today + timedelta(days=days) for days in (30, 90, 180)],
        )
        self.assertEqual(len(plan['habits']), 2)
        tree = plan['skillTree']
        self.assertEqual(tree['name'], 'Desenvolvimento Web')
        self.assertEqual(sorted(child['name'] for child in tree['children']), ['Backend', 'Frontend'])
        self.assertEqual(len(self.journey.get_flat_skills(plan['id'])), 3)
        self.assertEqual(self.journey.status, JourneyStatus.READY)
        self.assertTrue(self.journey.write_confirmed)

    def test_new_plan_becomes_active_and_is_remembered(self):
        plan = self.create_plan()
        self.assertEqual(self.journey.active_plan_id, plan['id'])
        reloaded = DevelopmentJourney(self.user, repository=self.repository)
        reloaded.refresh()
        self.assertEqual(reloaded.active_plan['id'], plan['id'])

    def test_unknown_category_is_rejected(self):
        with self.assertRaises(ValueError):
            self.journey.add_plan('x', 'cooking', date(2030, 1, 1))
        self.assertFalse(DevelopmentPlan.objects.exists())

    def test_delete_plan_removes_its_bundle(self):
        plan = self.create_plan()
        self.assertTrue(self.journey.delete_plan(plan['id']))
        self.assertEqual(self.journey.plans, [])
        self.assertIsNone(self.journey.active_plan_id)
        self.assertFalse(Skill.objects.exists())
        self.assertFalse(Habit.objects.exists())

    def test_other_users_plans_are_invisible(self):
        plan = self.create_plan()
        other = DevelopmentJourney(User.objects.create_user(username='other', password='x'),
                                   repository=LocalRepository(MemoryStore(), 'development'))
        other.refresh()
        self.assertEqual(other.plans, [])
        with self.assertRaises(JourneyNotFoundError):
            other.delete_plan(plan['id'])

    def test_set_active_plan_requires_an_existing_plan(self):
        with self.assertRaises(JourneyNotFoundError):
            self.journey.set_active_plan('00000000-0000-0000-0000-000000000000')

    def test_ai_plan_is_created_with_a_single_root(self):
        ai_plan = {
            'title': 'Ciência de dados',
            'skills': [
                {'tempId': 's1', 'name': 'Python', 'parentId': None},
                {'tempId': 's2', 'name': 'Pandas', 'parentId': 's1'},
                {'tempId': 's3', 'name': 'Estatística', 'parentId': None},
            ],
            'habits': [{'title': 'Praticar', 'frequency': 'daily', 'linkedSkillTempId': 's2'}],
            'milestones': [{'title': 'Primeira análise', 'requiredSkillTempId': 's1', 'requiredLevel': 2}],
        }
        with patch('development.services.journey.generate_plan_sync',
                   return_value=AIPlanResponse(success=True, plan=ai_plan)):
            self.assertTrue(self.journey.generate_ai_plan('Ciência de dados', 'iniciante', '1h por dia'))

        plan = self.journey.active_plan
        self.assertEqual(plan['category'], 'custom')
        self.assertEqual(plan['skillTree']['name'], 'Python')
        self.assertEqual(len(self.journey.get_flat_skills(plan['id'])), 3)
        self.assertTrue(plan['milestones'][0]['isLocked'])
        pandas = next(s for s in self.journey.get_flat_skills(plan['id']) if s['name'] == 'Pandas')
        self.assertEqual(plan['habits'][0]['linkedSkillId'], pandas['id'])

    def test_ai_failure_sets_error_without_writing(self):
        with patch('development.services.journey.generate_plan_sync',
                   return_value=AIPlanResponse(success=False, error_message='HTTP 402')):
            self.assertFalse(self.journey.generate_ai_plan('x', 'y', 'z'))
        self.assertEqual(self.journey.error, MESSAGES['ai_plan'])
        self.assertFalse(DevelopmentPlan.objects.exists())


class MilestoneTests(JourneyTestCase):

    def test_toggle_sets_and_clears_completion_date(self):
        plan = self.create_plan()
        milestone = plan['milestones'][0]
        fixed_now = timezone.make_aware(datetime(2026, 5, 10, 15, 0))

        with patch('django.utils.timezone.now', return_value=fixed_now):
            self.assertTrue(self.journey.toggle_milestone(plan['id'], milestone['id']))
        toggled = next(m for m in self.journey.get_milestones_for_plan(plan['id']) if m['id'] == milestone['id'])
        self.assertTrue(toggled['completed'])
        self.assertEqual(toggled['completedDate'], date(2026, 5, 10))

        self.assertTrue(self.journey.toggle_milestone(plan['id'], milestone['id']))
        toggled = next(m for m in self.journey.get_milestones_for_plan(plan['id']) if m['id'] == milestone['id'])
        self.assertFalse(toggled['completed'])
        self.assertIsNone(toggled['completedDate'])

    def test_toggle_recalculates_progress_exactly_once(self):
        plan = self.create_plan()
        with patch('development.services.journey.recalculate_plan_progress',
                   wraps=recalculate_plan_progress) as spy:
            self.journey.toggle_milestone(plan['id'], plan['milestones'][0]['id'])
        spy.assert_called_once()
        self.assertEqual(spy.call_args[0][1], plan['id'])

    def test_progress_follows_completed_share(self):
        plan = self.create_plan()
        self.assertTrue(self.journey.add_custom_milestone(plan['id'], {'title': 'Quarto marco'}))
        milestones = self.journey.get_milestones_for_plan(plan['id'])
        self.assertEqual(len(milestones), 4)

        self.journey.toggle_milestone(plan['id'], milestones[0]['id'])
        self.assertEqual(self.journey.get_plan(plan['id'])['progress'], 25)
        self.journey.toggle_milestone(plan['id'], milestones[1]['id'])
        self.assertEqual(self.journey.get_plan(plan['id'])['progress'], 50)

    def test_every_milestone_mutation_recalculates(self):
        plan = self.create_plan()
        milestone = plan['milestones'][0]
        with patch('development.services.journey.recalculate_plan_progress',
                   wraps=recalculate_plan_progress) as spy:
            self.journey.add_custom_milestone(plan['id'], {'title': 'Extra'})
            self.journey.edit_milestone(plan['id'], milestone['id'], {'completed': True})
            self.journey.delete_milestone(plan['id'], milestone['id'])
        self.assertEqual(spy.call_count, 3)
        self.assertEqual(self.journey.get_plan(plan['id'])['progress'], 0)

    def test_edit_keeps_completion_date_consistent(self):
        plan = self.create_plan()
        milestone = plan['milestones'][0]
        self.journey.edit_milestone(plan['id'], milestone['id'], {'completed': True, 'title': 'Novo título'})
        edited = Milestone.objects.get(pk=milestone['id'])
        self.assertEqual(edited.title, 'Novo título')
        self.assertEqual(edited.completed_date, timezone.localdate())

        self.journey.edit_milestone(plan['id'], milestone['id'], {'completed': False})
        self.assertIsNone(Milestone.objects.get(pk=milestone['id']).completed_date)

    def test_edit_cannot_move_a_milestone_to_another_plan(self):
        plan = self.create_plan()
        other = self.create_plan('Correr', 'exercises')
        milestone = plan['milestones'][0]
        self.journey.edit_milestone(plan['id'], milestone['id'], {'planId': other['id'], 'title': 'Mesmo plano'})
        self.assertEqual(Milestone.objects.get(pk=milestone['id']).plan_id, plan['id'])

    def test_locked_milestone_cannot_be_toggled(self):
        plan = self.create_plan()
        root = self.root_of(plan)
        self.journey.add_custom_milestone(plan['id'], {
            'title': 'Projeto avançado', 'requiredSkillId': root['id'], 'requiredLevel': 3,
        })
        locked = next(m for m in self.journey.get_milestones_for_plan(plan['id']) if m['title'] == 'Projeto avançado')
        self.assertTrue(locked['isLocked'])
        with self.assertRaises(MilestoneLockedError):
            self.journey.toggle_milestone(plan['id'], locked['id'])

        self.journey.update_skill_progress(plan['id'], root['id'], 40)
        unlocked = next(m for m in self.journey.get_milestones_for_plan(plan['id']) if m['id'] == locked['id'])
        self.assertFalse(unlocked['isLocked'])

    def test_milestone_of_another_plan_is_not_found(self):
        plan = self.create_plan()
        other = self.create_plan('Correr', 'exercises')
        with self.assertRaises(JourneyNotFoundError):
            self.journey.toggle_milestone(other['id'], plan['milestones'][0]['id'])


class HabitTests(JourneyTestCase):

    def test_complete_habit_once_per_day(self):
        plan = self.create_plan()
        habit = plan['habits'][0]
        self.assertTrue(self.journey.complete_habit(plan['id'], habit['id']))
        self.assertFalse(self.journey.complete_habit(plan['id'], habit['id']))

        stored = Habit.objects.get(pk=habit['id'])
        self.assertEqual(stored.streak, 1)
        self.assertEqual(stored.last_completed, timezone.localdate())

    def test_completion_next_day_grows_the_streak(self):
        plan = self.create_plan()
        habit = plan['habits'][0]
        Habit.objects.filter(pk=habit['id']).update(streak=4, last_completed=timezone.localdate() - timedelta(days=1))
        self.journey.refresh()
        self.assertTrue(self.journey.complete_habit(plan['id'], habit['id']))
        self.assertEqual(Habit.objects.get(pk=habit['id']).streak, 5)

    def test_completion_rewards_the_linked_skill(self):
        plan = self.create_plan()
        Skill.objects.filter(pk=self.root_of(plan)['id']).update(progress=95, level=5)
        self.journey.refresh()
        self.journey.complete_habit(plan['id'], plan['habits'][0]['id'])
        root = Skill.objects.get(pk=self.root_of(plan)['id'])
        self.assertEqual(root.progress, 100)
        self.assertEqual(root.level, 6)

    def test_streak_cannot_be_negative(self):
        plan = self.create_plan()
        with self.assertRaises(ValueError):
            self.journey.update_habit_streak(plan['id'], plan['habits'][0]['id'], -1)
        self.assertTrue(self.journey.update_habit_streak(plan['id'], plan['habits'][0]['id'], 7))
        self.assertEqual(Habit.objects.get(pk=plan['habits'][0]['id']).streak, 7)

    def test_custom_habit_lifecycle(self):
        plan = self.create_plan()
        self.assertTrue(self.journey.add_custom_habit(plan['id'], {'title': 'Ler artigos', 'frequency': 'weekly'}))
        habit = next(h for h in self.journey.get_habits_for_plan(plan['id']) if h['title'] == 'Ler artigos')
        self.assertTrue(habit['isCustom'])
        self.assertEqual(habit['streak'], 0)

        self.assertTrue(self.journey.edit_habit(plan['id'], habit['id'], {'timeOfDay': 'evening'}))
        self.assertEqual(Habit.objects.get(pk=habit['id']).time_of_day, 'evening')
        self.assertTrue(self.journey.delete_habit(plan['id'], habit['id']))
        self.assertEqual(len(self.journey.get_habits_for_plan(plan['id'])), 2)


class SkillTests(JourneyTestCase):

    def test_parentless_custom_skill_goes_under_the_root(self):
        plan = self.create_plan()
        self.assertTrue(self.journey.add_custom_skill(plan['id'], None, {'name': 'DevOps', 'progress': 45}))
        tree = self.root_of(plan)
        devops = next(child for child in tree['children'] if child['name'] == 'DevOps')
        self.assertEqual(devops['level'], 3)
        self.assertTrue(devops['isCustom'])

    def test_custom_skill_under_a_given_parent(self):
        plan = self.create_plan()
        frontend = next(c for c in self.root_of(plan)['children'] if c['name'] == 'Frontend')
        self.journey.add_custom_skill(plan['id'], frontend['id'], {'name': 'React'})
        frontend = next(c for c in self.root_of(plan)['children'] if c['name'] == 'Frontend')
        self.assertEqual([c['name'] for c in frontend['children']], ['React'])

    def test_root_skill_cannot_be_deleted(self):
        plan = self.create_plan()
        root = self.root_of(plan)
        self.assertFalse(self.journey.delete_skill(plan['id'], root['id']))
        self.assertEqual(self.journey.error, MESSAGES['root_skill'])
        self.assertTrue(Skill.objects.filter(pk=root['id']).exists())

    def test_deleting_a_skill_removes_its_subtree(self):
        plan = self.create_plan()
        frontend = next(c for c in self.root_of(plan)['children'] if c['name'] == 'Frontend')
        self.journey.add_custom_skill(plan['id'], frontend['id'], {'name': 'React'})
        self.assertTrue(self.journey.delete_skill(plan['id'], frontend['id']))
        self.assertEqual(len(self.journey.get_flat_skills(plan['id'])), 2)

    def test_reparenting_rejects_cycles(self):
        plan = self.create_plan()
        root = self.root_of(plan)
        frontend = next(c for c in root['children'] if c['name'] == 'Frontend')
        backend = next(c for c in root['children'] if c['name'] == 'Backend')
        self.journey.add_custom_skill(plan['id'], frontend['id'], {'name': 'React'})
        react = next(s for s in self.journey.get_flat_skills(plan['id']) if s['name'] == 'React')

        with self.assertRaises(ValueError):
            self.journey.edit_skill(plan['id'], frontend['id'], {'parentId': react['id']})
        with self.assertRaises(ValueError):
            self.journey.edit_skill(plan['id'], root['id'], {'parentId': frontend['id']})
        with self.assertRaises(ValueError):
            self.journey.edit_skill(plan['id'], frontend['id'], {'parentId': None})

        self.assertTrue(self.journey.edit_skill(plan['id'], react['id'], {'parentId': backend['id']}))
        backend = next(c for c in self.root_of(plan)['children'] if c['name'] == 'Backend')
        self.assertEqual([c['name'] for c in backend['children']], ['React'])

    def test_progress_is_clamped_and_levels_follow(self):
        plan = self.create_plan()
        root = self.root_of(plan)
        self.journey.update_skill_progress(plan['id'], root['id'], 150)
        self.assertEqual(self.root_of(plan)['progress'], 100)
        self.assertEqual(self.root_of(plan)['level'], 6)
        self.journey.edit_skill(plan['id'], root['id'], {'progress': -5})
        self.assertEqual(self.root_of(plan)['level'], 1)


class WriteStatusTests(JourneyTestCase):

    def test_gateway_failure_keeps_prior_state(self):
        plan = self.create_plan()
        before = self.journey.plans
        failure = GatewayResponse(error=GatewayErrorDetail(message='db down', code='DatabaseError', table='milestones'))
        with patch.object(TableGateway, 'update', return_value=failure):
            confirmed = self.journey.toggle_milestone(plan['id'], plan['milestones'][0]['id'])

        self.assertFalse(confirmed)
        self.assertFalse(self.journey.write_confirmed)
        self.assertEqual(self.journey.status, JourneyStatus.ERROR)
        self.assertEqual(self.journey.error, MESSAGES['milestone'])
        self.assertIs(self.journey.plans, before)
        self.assertFalse(Milestone.objects.filter(completed=True).exists())

    def test_failed_refetch_after_confirmed_write_is_stale(self):
        plan = self.create_plan()
        with patch.object(DevelopmentJourney, '_fetch', side_effect=GatewayError('select failed')):
            confirmed = self.journey.toggle_milestone(plan['id'], plan['milestones'][0]['id'])

        self.assertTrue(confirmed)
        self.assertTrue(self.journey.write_confirmed)
        self.assertEqual(self.journey.status, JourneyStatus.STALE)
        self.assertTrue(Milestone.objects.filter(pk=plan['milestones'][0]['id'], completed=True).exists())

    def test_load_failure_sets_error(self):
        with patch.object(DevelopmentJourney, '_fetch', side_effect=GatewayError('select failed')):
            self.assertFalse(self.journey.refresh())
        self.assertEqual(self.journey.status, JourneyStatus.ERROR)
        self.assertEqual(self.journey.error, MESSAGES['load'])


class EditValidationTests(JourneyTestCase):

    def test_skill_level_is_derived_not_editable(self):
        plan = self.create_plan()
        root = self.root_of(plan)
        with self.assertRaises(ValueError) as ctx:
            self.journey.edit_skill(plan['id'], root['id'], {'level': 5})
        self.assertIn('level', str(ctx.exception))
        self.assertEqual(Skill.objects.get(pk=root['id']).level, 1)

    def test_habit_streak_accepts_numeric_text(self):
        plan = self.create_plan()
        habit = plan['habits'][0]
        self.assertTrue(self.journey.edit_habit(plan['id'], habit['id'], {'streak': '5'}))
        self.assertEqual(Habit.objects.get(pk=habit['id']).streak, 5)

        for streak in ('x', -1):
            with self.subTest(streak=streak):
                with self.assertRaises(ValueError):
                    self.journey.edit_habit(plan['id'], habit['id'], {'streak': streak})
        self.assertEqual(Habit.objects.get(pk=habit['id']).streak, 5)

    def test_milestone_values_are_cleaned(self):
        plan = self.create_plan()
        milestone = plan['milestones'][0]

        self.assertTrue(self.journey.edit_milestone(plan['id'], milestone['id'], {'completed': 'true'}))
        self.assertTrue(Milestone.objects.get(pk=milestone['id']).completed)
        self.assertTrue(self.journey.edit_milestone(plan['id'], milestone['id'], {'completed': 'false'}))
        stored = Milestone.objects.get(pk=milestone['id'])
        self.assertFalse(stored.completed)
        self.assertIsNone(stored.completed_date)

        self.assertTrue(self.journey.edit_milestone(plan['id'], milestone['id'], {'dueDate': '2027-01-10'}))
        self.assertEqual(Milestone.objects.get(pk=milestone['id']).due_date, date(2027, 1, 10))
        with self.assertRaises(ValueError):
            self.journey.edit_milestone(plan['id'], milestone['id'], {'dueDate': 'not-a-date'})
        self.assertEqual(Milestone.objects.get(pk=milestone['id']).due_date, date(2027, 1, 10))


class AIPlanShapeTests(JourneyTestCase):

    def test_non_text_values_become_text(self):
        ai_plan = {
            'title': 42,
            'skills': [{'tempId': 1, 'name': 7, 'parentId': None}],
            'habits': [{'title': 3.5, 'frequency': 'daily'}],
            'milestones': [],
        }
        with patch('development.services.journey.generate_plan_sync',
                   return_value=AIPlanResponse(success=True, plan=ai_plan)):
            self.assertTrue(self.journey.generate_ai_plan('Números', 'iniciante', '1h'))

        plan = self.journey.active_plan
        self.assertEqual(plan['title'], '42')
        self.assertEqual(plan['skillTree']['name'], '7')
        self.assertEqual(plan['habits'][0]['title'], '3.5')

    def test_unusable_shape_fails_without_writing(self):
        for ai_plan in (['not', 'an', 'object'], {'title': 'x', 'skills': 5}):
            with self.subTest(ai_plan=ai_plan):
                with patch('development.services.journey.generate_plan_sync',
                           return_value=AIPlanResponse(success=True, plan=ai_plan)):
                    self.assertFalse(self.journey.generate_ai_plan('x', 'y', 'z'))
                self.assertEqual(self.journey.error, MESSAGES['ai_plan'])
        self.assertFalse(DevelopmentPlan.objects.exists())
