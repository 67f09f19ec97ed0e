"""
Development journey orchestrator.

Holds a user's development plans in client form and mediates every change to
them. Each mutation follows the same path: write through the persistence
gateway, then refetch everything the user owns and rebuild the skill trees.
Nothing is updated optimistically and nothing is retried.
"""

import logging
import uuid
from typing import Any, Callable, Dict, List, Optional

from django.db import transaction
from django.utils import timezone

from personal.storage import LocalRepository

from ..forms import clean_edit
from .ai_service import build_ai_plan_rows, generate_plan_sync
from .field_mapper import (
    HABIT_FIELDS,
    MILESTONE_FIELDS,
    PLAN_FIELDS,
    SKILL_FIELDS,
    from_storage_form,
    to_storage_form,
)
from .gateway import GatewayError, PersistenceGateway
from .progress import recalculate_plan_progress
from .seeds import CATEGORY_SEEDS, generate_plan_seed
from .skill_tree import build_skill_tree, empty_skill_tree, flatten_skill_tree, skill_level

logger = logging.getLogger(__name__)


class JourneyStatus:
    IDLE = 'idle'
    LOADING = 'loading'
    READY = 'ready'
    ERROR = 'error'
    STALE = 'stale'


class MilestoneLockedError(Exception):
    """Raised when toggling a milestone whose required skill level is not reached."""

    def __init__(self, milestone):
        super().__init__(f"Milestone {milestone['id']} is locked")
        self.milestone = milestone


class JourneyNotFoundError(LookupError):
    """Raised when a plan, or an entity inside a plan, does not belong to the user."""


MESSAGES = {
    'load': "Não foi possível carregar seus planos de desenvolvimento.",
    'plan': "Não foi possível salvar o plano.",
    'ai_plan': "Falha ao gerar plano com IA. Verifique seus créditos ou tente novamente.",
    'delete_plan': "Não foi possível remover o plano.",
    'milestone': "Não foi possível salvar o marco.",
    'delete_milestone': "Não foi possível remover o marco.",
    'habit': "Não foi possível salvar o hábito.",
    'delete_habit': "Não foi possível remover o hábito.",
    'skill': "Não foi possível salvar a habilidade.",
    'delete_skill': "Não foi possível remover a habilidade.",
    'root_skill': "A habilidade raiz do plano não pode ser removida.",
    'progress': "Não foi possível atualizar o progresso do plano.",
}

# Client-form keys a caller may never overwrite through an edit
PROTECTED_FIELDS = ('id', 'planId', 'createdAt')


def _same_id(left, right) -> bool:
    return left is not None and right is not None and str(left) == str(right)


def _find(rows, entity_id):
    return next((row for row in rows if _same_id(row['id'], entity_id)), None)


class DevelopmentJourney:
    """
    In-memory view of a user's development plans.

    ``plans`` holds client-form dicts with nested ``milestones``, ``habits``
    and ``skillTree``. Mutating methods return True once the write is
    confirmed and False when it failed, with a user-facing message in
    ``error``. A confirmed write whose refetch failed leaves the journey
    ``stale``.
    """

    ACTIVE_PLAN_KEY = 'active_development_plan_id'

    def __init__(self, user, gateway: Optional[PersistenceGateway] = None,
                 repository: Optional[LocalRepository] = None):
        self.user = user
        self.gateway = gateway or PersistenceGateway()
        self.repository = repository or LocalRepository.for_user(user, 'development')
        self.plans: List[Dict[str, Any]] = []
        self.active_plan_id = None
        self.status = JourneyStatus.IDLE
        self.error: Optional[str] = None
        self.write_confirmed = False
        self._skill_rows: Dict[str, List[Dict[str, Any]]] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def refresh(self) -> bool:
        """Refetch every plan of the user and rebuild the in-memory state."""
        self.status = JourneyStatus.LOADING
        try:
            plans, skill_rows = self._fetch()
        except GatewayError as e:
            logger.error(f"Failed to load development plans for user {self.user.id}: {e}")
            self.status = JourneyStatus.ERROR
            self.error = MESSAGES['load']
            return False

        self.plans = plans
        self._skill_rows = skill_rows
        self.status = JourneyStatus.READY
        self.error = None
        self._restore_active_plan()
        return True

    def _fetch(self):
        plan_rows = self.gateway.table('development_plans').select(
            user_id=self.user.id, order_by=['created_at']
        ).unwrap()
        plans = [from_storage_form(row, PLAN_FIELDS) for row in plan_rows]
        if not plans:
            return [], {}

        plan_ids = [plan['id'] for plan in plans]
        milestones = [
            from_storage_form(row, MILESTONE_FIELDS)
            for row in self.gateway.table('milestones').select(plan_id=plan_ids, order_by=['created_at']).unwrap()
        ]
        habits = [
            from_storage_form(row, HABIT_FIELDS)
            for row in self.gateway.table('habits').select(plan_id=plan_ids, order_by=['created_at']).unwrap()
        ]
        skills = [
            from_storage_form(row, SKILL_FIELDS)
            for row in self.gateway.table('skills').select(plan_id=plan_ids, order_by=['created_at']).unwrap()
        ]

        skill_rows = {}
        for plan in plans:
            plan_skills = [skill for skill in skills if _same_id(skill['planId'], plan['id'])]
            skill_rows[str(plan['id'])] = plan_skills
            plan['milestones'] = [
                self._with_lock(milestone, plan_skills)
                for milestone in milestones if _same_id(milestone['planId'], plan['id'])
            ]
            plan['habits'] = [habit for habit in habits if _same_id(habit['planId'], plan['id'])]
            plan['skillTree'] = build_skill_tree(plan_skills) or empty_skill_tree(plan['id'])
        return plans, skill_rows

    @staticmethod
    def _with_lock(milestone, skills):
        milestone = dict(milestone)
        required_skill_id = milestone.get('requiredSkillId')
        skill = _find(skills, required_skill_id) if required_skill_id else None
        milestone['isLocked'] = bool(skill) and skill['level'] < (milestone.get('requiredLevel') or 1)
        return milestone

    def _restore_active_plan(self):
        saved_id = self.repository.load(self.ACTIVE_PLAN_KEY)
        if saved_id and _find(self.plans, saved_id):
            self.active_plan_id = _find(self.plans, saved_id)['id']
        elif self.plans:
            self.active_plan_id = self.plans[0]['id']
        else:
            self.active_plan_id = None

    # ------------------------------------------------------------------
    # Write pipeline
    # ------------------------------------------------------------------

    def _perform(self, failure_key: str, write: Callable[[], Any]) -> bool:
        """Run ``write`` atomically, then refetch. Returns whether the write was confirmed."""
        self.write_confirmed = False
        try:
            with transaction.atomic():
                write()
        except GatewayError as e:
            logger.error(f"Development write '{failure_key}' failed for user {self.user.id}: {e}")
            self.status = JourneyStatus.ERROR
            self.error = MESSAGES[failure_key]
            return False

        self.write_confirmed = True
        if not self.refresh():
            self.status = JourneyStatus.STALE
        return True

    def _fail(self, failure_key: str) -> bool:
        self.write_confirmed = False
        self.error = MESSAGES[failure_key]
        return False

    def _recalculate(self, plan_id):
        recalculate_plan_progress(self.gateway, plan_id)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_plan(self, plan_id) -> Optional[Dict[str, Any]]:
        return _find(self.plans, plan_id)

    def get_milestones_for_plan(self, plan_id) -> List[Dict[str, Any]]:
        plan = self.get_plan(plan_id)
        return plan['milestones'] if plan else []

    def get_habits_for_plan(self, plan_id) -> List[Dict[str, Any]]:
        plan = self.get_plan(plan_id)
        return plan['habits'] if plan else []

    def get_skills_for_plan(self, plan_id) -> Optional[Dict[str, Any]]:
        plan = self.get_plan(plan_id)
        return plan['skillTree'] if plan else None

    def get_flat_skills(self, plan_id) -> List[Dict[str, Any]]:
        return flatten_skill_tree(self.get_skills_for_plan(plan_id))

    @property
    def active_plan(self) -> Optional[Dict[str, Any]]:
        return self.get_plan(self.active_plan_id) if self.active_plan_id else None

    def _require_plan(self, plan_id):
        plan = self.get_plan(plan_id)
        if plan is None:
            raise JourneyNotFoundError(f"Plan {plan_id} not found")
        return plan

    def _require(self, plan_id, collection, entity_id):
        plan = self._require_plan(plan_id)
        if collection == 'skills':
            entity = _find(self._skill_rows.get(str(plan['id']), []), entity_id)
        else:
            entity = _find(plan[collection], entity_id)
        if entity is None:
            raise JourneyNotFoundError(f"{collection[:-1].capitalize()} {entity_id} not found in plan {plan_id}")
        return plan, entity

    def _root_skill(self, plan):
        rows = self._skill_rows.get(str(plan['id']), [])
        return next((skill for skill in rows if skill.get('parentId') is None), None)

    # ------------------------------------------------------------------
    # Plans
    # ------------------------------------------------------------------

    def set_active_plan(self, plan_id):
        plan = self._require_plan(plan_id)
        self.active_plan_id = plan['id']
        self.repository.save(self.ACTIVE_PLAN_KEY, str(plan['id']))

    def add_plan(self, title: str, category: str, target_date) -> bool:
        if category not in CATEGORY_SEEDS:
            raise ValueError(f"Unknown plan category: {category}")

        seed = generate_plan_seed(title, category, target_date, self.user.id)

        def write():
            self.gateway.table('development_plans').insert(seed.plan).unwrap()
            self.gateway.table('skills').insert(seed.skills).unwrap()
            self.gateway.table('milestones').insert(seed.milestones).unwrap()
            self.gateway.table('habits').insert(seed.habits).unwrap()

        if not self._perform('plan', write):
            return False
        logger.info(f"Plan '{title}' ({category}) created for user {self.user.id}")
        if self.get_plan(seed.plan['id']):
            self.set_active_plan(seed.plan['id'])
        return True

    def generate_ai_plan(self, objective: str, current_level: str, time_available: str) -> bool:
        result = generate_plan_sync(objective, current_level, time_available)
        if not result.success:
            logger.warning(f"AI plan generation failed for user {self.user.id}: {result.error_message}")
            return self._fail('ai_plan')

        try:
            rows = build_ai_plan_rows(result.plan, objective, self.user.id, timezone.localdate())
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f"AI plan for user {self.user.id} has an unusable shape: {e}")
            return self._fail('ai_plan')
        plan_id = rows.plan['id']

        def write():
            self.gateway.table('development_plans').insert(rows.plan).unwrap()
            if rows.skills:
                self.gateway.table('skills').insert(rows.skills).unwrap()
            if rows.habits:
                self.gateway.table('habits').insert(rows.habits).unwrap()
            if rows.milestones:
                self.gateway.table('milestones').insert(rows.milestones).unwrap()
            self._recalculate(plan_id)

        if not self._perform('ai_plan', write):
            return False
        if self.get_plan(plan_id):
            self.set_active_plan(plan_id)
        return True

    def delete_plan(self, plan_id) -> bool:
        plan = self._require_plan(plan_id)
        return self._perform(
            'delete_plan',
            lambda: self.gateway.table('development_plans').delete(id=plan['id'], user_id=self.user.id).unwrap(),
        )

    def recalculate_plan_progress(self, plan_id) -> bool:
        plan = self._require_plan(plan_id)
        return self._perform('progress', lambda: self._recalculate(plan['id']))

    # ------------------------------------------------------------------
    # Milestones
    # ------------------------------------------------------------------

    def toggle_milestone(self, plan_id, milestone_id) -> bool:
        plan, milestone = self._require(plan_id, 'milestones', milestone_id)
        if milestone.get('isLocked'):
            raise MilestoneLockedError(milestone)

        completed = not milestone['completed']
        patch = {
            'completed': completed,
            'completed_date': timezone.localdate() if completed else None,
        }

        def write():
            self.gateway.table('milestones').update(patch, id=milestone['id'], plan_id=plan['id']).unwrap()
            self._recalculate(plan['id'])

        return self._perform('milestone', write)

    def add_custom_milestone(self, plan_id, milestone: Dict[str, Any]) -> bool:
        plan = self._require_plan(plan_id)
        row = to_storage_form({
            'requiredLevel': 1,
            **milestone,
            'id': uuid.uuid4(),
            'planId': plan['id'],
            'completed': False,
            'completedDate': None,
            'isCustom': True,
        }, MILESTONE_FIELDS)

        def write():
            self.gateway.table('milestones').insert(row).unwrap()
            self._recalculate(plan['id'])

        return self._perform('milestone', write)

    def edit_milestone(self, plan_id, milestone_id, updates: Dict[str, Any]) -> bool:
        plan, milestone = self._require(plan_id, 'milestones', milestone_id)
        patch = self._patch(updates, MILESTONE_FIELDS)
        if 'completed' in patch:
            if patch['completed']:
                patch.setdefault('completed_date', milestone.get('completedDate') or timezone.localdate())
            else:
                patch['completed_date'] = None

        def write():
            self.gateway.table('milestones').update(patch, id=milestone['id'], plan_id=plan['id']).unwrap()
            self._recalculate(plan['id'])

        return self._perform('milestone', write)

    def delete_milestone(self, plan_id, milestone_id) -> bool:
        plan, milestone = self._require(plan_id, 'milestones', milestone_id)

        def write():
            self.gateway.table('milestones').delete(id=milestone['id'], plan_id=plan['id']).unwrap()
            self._recalculate(plan['id'])

        return self._perform('delete_milestone', write)

    # ------------------------------------------------------------------
    # Habits
    # ------------------------------------------------------------------

    def complete_habit(self, plan_id, habit_id) -> bool:
        """
        Mark a habit done for today.

        A habit counts once per calendar day: a second call on the same day
        returns False without writing. The streak grows by one and the linked
        skill, if any, gains ``xpReward`` progress points.
        """
        plan, habit = self._require(plan_id, 'habits', habit_id)
        today = timezone.localdate()
        if habit.get('lastCompleted') == today:
            return False

        def write():
            self.gateway.table('habits').update(
                {'streak': habit['streak'] + 1, 'last_completed': today},
                id=habit['id'], plan_id=plan['id'],
            ).unwrap()
            if habit.get('linkedSkillId'):
                skills = self.gateway.table('skills').select(id=habit['linkedSkillId'], plan_id=plan['id']).unwrap()
                if skills:
                    progress = min(100, skills[0]['progress'] + (habit.get('xpReward') or 10))
                    self.gateway.table('skills').update(
                        {'progress': progress, 'level': skill_level(progress)}, id=skills[0]['id'],
                    ).unwrap()

        return self._perform('habit', write)

    def update_habit_streak(self, plan_id, habit_id, streak: int) -> bool:
        if streak < 0:
            raise ValueError("Streak cannot be negative")
        plan, habit = self._require(plan_id, 'habits', habit_id)
        return self._perform(
            'habit',
            lambda: self.gateway.table('habits').update(
                {'streak': streak}, id=habit['id'], plan_id=plan['id']
            ).unwrap(),
        )

    def add_custom_habit(self, plan_id, habit: Dict[str, Any]) -> bool:
        plan = self._require_plan(plan_id)
        row = to_storage_form({
            'frequency': 'daily',
            'xpReward': 10,
            **habit,
            'id': uuid.uuid4(),
            'planId': plan['id'],
            'streak': 0,
            'lastCompleted': None,
            'isCustom': True,
        }, HABIT_FIELDS)
        return self._perform('habit', lambda: self.gateway.table('habits').insert(row).unwrap())

    def edit_habit(self, plan_id, habit_id, updates: Dict[str, Any]) -> bool:
        plan, habit = self._require(plan_id, 'habits', habit_id)
        patch = self._patch(updates, HABIT_FIELDS)
        return self._perform(
            'habit',
            lambda: self.gateway.table('habits').update(patch, id=habit['id'], plan_id=plan['id']).unwrap(),
        )

    def delete_habit(self, plan_id, habit_id) -> bool:
        plan, habit = self._require(plan_id, 'habits', habit_id)
        return self._perform(
            'delete_habit',
            lambda: self.gateway.table('habits').delete(id=habit['id'], plan_id=plan['id']).unwrap(),
        )

    # ------------------------------------------------------------------
    # Skills
    # ------------------------------------------------------------------

    def add_custom_skill(self, plan_id, parent_skill_id, skill: Dict[str, Any]) -> bool:
        """
        Add a skill under ``parent_skill_id``.

        Without a parent the skill goes under the plan's root, or becomes the
        root when the plan has none yet.
        """
        plan = self._require_plan(plan_id)
        if parent_skill_id is not None:
            parent_id = self._require(plan_id, 'skills', parent_skill_id)[1]['id']
        else:
            root = self._root_skill(plan)
            parent_id = root['id'] if root else None

        progress = min(100, max(0, int(skill.get('progress') or 0)))
        row = to_storage_form({
            **skill,
            'id': uuid.uuid4(),
            'planId': plan['id'],
            'parentId': parent_id,
            'progress': progress,
            'level': skill_level(progress),
            'isCustom': True,
        }, SKILL_FIELDS)
        return self._perform('skill', lambda: self.gateway.table('skills').insert(row).unwrap())

    def edit_skill(self, plan_id, skill_id, updates: Dict[str, Any]) -> bool:
        plan, skill = self._require(plan_id, 'skills', skill_id)
        patch = self._patch(updates, SKILL_FIELDS)
        if 'parent_id' in patch:
            self._check_reparent(plan, skill, patch['parent_id'])
        if 'progress' in patch:
            patch['progress'] = min(100, max(0, int(patch['progress'] or 0)))
            patch['level'] = skill_level(patch['progress'])
        return self._perform(
            'skill',
            lambda: self.gateway.table('skills').update(patch, id=skill['id'], plan_id=plan['id']).unwrap(),
        )

    def _check_reparent(self, plan, skill, parent_id):
        if skill.get('parentId') is None:
            raise ValueError("The root skill cannot be moved")
        if parent_id is None:
            raise ValueError("A plan has a single root skill")
        node = _find(flatten_skill_tree(plan['skillTree']), skill['id'])
        if any(_same_id(descendant['id'], parent_id) for descendant in flatten_skill_tree(node)):
            raise ValueError("A skill cannot be moved under itself or its descendants")
        self._require(plan['id'], 'skills', parent_id)

    def update_skill_progress(self, plan_id, skill_id, progress: int) -> bool:
        plan, skill = self._require(plan_id, 'skills', skill_id)
        progress = min(100, max(0, int(progress)))
        return self._perform(
            'skill',
            lambda: self.gateway.table('skills').update(
                {'progress': progress, 'level': skill_level(progress)}, id=skill['id'], plan_id=plan['id'],
            ).unwrap(),
        )

    def delete_skill(self, plan_id, skill_id) -> bool:
        """Delete a skill and, through the cascade, its descendants. The root stays."""
        plan, skill = self._require(plan_id, 'skills', skill_id)
        if skill.get('parentId') is None:
            return self._fail('root_skill')
        return self._perform(
            'delete_skill',
            lambda: self.gateway.table('skills').delete(id=skill['id'], plan_id=plan['id']).unwrap(),
        )

    @staticmethod
    def _patch(updates, field_map):
        updates = {key: value for key, value in updates.items() if key not in PROTECTED_FIELDS}
        return to_storage_form(clean_edit(field_map.table, updates, field_map.to_storage), field_map)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def as_dict(self) -> Dict[str, Any]:
        return {
            'plans': self.plans,
            'activePlanId': self.active_plan_id,
            'status': self.status,
            'error': self.error,
            'writeConfirmed': self.write_confirmed,
        }
