"""
Starter content for new development plans.

Each category maps to a ``CategorySeed`` describing its root skill, optional
child skills, milestone templates and habit templates. Adding a category
means adding one entry to ``CATEGORY_SEEDS``.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from django.utils import timezone


@dataclass(frozen=True)
class MilestoneTemplate:
    title: str
    description: str
    days_from_start: int


@dataclass(frozen=True)
class HabitTemplate:
    title: str
    description: str
    frequency: str = 'daily'
    time_of_day: Optional[str] = None


@dataclass(frozen=True)
class CategorySeed:
    display_name: str
    root_skill: str
    child_skills: Tuple[str, ...]
    milestones: Tuple[MilestoneTemplate, ...]
    habits: Tuple[HabitTemplate, ...]


@dataclass
class PlanSeed:
    """Storage-form rows for one plan and its starter bundle."""
    plan: Dict[str, Any]
    milestones: List[Dict[str, Any]] = field(default_factory=list)
    habits: List[Dict[str, Any]] = field(default_factory=list)
    skills: List[Dict[str, Any]] = field(default_factory=list)


CATEGORY_SEEDS = {
    'programming': CategorySeed(
        display_name='Programação',
        root_skill='Desenvolvimento Web',
        child_skills=('Frontend', 'Backend'),
        milestones=(
            MilestoneTemplate('Fundamentos da linguagem', 'Dominar sintaxe, tipos e estruturas de controle', 30),
            MilestoneTemplate('Primeiro projeto completo', 'Construir e publicar uma aplicação pequena', 90),
            MilestoneTemplate('Portfólio profissional', 'Reunir três projetos documentados no portfólio', 180),
        ),
        habits=(
            HabitTemplate('Programar por 1 hora', 'Escrever código todos os dias', 'daily', 'morning'),
            HabitTemplate('Ler documentação técnica', 'Estudar a documentação de uma ferramenta', 'weekly', 'evening'),
        ),
    ),
    'languages': CategorySeed(
        display_name='Idiomas',
        root_skill='Idiomas',
        child_skills=(),
        milestones=(
            MilestoneTemplate('Vocabulário básico', 'Aprender as 500 palavras mais usadas', 30),
            MilestoneTemplate('Primeira conversa', 'Manter uma conversa de 10 minutos', 90),
            MilestoneTemplate('Leitura de um livro', 'Ler um livro curto no idioma estudado', 180),
        ),
        habits=(
            HabitTemplate('Praticar vocabulário', 'Revisar cartões de memorização', 'daily', 'morning'),
            HabitTemplate('Ouvir um podcast', 'Ouvir conteúdo nativo no idioma', 'daily', 'evening'),
        ),
    ),
    'exercises': CategorySeed(
        display_name='Exercícios',
        root_skill='Condicionamento Físico',
        child_skills=(),
        milestones=(
            MilestoneTemplate('Rotina estabelecida', 'Treinar três vezes por semana durante um mês', 30),
            MilestoneTemplate('Correr 5 km', 'Completar 5 km sem pausas', 90),
            MilestoneTemplate('Meta de resistência', 'Completar 10 km ou treino equivalente', 180),
        ),
        habits=(
            HabitTemplate('Treino diário', 'Pelo menos 30 minutos de atividade física', 'daily', 'morning'),
            HabitTemplate('Alongamento', 'Sessão de alongamento e mobilidade', 'daily', 'evening'),
        ),
    ),
    'other': CategorySeed(
        display_name='Desenvolvimento Pessoal',
        root_skill='Desenvolvimento Pessoal',
        child_skills=(),
        milestones=(
            MilestoneTemplate('Primeiro passo', 'Definir e iniciar a primeira etapa do objetivo', 30),
            MilestoneTemplate('Consolidação', 'Revisar o progresso e ajustar o plano', 90),
        ),
        habits=(
            HabitTemplate('Dedicar tempo ao objetivo', 'Reservar 30 minutos para o objetivo', 'daily', None),
            HabitTemplate('Revisão semanal', 'Avaliar os avanços da semana', 'weekly', None),
        ),
    ),
}


def _as_date(value):
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def generate_plan_seed(
    title: str,
    category: str,
    target_date,
    user_id,
    today: Optional[date] = None,
    id_factory: Callable[[], Any] = uuid.uuid4,
) -> PlanSeed:
    """
    Build the starter bundle for a new plan.

    Inputs are trusted: title, category and target date are validated by
    the caller. The result depends only on the arguments, ``today`` and the
    ids handed out by ``id_factory``.
    """
    seed = CATEGORY_SEEDS[category]
    today = today or timezone.localdate()
    plan_id = id_factory()

    plan = {
        'id': plan_id,
        'user_id': user_id,
        'title': title,
        'description': f"Jornada em {seed.display_name}",
        'category': category,
        'start_date': today,
        'target_date': _as_date(target_date),
        'progress': 0,
    }

    root_id = id_factory()
    skills = [{
        'id': root_id,
        'plan_id': plan_id,
        'parent_id': None,
        'name': seed.root_skill,
        'level': 1,
        'progress': 0,
        'is_custom': False,
    }]
    for name in seed.child_skills:
        skills.append({
            'id': id_factory(),
            'plan_id': plan_id,
            'parent_id': root_id,
            'name': name,
            'level': 1,
            'progress': 0,
            'is_custom': False,
        })

    milestones = [
        {
            'id': id_factory(),
            'plan_id': plan_id,
            'title': template.title,
            'description': template.description,
            'completed': False,
            'due_date': today + timedelta(days=template.days_from_start),
            'completed_date': None,
            'is_custom': False,
            'required_skill_id': None,
            'required_level': 1,
        }
        for template in seed.milestones
    ]

    habits = [
        {
            'id': id_factory(),
            'plan_id': plan_id,
            'title': template.title,
            'description': template.description,
            'frequency': template.frequency,
            'time_of_day': template.time_of_day,
            'streak': 0,
            'last_completed': None,
            'linked_skill_id': root_id,
            'xp_reward': 10,
            'is_custom': False,
        }
        for template in seed.habits
    ]

    return PlanSeed(plan=plan, milestones=milestones, habits=habits, skills=skills)
