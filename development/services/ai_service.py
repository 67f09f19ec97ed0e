"""
Sophia AI Integration Service

Talks to an OpenAI-compatible chat completions endpoint for two purposes:
generating a structured development plan from a free-text objective, and
answering chat messages as the Sophia assistant with a summary of the
user's current state. Chat requests fall back to rule-based replies when
the API key is missing or the API fails.
"""

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional

import httpx
from django.conf import settings
from django.utils import timezone

from personal.services.emotional import EmotionalJournal
from personal.storage import LocalRepository

from ..models import DevelopmentPlan, Habit, Milestone, SophiaMessage
from .field_mapper import from_storage_form

logger = logging.getLogger(__name__)

AI_PLAN_DURATION_DAYS = 180

SOPHIA_SYSTEM_PROMPT = """Você é Sophia, uma assistente amigável e empática que ajuda as pessoas a se desenvolverem.

1. Personalidade
- Seja amigável e casual, como uma amiga próxima
- Adapte seu tom ao contexto e demonstre empatia

2. Respostas
- Para perguntas simples, seja direta e concisa
- Para assuntos complexos, forneça explicações mais detalhadas
- Personalize com base no estado do usuário

3. Interação
- Faça perguntas de acompanhamento quando relevante
- Celebre conquistas e progressos
- Mantenha um tom encorajador e positivo

4. Acesso aos dados
- Você recebe o estado atual do usuário: humor, objetivos, hábitos do dia e marcos concluídos
- Use essas informações para dar sugestões relevantes, nunca diga que não tem acesso a elas"""

PLAN_SYSTEM_PROMPT = """Você é um coach de carreira especialista e um sistema de RPG.
Crie um plano de desenvolvimento em JSON estritamente estruturado, sem texto adicional.

Formato JSON esperado:
{
    "title": "Título do plano",
    "skills": [
        {"tempId": "s1", "name": "Habilidade principal", "parentId": null},
        {"tempId": "s2", "name": "Sub-habilidade", "parentId": "s1"}
    ],
    "habits": [
        {"title": "...", "description": "...", "frequency": "daily", "linkedSkillTempId": "s2"}
    ],
    "milestones": [
        {"title": "...", "description": "...", "requiredSkillTempId": "s1", "requiredLevel": 2}
    ]
}

Regras: exatamente uma habilidade sem parentId; frequency é "daily" ou "weekly"."""

FALLBACK_ERROR_REPLY = "Desculpa, tô com uma dificuldade técnica aqui. Vamos tentar de novo em um minutinho?"
EMPTY_REPLY = "Ops! Tive um probleminha aqui. Pode tentar de novo?"


@dataclass
class AIPlanResponse:
    """Structured result of an AI plan generation."""
    success: bool
    plan: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None


@dataclass
class SophiaReply:
    """Structured Sophia chat reply."""
    success: bool
    response: str
    used_fallback: bool = False
    error_message: Optional[str] = None


@dataclass
class AIPlanRows:
    """Storage-form rows produced from an AI plan."""
    plan: Dict[str, Any]
    skills: List[Dict[str, Any]] = field(default_factory=list)
    habits: List[Dict[str, Any]] = field(default_factory=list)
    milestones: List[Dict[str, Any]] = field(default_factory=list)


class SophiaAPIError(Exception):
    """Custom exception for chat completion API errors."""
    pass


def strip_code_fences(content: str) -> str:
    content = content.strip()
    if content.startswith('```json'):
        content = content[7:]
    elif content.startswith('```'):
        content = content[3:]
    if content.endswith('```'):
        content = content[:-3]
    return content.strip()


def _normalize_keys(value):
    """Recursively convert snake_case keys of AI JSON to camelCase."""
    if isinstance(value, dict):
        return {key: _normalize_keys(item) for key, item in from_storage_form(value).items()}
    if isinstance(value, list):
        return [_normalize_keys(item) for item in value]
    return value


class SophiaService:
    """Service for interacting with the chat completions API."""

    def __init__(self):
        self.api_key = settings.SOPHIA_API_KEY
        self.api_url = settings.SOPHIA_API_URL
        self.model = settings.SOPHIA_MODEL
        self.timeout = settings.SOPHIA_TIMEOUT

        if not self.api_key:
            logger.warning("Sophia API key not configured")

    async def call_chat_api(self, messages: List[Dict[str, str]], temperature: float = 0.7,
                            max_tokens: int = 1500) -> Dict[str, Any]:
        """Make async HTTP call to the chat completions API."""

        if not self.api_key:
            raise SophiaAPIError("Sophia API key not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                logger.info(f"Making chat completion request to {self.api_url}")
                response = await client.post(self.api_url, headers=headers, json=payload)
                response.raise_for_status()
                return response.json()

            except httpx.TimeoutException:
                logger.error("Chat completion request timed out")
                raise SophiaAPIError("API request timed out")
            except httpx.HTTPStatusError as e:
                error_msg = f"HTTP {e.response.status_code}: {e.response.text}"
                logger.error(f"Chat completion HTTP error: {error_msg}")
                raise SophiaAPIError(error_msg)
            except httpx.HTTPError as e:
                logger.error(f"Chat completion transport error: {e}")
                raise SophiaAPIError(f"Transport error: {str(e)}")
            except json.JSONDecodeError as e:
                logger.error(f"Chat completion API returned invalid JSON: {e}")
                raise SophiaAPIError(f"Invalid JSON response: {str(e)}")

    @staticmethod
    def extract_content(api_response: Dict[str, Any]) -> str:
        choices = api_response.get("choices") or []
        if not choices:
            raise SophiaAPIError("Invalid API response format: no choices")
        return (choices[0].get("message") or {}).get("content") or ""

    # ------------------------------------------------------------------
    # Plan generation
    # ------------------------------------------------------------------

    def create_plan_messages(self, objective: str, current_level: str, time_available: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": PLAN_SYSTEM_PROMPT},
            {"role": "user", "content": f"Objetivo: {objective}, Nível: {current_level}, Tempo: {time_available}"},
        ]

    def parse_plan_response(self, api_response: Dict[str, Any]) -> AIPlanResponse:
        """Parse the model output into a camelCase plan dict."""
        try:
            content = strip_code_fences(self.extract_content(api_response))
            if not content:
                raise ValueError("Empty content in API response")
            ai_data = json.loads(content)
            if not isinstance(ai_data, dict):
                raise ValueError("Plan JSON must be an object")
            return AIPlanResponse(success=True, plan=_normalize_keys(ai_data))

        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse AI plan as JSON: {e}")
            return AIPlanResponse(success=False, error_message=f"JSON parse error: {str(e)}")
        except (SophiaAPIError, ValueError) as e:
            logger.error(f"Invalid AI plan response: {e}")
            return AIPlanResponse(success=False, error_message=str(e))

    async def generate_plan(self, objective: str, current_level: str, time_available: str) -> AIPlanResponse:
        """
        Ask the model for a structured development plan.

        Returns:
            AIPlanResponse with the camelCase plan dict or error information
        """
        if not objective or not objective.strip():
            return AIPlanResponse(success=False, error_message="No objective provided")

        try:
            api_response = await self.call_chat_api(
                self.create_plan_messages(objective, current_level, time_available), temperature=0.7
            )
        except SophiaAPIError as e:
            logger.error(f"Plan generation API error: {e}")
            return AIPlanResponse(success=False, error_message=str(e))

        result = self.parse_plan_response(api_response)
        if result.success:
            logger.info(
                f"AI plan received: {len(result.plan.get('skills') or [])} skills, "
                f"{len(result.plan.get('habits') or [])} habits, "
                f"{len(result.plan.get('milestones') or [])} milestones"
            )
        return result

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    @staticmethod
    def format_user_state(user_state: Dict[str, Any]) -> str:
        habits = user_state.get('habits', {})
        return (
            "Estado atual do usuário:\n"
            f"- Humor: {user_state.get('mood', 'neutral')}\n"
            f"- Bem-estar: {user_state.get('wellbeingScore', 50)}/100\n"
            f"- Nível de estresse: {round(user_state.get('stressLevel', 0.5) * 100)}%\n"
            f"- Objetivos: {', '.join(user_state.get('goals', [])) or 'nenhum'}\n"
            f"- Marcos concluídos: {user_state.get('completedMilestones', 0)}\n"
            "Hábitos do dia:\n"
            f"- Total: {habits.get('total', 0)}\n"
            f"- Concluídos: {habits.get('completed', 0)}\n"
            f"- Pendentes: {habits.get('pending', 0)}"
        )

    def build_chat_messages(self, message: str, history: List[Dict[str, str]],
                            user_state: Dict[str, Any]) -> List[Dict[str, str]]:
        messages = [
            {"role": "system", "content": SOPHIA_SYSTEM_PROMPT},
            {"role": "system", "content": self.format_user_state(user_state)},
        ]
        for turn in history:
            role = 'user' if turn.get('role') == 'user' else 'assistant'
            messages.append({"role": role, "content": turn.get('content', '')})
        messages.append({"role": "user", "content": message})
        return messages

    async def get_chat_response(self, message: str, history: List[Dict[str, str]],
                                user_state: Dict[str, Any]) -> SophiaReply:
        """
        Get Sophia's answer to ``message``.

        Args:
            message: The user's chat message
            history: Prior turns as ``{'role', 'content'}`` dicts, oldest first
            user_state: Snapshot produced by ``build_user_state``
        """
        if not self.api_key:
            logger.warning("Sophia API key not configured, providing fallback reply")
            return self._create_fallback_reply(message, user_state)

        try:
            api_response = await self.call_chat_api(
                self.build_chat_messages(message, history, user_state), temperature=0.8, max_tokens=500
            )
            content = self.extract_content(api_response).strip()
            return SophiaReply(success=True, response=content or EMPTY_REPLY)
        except SophiaAPIError as e:
            logger.error(f"Sophia chat API error: {e}")
            reply = self._create_fallback_reply(message, user_state)
            reply.error_message = str(e)
            return reply

    def _create_fallback_reply(self, message: str, user_state: Dict[str, Any]) -> SophiaReply:
        """Rule-based reply used when the API is unavailable."""
        text = message.lower()
        habits = user_state.get('habits', {})
        goals = user_state.get('goals', [])

        if any(word in text for word in ('hábito', 'habito', 'rotina')):
            if habits.get('pending'):
                response = (
                    f"Você ainda tem {habits['pending']} hábito(s) para hoje. "
                    "Que tal começar pelo mais rápido?"
                )
            else:
                response = "Todos os hábitos de hoje estão em dia. Mandou bem!"
        elif any(word in text for word in ('objetivo', 'meta', 'plano')):
            if goals:
                response = f"Seus objetivos atuais são: {', '.join(goals)}. Qual deles vamos priorizar hoje?"
            else:
                response = "Você ainda não tem um plano de desenvolvimento. Que tal criar o primeiro?"
        elif any(word in text for word in ('triste', 'ansios', 'estress', 'cansad')) or user_state.get('mood') == 'negative':
            response = (
                "Sinto muito que as coisas estejam pesadas. Uma pausa curta e uma respiração "
                "profunda podem ajudar. Quer conversar sobre o que está acontecendo?"
            )
        else:
            response = (
                f"Estou aqui para ajudar! Hoje você tem {habits.get('pending', 0)} hábito(s) pendente(s) "
                f"e {user_state.get('completedMilestones', 0)} marco(s) já concluído(s)."
            )

        return SophiaReply(success=True, response=response, used_fallback=True)


def _text(value, limit=None):
    """Coerce a value from the model output to text, truncated to ``limit``."""
    if value is None or value == '':
        return None
    return str(value)[:limit]


def _parents_first(skills: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    ordered, placed = [], set()
    pending = list(skills)
    while pending:
        ready = [skill for skill in pending if skill['parent_id'] is None or skill['parent_id'] in placed]
        if not ready:
            # Parent cycle: the remaining rows hang from the root, the first one becomes root if none exists
            if not ordered:
                pending[0]['parent_id'] = None
            root_id = ordered[0]['id'] if ordered else pending[0]['id']
            for skill in pending:
                if skill['id'] != root_id:
                    skill['parent_id'] = root_id
            ready = pending
        for skill in ready:
            ordered.append(skill)
            placed.add(skill['id'])
        pending = [skill for skill in pending if skill['id'] not in placed]
    return ordered


def build_ai_plan_rows(ai_data: Dict[str, Any], objective: str, user_id, today: date,
                       id_factory: Callable[[], Any] = uuid.uuid4) -> AIPlanRows:
    """
    Turn an AI plan (camelCase keys) into storage-form rows.

    The AI refers to skills by ``tempId``. Every reference is remapped to a
    fresh id; unknown references become None. The plan keeps a single root
    skill: extra parentless skills are attached under the first one.
    """
    plan_id = id_factory()
    plan = {
        'id': plan_id,
        'user_id': user_id,
        'title': _text(ai_data.get('title') or objective, 255),
        'description': f"Plano gerado via IA: {objective}",
        'category': 'custom',
        'start_date': today,
        'target_date': today + timedelta(days=AI_PLAN_DURATION_DAYS),
        'progress': 0,
    }

    skill_ids = {}
    raw_skills = [dict(skill) for skill in ai_data.get('skills') or [] if isinstance(skill, dict) and skill.get('name')]
    for skill in raw_skills:
        new_id = id_factory()
        if skill.get('tempId') is not None:
            skill_ids[str(skill['tempId'])] = new_id
        skill['_id'] = new_id

    skills, root_id = [], None
    for skill in raw_skills:
        parent_id = skill_ids.get(str(skill.get('parentId'))) if skill.get('parentId') is not None else None
        if parent_id is None:
            if root_id is None:
                root_id = skill['_id']
            else:
                parent_id = root_id
        skills.append({
            'id': skill['_id'],
            'plan_id': plan_id,
            'parent_id': parent_id,
            'name': _text(skill['name'], 255),
            'level': 1,
            'progress': 0,
            'is_custom': True,
        })

    if not skills:
        root_id = id_factory()
        skills.append({
            'id': root_id, 'plan_id': plan_id, 'parent_id': None, 'name': plan['title'],
            'level': 1, 'progress': 0, 'is_custom': True,
        })

    def skill_ref(temp_id):
        return skill_ids.get(str(temp_id)) if temp_id is not None else None

    habits = [
        {
            'id': id_factory(),
            'plan_id': plan_id,
            'title': _text(habit['title'], 255),
            'description': _text(habit.get('description')),
            'frequency': habit.get('frequency') if habit.get('frequency') in ('daily', 'weekly') else 'daily',
            'time_of_day': _text(habit.get('timeOfDay'), 20),
            'streak': 0,
            'last_completed': None,
            'linked_skill_id': skill_ref(habit.get('linkedSkillTempId')),
            'xp_reward': 10,
            'is_custom': True,
        }
        for habit in ai_data.get('habits') or [] if isinstance(habit, dict) and habit.get('title')
    ]

    milestones = []
    for milestone in ai_data.get('milestones') or []:
        if not isinstance(milestone, dict) or not milestone.get('title'):
            continue
        try:
            required_level = max(1, int(milestone.get('requiredLevel') or 1))
        except (TypeError, ValueError):
            required_level = 1
        milestones.append({
            'id': id_factory(),
            'plan_id': plan_id,
            'title': _text(milestone['title'], 255),
            'description': _text(milestone.get('description')),
            'completed': False,
            'due_date': None,
            'completed_date': None,
            'is_custom': True,
            'required_skill_id': skill_ref(milestone.get('requiredSkillTempId')),
            'required_level': required_level,
        })

    return AIPlanRows(plan=plan, skills=_parents_first(skills), habits=habits, milestones=milestones)


def build_user_state(user) -> Dict[str, Any]:
    """Snapshot of the user's state that accompanies every chat message."""
    today = timezone.localdate()
    journal = EmotionalJournal(LocalRepository.for_user(user, 'emotional'))
    wellbeing = journal.wellbeing_score()

    habits = list(Habit.objects.filter(plan__user=user))
    completed_today = sum(1 for habit in habits if habit.last_completed == today)
    due_today = [
        habit for habit in habits
        if habit.frequency == 'daily'
        or habit.last_completed is None
        or habit.last_completed <= today - timedelta(days=7)
        or habit.last_completed == today
    ]
    pending = sum(1 for habit in due_today if habit.last_completed != today)

    return {
        'mood': 'positive' if wellbeing >= 70 else 'neutral' if wellbeing >= 40 else 'negative',
        'wellbeingScore': wellbeing,
        'stressLevel': round(1 - wellbeing / 100, 2),
        'goals': list(DevelopmentPlan.objects.filter(user=user).values_list('title', flat=True)),
        'completedMilestones': Milestone.objects.filter(plan__user=user, completed=True).count(),
        'habits': {
            'total': len(due_today),
            'completed': completed_today,
            'pending': pending,
        },
    }


class SophiaConversation:
    """Persistent chat between a user and Sophia."""

    def __init__(self, user, service: Optional[SophiaService] = None):
        self.user = user
        self.service = service

    def history(self) -> List[Dict[str, Any]]:
        return [
            {'id': message.id, 'role': message.role, 'content': message.content,
             'createdAt': message.created_at}
            for message in self.user.sophia_messages.all()
        ]

    def send_message(self, content: str) -> SophiaReply:
        """Store the user turn, ask Sophia and store her answer."""
        history = [{'role': turn['role'], 'content': turn['content']} for turn in self.history()]
        user_state = build_user_state(self.user)
        SophiaMessage.objects.create(user=self.user, role='user', content=content, user_state=user_state)

        reply = get_chat_response_sync(content, history, user_state, service=self.service)
        SophiaMessage.objects.create(user=self.user, role='assistant', content=reply.response)
        return reply

    def clear(self) -> int:
        deleted, _ = self.user.sophia_messages.all().delete()
        logger.info(f"Cleared {deleted} Sophia messages for user {self.user.id}")
        return deleted


def _run(coroutine):
    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        return loop.run_until_complete(coroutine)
    finally:
        loop.close()


# Convenience functions for synchronous usage
def generate_plan_sync(objective: str, current_level: str, time_available: str,
                       service: Optional[SophiaService] = None) -> AIPlanResponse:
    """Synchronous wrapper for AI plan generation."""
    service = service or SophiaService()
    try:
        return _run(service.generate_plan(objective, current_level, time_available))
    except Exception as e:
        logger.error(f"Error in plan sync wrapper: {e}")
        return AIPlanResponse(success=False, error_message=str(e))


def get_chat_response_sync(message: str, history: List[Dict[str, str]], user_state: Dict[str, Any],
                           service: Optional[SophiaService] = None) -> SophiaReply:
    """Synchronous wrapper for Sophia chat replies."""
    service = service or SophiaService()
    try:
        return _run(service.get_chat_response(message, history, user_state))
    except Exception as e:
        logger.error(f"Error in chat sync wrapper: {e}")
        return SophiaReply(success=False, response=FALLBACK_ERROR_REPLY, error_message=str(e))
