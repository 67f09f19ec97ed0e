import json
import logging
from functools import wraps

from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from ..forms import AIPlanForm, HabitForm, MilestoneForm, NewPlanForm, SkillForm
from ..services.field_mapper import UnknownFieldError
from ..services.journey import (
    DevelopmentJourney, JourneyNotFoundError, JourneyStatus, MilestoneLockedError,
)

logger = logging.getLogger(__name__)


def _load_journey(request):
    journey = DevelopmentJourney(request.user)
    journey.refresh()
    return journey


def _journey_response(journey, confirmed, status=200):
    """Serialize the journey after a write. Storage failures answer 502, refused operations 400."""
    payload = {'success': confirmed, **journey.as_dict()}
    if not confirmed:
        return JsonResponse(payload, status=502 if journey.status == JourneyStatus.ERROR else 400)
    return JsonResponse(payload, status=status)


def _json_body(request):
    try:
        data = json.loads(request.body or b'{}')
    except json.JSONDecodeError:
        raise ValueError("Request body must be JSON")
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def journey_endpoint(view):
    """Map journey exceptions onto JSON error responses."""
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except JourneyNotFoundError as e:
            return JsonResponse({'success': False, 'error': str(e)}, status=404)
        except MilestoneLockedError as e:
            return JsonResponse({'success': False, 'error': str(e), 'locked': True}, status=409)
        except UnknownFieldError as e:
            return JsonResponse({'success': False, 'error': f"Unknown field: {e.field_name}"}, status=400)
        except ValueError as e:
            return JsonResponse({'success': False, 'error': str(e)}, status=400)
    return wrapper


def _form_errors(form):
    return JsonResponse({'success': False, 'errors': form.errors}, status=400)


# Plans

@login_required
@require_GET
def plan_list(request):
    journey = _load_journey(request)
    status = 200 if journey.status == JourneyStatus.READY else 502
    return JsonResponse({'success': status == 200, **journey.as_dict()}, status=status)


@login_required
@require_POST
@journey_endpoint
def plan_create(request):
    form = NewPlanForm(request.POST)
    if not form.is_valid():
        return _form_errors(form)
    journey = _load_journey(request)
    confirmed = journey.add_plan(**form.cleaned_data)
    return _journey_response(journey, confirmed, status=201)


@login_required
@require_POST
@journey_endpoint
def plan_generate(request):
    """Create a plan from the AI coach's answer."""
    form = AIPlanForm(request.POST)
    if not form.is_valid():
        return _form_errors(form)
    journey = _load_journey(request)
    confirmed = journey.generate_ai_plan(**form.cleaned_data)
    return _journey_response(journey, confirmed, status=201)


@login_required
@require_POST
@journey_endpoint
def plan_delete(request, plan_id):
    journey = _load_journey(request)
    return _journey_response(journey, journey.delete_plan(plan_id))


@login_required
@require_POST
@journey_endpoint
def plan_activate(request, plan_id):
    journey = _load_journey(request)
    journey.set_active_plan(plan_id)
    return JsonResponse({'success': True, 'activePlanId': journey.active_plan_id})


@login_required
@require_POST
@journey_endpoint
def plan_recalculate(request, plan_id):
    journey = _load_journey(request)
    return _journey_response(journey, journey.recalculate_plan_progress(plan_id))


# Milestones

@login_required
@require_POST
@journey_endpoint
def milestone_create(request, plan_id):
    form = MilestoneForm(request.POST)
    if not form.is_valid():
        return _form_errors(form)
    journey = _load_journey(request)
    return _journey_response(journey, journey.add_custom_milestone(plan_id, form.client_data()), status=201)


@login_required
@require_POST
@journey_endpoint
def milestone_toggle(request, plan_id, milestone_id):
    journey = _load_journey(request)
    return _journey_response(journey, journey.toggle_milestone(plan_id, milestone_id))


@login_required
@require_POST
@journey_endpoint
def milestone_edit(request, plan_id, milestone_id):
    journey = _load_journey(request)
    return _journey_response(journey, journey.edit_milestone(plan_id, milestone_id, _json_body(request)))


@login_required
@require_POST
@journey_endpoint
def milestone_delete(request, plan_id, milestone_id):
    journey = _load_journey(request)
    return _journey_response(journey, journey.delete_milestone(plan_id, milestone_id))


# Habits

@login_required
@require_POST
@journey_endpoint
def habit_create(request, plan_id):
    form = HabitForm(request.POST)
    if not form.is_valid():
        return _form_errors(form)
    journey = _load_journey(request)
    return _journey_response(journey, journey.add_custom_habit(plan_id, form.client_data()), status=201)


@login_required
@require_POST
@journey_endpoint
def habit_complete(request, plan_id, habit_id):
    journey = _load_journey(request)
    if not journey.complete_habit(plan_id, habit_id) and journey.error is None:
        return JsonResponse({
            'success': False,
            'alreadyCompleted': True,
            'error': 'Este hábito já foi concluído hoje.',
        }, status=409)
    return _journey_response(journey, journey.write_confirmed)


@login_required
@require_POST
@journey_endpoint
def habit_streak(request, plan_id, habit_id):
    try:
        streak = int(request.POST.get('streak', ''))
    except ValueError:
        return JsonResponse({'success': False, 'error': 'Streak must be an integer'}, status=400)
    journey = _load_journey(request)
    return _journey_response(journey, journey.update_habit_streak(plan_id, habit_id, streak))


@login_required
@require_POST
@journey_endpoint
def habit_edit(request, plan_id, habit_id):
    journey = _load_journey(request)
    return _journey_response(journey, journey.edit_habit(plan_id, habit_id, _json_body(request)))


@login_required
@require_POST
@journey_endpoint
def habit_delete(request, plan_id, habit_id):
    journey = _load_journey(request)
    return _journey_response(journey, journey.delete_habit(plan_id, habit_id))


# Skills

@login_required
@require_POST
@journey_endpoint
def skill_create(request, plan_id):
    form = SkillForm(request.POST)
    if not form.is_valid():
        return _form_errors(form)
    journey = _load_journey(request)
    confirmed = journey.add_custom_skill(plan_id, form.cleaned_data.get('parent_id'), form.client_data())
    return _journey_response(journey, confirmed, status=201)


@login_required
@require_POST
@journey_endpoint
def skill_edit(request, plan_id, skill_id):
    journey = _load_journey(request)
    return _journey_response(journey, journey.edit_skill(plan_id, skill_id, _json_body(request)))


@login_required
@require_POST
@journey_endpoint
def skill_progress(request, plan_id, skill_id):
    try:
        progress = int(request.POST.get('progress', ''))
    except ValueError:
        return JsonResponse({'success': False, 'error': 'Progress must be an integer'}, status=400)
    journey = _load_journey(request)
    return _journey_response(journey, journey.update_skill_progress(plan_id, skill_id, progress))


@login_required
@require_POST
@journey_endpoint
def skill_delete(request, plan_id, skill_id):
    journey = _load_journey(request)
    return _journey_response(journey, journey.delete_skill(plan_id, skill_id))
