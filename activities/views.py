import logging
import uuid

from django.contrib.auth.decorators import login_required
from django.http import HttpResponse, JsonResponse
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_GET, require_POST

from shalom.exceptions import ConfirmationRequired, ImportFormatError

from .forms import ActivityForm, ActivityStatusForm
from .models import Activity
from .services.board import ActivityBoard, activity_as_dict

logger = logging.getLogger(__name__)

LIST_VIEWS = ('all', 'daily', 'goals', 'priority')


def _form_errors(form):
    return JsonResponse({'success': False, 'errors': form.errors}, status=400)


def _confirmed(request):
    return request.POST.get('confirm') in ('1', 'true', 'on')


def _not_found():
    return JsonResponse({'success': False, 'error': 'Activity not found'}, status=404)


@login_required
@require_GET
def activity_list(request):
    board = ActivityBoard(request.user)
    view = request.GET.get('view', 'all')
    day = request.GET.get('date')

    if day:
        parsed = parse_date(day)
        if parsed is None:
            return JsonResponse({'success': False, 'error': f'Invalid date: {day}'}, status=400)
        activities = board.activities_by_date(parsed)
    elif view == 'daily':
        activities = board.daily_activities()
    elif view == 'goals':
        activities = board.goals()
    elif view == 'priority':
        activities = board.priority_activities()
    elif view == 'all':
        activities = board.activities()
    else:
        return JsonResponse({'success': False, 'error': f'Invalid view: {view}'}, status=400)

    return JsonResponse({'success': True, 'activities': [activity_as_dict(a) for a in activities]})


@login_required
@require_GET
def summary(request):
    return JsonResponse({'success': True, 'summary': ActivityBoard(request.user).summary()})


@login_required
@require_POST
def activity_create(request):
    form = ActivityForm(request.POST)
    if not form.is_valid():
        return _form_errors(form)
    created = ActivityBoard(request.user).add_activity(**form.cleaned_data)
    return JsonResponse({'success': True, 'activities': [activity_as_dict(a) for a in created]}, status=201)


@login_required
@require_POST
def activity_update(request, pk):
    try:
        activity = Activity.objects.get(pk=pk, user=request.user)
    except Activity.DoesNotExist:
        return _not_found()

    form = ActivityForm(request.POST, instance=activity)
    if not form.is_valid():
        return _form_errors(form)
    form.save()
    return JsonResponse({'success': True, 'activity': activity_as_dict(activity)})


@login_required
@require_POST
def activity_set_status(request, pk):
    form = ActivityStatusForm(request.POST)
    if not form.is_valid():
        return _form_errors(form)
    try:
        activity = ActivityBoard(request.user).update_activity(pk, status=form.cleaned_data['status'])
    except Activity.DoesNotExist:
        return _not_found()
    return JsonResponse({'success': True, 'activity': activity_as_dict(activity)})


@login_required
@require_POST
def activity_toggle(request, pk):
    try:
        activity = ActivityBoard(request.user).toggle_status(pk)
    except Activity.DoesNotExist:
        return _not_found()
    return JsonResponse({'success': True, 'activity': activity_as_dict(activity)})


@login_required
@require_POST
def activity_delete(request, pk):
    if not ActivityBoard(request.user).delete_activity(pk):
        return _not_found()
    return JsonResponse({'success': True})


@login_required
@require_POST
def routine_delete(request, routine_id: uuid.UUID):
    try:
        deleted = ActivityBoard(request.user).delete_routine(routine_id, confirm=_confirmed(request))
    except ConfirmationRequired as e:
        return JsonResponse({
            'success': False,
            'confirmationRequired': True,
            'error': 'Isto removerá todas as ocorrências da rotina. Confirme para continuar.',
            'operation': e.operation,
        }, status=409)
    if not deleted:
        return JsonResponse({'success': False, 'error': 'Routine not found'}, status=404)
    return JsonResponse({'success': True, 'deleted': deleted})


@login_required
@require_GET
def export_data(request):
    payload = ActivityBoard(request.user).export_data()
    response = HttpResponse(payload, content_type='application/json')
    response['Content-Disposition'] = 'attachment; filename="shalom-atividades.json"'
    return response


@login_required
@require_POST
def import_data(request):
    upload = request.FILES.get('file')
    payload = upload.read() if upload else request.POST.get('payload', '')
    try:
        imported = ActivityBoard(request.user).import_data(payload)
    except ImportFormatError as e:
        return JsonResponse({'success': False, 'error': str(e)}, status=400)
    return JsonResponse({'success': True, 'imported': imported})


@login_required
@require_POST
def clear_data(request):
    try:
        ActivityBoard(request.user).clear_all_data(confirm=_confirmed(request))
    except ConfirmationRequired as e:
        return JsonResponse({
            'success': False,
            'confirmationRequired': True,
            'error': 'Esta ação apagará todas as atividades. Confirme para continuar.',
            'operation': e.operation,
        }, status=409)
    return JsonResponse({'success': True})
