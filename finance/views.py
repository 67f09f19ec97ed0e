import logging

from django.contrib.auth.decorators import login_required
from django.http import HttpResponse, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from shalom.exceptions import ConfirmationRequired, ImportFormatError

from .forms import FinancialGoalForm, GoalContributionForm, TransactionForm
from .models import FinancialGoal, Transaction
from .services.ledger import (
    CASH_FLOW_PERIODS, TOTAL_PERIODS, CategoryMismatchError, Ledger,
    category_as_dict, goal_as_dict, transaction_as_dict,
)

logger = logging.getLogger(__name__)


def _form_errors(form):
    return JsonResponse({'success': False, 'errors': form.errors}, status=400)


def _confirmed(request):
    return request.POST.get('confirm') in ('1', 'true', 'on')


@login_required
@require_GET
def summary(request):
    period = request.GET.get('period', 'month')
    if period not in TOTAL_PERIODS:
        return JsonResponse({'success': False, 'error': f'Invalid period: {period}'}, status=400)
    return JsonResponse({'success': True, 'summary': Ledger(request.user).summary(period)})


@login_required
@require_GET
def cash_flow(request):
    period = request.GET.get('period', 'month')
    if period not in CASH_FLOW_PERIODS:
        return JsonResponse({'success': False, 'error': f'Invalid period: {period}'}, status=400)
    return JsonResponse({'success': True, 'cashFlow': Ledger(request.user).cash_flow(period)})


@login_required
@require_GET
def category_list(request):
    categories = Ledger(request.user).categories(request.GET.get('type') or None)
    return JsonResponse({'success': True, 'categories': [category_as_dict(c) for c in categories]})


@login_required
@require_GET
def transaction_list(request):
    transactions = Ledger(request.user).transactions()
    return JsonResponse({'success': True, 'transactions': [transaction_as_dict(t) for t in transactions]})


@login_required
@require_POST
def transaction_create(request):
    form = TransactionForm(request.POST)
    if not form.is_valid():
        return _form_errors(form)
    try:
        transaction = Ledger(request.user).add_transaction(**form.cleaned_data)
    except CategoryMismatchError as e:
        return JsonResponse({'success': False, 'error': str(e)}, status=400)
    return JsonResponse({'success': True, 'transaction': transaction_as_dict(transaction)}, status=201)


@login_required
@require_POST
def transaction_update(request, pk):
    ledger = Ledger(request.user)
    try:
        instance = ledger.transactions().get(pk=pk)
    except Transaction.DoesNotExist:
        return JsonResponse({'success': False, 'error': 'Transaction not found'}, status=404)

    form = TransactionForm(request.POST, instance=instance)
    if not form.is_valid():
        return _form_errors(form)
    try:
        transaction = ledger.update_transaction(pk, **form.cleaned_data)
    except CategoryMismatchError as e:
        return JsonResponse({'success': False, 'error': str(e)}, status=400)
    return JsonResponse({'success': True, 'transaction': transaction_as_dict(transaction)})


@login_required
@require_POST
def transaction_delete(request, pk):
    if not Ledger(request.user).delete_transaction(pk):
        return JsonResponse({'success': False, 'error': 'Transaction not found'}, status=404)
    return JsonResponse({'success': True})


@login_required
@require_GET
def goal_list(request):
    ledger = Ledger(request.user)
    goals = [{**goal_as_dict(goal), 'progress': ledger.goal_progress(goal)} for goal in ledger.goals()]
    return JsonResponse({'success': True, 'goals': goals})


@login_required
@require_POST
def goal_create(request):
    form = FinancialGoalForm(request.POST)
    if not form.is_valid():
        return _form_errors(form)
    goal = Ledger(request.user).add_goal(**form.cleaned_data)
    return JsonResponse({'success': True, 'goal': goal_as_dict(goal)}, status=201)


@login_required
@require_POST
def goal_contribute(request, pk):
    form = GoalContributionForm(request.POST)
    if not form.is_valid():
        return _form_errors(form)
    ledger = Ledger(request.user)
    try:
        goal = ledger.contribute_to_goal(pk, form.cleaned_data['amount'])
    except FinancialGoal.DoesNotExist:
        return JsonResponse({'success': False, 'error': 'Goal not found'}, status=404)
    return JsonResponse({'success': True, 'goal': {**goal_as_dict(goal), 'progress': ledger.goal_progress(goal)}})


@login_required
@require_POST
def goal_delete(request, pk):
    if not Ledger(request.user).delete_goal(pk):
        return JsonResponse({'success': False, 'error': 'Goal not found'}, status=404)
    return JsonResponse({'success': True})


@login_required
@require_GET
def export_data(request):
    payload = Ledger(request.user).export_data()
    response = HttpResponse(payload, content_type='application/json')
    response['Content-Disposition'] = 'attachment; filename="shalom-financas.json"'
    return response


@login_required
@require_POST
def import_data(request):
    upload = request.FILES.get('file')
    payload = upload.read() if upload else request.POST.get('payload', '')
    try:
        counts = Ledger(request.user).import_data(payload, confirm=_confirmed(request))
    except ImportFormatError as e:
        return JsonResponse({'success': False, 'error': str(e)}, status=400)
    except ConfirmationRequired as e:
        return JsonResponse({
            'success': False,
            'confirmationRequired': True,
            'error': 'Importar substituirá todos os dados financeiros atuais. Confirme para continuar.',
            'operation': e.operation,
        }, status=409)
    return JsonResponse({'success': True, 'imported': counts})


@login_required
@require_POST
def clear_data(request):
    try:
        Ledger(request.user).clear_all_data(confirm=_confirmed(request))
    except ConfirmationRequired as e:
        return JsonResponse({
            'success': False,
            'confirmationRequired': True,
            'error': 'Esta ação apagará todas as transações e metas. Confirme para continuar.',
            'operation': e.operation,
        }, status=409)
    return JsonResponse({'success': True})
