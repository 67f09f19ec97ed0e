import logging

from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from ..forms import SophiaMessageForm
from ..services.ai_service import SophiaConversation

logger = logging.getLogger(__name__)


@login_required
@require_GET
def sophia_history(request):
    return JsonResponse({'success': True, 'messages': SophiaConversation(request.user).history()})


@login_required
@require_POST
def sophia_chat(request):
    """Send a message to Sophia. Rule-based replies stand in when the API is unavailable."""
    form = SophiaMessageForm(request.POST)
    if not form.is_valid():
        return JsonResponse({'success': False, 'errors': form.errors}, status=400)

    reply = SophiaConversation(request.user).send_message(form.cleaned_data['message'])
    if reply.error_message:
        logger.warning(f"Sophia answered user {request.user.id} with fallback: {reply.error_message}")
    return JsonResponse({
        'success': reply.success,
        'response': reply.response,
        'usedFallback': reply.used_fallback,
    })


@login_required
@require_POST
def sophia_clear(request):
    deleted = SophiaConversation(request.user).clear()
    return JsonResponse({'success': True, 'deleted': deleted})
