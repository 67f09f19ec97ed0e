import logging

from django.contrib.auth.decorators import login_required
from django.http import HttpResponse, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from shalom.exceptions import ConfirmationRequired, ImportFormatError

from .forms import CommentForm, CommunityPostForm, DiaryEntryForm, EmotionEntryForm
from .services.community import Community
from .services.diary import Diary
from .services.emotional import EmotionalJournal
from .services.rewards import InsufficientPointsError, ItemUnavailableError, Rewards
from .storage import LocalRepository

logger = logging.getLogger(__name__)


def _form_errors(form):
    return JsonResponse({'success': False, 'errors': form.errors}, status=400)


def _journal(user):
    return EmotionalJournal(LocalRepository.for_user(user, 'emotional'))


def _diary(user):
    return Diary(LocalRepository.for_user(user, 'diary'))


def _rewards(user):
    return Rewards(LocalRepository.for_user(user, 'rewards'))


def _community(user):
    return Community(LocalRepository.for_user(user, 'community'), display_name=user.get_username())


# Emotions

@login_required
@require_GET
def emotion_list(request):
    journal = _journal(request.user)
    return JsonResponse({
        'success': True,
        'emotions': journal.emotions,
        'insights': journal.insights,
        'wellbeingScore': journal.wellbeing_score(),
    })


@login_required
@require_POST
def emotion_create(request):
    form = EmotionEntryForm(request.POST)
    if not form.is_valid():
        return _form_errors(form)
    entry = _journal(request.user).add_emotion(**form.cleaned_data)
    return JsonResponse({'success': True, 'emotion': entry}, status=201)


@login_required
@require_POST
def emotion_delete(request, entry_id):
    if not _journal(request.user).delete_emotion(entry_id):
        return JsonResponse({'success': False, 'error': 'Emotion entry not found'}, status=404)
    return JsonResponse({'success': True})


@login_required
@require_GET
def emotion_summary(request):
    journal = _journal(request.user)
    try:
        days = int(request.GET.get('days', 7))
    except ValueError:
        return JsonResponse({'success': False, 'error': 'days must be an integer'}, status=400)
    return JsonResponse({
        'success': True,
        'weekly': journal.weekly_summary(),
        'trend': journal.mood_trend(days),
        'stats': journal.emotion_stats(),
        'patterns': journal.generate_patterns(),
    })


# Diary

@login_required
@require_GET
def diary_list(request):
    diary = _diary(request.user)
    query = request.GET.get('q')
    tag = request.GET.get('tag')
    if query:
        entries = diary.search(query)
    elif tag:
        entries = diary.entries_by_tag(tag)
    else:
        entries = diary.entries
    return JsonResponse({'success': True, 'entries': entries, 'templates': diary.templates})


@login_required
@require_POST
def diary_create(request):
    form = DiaryEntryForm(request.POST)
    if not form.is_valid():
        return _form_errors(form)
    entry = _diary(request.user).add_entry(**form.cleaned_data)
    return JsonResponse({'success': True, 'entry': entry}, status=201)


@login_required
@require_POST
def diary_delete(request, entry_id):
    if not _diary(request.user).delete_entry(entry_id):
        return JsonResponse({'success': False, 'error': 'Diary entry not found'}, status=404)
    return JsonResponse({'success': True})


@login_required
@require_GET
def diary_stats(request):
    return JsonResponse({'success': True, 'stats': _diary(request.user).stats()})


@login_required
@require_GET
def diary_export(request):
    response = HttpResponse(_diary(request.user).export_entries(), content_type='application/json')
    response['Content-Disposition'] = 'attachment; filename="shalom-diario.json"'
    return response


@login_required
@require_POST
def diary_import(request):
    upload = request.FILES.get('file')
    payload = upload.read() if upload else request.POST.get('payload', '')
    confirm = request.POST.get('confirm') in ('1', 'true', 'on')
    try:
        counts = _diary(request.user).import_entries(payload, confirm=confirm)
    except ImportFormatError as e:
        return JsonResponse({'success': False, 'error': str(e)}, status=400)
    except ConfirmationRequired as e:
        return JsonResponse({
            'success': False,
            'confirmationRequired': True,
            'error': 'Importar substituirá todas as entradas do diário. Confirme para continuar.',
            'operation': e.operation,
        }, status=409)
    return JsonResponse({'success': True, 'imported': counts})


# Rewards

@login_required
@require_GET
def rewards_state(request):
    rewards = _rewards(request.user)
    return JsonResponse({
        'success': True,
        'profile': rewards.profile,
        'achievements': rewards.achievements,
        'storeItems': rewards.store_items,
    })


@login_required
@require_POST
def rewards_purchase(request, item_id):
    rewards = _rewards(request.user)
    try:
        item = rewards.purchase_item(item_id)
    except InsufficientPointsError as e:
        return JsonResponse({'success': False, 'error': str(e), 'points': e.points}, status=409)
    except ItemUnavailableError as e:
        return JsonResponse({'success': False, 'error': str(e)}, status=404)
    return JsonResponse({'success': True, 'item': item, 'profile': rewards.profile})


@login_required
@require_POST
def rewards_equip(request, item_id):
    rewards = _rewards(request.user)
    try:
        item = rewards.equip_item(item_id)
    except ItemUnavailableError as e:
        return JsonResponse({'success': False, 'error': str(e)}, status=409)
    return JsonResponse({'success': True, 'item': item, 'profile': rewards.profile})


# Community

@login_required
@require_GET
def community_feed(request):
    community = _community(request.user)
    category = request.GET.get('category')
    query = request.GET.get('q')
    if query:
        posts = community.search_posts(query)
    elif category:
        posts = community.posts_by_category(category)
    else:
        posts = community.posts
    return JsonResponse({'success': True, 'posts': posts, 'groups': community.groups})


@login_required
@require_POST
def community_post_create(request):
    form = CommunityPostForm(request.POST)
    if not form.is_valid():
        return _form_errors(form)
    data = form.cleaned_data
    post = _community(request.user).add_post(data['content'], data['category'], data['tags'], data['mood'] or None)
    return JsonResponse({'success': True, 'post': post}, status=201)


@login_required
@require_POST
def community_post_like(request, post_id):
    post = _community(request.user).like_post(post_id)
    if post is None:
        return JsonResponse({'success': False, 'error': 'Post not found'}, status=404)
    return JsonResponse({'success': True, 'post': post})


@login_required
@require_POST
def community_post_comment(request, post_id):
    form = CommentForm(request.POST)
    if not form.is_valid():
        return _form_errors(form)
    comment = _community(request.user).add_comment(post_id, form.cleaned_data['content'])
    if comment is None:
        return JsonResponse({'success': False, 'error': 'Post not found'}, status=404)
    return JsonResponse({'success': True, 'comment': comment}, status=201)


@login_required
@require_POST
def community_group_join(request, group_id):
    group = _community(request.user).join_group(group_id)
    if group is None:
        return JsonResponse({'success': False, 'error': 'Group not found'}, status=404)
    return JsonResponse({'success': True, 'group': group})
