import json
import logging
import math
import uuid
from collections import Counter
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from django.utils import timezone

from shalom.exceptions import ConfirmationRequired, ImportFormatError

logger = logging.getLogger(__name__)

POSITIVE_WORDS = ('feliz', 'alegre', 'grato', 'ótimo', 'excelente', 'maravilhoso')
NEGATIVE_WORDS = ('triste', 'ruim', 'difícil', 'problema', 'preocupado', 'ansioso')

WORDS_PER_MINUTE = 200

DEFAULT_TEMPLATES = (
    ('Gratidão Diária', 'gratitude', (
        'Pelo que você é grato hoje?',
        'Qual foi o melhor momento do seu dia?',
        'Que pessoa fez diferença na sua vida hoje?',
    )),
    ('Reflexão Noturna', 'reflection', (
        'Como foi seu dia?',
        'O que você aprendeu hoje?',
        'O que você faria diferente?',
        'Como você se sente agora?',
    )),
    ('Planejamento de Metas', 'goals', (
        'Quais são seus objetivos para amanhã?',
        'Que progresso você fez em suas metas?',
        'Que obstáculos você enfrentou?',
        'Como você pode melhorar?',
    )),
)

TEMPLATE_CATEGORIES = ('gratitude', 'reflection', 'goals', 'custom')


def count_words(content: str) -> int:
    return len(content.split())


def analyze_entry(content: str) -> Dict[str, Any]:
    """Keyword sentiment and reading time of a diary entry."""
    lowered = content.lower()
    positive = sum(1 for word in POSITIVE_WORDS if word in lowered)
    negative = sum(1 for word in NEGATIVE_WORDS if word in lowered)
    if positive > negative:
        sentiment, emotions = 0.7, ['positivo']
    elif negative > positive:
        sentiment, emotions = 0.3, ['negativo']
    else:
        sentiment, emotions = 0.5, ['neutro']
    return {
        'sentiment': sentiment,
        'emotions': emotions,
        'topics': ['reflexão', 'pessoal'],
        'readingTime': math.ceil(count_words(content) / WORDS_PER_MINUTE),
    }


def current_streak(days: List[date], today: date) -> int:
    """Consecutive days with entries ending today, or yesterday when today has none yet."""
    present = set(days)
    anchor = today if today in present else today - timedelta(days=1)
    streak = 0
    while anchor in present:
        streak += 1
        anchor -= timedelta(days=1)
    return streak


def longest_streak(days: List[date]) -> int:
    longest = run = 0
    previous = None
    for day in sorted(set(days)):
        run = run + 1 if previous is not None and (day - previous).days == 1 else 1
        longest = max(longest, run)
        previous = day
    return longest


class Diary:
    """Diary entries and writing templates of one user."""

    ENTRIES_KEY = 'diary_entries'
    TEMPLATES_KEY = 'diary_templates'

    def __init__(self, repository):
        self.repository = repository

    @property
    def entries(self) -> List[Dict[str, Any]]:
        return self.repository.load(self.ENTRIES_KEY, [])

    @property
    def templates(self) -> List[Dict[str, Any]]:
        templates = self.repository.load(self.TEMPLATES_KEY)
        if templates is None:
            templates = [
                {'id': str(uuid.uuid4()), 'name': name, 'prompts': list(prompts), 'category': category}
                for name, category, prompts in DEFAULT_TEMPLATES
            ]
            self.repository.save(self.TEMPLATES_KEY, templates)
        return templates

    def add_entry(self, content: str, entry_date=None, mood: Optional[str] = None,
                  tags=None, is_private: bool = True) -> Dict[str, Any]:
        now = timezone.now().isoformat()
        entry_date = entry_date or timezone.localdate()
        entry = {
            'id': str(uuid.uuid4()),
            'content': content,
            'date': entry_date if isinstance(entry_date, str) else entry_date.isoformat(),
            'mood': mood or None,
            'tags': list(tags or []),
            'isPrivate': is_private,
            'createdAt': now,
            'updatedAt': now,
            'wordCount': count_words(content),
            'analysis': analyze_entry(content),
        }
        self.repository.save(self.ENTRIES_KEY, [entry] + self.entries)
        return entry

    def update_entry(self, entry_id: str, **updates) -> Optional[Dict[str, Any]]:
        for protected in ('id', 'createdAt', 'wordCount', 'analysis'):
            updates.pop(protected, None)
        entries = self.entries
        updated = None
        for entry in entries:
            if entry['id'] == entry_id:
                entry.update(updates)
                entry['updatedAt'] = timezone.now().isoformat()
                if 'content' in updates:
                    entry['wordCount'] = count_words(entry['content'])
                    entry['analysis'] = analyze_entry(entry['content'])
                updated = entry
        if updated is not None:
            self.repository.save(self.ENTRIES_KEY, entries)
        return updated

    def delete_entry(self, entry_id: str) -> bool:
        entries = self.entries
        remaining = [entry for entry in entries if entry['id'] != entry_id]
        self.repository.save(self.ENTRIES_KEY, remaining)
        return len(remaining) != len(entries)

    def entries_by_date(self, day) -> List[Dict[str, Any]]:
        day = day if isinstance(day, str) else day.isoformat()
        return [entry for entry in self.entries if entry['date'] == day]

    def entries_by_tag(self, tag: str) -> List[Dict[str, Any]]:
        return [entry for entry in self.entries if tag in entry['tags']]

    def entries_by_mood(self, mood: str) -> List[Dict[str, Any]]:
        return [entry for entry in self.entries if entry.get('mood') == mood]

    def search(self, query: str) -> List[Dict[str, Any]]:
        query = query.lower()
        return [
            entry for entry in self.entries
            if query in entry['content'].lower()
            or any(query in tag.lower() for tag in entry['tags'])
            or (entry.get('mood') and query in entry['mood'].lower())
        ]

    def add_template(self, name: str, prompts, category: str = 'custom') -> Dict[str, Any]:
        if category not in TEMPLATE_CATEGORIES:
            raise ValueError(f"Unknown template category: {category}")
        template = {'id': str(uuid.uuid4()), 'name': name, 'prompts': list(prompts), 'category': category}
        self.repository.save(self.TEMPLATES_KEY, self.templates + [template])
        return template

    def delete_template(self, template_id: str) -> bool:
        templates = self.templates
        remaining = [template for template in templates if template['id'] != template_id]
        self.repository.save(self.TEMPLATES_KEY, remaining)
        return len(remaining) != len(templates)

    def export_entries(self) -> str:
        return json.dumps({
            'entries': self.entries,
            'templates': self.templates,
            'exportDate': timezone.now().isoformat(),
        }, indent=2, ensure_ascii=False)

    def import_entries(self, payload: str, confirm: bool = False) -> Dict[str, int]:
        """
        Replace entries and templates with an exported payload.

        ``entries`` is required; ``templates`` is optional and kept when
        absent. Nothing is written until ``confirm`` is True.
        """
        if isinstance(payload, bytes):
            try:
                payload = payload.decode('utf-8')
            except UnicodeDecodeError as e:
                raise ImportFormatError(f"Diary export must be UTF-8 text: {e}")
        try:
            data = json.loads(payload)
        except (TypeError, json.JSONDecodeError) as e:
            raise ImportFormatError(f"Invalid diary export: {e}")
        if not isinstance(data, dict) or not isinstance(data.get('entries'), list):
            raise ImportFormatError("Diary export must contain an 'entries' list")
        if 'templates' in data and not isinstance(data['templates'], list):
            raise ImportFormatError("'templates' must be a list")
        for entry in data['entries']:
            if not isinstance(entry, dict) or not {'id', 'content', 'date'} <= entry.keys():
                raise ImportFormatError("Every diary entry needs 'id', 'content' and 'date'")
            if not isinstance(entry['content'], str) or not isinstance(entry.get('tags', []), list):
                raise ImportFormatError("Diary entry content must be text and tags a list")
            entry.setdefault('tags', [])
            entry.setdefault('wordCount', count_words(entry['content']))
        if not confirm:
            raise ConfirmationRequired('import_entries')

        self.repository.save(self.ENTRIES_KEY, data['entries'])
        if 'templates' in data:
            self.repository.save(self.TEMPLATES_KEY, data['templates'])
        logger.info(f"Imported {len(data['entries'])} diary entries")
        return {'entries': len(data['entries']), 'templates': len(self.templates)}

    def stats(self) -> Dict[str, Any]:
        entries = self.entries
        total_words = sum(entry.get('wordCount', 0) for entry in entries)
        days = [date.fromisoformat(entry['date']) for entry in entries]
        tags = Counter(tag for entry in entries for tag in entry['tags'])
        moods = Counter(entry['mood'] for entry in entries if entry.get('mood'))
        return {
            'totalEntries': len(entries),
            'totalWords': total_words,
            'averageWordsPerEntry': round(total_words / len(entries)) if entries else 0,
            'currentStreak': current_streak(days, timezone.localdate()),
            'longestStreak': longest_streak(days),
            'mostUsedTags': [{'tag': tag, 'count': count} for tag, count in tags.most_common(10)],
            'moodDistribution': [{'mood': mood, 'count': count} for mood, count in moods.most_common()],
        }
