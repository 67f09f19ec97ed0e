"""
Emotional journal kept in the user's local repository.

Entries are stored newest first. Every aggregate (wellbeing score, trends,
patterns, insights) is derived from the entries on read.
"""

import logging
import math
import uuid
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)

EMOTION_WEIGHTS = {
    'happy': 1.0,
    'excited': 0.9,
    'calm': 0.8,
    'energetic': 0.7,
    'neutral': 0.0,
    'tired': -0.3,
    'stressed': -0.5,
    'anxious': -0.6,
    'angry': -0.7,
    'sad': -0.8,
}

POSITIVE_EMOTIONS = ('happy', 'calm', 'energetic', 'excited')

EMOTION_LABELS = {
    'happy': 'Feliz',
    'excited': 'Animado',
    'calm': 'Calmo',
    'energetic': 'Energético',
    'neutral': 'Neutro',
    'tired': 'Cansado',
    'stressed': 'Estressado',
    'anxious': 'Ansioso',
    'angry': 'Irritado',
    'sad': 'Triste',
}


class InvalidEmotionError(ValueError):
    """Raised for an emotion outside the closed set or an intensity outside 1-10."""


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def time_of_day(moment: datetime) -> str:
    hour = moment.hour
    if 6 <= hour < 12:
        return 'morning'
    if 12 <= hour < 18:
        return 'afternoon'
    if 18 <= hour < 22:
        return 'evening'
    return 'night'


def _validate(emotion: Optional[str], intensity: Optional[int]):
    if emotion is not None and emotion not in EMOTION_WEIGHTS:
        raise InvalidEmotionError(f"Unknown emotion: {emotion}")
    if intensity is not None and not (isinstance(intensity, int) and 1 <= intensity <= 10):
        raise InvalidEmotionError(f"Intensity must be an integer from 1 to 10, got {intensity!r}")


class EmotionalJournal:

    ENTRIES_KEY = 'emotional_data'
    INSIGHTS_KEY = 'emotional_insights'

    def __init__(self, repository, window: Optional[int] = None):
        self.repository = repository
        self.window = window or getattr(settings, 'SHALOM_WELLBEING_WINDOW', 7)

    @property
    def emotions(self) -> List[Dict[str, Any]]:
        return self.repository.load(self.ENTRIES_KEY, [])

    def _save(self, emotions):
        self.repository.save(self.ENTRIES_KEY, emotions)

    @staticmethod
    def _moment(entry) -> datetime:
        return timezone.localtime(datetime.fromisoformat(entry['timestamp']))

    # CRUD

    def add_emotion(self, emotion: str, intensity: int, note: str = '', triggers=None, activities=None) -> Dict[str, Any]:
        _validate(emotion, intensity)
        entry = {
            'id': str(uuid.uuid4()),
            'emotion': emotion,
            'intensity': intensity,
            'timestamp': timezone.localtime(timezone.now()).isoformat(),
            'note': note,
            'triggers': list(triggers or []),
            'activities': list(activities or []),
        }
        self._save([entry] + self.emotions)
        self.generate_insights()
        return entry

    def update_emotion(self, entry_id: str, **updates) -> Optional[Dict[str, Any]]:
        _validate(updates.get('emotion'), updates.get('intensity'))
        updates.pop('id', None)
        updated = None
        emotions = self.emotions
        for entry in emotions:
            if entry['id'] == entry_id:
                entry.update(updates)
                updated = entry
        if updated is not None:
            self._save(emotions)
        return updated

    def delete_emotion(self, entry_id: str) -> bool:
        emotions = self.emotions
        remaining = [entry for entry in emotions if entry['id'] != entry_id]
        self._save(remaining)
        return len(remaining) != len(emotions)

    # Queries

    def emotions_by_date(self, day) -> List[Dict[str, Any]]:
        day = day if isinstance(day, str) else day.isoformat()
        return [entry for entry in self.emotions if self._moment(entry).date().isoformat() == day]

    def todays_emotions(self) -> List[Dict[str, Any]]:
        return self.emotions_by_date(timezone.localdate())

    def wellbeing_score(self, emotions: Optional[List[Dict[str, Any]]] = None) -> int:
        """
        Score from 0 to 100 over the most recent entries.

        Each entry contributes its emotion weight scaled by intensity/10. The
        mean maps from [-1, 1] onto [0, 100]; no entries means a neutral 50.
        """
        recent = (self.emotions if emotions is None else emotions)[:self.window]
        if not recent:
            return 50
        total = sum(EMOTION_WEIGHTS.get(entry['emotion'], 0) * entry['intensity'] / 10 for entry in recent)
        score = (total / len(recent) + 1) * 50
        return _round_half_up(max(0, min(100, score)))

    def mood_trend(self, days: int) -> List[Dict[str, Any]]:
        today = timezone.localdate()
        emotions = self.emotions
        trend = []
        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)
            entries = [entry for entry in emotions if self._moment(entry).date() == day]
            average = sum(entry['intensity'] for entry in entries) / len(entries) if entries else 5
            trend.append({'date': day.isoformat(), 'averageMood': average})
        return trend

    def emotion_stats(self) -> Dict[str, int]:
        return dict(Counter(entry['emotion'] for entry in self.emotions))

    def generate_patterns(self) -> List[Dict[str, Any]]:
        groups: Dict[str, List[Dict[str, Any]]] = {}
        for entry in self.emotions:
            groups.setdefault(entry['emotion'], []).append(entry)

        patterns = []
        for emotion, entries in groups.items():
            times = Counter(time_of_day(self._moment(entry)) for entry in entries)
            triggers = Counter(trigger for entry in entries for trigger in entry.get('triggers') or [])
            patterns.append({
                'emotion': emotion,
                'averageIntensity': sum(entry['intensity'] for entry in entries) / len(entries),
                'frequency': len(entries),
                'timeOfDay': times.most_common(1)[0][0],
                'commonTriggers': [trigger for trigger, _ in triggers.most_common(3)],
            })
        return patterns

    def generate_insights(self) -> List[Dict[str, Any]]:
        """Derive new insights and keep them ahead of the ten most recent old ones."""
        now = timezone.now().isoformat()
        emotions = self.emotions
        insights = []

        def insight(kind, title, description, priority):
            insights.append({
                'id': str(uuid.uuid4()), 'type': kind, 'title': title,
                'description': description, 'priority': priority, 'createdAt': now,
            })

        score = self.wellbeing_score(emotions)
        if score < 30:
            insight('recommendation', 'Bem-estar Baixo Detectado',
                    'Seu bem-estar emocional está baixo. Considere praticar técnicas de relaxamento '
                    'ou conversar com alguém.', 'high')
        elif score > 80:
            insight('achievement', 'Excelente Estado Emocional!',
                    'Você está mantendo um ótimo bem-estar emocional. Continue assim!', 'medium')

        anxious = next((p for p in self.generate_patterns() if p['emotion'] == 'anxious'), None)
        if anxious and anxious['frequency'] > 5:
            insight('pattern', 'Padrão de Ansiedade Identificado',
                    f"Você tem registrado ansiedade frequentemente durante a {anxious['timeOfDay']}. "
                    "Considere técnicas de respiração nesse período.", 'medium')

        morning = [e for e in emotions if time_of_day(self._moment(e)) == 'morning']
        evening = [e for e in emotions if time_of_day(self._moment(e)) == 'evening']
        if len(morning) > 5 and len(evening) > 5:
            morning_ratio = sum(1 for e in morning if e['emotion'] in POSITIVE_EMOTIONS) / len(morning)
            evening_ratio = sum(1 for e in evening if e['emotion'] in POSITIVE_EMOTIONS) / len(evening)
            period = 'pela manhã' if morning_ratio > evening_ratio else 'à noite'
            title = 'Manhãs Mais Positivas' if morning_ratio > evening_ratio else 'Noites Mais Positivas'
            insight('pattern', title,
                    f"Você tende a se sentir melhor {period}. Considere programar atividades "
                    "importantes para este período.", 'medium')

        stored = insights + self.repository.load(self.INSIGHTS_KEY, [])[:10]
        self.repository.save(self.INSIGHTS_KEY, stored)
        return insights

    @property
    def insights(self) -> List[Dict[str, Any]]:
        return self.repository.load(self.INSIGHTS_KEY, [])

    def weekly_summary(self) -> Dict[str, Any]:
        week_ago = timezone.now() - timedelta(days=7)
        last_week = [entry for entry in self.emotions if datetime.fromisoformat(entry['timestamp']) >= week_ago]
        if not last_week:
            return {
                'mostFrequentEmotion': None,
                'bestDay': None,
                'worstDay': None,
                'overallScore': 50,
                'suggestions': ['Comece a registrar suas emoções diariamente para obter insights personalizados.'],
            }

        most_frequent = Counter(entry['emotion'] for entry in last_week).most_common(1)[0][0]

        days: Dict[str, List[int]] = {}
        for entry in last_week:
            days.setdefault(self._moment(entry).date().isoformat(), []).append(entry['intensity'])
        averages = [{'day': day, 'score': sum(values) / len(values)} for day, values in days.items()]

        suggestions = []
        if most_frequent in ('anxious', 'stressed'):
            suggestions.append('Considere praticar técnicas de respiração ou meditação para reduzir a ansiedade.')
        if most_frequent == 'sad':
            suggestions.append('Tente incluir atividades que você gosta em sua rotina diária.')
        if most_frequent == 'tired':
            suggestions.append('Revise seus hábitos de sono e considere ajustar sua rotina para incluir mais descanso.')
        if not suggestions:
            suggestions.append('Continue monitorando suas emoções para obter insights mais personalizados.')

        return {
            'mostFrequentEmotion': most_frequent,
            'bestDay': max(averages, key=lambda item: item['score']),
            'worstDay': min(averages, key=lambda item: item['score']),
            'overallScore': self.wellbeing_score(),
            'suggestions': suggestions,
        }
