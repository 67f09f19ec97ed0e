from datetime import datetime, timedelta
from unittest.mock import patch

from django.test import SimpleTestCase
from django.utils import timezone

from personal.services.emotional import EmotionalJournal, InvalidEmotionError, time_of_day
from personal.storage import LocalRepository, MemoryStore


def local(hour, day=15):
    return timezone.make_aware(datetime(2026, 4, day, hour, 0))


class EmotionalJournalTestCase(SimpleTestCase):

    def setUp(self):
        self.journal = EmotionalJournal(LocalRepository(MemoryStore(), 'emotional'), window=7)

    def add_at(self, moment, emotion, intensity=5, **kwargs):
        with patch('django.utils.timezone.now', return_value=moment):
            return self.journal.add_emotion(emotion, intensity, **kwargs)

    def test_entries_are_stored_newest_first(self):
        first = self.journal.add_emotion('calm', 6)
        second = self.journal.add_emotion('tired', 4, triggers=['trabalho'])
        self.assertEqual([e['id'] for e in self.journal.emotions], [second['id'], first['id']])
        self.assertEqual(second['triggers'], ['trabalho'])

    def test_invalid_entries_are_rejected(self):
        with self.assertRaises(InvalidEmotionError):
            self.journal.add_emotion('bored', 5)
        with self.assertRaises(InvalidEmotionError):
            self.journal.add_emotion('happy', 11)
        self.assertEqual(self.journal.emotions, [])

    def test_wellbeing_score(self):
        self.assertEqual(self.journal.wellbeing_score(), 50)
        self.journal.add_emotion('happy', 5)
        self.journal.add_emotion('neutral', 5)
        self.assertEqual(self.journal.wellbeing_score(), 63)

    def test_wellbeing_uses_only_the_window(self):
        for _ in range(7):
            self.journal.add_emotion('happy', 10)
        self.assertEqual(self.journal.wellbeing_score(), 100)
        # older sad entries fall outside the window once newer ones arrive
        journal = EmotionalJournal(LocalRepository(MemoryStore(), 'emotional'), window=2)
        journal.add_emotion('sad', 10)
        journal.add_emotion('happy', 10)
        journal.add_emotion('happy', 10)
        self.assertEqual(journal.wellbeing_score(), 100)

    def test_low_and_high_scores_produce_insights(self):
        self.journal.add_emotion('sad', 10)
        self.assertEqual(self.journal.insights[0]['title'], 'Bem-estar Baixo Detectado')
        self.assertEqual(self.journal.insights[0]['priority'], 'high')

    def test_frequent_anxiety_is_a_pattern(self):
        for _ in range(6):
            self.add_at(local(9), 'anxious', 6, triggers=['prova'])
        patterns = self.journal.generate_patterns()
        self.assertEqual(patterns[0]['emotion'], 'anxious')
        self.assertEqual(patterns[0]['timeOfDay'], 'morning')
        self.assertEqual(patterns[0]['commonTriggers'], ['prova'])
        titles = [insight['title'] for insight in self.journal.insights]
        self.assertIn('Padrão de Ansiedade Identificado', titles)

    def test_time_of_day_buckets(self):
        self.assertEqual(time_of_day(datetime(2026, 1, 1, 6)), 'morning')
        self.assertEqual(time_of_day(datetime(2026, 1, 1, 12)), 'afternoon')
        self.assertEqual(time_of_day(datetime(2026, 1, 1, 18)), 'evening')
        self.assertEqual(time_of_day(datetime(2026, 1, 1, 22)), 'night')
        self.assertEqual(time_of_day(datetime(2026, 1, 1, 3)), 'night')

    def test_mood_trend_defaults_to_five(self):
        self.journal.add_emotion('happy', 9)
        self.journal.add_emotion('calm', 7)
        trend = self.journal.mood_trend(3)
        self.assertEqual(len(trend), 3)
        self.assertEqual(trend[0]['averageMood'], 5)
        self.assertEqual(trend[-1], {'date': timezone.localdate().isoformat(), 'averageMood': 8})

    def test_update_and_delete(self):
        entry = self.journal.add_emotion('calm', 6)
        updated = self.journal.update_emotion(entry['id'], intensity=8, id='other')
        self.assertEqual(updated['intensity'], 8)
        self.assertEqual(updated['id'], entry['id'])
        with self.assertRaises(InvalidEmotionError):
            self.journal.update_emotion(entry['id'], intensity=0)
        self.assertTrue(self.journal.delete_emotion(entry['id']))
        self.assertFalse(self.journal.delete_emotion(entry['id']))

    def test_weekly_summary(self):
        self.assertIsNone(self.journal.weekly_summary()['mostFrequentEmotion'])
        now = timezone.now()
        self.add_at(now - timedelta(days=2), 'stressed', 3)
        self.add_at(now - timedelta(days=1), 'stressed', 4)
        self.add_at(now, 'happy', 9)

        summary = self.journal.weekly_summary()
        self.assertEqual(summary['mostFrequentEmotion'], 'stressed')
        self.assertEqual(summary['bestDay']['score'], 9)
        self.assertEqual(summary['worstDay']['score'], 3)
        self.assertIn('respiração', summary['suggestions'][0])
