from django.test import SimpleTestCase

from personal.services.rewards import (
    STARTING_POINTS, InsufficientPointsError, ItemUnavailableError, Rewards, level_for, title_for,
)
from personal.storage import LocalRepository, MemoryStore


class RewardsTestCase(SimpleTestCase):

    def setUp(self):
        self.rewards = Rewards(LocalRepository(MemoryStore(), 'rewards'))

    def test_initial_profile(self):
        profile = self.rewards.profile
        self.assertEqual(profile['points'], STARTING_POINTS)
        self.assertEqual(profile['level'], 1)
        self.assertEqual(profile['title'], 'Iniciante')

    def test_levels_and_titles(self):
        self.assertEqual(level_for(999), 1)
        self.assertEqual(level_for(1000), 2)
        self.assertEqual(title_for(6), 'Intermediário')
        self.assertEqual(title_for(11), 'Especialista')
        profile = self.rewards.add_experience(5500)
        self.assertEqual((profile['level'], profile['title']), (6, 'Intermediário'))

    def test_purchase_spends_points(self):
        item = self.rewards.purchase_item('3')
        self.assertTrue(item['owned'])
        self.assertEqual(self.rewards.profile['points'], STARTING_POINTS - 500)
        self.assertEqual([i['id'] for i in self.rewards.owned_items()], ['3'])
        with self.assertRaises(ItemUnavailableError):
            self.rewards.purchase_item('3')

    def test_purchase_without_points_changes_nothing(self):
        with self.assertRaises(InsufficientPointsError):
            self.rewards.purchase_item('2')
        self.assertEqual(self.rewards.profile['points'], STARTING_POINTS)
        self.assertEqual(len(self.rewards.available_items()), 3)

    def test_equip_requires_ownership(self):
        with self.assertRaises(ItemUnavailableError):
            self.rewards.equip_item('1')
        self.rewards.purchase_item('1')
        self.rewards.equip_item('1')
        self.assertEqual(self.rewards.profile['equippedItems'], {'themes': '1'})

    def test_equip_keeps_other_categories(self):
        self.rewards.add_points(1000)
        self.rewards.purchase_item('1')
        self.rewards.purchase_item('3')
        self.rewards.equip_item('1')
        self.rewards.equip_item('3')
        equipped = {item['id'] for item in self.rewards.store_items if item.get('equipped')}
        self.assertEqual(equipped, {'1', '3'})

    def test_completing_an_achievement_awards_points_once(self):
        achievement = self.rewards.update_achievement_progress('2', 10)
        self.assertTrue(achievement['completed'])
        self.assertEqual(achievement['progress'], 7)
        self.assertIn('unlockedAt', achievement)
        self.rewards.update_achievement_progress('2', 7)
        self.assertEqual(self.rewards.profile['points'], STARTING_POINTS + 200)
        self.assertIsNone(self.rewards.update_achievement_progress('99', 1))
