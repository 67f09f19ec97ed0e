import logging
from typing import Any, Dict, List, Optional

from django.utils import timezone

logger = logging.getLogger(__name__)

EXPERIENCE_PER_LEVEL = 1000
STARTING_POINTS = 1500

SAMPLE_ACHIEVEMENTS = (
    {
        'id': '1', 'title': 'Primeiro Passo', 'description': 'Complete sua primeira atividade',
        'icon': '🎯', 'progress': 1, 'total': 1, 'completed': True, 'points': 50,
        'category': 'daily', 'rarity': 'common',
    },
    {
        'id': '2', 'title': 'Mestre da Consistência',
        'description': 'Complete todas as tarefas diárias por 7 dias seguidos',
        'icon': '🏆', 'progress': 3, 'total': 7, 'completed': False, 'points': 200,
        'category': 'weekly', 'rarity': 'rare',
    },
    {
        'id': '3', 'title': 'Guru da Meditação', 'description': 'Complete 30 dias de meditação',
        'icon': '🧘', 'progress': 15, 'total': 30, 'completed': False, 'points': 500,
        'category': 'monthly', 'rarity': 'epic',
    },
)

SAMPLE_STORE_ITEMS = (
    {
        'id': '1', 'name': 'Tema Galáctico', 'description': 'Um tema espacial exclusivo para seu perfil',
        'price': 1000, 'category': 'themes', 'rarity': 'epic',
    },
    {
        'id': '2', 'name': 'Badge Diamante', 'description': 'Mostre seu status com este badge exclusivo',
        'price': 2000, 'category': 'badges', 'rarity': 'legendary',
    },
    {
        'id': '3', 'name': 'Efeito Aurora', 'description': 'Adicione um brilho especial ao seu nome',
        'price': 500, 'category': 'effects', 'rarity': 'rare',
    },
)


class RewardsError(Exception):
    pass


class InsufficientPointsError(RewardsError):
    """Raised when a purchase costs more points than the user has."""

    def __init__(self, price, points):
        super().__init__(f"Item costs {price} points, only {points} available")
        self.price = price
        self.points = points


class ItemUnavailableError(RewardsError):
    """Raised for unknown items, items already owned, or equipping an item not owned."""


def level_for(experience: int) -> int:
    return experience // EXPERIENCE_PER_LEVEL + 1


def title_for(level: int) -> str:
    if level > 10:
        return 'Especialista'
    if level > 5:
        return 'Intermediário'
    return 'Iniciante'


class Rewards:
    """Achievements, store and profile of the gamified rewards system."""

    ACHIEVEMENTS_KEY = 'rewards_achievements'
    STORE_KEY = 'rewards_store_items'
    PROFILE_KEY = 'rewards_user_profile'

    def __init__(self, repository):
        self.repository = repository

    def _load_or_seed(self, key, samples):
        value = self.repository.load(key)
        if value is None:
            value = [dict(sample) for sample in samples]
            if key == self.ACHIEVEMENTS_KEY:
                for achievement in value:
                    if achievement['completed']:
                        achievement['unlockedAt'] = timezone.now().isoformat()
            self.repository.save(key, value)
        return value

    @property
    def achievements(self) -> List[Dict[str, Any]]:
        return self._load_or_seed(self.ACHIEVEMENTS_KEY, SAMPLE_ACHIEVEMENTS)

    @property
    def store_items(self) -> List[Dict[str, Any]]:
        return self._load_or_seed(self.STORE_KEY, SAMPLE_STORE_ITEMS)

    @property
    def profile(self) -> Dict[str, Any]:
        return self.repository.load(self.PROFILE_KEY, {
            'level': 1,
            'experience': 0,
            'points': STARTING_POINTS,
            'title': title_for(1),
            'badges': [],
            'equippedItems': {},
        })

    def _save_profile(self, profile):
        self.repository.save(self.PROFILE_KEY, profile)

    def update_achievement_progress(self, achievement_id: str, progress: int) -> Optional[Dict[str, Any]]:
        """Set progress, capped at the total. Completion awards the points once."""
        achievements = self.achievements
        achievement = next((a for a in achievements if a['id'] == achievement_id), None)
        if achievement is None:
            return None

        progress = min(progress, achievement['total'])
        completed = progress >= achievement['total']
        if completed and not achievement['completed']:
            achievement['unlockedAt'] = timezone.now().isoformat()
            self.add_points(achievement['points'])
            logger.info(f"Achievement '{achievement['title']}' unlocked (+{achievement['points']} points)")
        achievement['progress'] = progress
        achievement['completed'] = completed
        self.repository.save(self.ACHIEVEMENTS_KEY, achievements)
        return achievement

    def purchase_item(self, item_id: str) -> Dict[str, Any]:
        items = self.store_items
        item = next((i for i in items if i['id'] == item_id), None)
        if item is None or item.get('owned'):
            raise ItemUnavailableError(f"Item {item_id} is not available")
        profile = self.profile
        if profile['points'] < item['price']:
            raise InsufficientPointsError(item['price'], profile['points'])

        profile['points'] -= item['price']
        item['owned'] = True
        self._save_profile(profile)
        self.repository.save(self.STORE_KEY, items)
        return item

    def equip_item(self, item_id: str) -> Dict[str, Any]:
        """Equip an owned item, replacing whatever was equipped in its category."""
        items = self.store_items
        item = next((i for i in items if i['id'] == item_id), None)
        if item is None or not item.get('owned'):
            raise ItemUnavailableError(f"Item {item_id} is not owned")

        for other in items:
            if other['category'] == item['category']:
                other['equipped'] = other['id'] == item_id
        profile = self.profile
        profile['equippedItems'][item['category']] = item_id
        self._save_profile(profile)
        self.repository.save(self.STORE_KEY, items)
        return item

    def add_experience(self, amount: int) -> Dict[str, Any]:
        profile = self.profile
        profile['experience'] += amount
        profile['level'] = level_for(profile['experience'])
        profile['title'] = title_for(profile['level'])
        self._save_profile(profile)
        return profile

    def add_points(self, amount: int) -> Dict[str, Any]:
        profile = self.profile
        profile['points'] += amount
        self._save_profile(profile)
        return profile

    def available_items(self) -> List[Dict[str, Any]]:
        return [item for item in self.store_items if not item.get('owned')]

    def owned_items(self) -> List[Dict[str, Any]]:
        return [item for item in self.store_items if item.get('owned')]
