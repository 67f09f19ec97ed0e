import uuid
from datetime import timedelta
from typing import Any, Dict, List, Optional

from django.utils import timezone

POST_CATEGORIES = ('achievement', 'question', 'inspiration', 'support')


def _sample_posts():
    now = timezone.now()
    return [
        {
            'id': '1', 'userId': '1', 'userName': 'Ana Silva',
            'content': 'Acabei de completar meu desafio de 30 dias de meditação! Nunca pensei que '
                       'conseguiria manter a consistência. Alguém mais está na jornada da meditação?',
            'category': 'achievement', 'likes': 24, 'comments': [], 'isLiked': False,
            'timestamp': now.isoformat(), 'userLevel': 15, 'userMood': 'happy',
            'tags': ['meditação', 'consistência', 'bem-estar'],
        },
        {
            'id': '2', 'userId': '2', 'userName': 'Carlos Santos',
            'content': 'Alguém tem dicas para manter o foco durante longas sessões de estudo? Estou tendo '
                       'dificuldade em manter a concentração por mais de 30 minutos.',
            'category': 'question', 'likes': 12, 'comments': [], 'isLiked': False,
            'timestamp': (now - timedelta(hours=1)).isoformat(), 'userLevel': 8, 'userMood': 'neutral',
            'tags': ['estudo', 'foco', 'produtividade'],
        },
    ]


SAMPLE_GROUPS = (
    {
        'id': '1', 'name': 'Mindfulness & Meditação',
        'description': 'Grupo para praticantes e interessados em mindfulness',
        'members': 1240, 'category': 'Bem-estar', 'isJoined': False,
    },
    {
        'id': '2', 'name': 'Desenvolvimento Pessoal',
        'description': 'Compartilhe sua jornada de crescimento',
        'members': 890, 'category': 'Desenvolvimento', 'isJoined': False,
    },
)


class Community:
    """Community feed, groups and the author profile used for new posts."""

    POSTS_KEY = 'community_posts'
    GROUPS_KEY = 'community_groups'
    PROFILE_KEY = 'community_user_profile'

    def __init__(self, repository, display_name: str = 'Você'):
        self.repository = repository
        self.display_name = display_name

    @property
    def posts(self) -> List[Dict[str, Any]]:
        posts = self.repository.load(self.POSTS_KEY)
        if posts is None:
            posts = _sample_posts()
            self.repository.save(self.POSTS_KEY, posts)
        return posts

    @property
    def groups(self) -> List[Dict[str, Any]]:
        groups = self.repository.load(self.GROUPS_KEY)
        if groups is None:
            groups = [dict(group) for group in SAMPLE_GROUPS]
            self.repository.save(self.GROUPS_KEY, groups)
        return groups

    @property
    def profile(self) -> Dict[str, Any]:
        return self.repository.load(self.PROFILE_KEY, {
            'id': 'current-user',
            'name': self.display_name,
            'level': 1,
            'points': 0,
            'joinedAt': timezone.now().isoformat(),
            'bio': '',
            'interests': [],
            'achievements': [],
        })

    def update_profile(self, **updates) -> Dict[str, Any]:
        updates.pop('id', None)
        profile = {**self.profile, **updates}
        self.repository.save(self.PROFILE_KEY, profile)
        return profile

    # Posts

    def _save_posts(self, posts):
        self.repository.save(self.POSTS_KEY, posts)

    def _find_post(self, posts, post_id):
        return next((post for post in posts if post['id'] == post_id), None)

    def add_post(self, content: str, category: str, tags=None, mood: Optional[str] = None) -> Dict[str, Any]:
        if category not in POST_CATEGORIES:
            raise ValueError(f"Unknown post category: {category}")
        profile = self.profile
        post = {
            'id': str(uuid.uuid4()),
            'userId': profile['id'],
            'userName': profile['name'],
            'content': content,
            'category': category,
            'likes': 0,
            'comments': [],
            'isLiked': False,
            'timestamp': timezone.now().isoformat(),
            'userLevel': profile['level'],
            'userMood': mood,
            'tags': list(tags or []),
        }
        self._save_posts([post] + self.posts)
        return post

    def update_post(self, post_id: str, **updates) -> Optional[Dict[str, Any]]:
        for protected in ('id', 'likes', 'comments', 'isLiked', 'timestamp'):
            updates.pop(protected, None)
        posts = self.posts
        post = self._find_post(posts, post_id)
        if post is not None:
            post.update(updates)
            self._save_posts(posts)
        return post

    def delete_post(self, post_id: str) -> bool:
        posts = self.posts
        remaining = [post for post in posts if post['id'] != post_id]
        self._save_posts(remaining)
        return len(remaining) != len(posts)

    def like_post(self, post_id: str) -> Optional[Dict[str, Any]]:
        """Toggle the like of the current user on a post."""
        posts = self.posts
        post = self._find_post(posts, post_id)
        if post is not None:
            post['likes'] += -1 if post.get('isLiked') else 1
            post['isLiked'] = not post.get('isLiked')
            self._save_posts(posts)
        return post

    def add_comment(self, post_id: str, content: str) -> Optional[Dict[str, Any]]:
        posts = self.posts
        post = self._find_post(posts, post_id)
        if post is None:
            return None
        profile = self.profile
        comment = {
            'id': str(uuid.uuid4()),
            'userId': profile['id'],
            'userName': profile['name'],
            'content': content,
            'timestamp': timezone.now().isoformat(),
            'likes': 0,
            'isLiked': False,
        }
        post['comments'].append(comment)
        self._save_posts(posts)
        return comment

    def like_comment(self, post_id: str, comment_id: str) -> Optional[Dict[str, Any]]:
        posts = self.posts
        post = self._find_post(posts, post_id)
        comment = next((c for c in post['comments'] if c['id'] == comment_id), None) if post else None
        if comment is not None:
            comment['likes'] += -1 if comment.get('isLiked') else 1
            comment['isLiked'] = not comment.get('isLiked')
            self._save_posts(posts)
        return comment

    def posts_by_category(self, category: str) -> List[Dict[str, Any]]:
        return [post for post in self.posts if post['category'] == category]

    def posts_by_tag(self, tag: str) -> List[Dict[str, Any]]:
        return [post for post in self.posts if tag in post['tags']]

    def search_posts(self, query: str) -> List[Dict[str, Any]]:
        query = query.lower()
        return [
            post for post in self.posts
            if query in post['content'].lower()
            or query in post['userName'].lower()
            or any(query in tag.lower() for tag in post['tags'])
        ]

    # Groups

    def create_group(self, name: str, description: str, category: str) -> Dict[str, Any]:
        group = {
            'id': str(uuid.uuid4()),
            'name': name,
            'description': description,
            'category': category,
            'members': 1,
            'isJoined': True,
        }
        self.repository.save(self.GROUPS_KEY, self.groups + [group])
        return group

    def join_group(self, group_id: str) -> Optional[Dict[str, Any]]:
        """Toggle membership of a group."""
        groups = self.groups
        group = next((g for g in groups if g['id'] == group_id), None)
        if group is not None:
            group['members'] += -1 if group.get('isJoined') else 1
            group['isJoined'] = not group.get('isJoined')
            self.repository.save(self.GROUPS_KEY, groups)
        return group

    def leave_group(self, group_id: str) -> Optional[Dict[str, Any]]:
        groups = self.groups
        group = next((g for g in groups if g['id'] == group_id), None)
        if group is not None and group.get('isJoined'):
            group['members'] -= 1
            group['isJoined'] = False
            self.repository.save(self.GROUPS_KEY, groups)
        return group
