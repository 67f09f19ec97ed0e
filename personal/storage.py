"""
Local repository for per-user scratch data.

Domain services never talk to a storage medium directly. They receive a
``LocalRepository``, which namespaces keys and JSON-encodes values on top of
any ``KeyValueStore``: an in-memory dict for tests and scripts, or the
``StoredDocument`` table for real users.
"""

import json
import logging
from typing import Any, Dict, Iterable, Optional

from django.core.serializers.json import DjangoJSONEncoder

from .models import StoredDocument

logger = logging.getLogger(__name__)


class KeyValueStore:
    """String-to-string storage interface."""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> Iterable[str]:
        raise NotImplementedError


class MemoryStore(KeyValueStore):

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items = dict(initial or {})

    def get_item(self, key):
        return self._items.get(key)

    def set_item(self, key, value):
        self._items[key] = value

    def remove_item(self, key):
        self._items.pop(key, None)

    def keys(self):
        return list(self._items)


class DocumentStore(KeyValueStore):
    """Store backed by the user's ``StoredDocument`` rows."""

    def __init__(self, user):
        self.user = user

    def get_item(self, key):
        document = StoredDocument.objects.filter(user=self.user, key=key).first()
        return document.value if document else None

    def set_item(self, key, value):
        StoredDocument.objects.update_or_create(user=self.user, key=key, defaults={'value': value})

    def remove_item(self, key):
        StoredDocument.objects.filter(user=self.user, key=key).delete()

    def keys(self):
        return list(StoredDocument.objects.filter(user=self.user).values_list('key', flat=True))


class LocalRepository:
    """JSON values under ``<namespace>:<key>`` in a key-value store."""

    def __init__(self, store: KeyValueStore, namespace: str):
        self.store = store
        self.namespace = namespace

    @classmethod
    def for_user(cls, user, namespace: str) -> 'LocalRepository':
        return cls(DocumentStore(user), namespace)

    def _key(self, key):
        return f'{self.namespace}:{key}'

    def load(self, key: str, default: Any = None) -> Any:
        raw = self.store.get_item(self._key(key))
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Discarding unreadable value for {self._key(key)}: {e}")
            return default

    def save(self, key: str, value: Any) -> None:
        self.store.set_item(self._key(key), json.dumps(value, cls=DjangoJSONEncoder))

    def remove(self, key: str) -> None:
        self.store.remove_item(self._key(key))

    def clear(self) -> None:
        prefix = f'{self.namespace}:'
        for key in list(self.store.keys()):
            if key.startswith(prefix):
                self.store.remove_item(key)
