"""
Key translation between the client form (camelCase) and the storage form
(snake_case columns) of development rows.

Two modes are offered. The bare functions apply regex substitution to every
key and are used for free-form payloads such as the JSON returned by the AI.
Passing a ``FieldMap`` switches to dictionary lookups over an enumerated
table of fields, which is what the journey uses for every persisted entity.
"""

import re
from typing import Any, Dict, Iterable, Optional, Tuple

_UPPER = re.compile(r'[A-Z]')
_UNDERSCORE_WORD = re.compile(r'_(\w)')

# Keys that only exist in memory and are never written
TRANSIENT_KEYS = ('children', 'temp_id')


class UnknownFieldError(KeyError):
    """Raised when a key is not enumerated by the field map in use."""

    def __init__(self, table, field_name):
        super().__init__(field_name)
        self.table = table
        self.field_name = field_name

    def __str__(self):
        return f"Unknown field '{self.field_name}' for {self.table}"


def camel_to_snake(name: str) -> str:
    return _UPPER.sub(lambda match: f'_{match.group(0).lower()}', name)


def snake_to_camel(name: str) -> str:
    return _UNDERSCORE_WORD.sub(lambda match: match.group(1).upper(), name)


class FieldMap:
    """Enumerated client name <-> storage column table for one entity."""

    def __init__(self, table: str, pairs: Iterable[Tuple[str, str]], transient: Iterable[str] = ()):
        self.table = table
        self.to_storage = dict(pairs)
        self.to_client = {column: name for name, column in self.to_storage.items()}
        self.transient = frozenset(transient)

    def storage_name(self, name: str) -> str:
        try:
            return self.to_storage[name]
        except KeyError:
            raise UnknownFieldError(self.table, name)

    def client_name(self, column: str) -> str:
        try:
            return self.to_client[column]
        except KeyError:
            raise UnknownFieldError(self.table, column)


def to_storage_form(obj: Dict[str, Any], field_map: Optional[FieldMap] = None) -> Dict[str, Any]:
    """
    Convert a client-form dict to storage form.

    Empty strings become None, the storage convention for "no value".
    In-memory keys (``children``, ``tempId``) are dropped.
    """
    converted = {}
    for key, value in obj.items():
        if field_map is not None:
            if key in field_map.transient:
                continue
            column = field_map.storage_name(key)
        else:
            column = camel_to_snake(key)
            if column in TRANSIENT_KEYS:
                continue
        converted[column] = None if value == '' else value
    return converted


def from_storage_form(row: Dict[str, Any], field_map: Optional[FieldMap] = None) -> Dict[str, Any]:
    """Convert a storage row to client form. Values are left untouched."""
    if field_map is not None:
        return {field_map.client_name(column): value for column, value in row.items()}
    return {snake_to_camel(column): value for column, value in row.items()}


PLAN_FIELDS = FieldMap(
    'development_plans',
    [
        ('id', 'id'),
        ('userId', 'user_id'),
        ('title', 'title'),
        ('description', 'description'),
        ('category', 'category'),
        ('startDate', 'start_date'),
        ('targetDate', 'target_date'),
        ('progress', 'progress'),
        ('createdAt', 'created_at'),
    ],
    transient=('milestones', 'habits', 'skillTree'),
)

MILESTONE_FIELDS = FieldMap(
    'milestones',
    [
        ('id', 'id'),
        ('planId', 'plan_id'),
        ('title', 'title'),
        ('description', 'description'),
        ('completed', 'completed'),
        ('dueDate', 'due_date'),
        ('completedDate', 'completed_date'),
        ('isCustom', 'is_custom'),
        ('requiredSkillId', 'required_skill_id'),
        ('requiredLevel', 'required_level'),
        ('createdAt', 'created_at'),
    ],
    transient=('isLocked',),
)

HABIT_FIELDS = FieldMap(
    'habits',
    [
        ('id', 'id'),
        ('planId', 'plan_id'),
        ('title', 'title'),
        ('description', 'description'),
        ('frequency', 'frequency'),
        ('timeOfDay', 'time_of_day'),
        ('streak', 'streak'),
        ('lastCompleted', 'last_completed'),
        ('linkedSkillId', 'linked_skill_id'),
        ('xpReward', 'xp_reward'),
        ('isCustom', 'is_custom'),
        ('createdAt', 'created_at'),
    ],
)

SKILL_FIELDS = FieldMap(
    'skills',
    [
        ('id', 'id'),
        ('planId', 'plan_id'),
        ('parentId', 'parent_id'),
        ('name', 'name'),
        ('level', 'level'),
        ('progress', 'progress'),
        ('isCustom', 'is_custom'),
        ('createdAt', 'created_at'),
    ],
    transient=('children', 'tempId'),
)
