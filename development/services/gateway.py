"""
Persistence gateway over the Django ORM.

Rows travel in storage form (snake_case column names, foreign keys as
``<name>_id``). Each table exposes select / insert / update / delete filtered
by column equality, or by membership when the filter value is a list, tuple
or set. Database failures never escape as exceptions: they come back on the
response object, and callers decide when to raise with ``unwrap()``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from django.core.exceptions import FieldError, ObjectDoesNotExist, ValidationError
from django.db import DatabaseError, transaction

from ..models import DevelopmentPlan, Habit, Milestone, Skill

logger = logging.getLogger(__name__)


TABLES = {
    'development_plans': DevelopmentPlan,
    'milestones': Milestone,
    'habits': Habit,
    'skills': Skill,
}

GATEWAY_FAILURES = (DatabaseError, FieldError, ObjectDoesNotExist, ValidationError, TypeError, ValueError)


class GatewayError(Exception):
    """Raised when a gateway response carrying an error is unwrapped."""

    def __init__(self, message, code=None, table=None):
        super().__init__(message)
        self.code = code
        self.table = table


@dataclass
class GatewayErrorDetail:
    message: str
    code: str
    table: Optional[str] = None


@dataclass
class GatewayResponse:
    data: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[GatewayErrorDetail] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> List[Dict[str, Any]]:
        if self.error is not None:
            raise GatewayError(self.error.message, code=self.error.code, table=self.error.table)
        return self.data


def _lookup_filters(filters: Dict[str, Any]) -> Dict[str, Any]:
    lookups = {}
    for column, value in filters.items():
        if isinstance(value, (list, tuple, set, frozenset)):
            lookups[f'{column}__in'] = list(value)
        else:
            lookups[column] = value
    return lookups


class TableGateway:
    """CRUD operations on one table."""

    def __init__(self, name: str, model):
        self.name = name
        self.model = model

    def _failure(self, operation: str, exc: Exception) -> GatewayResponse:
        logger.error(f"Gateway {operation} on {self.name} failed: {exc}")
        return GatewayResponse(
            error=GatewayErrorDetail(message=str(exc), code=type(exc).__name__, table=self.name)
        )

    def _queryset(self, filters):
        return self.model.objects.filter(**_lookup_filters(filters))

    def select(self, order_by: Optional[Iterable[str]] = None, **filters) -> GatewayResponse:
        try:
            queryset = self._queryset(filters)
            if order_by:
                queryset = queryset.order_by(*order_by)
            with transaction.atomic():
                data = list(queryset.values())
            return GatewayResponse(data=data)
        except GATEWAY_FAILURES as e:
            return self._failure('select', e)

    def insert(self, rows) -> GatewayResponse:
        if isinstance(rows, dict):
            rows = [rows]
        try:
            with transaction.atomic():
                instances = []
                for row in rows:
                    instance = self.model(**row)
                    instance.save(force_insert=True)
                    instances.append(instance)
            pks = [instance.pk for instance in instances]
            inserted = {row['id']: row for row in self.model.objects.filter(pk__in=pks).values()}
            return GatewayResponse(data=[inserted[pk] for pk in pks if pk in inserted])
        except GATEWAY_FAILURES as e:
            return self._failure('insert', e)

    def update(self, patch: Dict[str, Any], **filters) -> GatewayResponse:
        if not filters:
            return GatewayResponse(
                error=GatewayErrorDetail(
                    message="update requires at least one filter", code='MissingFilter', table=self.name
                )
            )
        try:
            with transaction.atomic():
                pks = list(self._queryset(filters).values_list('pk', flat=True))
                if patch:
                    self.model.objects.filter(pk__in=pks).update(**patch)
            return GatewayResponse(data=list(self.model.objects.filter(pk__in=pks).values()))
        except GATEWAY_FAILURES as e:
            return self._failure('update', e)

    def delete(self, **filters) -> GatewayResponse:
        if not filters:
            return GatewayResponse(
                error=GatewayErrorDetail(
                    message="delete requires at least one filter", code='MissingFilter', table=self.name
                )
            )
        try:
            with transaction.atomic():
                queryset = self._queryset(filters)
                deleted = list(queryset.values())
                queryset.delete()
            return GatewayResponse(data=deleted)
        except GATEWAY_FAILURES as e:
            return self._failure('delete', e)


class PersistenceGateway:
    """Entry point addressing tables by name."""

    def __init__(self, tables=None):
        self.tables = dict(tables or TABLES)

    def table(self, name: str) -> TableGateway:
        try:
            return TableGateway(name, self.tables[name])
        except KeyError:
            raise GatewayError(f"Unknown table: {name}", code='UnknownTable', table=name)
