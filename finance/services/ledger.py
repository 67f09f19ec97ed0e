"""
Personal finance ledger.

Wraps a user's transactions, financial goals and categories with the
aggregates the dashboard needs (balance, period totals, cash flow, savings
rate) and with JSON export/import of the whole dataset.
"""

import calendar
import json
import logging
import math
from collections import OrderedDict
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction as db_transaction
from django.db.models import Sum
from django.utils import timezone

from shalom.exceptions import ConfirmationRequired, ImportFormatError

from ..models import Category, FinancialGoal, Transaction

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = (
    ('Salário', '💼', 'green', 'income'),
    ('Freelance', '💻', 'blue', 'income'),
    ('Investimentos', '📈', 'purple', 'income'),
    ('Outros', '💰', 'gray', 'income'),
    ('Moradia', '🏠', 'blue', 'expense'),
    ('Transporte', '🚗', 'green', 'expense'),
    ('Alimentação', '🍽️', 'orange', 'expense'),
    ('Assinaturas e Serviços', '📱', 'purple', 'expense'),
    ('Compras Pessoais', '🛍️', 'pink', 'expense'),
    ('Cuidado Pessoal', '💆', 'teal', 'expense'),
    ('Educação e Desenvolvimento', '📚', 'indigo', 'expense'),
    ('Doações e Ajuda', '🤝', 'yellow', 'expense'),
    ('Saúde e Bem-estar', '⚕️', 'red', 'expense'),
    ('Lazer e Viagens', '✈️', 'cyan', 'expense'),
    ('Investimentos', '📈', 'emerald', 'expense'),
    ('Gastos Imprevistos', '⚡', 'amber', 'expense'),
    ('Impostos e Burocracias', '📄', 'gray', 'expense'),
    ('Cartão de Crédito', '💳', 'rose', 'expense'),
)

TRANSACTION_TYPES = ('income', 'expense')
TOTAL_PERIODS = ('day', 'week', 'month')
CASH_FLOW_PERIODS = ('week', 'month', 'year')

ZERO = Decimal('0')


class LedgerError(Exception):
    pass


class CategoryMismatchError(LedgerError):
    """Raised when a transaction's type differs from its category's type."""

    def __init__(self, category, transaction_type):
        super().__init__(f"Category '{category}' does not accept {transaction_type} transactions")
        self.category = category
        self.transaction_type = transaction_type


def _subtract_months(day: date, months: int) -> date:
    month_index = day.year * 12 + day.month - 1 - months
    year, month = divmod(month_index, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def period_start(period: str, today: Optional[date] = None) -> date:
    """First day counted by day/week/month totals. Weeks start on Sunday."""
    today = today or timezone.localdate()
    if period == 'day':
        return today
    if period == 'week':
        return today - timedelta(days=(today.weekday() + 1) % 7)
    if period == 'month':
        return today.replace(day=1)
    raise ValueError(f"Unknown period: {period}")


def cash_flow_start(period: str, today: Optional[date] = None) -> date:
    today = today or timezone.localdate()
    if period == 'week':
        return today - timedelta(days=7)
    if period == 'month':
        return _subtract_months(today, 1)
    if period == 'year':
        return _subtract_months(today, 12)
    raise ValueError(f"Unknown cash flow period: {period}")


def transaction_as_dict(transaction: Transaction) -> Dict[str, Any]:
    return {
        'id': transaction.id,
        'type': transaction.type,
        'category': transaction.category,
        'description': transaction.description,
        'amount': float(transaction.amount),
        'date': transaction.date,
        'is_recurring': transaction.is_recurring,
        'created_at': transaction.created_at,
    }


def goal_as_dict(goal: FinancialGoal) -> Dict[str, Any]:
    return {
        'id': goal.id,
        'title': goal.title,
        'target_amount': float(goal.target_amount),
        'current_amount': float(goal.current_amount),
        'target_date': goal.target_date,
        'created_at': goal.created_at,
    }


def category_as_dict(category: Category) -> Dict[str, Any]:
    return {
        'id': category.id,
        'name': category.name,
        'icon': category.icon,
        'color': category.color,
        'type': category.type,
        'budget': float(category.budget) if category.budget is not None else None,
        'is_custom': category.is_custom,
    }


# DecimalField(max_digits=12, decimal_places=2)
MAX_AMOUNT = Decimal('9999999999.99')
CENT = Decimal('0.01')


def _import_text(row: Dict[str, Any], key: str, max_length: int) -> str:
    value = row.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ImportFormatError(f"'{key}' must be a non-empty string")
    if len(value.strip()) > max_length:
        raise ImportFormatError(f"'{key}' is longer than {max_length} characters")
    return value.strip()


def _import_amount(value, key: str, minimum: Decimal = CENT) -> Decimal:
    if isinstance(value, bool):
        raise ImportFormatError(f"'{key}' is not a number: {value!r}")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ImportFormatError(f"'{key}' is not a number: {value!r}")
    if not amount.is_finite() or abs(amount) > MAX_AMOUNT:
        raise ImportFormatError(f"'{key}' is out of range: {value!r}")
    amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if amount < minimum:
        raise ImportFormatError(f"'{key}' must be at least {minimum}")
    return amount


def _import_date(value, key: str) -> date:
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ImportFormatError(f"'{key}' is not an ISO date: {value!r}")


class Ledger:
    """Financial dataset of one user."""

    def __init__(self, user):
        self.user = user

    # Categories

    def categories(self, transaction_type: Optional[str] = None) -> List[Category]:
        if not Category.objects.filter(user=self.user).exists():
            Category.objects.bulk_create([
                Category(user=self.user, name=name, icon=icon, color=color, type=kind)
                for name, icon, color, kind in DEFAULT_CATEGORIES
            ])
        queryset = Category.objects.filter(user=self.user)
        if transaction_type:
            queryset = queryset.filter(type=transaction_type)
        return list(queryset)

    def add_category(self, name: str, transaction_type: str, icon: str = '', color: str = 'gray',
                     budget=None) -> Category:
        if transaction_type not in TRANSACTION_TYPES:
            raise ValueError(f"Unknown transaction type: {transaction_type}")
        self.categories()
        category, _ = Category.objects.get_or_create(
            user=self.user, name=name, type=transaction_type,
            defaults={'icon': icon, 'color': color, 'budget': budget, 'is_custom': True},
        )
        return category

    def _check_category(self, category: str, transaction_type: str):
        if transaction_type not in TRANSACTION_TYPES:
            raise ValueError(f"Unknown transaction type: {transaction_type}")
        names = {c.name for c in self.categories(transaction_type)}
        if category not in names:
            raise CategoryMismatchError(category, transaction_type)

    # Transactions

    def transactions(self):
        return Transaction.objects.filter(user=self.user)

    def add_transaction(self, type: str, category: str, amount, date, description: str = '',
                        is_recurring: bool = False) -> Transaction:
        self._check_category(category, type)
        transaction = Transaction.objects.create(
            user=self.user, type=type, category=category, amount=amount, date=date,
            description=description, is_recurring=is_recurring,
        )
        logger.info(f"Transaction {transaction.id} ({type} {amount}) added for user {self.user.id}")
        return transaction

    def update_transaction(self, transaction_id, **updates) -> Transaction:
        transaction = self.transactions().get(pk=transaction_id)
        for field in ('type', 'category', 'amount', 'date', 'description', 'is_recurring'):
            if field in updates:
                setattr(transaction, field, updates[field])
        self._check_category(transaction.category, transaction.type)
        transaction.save()
        return transaction

    def delete_transaction(self, transaction_id) -> bool:
        deleted, _ = self.transactions().filter(pk=transaction_id).delete()
        return deleted > 0

    # Goals

    def goals(self):
        return FinancialGoal.objects.filter(user=self.user)

    def add_goal(self, title: str, target_amount, target_date) -> FinancialGoal:
        return FinancialGoal.objects.create(
            user=self.user, title=title, target_amount=target_amount,
            target_date=target_date, current_amount=ZERO,
        )

    def delete_goal(self, goal_id) -> bool:
        deleted, _ = self.goals().filter(pk=goal_id).delete()
        return deleted > 0

    def contribute_to_goal(self, goal_id, amount) -> FinancialGoal:
        goal = self.goals().get(pk=goal_id)
        goal.current_amount += Decimal(str(amount))
        goal.save(update_fields=['current_amount'])
        return goal

    @staticmethod
    def goal_progress(goal: FinancialGoal) -> int:
        """Percentage of the target reached, capped at 100."""
        if not goal.target_amount:
            return 0
        return min(100, int(math.floor(goal.current_amount * 100 / goal.target_amount + Decimal('0.5'))))

    # Aggregates

    def _total(self, queryset) -> Decimal:
        return queryset.aggregate(total=Sum('amount'))['total'] or ZERO

    def balance(self) -> Decimal:
        transactions = self.transactions()
        return self._total(transactions.filter(type='income')) - self._total(transactions.filter(type='expense'))

    def income_total(self, period: str = 'month') -> Decimal:
        return self._total(self.transactions().filter(type='income', date__gte=period_start(period)))

    def expense_total(self, period: str = 'month') -> Decimal:
        return self._total(self.transactions().filter(type='expense', date__gte=period_start(period)))

    def transactions_by_category(self, period: str = 'month') -> List[Dict[str, Any]]:
        rows = (
            self.transactions()
            .filter(date__gte=period_start(period))
            .values('category')
            .annotate(total=Sum('amount'))
            .order_by('-total', 'category')
        )
        return [{'category': row['category'], 'total': row['total']} for row in rows]

    def cash_flow(self, period: str = 'month') -> List[Dict[str, Any]]:
        """
        Daily income, expenses and running balance since the period start.

        The running balance starts from the balance of everything before
        the window.
        """
        start = cash_flow_start(period)
        before = self.transactions().filter(date__lt=start)
        running = self._total(before.filter(type='income')) - self._total(before.filter(type='expense'))

        days: Dict[date, Dict[str, Decimal]] = OrderedDict()
        for transaction in self.transactions().filter(date__gte=start).order_by('date', 'created_at'):
            day = days.setdefault(transaction.date, {'income': ZERO, 'expenses': ZERO})
            if transaction.type == 'income':
                day['income'] += transaction.amount
            else:
                day['expenses'] += transaction.amount

        flow = []
        for day, totals in days.items():
            running += totals['income'] - totals['expenses']
            flow.append({'date': day, 'income': totals['income'], 'expenses': totals['expenses'],
                         'balance': running})
        return flow

    def savings_rate(self, period: str = 'month') -> float:
        income = self.income_total(period)
        if not income:
            return 0.0
        return round(float((income - self.expense_total(period)) / income * 100), 1)

    def summary(self, period: str = 'month') -> Dict[str, Any]:
        return {
            'balance': self.balance(),
            'income': self.income_total(period),
            'expenses': self.expense_total(period),
            'savingsRate': self.savings_rate(period),
            'byCategory': self.transactions_by_category(period),
            'goals': [
                {**goal_as_dict(goal), 'progress': self.goal_progress(goal)} for goal in self.goals()
            ],
        }

    # Export / import

    def export_data(self) -> str:
        payload = {
            'transactions': [transaction_as_dict(t) for t in self.transactions()],
            'goals': [goal_as_dict(g) for g in self.goals()],
            'exportDate': timezone.now().isoformat(),
            'userId': self.user.id,
        }
        return json.dumps(payload, cls=DjangoJSONEncoder, indent=2, ensure_ascii=False)

    @staticmethod
    def _parse_import(payload) -> Dict[str, List[Dict[str, Any]]]:
        if isinstance(payload, bytes):
            try:
                payload = payload.decode('utf-8')
            except UnicodeDecodeError as e:
                raise ImportFormatError(f"Financial export must be UTF-8 text: {e}")
        try:
            data = json.loads(payload)
        except (TypeError, json.JSONDecodeError) as e:
            raise ImportFormatError(f"Invalid financial export: {e}")
        if not isinstance(data, dict) or not isinstance(data.get('transactions'), list) \
                or not isinstance(data.get('goals'), list):
            raise ImportFormatError("Financial export must contain 'transactions' and 'goals' lists")
        if not all(isinstance(row, dict) for row in data['transactions'] + data['goals']):
            raise ImportFormatError("Every financial record must be an object")

        transactions = []
        for row in data['transactions']:
            if row.get('type') not in TRANSACTION_TYPES:
                raise ImportFormatError("Transaction type must be 'income' or 'expense'")
            transactions.append({
                'type': row['type'],
                'category': _import_text(row, 'category', 100),
                'description': str(row.get('description') or '')[:255],
                'amount': _import_amount(row.get('amount'), 'amount'),
                'date': _import_date(row.get('date'), 'date'),
                'is_recurring': bool(row.get('is_recurring', False)),
            })

        goals = [
            {
                'title': _import_text(row, 'title', 200),
                'target_amount': _import_amount(row.get('target_amount'), 'target_amount'),
                'current_amount': _import_amount(row.get('current_amount') or 0, 'current_amount', minimum=ZERO),
                'target_date': _import_date(row.get('target_date'), 'target_date'),
            }
            for row in data['goals']
        ]
        return {'transactions': transactions, 'goals': goals}

    def import_data(self, payload: str, confirm: bool = False) -> Dict[str, int]:
        """
        Replace the user's transactions and goals with an exported dataset.

        The payload is fully validated before anything is touched. Without
        ``confirm`` it raises ``ConfirmationRequired``; with it, the wipe and
        the inserts happen in one database transaction.
        """
        data = self._parse_import(payload)
        if not confirm:
            raise ConfirmationRequired('import_data')

        with db_transaction.atomic():
            self._wipe()
            for row in data['transactions']:
                self.add_category(row['category'], row['type'])
            Transaction.objects.bulk_create([Transaction(user=self.user, **row) for row in data['transactions']])
            FinancialGoal.objects.bulk_create([FinancialGoal(user=self.user, **row) for row in data['goals']])

        logger.info(
            f"Imported {len(data['transactions'])} transactions and {len(data['goals'])} goals "
            f"for user {self.user.id}"
        )
        return {'transactions': len(data['transactions']), 'goals': len(data['goals'])}

    def clear_all_data(self, confirm: bool = False) -> None:
        if not confirm:
            raise ConfirmationRequired('clear_all_data')
        with db_transaction.atomic():
            self._wipe()
        logger.info(f"Cleared financial data for user {self.user.id}")

    def _wipe(self):
        self.transactions().delete()
        self.goals().delete()
