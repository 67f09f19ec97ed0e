from decimal import Decimal

from django.db import models
from django.contrib.auth.models import User
from django.core.validators import MinValueValidator


TYPE_CHOICES = [
    ('income', 'Receita'),
    ('expense', 'Despesa'),
]


class Category(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='finance_categories')
    name = models.CharField(max_length=100)
    icon = models.CharField(max_length=16, blank=True)
    color = models.CharField(max_length=20, default='gray')
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    budget = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True,
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Optional monthly budget for expense categories"
    )
    is_custom = models.BooleanField(default=False)

    class Meta:
        verbose_name_plural = 'categories'
        ordering = ['type', 'name']
        constraints = [
            models.UniqueConstraint(fields=['user', 'name', 'type'], name='unique_category_per_type'),
        ]

    def __str__(self):
        return f"{self.icon} {self.name} ({self.get_type_display()})".strip()


class Transaction(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='transactions')
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    category = models.CharField(max_length=100, help_text="Name of a category of the same type")
    description = models.CharField(max_length=255, blank=True)
    amount = models.DecimalField(
        max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))]
    )
    date = models.DateField()
    is_recurring = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-date', '-created_at']
        indexes = [
            models.Index(fields=['user', 'date'], name='transaction_user_date_idx'),
            models.Index(fields=['user', 'type'], name='transaction_user_type_idx'),
        ]

    def __str__(self):
        sign = '+' if self.type == 'income' else '-'
        return f"{sign}{self.amount} {self.category} ({self.date})"


class FinancialGoal(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='financial_goals')
    title = models.CharField(max_length=200)
    target_amount = models.DecimalField(
        max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))]
    )
    current_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    target_date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['target_date']

    def __str__(self):
        return f"{self.title} ({self.current_amount}/{self.target_amount})"

