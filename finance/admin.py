from django.contrib import admin
from .models import Category, Transaction, FinancialGoal


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ('name', 'type', 'user', 'budget', 'is_custom')
    list_filter = ('type', 'is_custom')
    search_fields = ('name',)


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ('date', 'type', 'category', 'amount', 'user', 'is_recurring')
    list_filter = ('type', 'is_recurring', 'date')
    search_fields = ('description', 'category', 'user__username')
    readonly_fields = ('created_at',)
    date_hierarchy = 'date'


@admin.register(FinancialGoal)
class FinancialGoalAdmin(admin.ModelAdmin):
    list_display = ('title', 'user', 'current_amount', 'target_amount', 'target_date')
    search_fields = ('title', 'user__username')
    readonly_fields = ('created_at',)
