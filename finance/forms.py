from django import forms
from django.utils import timezone

from .models import FinancialGoal, Transaction


class TransactionForm(forms.ModelForm):
    class Meta:
        model = Transaction
        fields = ['type', 'category', 'description', 'amount', 'date', 'is_recurring']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['description'].required = False
        self.fields['date'].initial = timezone.localdate

    def clean_category(self):
        category = (self.cleaned_data.get('category') or '').strip()
        if not category:
            raise forms.ValidationError("Escolha uma categoria.")
        return category


class FinancialGoalForm(forms.ModelForm):
    class Meta:
        model = FinancialGoal
        fields = ['title', 'target_amount', 'target_date']

    def clean_target_date(self):
        target_date = self.cleaned_data.get('target_date')
        if target_date and target_date <= timezone.localdate():
            raise forms.ValidationError("A data da meta deve estar no futuro.")
        return target_date


class GoalContributionForm(forms.Form):
    amount = forms.DecimalField(max_digits=12, decimal_places=2, min_value=0.01)
