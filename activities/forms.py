from django import forms

from .models import WEEK_DAYS, Activity


class TagsField(forms.Field):
    """Accepts a list of strings or a comma separated string."""

    def to_python(self, value):
        if value in (None, '', []):
            return []
        if isinstance(value, str):
            value = value.split(',')
        if not isinstance(value, (list, tuple)) or not all(isinstance(tag, str) for tag in value):
            raise forms.ValidationError("Tags devem ser texto.")
        return [tag.strip() for tag in value if tag.strip()]


class ActivityForm(forms.ModelForm):
    week_days = forms.MultipleChoiceField(
        choices=[(day, day) for day in WEEK_DAYS],
        required=False,
    )
    tags = TagsField(required=False)

    class Meta:
        model = Activity
        fields = [
            'title', 'description', 'date', 'time', 'type', 'priority', 'category',
            'frequency', 'end_date', 'week_days', 'notes', 'tags',
            'estimated_duration', 'actual_duration',
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['category'].required = False

    def clean_category(self):
        return (self.cleaned_data.get('category') or '').strip() or 'geral'

    def clean(self):
        cleaned_data = super().clean()
        start = cleaned_data.get('date')
        end_date = cleaned_data.get('end_date')
        if start and end_date and end_date < start:
            self.add_error('end_date', "A data final deve ser posterior à data inicial.")
        if cleaned_data.get('type') == 'routine' and not cleaned_data.get('week_days'):
            self.add_error('week_days', "Escolha ao menos um dia da semana para a rotina.")
        return cleaned_data


class ActivityStatusForm(forms.Form):
    status = forms.ChoiceField(choices=Activity.STATUS_CHOICES)
