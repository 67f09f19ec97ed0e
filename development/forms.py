from django import forms
from django.utils import timezone

from .models import DevelopmentPlan, Habit
from .services.seeds import CATEGORY_SEEDS


class NewPlanForm(forms.Form):
    title = forms.CharField(max_length=255)
    category = forms.ChoiceField(choices=[
        choice for choice in DevelopmentPlan.CATEGORY_CHOICES if choice[0] in CATEGORY_SEEDS
    ])
    target_date = forms.DateField()

    def clean_title(self):
        title = self.cleaned_data['title'].strip()
        if not title:
            raise forms.ValidationError("Dê um nome ao seu plano.")
        return title

    def clean_target_date(self):
        target_date = self.cleaned_data.get('target_date')
        if target_date and target_date <= timezone.localdate():
            raise forms.ValidationError("A data alvo deve estar no futuro.")
        return target_date


class AIPlanForm(forms.Form):
    objective = forms.CharField(max_length=500)
    current_level = forms.CharField(max_length=200)
    time_available = forms.CharField(max_length=200)


class MilestoneForm(forms.Form):
    """Fields of a custom milestone, returned in client form."""

    title = forms.CharField(max_length=255)
    description = forms.CharField(required=False, widget=forms.Textarea)
    due_date = forms.DateField(required=False)
    required_skill_id = forms.UUIDField(required=False)
    required_level = forms.IntegerField(required=False, min_value=1)

    def client_data(self):
        data = self.cleaned_data
        milestone = {
            'title': data['title'],
            'description': data.get('description') or None,
            'dueDate': data.get('due_date'),
        }
        if data.get('required_skill_id'):
            milestone['requiredSkillId'] = data['required_skill_id']
            milestone['requiredLevel'] = data.get('required_level') or 1
        return milestone


class HabitForm(forms.Form):
    title = forms.CharField(max_length=255)
    description = forms.CharField(required=False, widget=forms.Textarea)
    frequency = forms.ChoiceField(choices=Habit.FREQUENCY_CHOICES, initial='daily')
    time_of_day = forms.CharField(required=False, max_length=20)
    linked_skill_id = forms.UUIDField(required=False)
    xp_reward = forms.IntegerField(required=False, min_value=0, max_value=100)

    def client_data(self):
        data = self.cleaned_data
        habit = {
            'title': data['title'],
            'description': data.get('description') or None,
            'frequency': data['frequency'],
            'timeOfDay': data.get('time_of_day') or None,
            'linkedSkillId': data.get('linked_skill_id'),
        }
        if data.get('xp_reward') is not None:
            habit['xpReward'] = data['xp_reward']
        return habit


class SkillForm(forms.Form):
    name = forms.CharField(max_length=255)
    parent_id = forms.UUIDField(required=False)
    progress = forms.IntegerField(required=False, min_value=0, max_value=100)

    def client_data(self):
        return {'name': self.cleaned_data['name'], 'progress': self.cleaned_data.get('progress') or 0}


class SophiaMessageForm(forms.Form):
    message = forms.CharField(max_length=4000)

    def clean_message(self):
        message = self.cleaned_data['message'].strip()
        if not message:
            raise forms.ValidationError("Escreva uma mensagem.")
        return message


# Partial edits arrive as camelCase JSON bodies. Only the keys present are
# cleaned; keys missing from a table are left to the field mapper.
EDITABLE_FIELDS = {
    'milestones': {
        'title': forms.CharField(max_length=255),
        'description': forms.CharField(required=False),
        'completed': forms.BooleanField(required=False),
        'dueDate': forms.DateField(required=False),
        'completedDate': forms.DateField(required=False),
        'requiredSkillId': forms.UUIDField(required=False),
        'requiredLevel': forms.IntegerField(min_value=1),
    },
    'habits': {
        'title': forms.CharField(max_length=255),
        'description': forms.CharField(required=False),
        'frequency': forms.ChoiceField(choices=Habit.FREQUENCY_CHOICES),
        'timeOfDay': forms.CharField(required=False, max_length=20),
        'streak': forms.IntegerField(min_value=0),
        'lastCompleted': forms.DateField(required=False),
        'linkedSkillId': forms.UUIDField(required=False),
        'xpReward': forms.IntegerField(min_value=0, max_value=100),
    },
    'skills': {
        'name': forms.CharField(max_length=255),
        'parentId': forms.UUIDField(required=False),
        'progress': forms.IntegerField(),
    },
}


def clean_edit(table, updates, known_fields):
    """
    Clean the values of a partial edit.

    ``known_fields`` are the client names the table stores; a known field
    that is not editable (a skill's derived ``level``, ``isCustom``) is
    rejected. Raises ValueError naming every invalid field.
    """
    editable = EDITABLE_FIELDS[table]
    cleaned, errors = {}, {}
    for key, value in updates.items():
        if key in editable:
            try:
                cleaned[key] = editable[key].clean(value)
            except forms.ValidationError as e:
                errors[key] = ' '.join(e.messages)
        elif key in known_fields:
            errors[key] = "This field cannot be edited."
        else:
            cleaned[key] = value
    if errors:
        raise ValueError('; '.join(f"{key}: {message}" for key, message in errors.items()))
    return cleaned
