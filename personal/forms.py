from django import forms

from .services.community import POST_CATEGORIES
from .services.emotional import EMOTION_LABELS


def _split_list(value):
    return [item.strip() for item in (value or '').split(',') if item.strip()]


class EmotionEntryForm(forms.Form):
    emotion = forms.ChoiceField(choices=list(EMOTION_LABELS.items()))
    intensity = forms.IntegerField(min_value=1, max_value=10)
    note = forms.CharField(required=False, max_length=1000)
    triggers = forms.CharField(required=False, help_text="Comma separated")
    activities = forms.CharField(required=False, help_text="Comma separated")

    def clean_triggers(self):
        return _split_list(self.cleaned_data.get('triggers'))

    def clean_activities(self):
        return _split_list(self.cleaned_data.get('activities'))


class DiaryEntryForm(forms.Form):
    content = forms.CharField(widget=forms.Textarea)
    entry_date = forms.DateField(required=False)
    mood = forms.CharField(required=False, max_length=50)
    tags = forms.CharField(required=False, help_text="Comma separated")
    is_private = forms.BooleanField(required=False, initial=True)

    def clean_content(self):
        content = self.cleaned_data['content'].strip()
        if not content:
            raise forms.ValidationError("Escreva alguma coisa antes de salvar.")
        return content

    def clean_tags(self):
        return _split_list(self.cleaned_data.get('tags'))


class CommunityPostForm(forms.Form):
    content = forms.CharField(widget=forms.Textarea, max_length=5000)
    category = forms.ChoiceField(choices=[(category, category) for category in POST_CATEGORIES])
    tags = forms.CharField(required=False)
    mood = forms.CharField(required=False, max_length=50)

    def clean_tags(self):
        return _split_list(self.cleaned_data.get('tags'))


class CommentForm(forms.Form):
    content = forms.CharField(max_length=2000)
