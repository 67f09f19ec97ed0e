import uuid

from django.db import models
from django.contrib.auth.models import User
from django.core.validators import MinValueValidator, MaxValueValidator


class DevelopmentPlan(models.Model):
    CATEGORY_CHOICES = [
        ('programming', 'Programação'),
        ('languages', 'Idiomas'),
        ('exercises', 'Exercícios'),
        ('other', 'Outro'),
        ('custom', 'Gerado por IA'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='development_plans')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='other')
    start_date = models.DateField()
    target_date = models.DateField()
    progress = models.PositiveIntegerField(
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text="Share of completed milestones, 0-100"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'development_plans'
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['user', 'created_at'], name='plans_user_created_idx'),
        ]

    def __str__(self):
        return self.title


class Skill(models.Model):
    """A node of a plan's skill tree. The root is the skill without parent."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    plan = models.ForeignKey(DevelopmentPlan, on_delete=models.CASCADE, related_name='skills')
    parent = models.ForeignKey(
        'self', on_delete=models.CASCADE, null=True, blank=True, related_name='children'
    )
    name = models.CharField(max_length=255)
    level = models.PositiveIntegerField(default=1)
    progress = models.PositiveIntegerField(
        default=0, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    is_custom = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'skills'
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['plan', 'parent'], name='skills_plan_parent_idx'),
        ]

    def __str__(self):
        return f"{self.name} (nível {self.level})"


class Milestone(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    plan = models.ForeignKey(DevelopmentPlan, on_delete=models.CASCADE, related_name='milestones')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    completed = models.BooleanField(default=False)
    due_date = models.DateField(null=True, blank=True)
    completed_date = models.DateField(null=True, blank=True, help_text="Set while the milestone is completed")
    is_custom = models.BooleanField(default=False)
    required_skill = models.ForeignKey(
        Skill, on_delete=models.SET_NULL, null=True, blank=True, related_name='gated_milestones'
    )
    required_level = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'milestones'
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['plan', 'completed'], name='milestones_plan_done_idx'),
        ]

    def __str__(self):
        status = "✓" if self.completed else "✗"
        return f"{self.title} {status}"


class Habit(models.Model):
    FREQUENCY_CHOICES = [
        ('daily', 'Diário'),
        ('weekly', 'Semanal'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    plan = models.ForeignKey(DevelopmentPlan, on_delete=models.CASCADE, related_name='habits')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    frequency = models.CharField(max_length=10, choices=FREQUENCY_CHOICES, default='daily')
    time_of_day = models.CharField(max_length=20, blank=True, null=True)
    streak = models.PositiveIntegerField(default=0)
    last_completed = models.DateField(null=True, blank=True)
    linked_skill = models.ForeignKey(
        Skill, on_delete=models.SET_NULL, null=True, blank=True, related_name='linked_habits'
    )
    xp_reward = models.PositiveIntegerField(default=10, help_text="Progress points added to the linked skill")
    is_custom = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'habits'
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['plan', 'frequency'], name='habits_plan_freq_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.get_frequency_display()})"


class SophiaMessage(models.Model):
    """One turn of the conversation with the Sophia assistant."""

    ROLE_CHOICES = [
        ('user', 'Usuário'),
        ('assistant', 'Sophia'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='sophia_messages')
    role = models.CharField(max_length=10, choices=ROLE_CHOICES)
    content = models.TextField()
    user_state = models.JSONField(null=True, blank=True, help_text="Snapshot of the user state sent with this turn")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.get_role_display()}: {self.content[:40]}"
