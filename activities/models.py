from django.db import models
from django.contrib.auth.models import User

WEEK_DAYS = ('sunday', 'monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday')


class Activity(models.Model):
    TYPE_CHOICES = [
        ('goal', 'Meta'),
        ('daily', 'Diária'),
        ('routine', 'Rotina'),
        ('priority', 'Prioridade'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pendente'),
        ('completed', 'Concluída'),
        ('late', 'Atrasada'),
    ]

    PRIORITY_CHOICES = [
        ('high', 'Alta'),
        ('medium', 'Média'),
        ('low', 'Baixa'),
    ]

    FREQUENCY_CHOICES = [
        ('daily', 'Diária'),
        ('weekly', 'Semanal'),
        ('monthly', 'Mensal'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='activities')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    date = models.DateField()
    time = models.TimeField(null=True, blank=True)
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    category = models.CharField(max_length=100, default='geral')
    frequency = models.CharField(max_length=10, choices=FREQUENCY_CHOICES, blank=True, null=True)
    end_date = models.DateField(null=True, blank=True)
    order = models.PositiveIntegerField(default=0)
    week_days = models.JSONField(default=list, blank=True, help_text="Lowercase English day names")
    is_routine = models.BooleanField(default=False)
    routine_id = models.UUIDField(null=True, blank=True, help_text="Shared by every occurrence of a routine")
    notes = models.TextField(blank=True, null=True)
    tags = models.JSONField(default=list, blank=True)
    estimated_duration = models.PositiveIntegerField(null=True, blank=True, help_text="Minutes")
    actual_duration = models.PositiveIntegerField(null=True, blank=True, help_text="Minutes")
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = 'activities'
        ordering = ['date', 'order', 'created_at']
        indexes = [
            models.Index(fields=['user', 'date'], name='activity_user_date_idx'),
            models.Index(fields=['user', 'routine_id'], name='activity_user_routine_idx'),
            models.Index(fields=['user', 'status', 'date'], name='activity_user_status_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.date})"
