# Generated manually for the activities model

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Activity',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True, null=True)),
                ('date', models.DateField()),
                ('time', models.TimeField(blank=True, null=True)),
                ('type', models.CharField(choices=[('goal', 'Meta'), ('daily', 'Diária'), ('routine', 'Rotina'), ('priority', 'Prioridade')], max_length=10)),
                ('status', models.CharField(choices=[('pending', 'Pendente'), ('completed', 'Concluída'), ('late', 'Atrasada')], default='pending', max_length=10)),
                ('priority', models.CharField(choices=[('high', 'Alta'), ('medium', 'Média'), ('low', 'Baixa')], default='medium', max_length=10)),
                ('category', models.CharField(default='geral', max_length=100)),
                ('frequency', models.CharField(blank=True, choices=[('daily', 'Diária'), ('weekly', 'Semanal'), ('monthly', 'Mensal')], max_length=10, null=True)),
                ('end_date', models.DateField(blank=True, null=True)),
                ('order', models.PositiveIntegerField(default=0)),
                ('week_days', models.JSONField(blank=True, default=list, help_text='Lowercase English day names')),
                ('is_routine', models.BooleanField(default=False)),
                ('routine_id', models.UUIDField(blank=True, help_text='Shared by every occurrence of a routine', null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('estimated_duration', models.PositiveIntegerField(blank=True, help_text='Minutes', null=True)),
                ('actual_duration', models.PositiveIntegerField(blank=True, help_text='Minutes', null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='activities', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name_plural': 'activities',
                'ordering': ['date', 'order', 'created_at'],
                'indexes': [
                    models.Index(fields=['user', 'date'], name='activity_user_date_idx'),
                    models.Index(fields=['user', 'routine_id'], name='activity_user_routine_idx'),
                    models.Index(fields=['user', 'status', 'date'], name='activity_user_status_idx'),
                ],
            },
        ),
    ]
