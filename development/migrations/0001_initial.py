# Generated manually for the development journey models

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='DevelopmentPlan',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True, null=True)),
                ('category', models.CharField(choices=[('programming', 'Programação'), ('languages', 'Idiomas'), ('exercises', 'Exercícios'), ('other', 'Outro'), ('custom', 'Gerado por IA')], default='other', max_length=20)),
                ('start_date', models.DateField()),
                ('target_date', models.DateField()),
                ('progress', models.PositiveIntegerField(default=0, help_text='Share of completed milestones, 0-100', validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='development_plans', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'development_plans',
                'ordering': ['created_at'],
                'indexes': [models.Index(fields=['user', 'created_at'], name='plans_user_created_idx')],
            },
        ),
        migrations.CreateModel(
            name='Skill',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255)),
                ('level', models.PositiveIntegerField(default=1)),
                ('progress', models.PositiveIntegerField(default=0, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('is_custom', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='children', to='development.skill')),
                ('plan', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='skills', to='development.developmentplan')),
            ],
            options={
                'db_table': 'skills',
                'ordering': ['created_at'],
                'indexes': [models.Index(fields=['plan', 'parent'], name='skills_plan_parent_idx')],
            },
        ),
        migrations.CreateModel(
            name='Milestone',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True, null=True)),
                ('completed', models.BooleanField(default=False)),
                ('due_date', models.DateField(blank=True, null=True)),
                ('completed_date', models.DateField(blank=True, help_text='Set while the milestone is completed', null=True)),
                ('is_custom', models.BooleanField(default=False)),
                ('required_level', models.PositiveIntegerField(default=1)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('plan', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='milestones', to='development.developmentplan')),
                ('required_skill', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='gated_milestones', to='development.skill')),
            ],
            options={
                'db_table': 'milestones',
                'ordering': ['created_at'],
                'indexes': [models.Index(fields=['plan', 'completed'], name='milestones_plan_done_idx')],
            },
        ),
        migrations.CreateModel(
            name='Habit',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True, null=True)),
                ('frequency', models.CharField(choices=[('daily', 'Diário'), ('weekly', 'Semanal')], default='daily', max_length=10)),
                ('time_of_day', models.CharField(blank=True, max_length=20, null=True)),
                ('streak', models.PositiveIntegerField(default=0)),
                ('last_completed', models.DateField(blank=True, null=True)),
                ('xp_reward', models.PositiveIntegerField(default=10, help_text='Progress points added to the linked skill')),
                ('is_custom', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('linked_skill', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='linked_habits', to='development.skill')),
                ('plan', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='habits', to='development.developmentplan')),
            ],
            options={
                'db_table': 'habits',
                'ordering': ['created_at'],
                'indexes': [models.Index(fields=['plan', 'frequency'], name='habits_plan_freq_idx')],
            },
        ),
        migrations.CreateModel(
            name='SophiaMessage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(choices=[('user', 'Usuário'), ('assistant', 'Sophia')], max_length=10)),
                ('content', models.TextField()),
                ('user_state', models.JSONField(blank=True, help_text='Snapshot of the user state sent with this turn', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sophia_messages', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['created_at', 'id'],
            },
        ),
    ]
