from django.contrib import admin
from .models import DevelopmentPlan, Skill, Milestone, Habit, SophiaMessage


class MilestoneInline(admin.TabularInline):
    model = Milestone
    extra = 0
    fields = ('title', 'completed', 'due_date', 'required_skill', 'required_level')


class HabitInline(admin.TabularInline):
    model = Habit
    extra = 0
    fields = ('title', 'frequency', 'streak', 'last_completed', 'linked_skill')


@admin.register(DevelopmentPlan)
class DevelopmentPlanAdmin(admin.ModelAdmin):
    list_display = ('title', 'user', 'category', 'progress', 'start_date', 'target_date')
    list_filter = ('category',)
    search_fields = ('title', 'description', 'user__username')
    readonly_fields = ('created_at',)
    inlines = [MilestoneInline, HabitInline]


@admin.register(Skill)
class SkillAdmin(admin.ModelAdmin):
    list_display = ('name', 'plan', 'parent', 'level', 'progress', 'is_custom')
    list_filter = ('level', 'is_custom')
    search_fields = ('name', 'plan__title')
    raw_id_fields = ('plan', 'parent')


@admin.register(Milestone)
class MilestoneAdmin(admin.ModelAdmin):
    list_display = ('title', 'plan', 'completed', 'due_date', 'completed_date')
    list_filter = ('completed', 'is_custom')
    search_fields = ('title', 'plan__title')
    raw_id_fields = ('plan', 'required_skill')


@admin.register(Habit)
class HabitAdmin(admin.ModelAdmin):
    list_display = ('title', 'plan', 'frequency', 'streak', 'last_completed')
    list_filter = ('frequency', 'is_custom')
    search_fields = ('title', 'plan__title')
    raw_id_fields = ('plan', 'linked_skill')


@admin.register(SophiaMessage)
class SophiaMessageAdmin(admin.ModelAdmin):
    list_display = ('user', 'role', 'created_at')
    list_filter = ('role',)
    search_fields = ('content', 'user__username')
    readonly_fields = ('created_at',)
