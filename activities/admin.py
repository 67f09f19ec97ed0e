from django.contrib import admin
from .models import Activity


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    list_display = ('title', 'user', 'date', 'type', 'priority', 'status', 'is_routine')
    list_filter = ('type', 'status', 'priority', 'is_routine')
    search_fields = ('title', 'description', 'user__username')
    readonly_fields = ('created_at', 'completed_at')
    date_hierarchy = 'date'
