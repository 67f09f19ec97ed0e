from django.contrib import admin
from .models import StoredDocument


@admin.register(StoredDocument)
class StoredDocumentAdmin(admin.ModelAdmin):
    list_display = ('user', 'key', 'updated_at')
    list_filter = ('user',)
    search_fields = ('key', 'user__username')
    readonly_fields = ('updated_at',)
