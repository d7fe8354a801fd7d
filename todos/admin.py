from django.contrib import admin

from .models import CompletionRecord, Task


class CompletionRecordInline(admin.TabularInline):
    model = CompletionRecord
    extra = 0
    fields = ["completed_on", "completed_at", "completed_by"]
    readonly_fields = ["completed_at"]


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ["title", "owner", "priority", "status", "recurrence", "start_date", "due_date"]
    list_filter = ["priority", "status", "recurrence", "category"]
    search_fields = ["title", "description"]
    date_hierarchy = "start_date"
    inlines = [CompletionRecordInline]
