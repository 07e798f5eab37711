from django.contrib import admin

from .models import Project, ProjectMembership


class ProjectMembershipInline(admin.TabularInline):
    model = ProjectMembership
    extra = 0


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ['name', 'status', 'start_date', 'end_date', 'created_by', 'created_at']
    list_filter = ['status']
    search_fields = ['name', 'description']
    inlines = [ProjectMembershipInline]
