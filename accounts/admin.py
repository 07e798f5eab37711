from django.contrib import admin

from .models import CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(admin.ModelAdmin):
    list_display = ['email', 'name', 'role', 'status', 'created_at']
    list_filter = ['role', 'status']
    search_fields = ['email', 'name']
