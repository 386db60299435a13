"""
Admin configuration for the scheduling app.
"""

from django.contrib import admin
from .models import Appointment, Client, Provider, ScheduleBlock, Service, WeeklySchedule


class WeeklyScheduleInline(admin.TabularInline):
    model = WeeklySchedule
    extra = 0


@admin.register(Provider)
class ProviderAdmin(admin.ModelAdmin):
    """Admin interface for Provider model."""

    list_display = ['full_name', 'email', 'plan', 'subscription_active', 'is_active']
    list_filter = ['plan', 'subscription_active', 'is_active']
    search_fields = ['full_name', 'email']
    inlines = [WeeklyScheduleInline]

    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(ScheduleBlock)
class ScheduleBlockAdmin(admin.ModelAdmin):
    """Admin interface for ScheduleBlock model."""

    list_display = ['provider', 'start_at', 'end_at', 'reason']
    list_filter = ['provider']
    date_hierarchy = 'start_at'


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    """Admin interface for Service model."""

    list_display = ['name', 'provider', 'duration_minutes', 'price', 'is_active']
    list_filter = ['is_active', 'provider']
    search_fields = ['name']


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'email', 'provider']
    search_fields = ['name', 'phone', 'email']


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    """Admin interface for Appointment model."""

    list_display = ['client', 'service', 'provider', 'start_at', 'end_at', 'status', 'reminder_sent']
    list_filter = ['status', 'provider', 'reminder_sent']
    search_fields = ['client__name', 'client__phone']
    date_hierarchy = 'start_at'

    fieldsets = (
        ('Booking', {
            'fields': ('provider', 'client', 'service')
        }),
        ('Schedule', {
            'fields': ('start_at', 'end_at', 'duration_minutes', 'price')
        }),
        ('Status', {
            'fields': ('status', 'reminder_sent')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields = ['end_at', 'created_at', 'updated_at']
