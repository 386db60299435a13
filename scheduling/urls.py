"""
URL routing for the scheduling API.
"""

from django.urls import path
from .views import (
    AppointmentCancelView,
    AppointmentCompleteView,
    AppointmentCreateView,
    AppointmentNoShowView,
    AvailabilityView,
    CloseDayView,
    ProviderAppointmentListView,
    ScheduleBlockDetailView,
    ScheduleBlockListCreateView,
    WeeklyScheduleView,
)

urlpatterns = [
    path('providers/<uuid:provider_id>/availability/', AvailabilityView.as_view(), name='availability'),
    path('providers/<uuid:provider_id>/appointments/', ProviderAppointmentListView.as_view(), name='provider-appointments'),
    path('providers/<uuid:provider_id>/schedule/', WeeklyScheduleView.as_view(), name='weekly-schedule'),
    path('providers/<uuid:provider_id>/blocks/', ScheduleBlockListCreateView.as_view(), name='block-list-create'),
    path('providers/<uuid:provider_id>/blocks/<int:block_id>/', ScheduleBlockDetailView.as_view(), name='block-detail'),
    path('providers/<uuid:provider_id>/close-day/', CloseDayView.as_view(), name='close-day'),
    path('appointments/', AppointmentCreateView.as_view(), name='appointment-create'),
    path('appointments/<int:pk>/complete/', AppointmentCompleteView.as_view(), name='appointment-complete'),
    path('appointments/<int:pk>/cancel/', AppointmentCancelView.as_view(), name='appointment-cancel'),
    path('appointments/<int:pk>/no-show/', AppointmentNoShowView.as_view(), name='appointment-no-show'),
]
