"""Views for the scheduling API."""

from django.shortcuts import get_object_or_404

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Appointment
from .notifications import NotificationDispatcher
from .repositories import DjangoSchedulingRepository
from .serializers import (
    AppointmentCreateSerializer,
    AppointmentListQuerySerializer,
    AppointmentReadSerializer,
    AvailabilityQuerySerializer,
    CloseDaySerializer,
    ScheduleBlockCreateSerializer,
    ScheduleBlockReadSerializer,
    WeeklyScheduleReadSerializer,
    WeeklyScheduleUpdateSerializer,
)
from . import services
from .types import ClientInfo, ScheduleEntryData


class AvailabilityView(APIView):
    """
    List bookable slots of a provider for a service on one date.

    GET /api/providers/{id}/availability/?date=YYYY-MM-DD&service_id=N&tz=Area/City
    """

    def get(self, request, provider_id):
        """Compute availability."""
        query_serializer = AvailabilityQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)
        data = query_serializer.validated_data

        result = services.get_availability(
            provider_id,
            data['service_id'],
            target_date=data['date'],
            time_zone=data['tz'],
            repository=DjangoSchedulingRepository(),
        )

        body = {
            'date': result.date.isoformat(),
            'time_zone': result.time_zone,
            'slots': result.slots,
            'slot_starts': [start.isoformat() for start in result.slot_starts],
        }
        if result.reason:
            body['reason'] = result.reason
        return Response(body)


class ProviderAppointmentListView(APIView):
    """
    List a provider's appointments.

    GET /api/providers/{id}/appointments/?date=YYYY-MM-DD
    """

    def get(self, request, provider_id):
        """List appointments, optionally for one UTC day."""
        query_serializer = AppointmentListQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        appointments = services.list_appointments(
            provider_id,
            query_serializer.validated_data['date']
        )

        serializer = AppointmentReadSerializer(appointments, many=True)
        return Response(serializer.data)


class AppointmentCreateView(APIView):
    """
    Book an appointment.

    POST /api/appointments/
    """

    def post(self, request):
        """Create an appointment if the slot is still free."""
        serializer = AppointmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        appointment = services.create_appointment(
            provider_id=data['provider_id'],
            service_id=data['service_id'],
            client=ClientInfo(
                phone=data['client_phone'],
                name=data['client_name'],
                email=data.get('client_email') or None,
            ),
            start=data['start_at'],
            repository=DjangoSchedulingRepository(),
            notifier=NotificationDispatcher(),
        )

        response_serializer = AppointmentReadSerializer(appointment)
        return Response(response_serializer.data, status=status.HTTP_201_CREATED)


class AppointmentCompleteView(APIView):
    """
    Mark an appointment as completed.

    POST /api/appointments/{id}/complete/
    """

    def post(self, request, pk):
        """Mark appointment as completed."""
        appointment = get_object_or_404(Appointment, pk=pk)

        services.complete_appointment(appointment)

        return Response(AppointmentReadSerializer(appointment).data)


class AppointmentCancelView(APIView):
    """
    Cancel an appointment.

    POST /api/appointments/{id}/cancel/
    """

    def post(self, request, pk):
        """Cancel appointment and notify the client."""
        appointment = get_object_or_404(Appointment, pk=pk)

        services.cancel_appointment(appointment, notifier=NotificationDispatcher())

        return Response(AppointmentReadSerializer(appointment).data)


class AppointmentNoShowView(APIView):
    """
    Mark an appointment as a no-show.

    POST /api/appointments/{id}/no-show/
    """

    def post(self, request, pk):
        """Mark appointment as no-show."""
        appointment = get_object_or_404(Appointment, pk=pk)

        services.mark_no_show(appointment)

        return Response(AppointmentReadSerializer(appointment).data)


class WeeklyScheduleView(APIView):
    """
    Retrieve or replace a provider's weekly schedule.

    GET /api/providers/{id}/schedule/ - List weekday rows
    PUT /api/providers/{id}/schedule/ - Upsert weekday rows
    """

    def get(self, request, provider_id):
        """List the weekly schedule."""
        rows = services.get_weekly_schedule(provider_id)
        serializer = WeeklyScheduleReadSerializer(rows, many=True)
        return Response(serializer.data)

    def put(self, request, provider_id):
        """Upsert weekday rows atomically."""
        serializer = WeeklyScheduleUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        rows = services.update_weekly_schedule(
            provider_id,
            [ScheduleEntryData(**item) for item in serializer.validated_data]
        )

        response_serializer = WeeklyScheduleReadSerializer(rows, many=True)
        return Response(response_serializer.data)


class ScheduleBlockListCreateView(APIView):
    """
    List upcoming blocks or create a new one.

    GET /api/providers/{id}/blocks/ - List blocks that have not ended
    POST /api/providers/{id}/blocks/ - Create a block
    """

    def get(self, request, provider_id):
        """List upcoming blocks."""
        blocks = services.list_upcoming_blocks(provider_id)
        serializer = ScheduleBlockReadSerializer(blocks, many=True)
        return Response(serializer.data)

    def post(self, request, provider_id):
        """Create a block."""
        serializer = ScheduleBlockCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        block = services.create_block(
            provider_id,
            data['start_at'],
            data['end_at'],
            reason=data['reason'],
            repository=DjangoSchedulingRepository(),
        )

        response_serializer = ScheduleBlockReadSerializer(block)
        return Response(response_serializer.data, status=status.HTTP_201_CREATED)


class ScheduleBlockDetailView(APIView):
    """
    Delete a block.

    DELETE /api/providers/{id}/blocks/{block_id}/
    """

    def delete(self, request, provider_id, block_id):
        """Delete a block owned by the provider."""
        services.delete_block(provider_id, block_id)

        return Response({
            'message': 'Block has been deleted.'
        }, status=status.HTTP_200_OK)


class CloseDayView(APIView):
    """
    Close a whole day: cancel its appointments and block it.

    POST /api/providers/{id}/close-day/
    """

    def post(self, request, provider_id):
        """Close the day."""
        serializer = CloseDaySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        closure = services.close_day(
            provider_id,
            serializer.validated_data['date'],
            reason=serializer.validated_data['reason'],
            repository=DjangoSchedulingRepository(),
            notifier=NotificationDispatcher(),
        )

        return Response({
            'block': ScheduleBlockReadSerializer(closure.block).data,
            'cancelled_count': closure.cancelled_count,
        }, status=status.HTTP_201_CREATED)
