"""
Serializers for the scheduling API.

Wall-clock fields of the weekly schedule use the HH:mm 24-hour format;
absolute instants use ISO-8601.
"""

from rest_framework import serializers

from .models import Appointment, ScheduleBlock, WeeklySchedule


WALL_CLOCK_FORMAT = '%H:%M'


def wall_clock_field(**kwargs):
    return serializers.TimeField(
        format=WALL_CLOCK_FORMAT,
        input_formats=[WALL_CLOCK_FORMAT],
        **kwargs
    )


class WeeklyScheduleReadSerializer(serializers.ModelSerializer):
    """Serializer for reading/displaying WeeklySchedule (output)."""

    day_name = serializers.ReadOnlyField()
    start_time = wall_clock_field()
    end_time = wall_clock_field()
    break_start = wall_clock_field(allow_null=True)
    break_end = wall_clock_field(allow_null=True)

    class Meta:
        model = WeeklySchedule
        fields = [
            'id',
            'day_of_week',
            'day_name',
            'is_work_day',
            'start_time',
            'end_time',
            'break_start',
            'break_end',
        ]


class WeeklyScheduleEntrySerializer(serializers.Serializer):
    """Serializer for one weekday row of a weekly schedule update (input)."""

    day_of_week = serializers.IntegerField(min_value=0, max_value=6)
    start_time = wall_clock_field()
    end_time = wall_clock_field()
    break_start = wall_clock_field(required=False, allow_null=True, default=None)
    break_end = wall_clock_field(required=False, allow_null=True, default=None)
    is_work_day = serializers.BooleanField(default=True)

    def validate(self, data):
        """Break bounds come in pairs."""
        if (data.get('break_start') is None) != (data.get('break_end') is None):
            raise serializers.ValidationError({
                'break_end': 'Break start and end must be set together.'
            })

        return data


class WeeklyScheduleUpdateSerializer(serializers.ListSerializer):
    """List of weekday rows, each weekday at most once."""

    child = WeeklyScheduleEntrySerializer()

    def validate(self, data):
        days = [item['day_of_week'] for item in data]
        if len(days) != len(set(days)):
            raise serializers.ValidationError("Each weekday may appear only once.")
        return data


class ScheduleBlockReadSerializer(serializers.ModelSerializer):
    """Serializer for reading/displaying ScheduleBlock (output)."""

    class Meta:
        model = ScheduleBlock
        fields = ['id', 'start_at', 'end_at', 'reason', 'created_at']


class ScheduleBlockCreateSerializer(serializers.Serializer):
    """Serializer for creating a block."""

    start_at = serializers.DateTimeField()
    end_at = serializers.DateTimeField()
    reason = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')

    def validate(self, data):
        """Ensure start is before end."""
        if data['end_at'] <= data['start_at']:
            raise serializers.ValidationError({
                'end_at': 'End must be after start.'
            })
        return data


class CloseDaySerializer(serializers.Serializer):
    """Serializer for closing a whole day."""

    date = serializers.DateField()
    reason = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')


class AvailabilityQuerySerializer(serializers.Serializer):
    """Serializer for availability query parameters."""

    date = serializers.DateField(required=False, default=None)
    service_id = serializers.IntegerField(min_value=1)
    tz = serializers.CharField(max_length=64, required=False, default='UTC')


class AppointmentListQuerySerializer(serializers.Serializer):
    """Serializer for appointment list query parameters."""

    date = serializers.DateField(required=False, default=None)


class AppointmentCreateSerializer(serializers.Serializer):
    """Serializer for booking an appointment."""

    provider_id = serializers.UUIDField()
    service_id = serializers.IntegerField(min_value=1)
    start_at = serializers.DateTimeField()
    client_name = serializers.CharField(max_length=200)
    client_phone = serializers.CharField(max_length=30)
    client_email = serializers.EmailField(required=False, allow_blank=True, default='')


class AppointmentReadSerializer(serializers.ModelSerializer):
    """Serializer for reading/displaying Appointment (output)."""

    provider_id = serializers.UUIDField(read_only=True)
    client_name = serializers.CharField(source='client.name', read_only=True)
    client_phone = serializers.CharField(source='client.phone', read_only=True)
    service_name = serializers.CharField(source='service.name', read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'id',
            'provider_id',
            'service',
            'service_name',
            'client',
            'client_name',
            'client_phone',
            'start_at',
            'end_at',
            'duration_minutes',
            'price',
            'status',
            'created_at',
            'updated_at',
        ]
