import django_filters

from .models import Event, Registration


class EventFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(field_name='title', lookup_expr='icontains')
    type = django_filters.ChoiceFilter(choices=Event.Type.choices)
    status = django_filters.ChoiceFilter(choices=Event.Status.choices)
    organizer_id = django_filters.UUIDFilter(field_name='organizer_id')
    location = django_filters.CharFilter(lookup_expr='icontains')
    # Both bounds apply to the event's start date
    start_date = django_filters.DateTimeFilter(field_name='start_date', lookup_expr='gte')
    end_date = django_filters.DateTimeFilter(field_name='start_date', lookup_expr='lte')

    class Meta:
        model = Event
        fields = ['search', 'type', 'status', 'organizer_id', 'location', 'start_date', 'end_date']


class RegistrationFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=Registration.Status.choices)
    event_id = django_filters.UUIDFilter(field_name='event_id')
    user_id = django_filters.UUIDFilter(field_name='user_id')

    class Meta:
        model = Registration
        fields = ['status', 'event_id', 'user_id']
