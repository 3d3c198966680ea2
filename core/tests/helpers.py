from datetime import timedelta

from django.utils import timezone

from core.models import Event, User


def make_user(email='guest@example.com', password='password123', role=User.Role.GUEST, **extra):
    extra.setdefault('name', email.split('@')[0].title())
    return User.objects.create_user(email, password, role=role, **extra)


def make_admin(email='admin@example.com', **extra):
    return make_user(email, role=User.Role.ADMIN, **extra)


def make_event(organizer, days_ahead=7, status=Event.Status.PUBLISHED, **extra):
    start = timezone.now() + timedelta(days=days_ahead)
    fields = {
        'title': 'Python Conference',
        'description': 'A full day of talks about Python.',
        'start_date': start,
        'end_date': start + timedelta(hours=8),
        'location': 'Main Hall',
        'max_attendees': 10,
        'status': status,
    }
    fields.update(extra)
    return Event.objects.create(organizer=organizer, **fields)
