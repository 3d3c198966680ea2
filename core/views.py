import csv
import logging
import secrets
from smtplib import SMTPException

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, connection, transaction
from django.db.models import Count
from django.http import HttpResponse
from django.utils import timezone
from rest_framework import generics, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenObtainPairView

from . import emails
from .exceptions import BadRequest
from .filters import EventFilter, RegistrationFilter
from .models import Event, Registration, User, generate_unique_slug
from .pagination import EventPagination, RegistrationPagination
from .permissions import IsAdminRole, IsEventOrganizer, IsOrganizerOrAdmin
from .serializers import (
    EventSerializer, GuestRegistrationSerializer, LandingPageSerializer,
    LoginSerializer, ProfileSerializer, RegisterSerializer,
    RegistrationCreateSerializer, RegistrationSerializer,
    RegistrationUpdateSerializer, ResendVerificationSerializer,
    UserCreateSerializer, UserSerializer, UserUpdateSerializer,
    VerifyEmailSerializer,
)
from .throttling import ScopedWindowRateThrottle

logger = logging.getLogger(__name__)

NO_PUT = ['get', 'post', 'patch', 'delete', 'head', 'options']


def _get_event(event_id):
    try:
        return Event.objects.select_related('organizer').get(pk=event_id)
    except (Event.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFound('Event not found')


# Auth

class RegisterView(generics.CreateAPIView):
    serializer_class = RegisterSerializer
    permission_classes = [permissions.AllowAny]
    throttle_classes = [ScopedWindowRateThrottle]
    throttle_scope = 'register'

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("New user registered: %s", user.email)

        try:
            emails.send_verification_email(user)
        except (SMTPException, OSError):
            # The account exists either way; the user can ask for a resend
            logger.exception("Failed to send verification email to %s", user.email)

        return Response({
            'message': 'Registration successful. Please check your email to verify your account.',
            'user': {
                'id': str(user.id),
                'email': user.email,
                'name': user.name,
                'is_email_verified': user.is_email_verified,
            },
        }, status=status.HTTP_201_CREATED)


class LoginView(TokenObtainPairView):
    serializer_class = LoginSerializer
    throttle_classes = [ScopedWindowRateThrottle]
    throttle_scope = 'login'


class ProfileView(APIView):
    def get(self, request):
        return Response(UserSerializer(request.user).data)


class AdminOnlyView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        return Response({'message': 'This is an admin-only endpoint'})


def _resend_verification(email):
    user = User.objects.filter(email__iexact=email).first()
    if user is None:
        raise BadRequest('User not found')
    if user.is_email_verified:
        return Response({'message': 'Email is already verified'})

    user.email_verification_token = secrets.token_hex(32)
    user.email_verification_expires = timezone.now() + settings.EMAIL_VERIFICATION_TTL
    user.save(update_fields=['email_verification_token', 'email_verification_expires', 'updated_at'])
    try:
        emails.send_verification_email(user)
    except (SMTPException, OSError):
        logger.exception("Failed to resend verification email to %s", user.email)
        raise BadRequest('Failed to send verification email')
    return Response({'message': 'Verification email sent successfully'})


class VerifyEmailView(APIView):
    """
    POST verifies an address with the emailed token.
    GET ``?email=`` sends a fresh token to that address.
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = VerifyEmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = User.objects.filter(
            email_verification_token=serializer.validated_data['token'],
            email_verification_expires__gt=timezone.now(),
        ).first()
        if user is None:
            raise BadRequest('Invalid or expired verification token')

        user.is_email_verified = True
        user.email_verification_token = None
        user.email_verification_expires = None
        user.save(update_fields=[
            'is_email_verified', 'email_verification_token', 'email_verification_expires', 'updated_at',
        ])
        logger.info("Email verified for %s", user.email)
        return Response({'message': 'Email verified successfully', 'user': UserSerializer(user).data})

    def get(self, request):
        serializer = ResendVerificationSerializer(data={'email': request.query_params.get('email')})
        serializer.is_valid(raise_exception=True)
        return _resend_verification(serializer.validated_data['email'])


class ResendVerificationView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = ResendVerificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return _resend_verification(serializer.validated_data['email'])


# Users

class UserViewSet(viewsets.ModelViewSet):
    queryset = User.objects.all()
    permission_classes = [IsAdminRole]
    http_method_names = NO_PUT

    def get_serializer_class(self):
        if self.action == 'create':
            return UserCreateSerializer
        if self.action == 'partial_update':
            return UserUpdateSerializer
        return UserSerializer

    @action(detail=False, methods=['get', 'patch'], permission_classes=[permissions.IsAuthenticated])
    def me(self, request):
        user = request.user
        if request.method == 'GET':
            return Response(UserSerializer(user).data)

        serializer_class = UserUpdateSerializer if user.is_admin else ProfileSerializer
        serializer = serializer_class(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)


# Events

class EventViewSet(viewsets.ModelViewSet):
    queryset = Event.objects.select_related('organizer')
    serializer_class = EventSerializer
    permission_classes = [permissions.IsAuthenticatedOrReadOnly, IsOrganizerOrAdmin]
    filterset_class = EventFilter
    pagination_class = EventPagination
    http_method_names = NO_PUT

    def perform_create(self, serializer):
        event = serializer.save(organizer=self.request.user)
        logger.info("Event %s created by %s", event.pk, self.request.user.email)

    def perform_update(self, serializer):
        if not self.request.user.is_admin and serializer.instance.start_date <= timezone.now():
            raise BadRequest('Cannot update past events')
        serializer.save()

    def perform_destroy(self, instance):
        if not self.request.user.is_admin and instance.start_date <= timezone.now():
            raise BadRequest('Cannot delete events that have already started')
        logger.info("Event %s deleted by %s", instance.pk, self.request.user.email)
        instance.delete()

    def _set_status(self, event, new_status):
        event.status = new_status
        event.save(update_fields=['status', 'updated_at'])
        logger.info("Event %s is now %s", event.pk, new_status)
        return Response(EventSerializer(event).data)

    @action(detail=False, methods=['get'], permission_classes=[permissions.AllowAny])
    def published(self, request):
        events = self.get_queryset().filter(status=Event.Status.PUBLISHED).order_by('start_date')
        return Response(EventSerializer(events, many=True).data)

    @action(detail=False, methods=['get'], url_path='my-events', permission_classes=[permissions.IsAuthenticated])
    def my_events(self, request):
        events = self.get_queryset().filter(organizer=request.user).order_by('-created_at')
        return Response(EventSerializer(events, many=True).data)

    @action(detail=False, methods=['get'], url_path='admin/all', permission_classes=[IsAdminRole])
    def admin_all(self, request):
        return self.list(request)

    @action(detail=True, methods=['patch'])
    def publish(self, request, pk=None):
        event = self.get_object()
        if event.status != Event.Status.DRAFT:
            raise BadRequest('Only draft events can be published')
        missing = [f for f in ('title', 'description', 'start_date', 'location') if not getattr(event, f)]
        if missing:
            raise BadRequest(f"Missing required fields: {', '.join(missing)}")
        return self._set_status(event, Event.Status.PUBLISHED)

    @action(detail=True, methods=['patch'])
    def cancel(self, request, pk=None):
        event = self.get_object()
        if event.status == Event.Status.COMPLETED:
            raise BadRequest('Cannot cancel completed events')
        return self._set_status(event, Event.Status.CANCELLED)

    @action(detail=True, methods=['patch'])
    def complete(self, request, pk=None):
        event = self.get_object()
        if event.status != Event.Status.PUBLISHED:
            raise BadRequest('Only published events can be completed')
        return self._set_status(event, Event.Status.COMPLETED)

    @action(
        detail=True, methods=['get', 'patch'], url_path='landing-page',
        permission_classes=[permissions.IsAuthenticatedOrReadOnly, IsEventOrganizer],
    )
    def landing_page(self, request, pk=None):
        event = self.get_object()
        if request.method == 'GET':
            return Response(LandingPageSerializer(event).data)

        serializer = LandingPageSerializer(event, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        extra = {}
        if 'slug' not in serializer.validated_data and not event.slug:
            extra['slug'] = generate_unique_slug(event.title, exclude_id=event.pk)
        serializer.save(**extra)
        logger.info("Landing page of event %s updated", event.pk)
        return Response(EventSerializer(event).data)

    @action(
        detail=True, methods=['post'], url_path='landing-page/preview',
        permission_classes=[permissions.IsAuthenticated, IsEventOrganizer],
    )
    def landing_page_preview(self, request, pk=None):
        event = self.get_object()
        serializer = LandingPageSerializer(event, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        preview = LandingPageSerializer(event).data
        preview.update(serializer.validated_data)
        return Response({'event': EventSerializer(event).data, 'preview_config': preview})

    @action(detail=False, methods=['get'], url_path=r'slug/(?P<slug>[^/.]+)', permission_classes=[permissions.AllowAny])
    def by_slug(self, request, slug=None):
        event = self.get_queryset().filter(slug=slug, status=Event.Status.PUBLISHED).first()
        if event is None:
            raise NotFound('Event not found')
        return Response(EventSerializer(event).data)

    @action(detail=True, methods=['get'], url_path='export-registrations', permission_classes=[permissions.IsAuthenticated])
    def export_registrations(self, request, pk=None):
        """
        Export the event's registrations as CSV.
        """
        event = self.get_object()
        if not event.is_managed_by(request.user):
            raise PermissionDenied('You can only export registrations for your own events')

        response = HttpResponse(content_type='text/csv')
        response['Content-Disposition'] = f'attachment; filename="{event.slug or event.pk}_registrations.csv"'

        writer = csv.writer(response)
        writer.writerow([
            'ID', 'Name', 'Email', 'Phone', 'Status', 'Registered At',
            'Confirmed At', 'Attended At', 'Source', 'Notes',
        ])
        for r in event.registrations.select_related('user').order_by('created_at'):
            writer.writerow([
                r.id, r.contact_name, r.contact_email,
                (r.user.phone if r.user_id else r.guest_phone) or '',
                r.status, r.registered_at or '', r.confirmed_at or '',
                r.attended_at or '', r.registration_source or '', r.notes or '',
            ])
        return response


# Registrations

def _registration_stats(event):
    counts = {
        row['status']: row['count']
        for row in event.registrations.values('status').annotate(count=Count('id')).order_by()
    }
    stats = {'total': sum(counts.values())}
    for value in Registration.Status.values:
        stats[value] = counts.get(value, 0)
    return stats


def _prepare_confirmation(registration, new_status):
    """
    When ``registration`` is about to become confirmed, lock its event and
    re-check capacity, then queue the approval email for after commit.
    Must run inside ``transaction.atomic``.
    """
    if new_status != Registration.Status.CONFIRMED or registration.status == Registration.Status.CONFIRMED:
        return
    event = Event.objects.select_for_update().get(pk=registration.event_id)
    if event.is_full:
        raise BadRequest('Event is fully booked')
    transaction.on_commit(lambda: emails.send_registration_approved(registration))


class RegistrationViewSet(viewsets.ModelViewSet):
    queryset = Registration.objects.select_related('event', 'event__organizer', 'user')
    permission_classes = [permissions.IsAuthenticated]
    filterset_class = RegistrationFilter
    pagination_class = RegistrationPagination
    http_method_names = NO_PUT

    def get_serializer_class(self):
        if self.action == 'create':
            return RegistrationCreateSerializer
        if self.action == 'partial_update':
            return RegistrationUpdateSerializer
        return RegistrationSerializer

    def get_permissions(self):
        if self.action == 'list':
            return [IsAdminRole()]
        return super().get_permissions()

    def _is_owner_or_admin(self, registration):
        user = self.request.user
        return user.is_admin or (registration.user_id is not None and registration.user_id == user.id)

    def _require_owner(self, registration, verb):
        if not self._is_owner_or_admin(registration):
            raise PermissionDenied(f"You can only {verb} your own registrations")

    def _require_organizer(self, registration, message):
        if not registration.event.is_managed_by(self.request.user):
            raise PermissionDenied(message)

    def _change_status(self, registration, new_status):
        previous = registration.status
        with transaction.atomic():
            _prepare_confirmation(registration, new_status)
            registration.transition_to(new_status)
            registration.save()
        logger.info("Registration %s: %s -> %s", registration.pk, previous, new_status)
        return Response(RegistrationSerializer(registration).data)

    def create(self, request, *args, **kwargs):
        with transaction.atomic():
            serializer = self.get_serializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            registration = serializer.save()
        logger.info("User %s registered for event %s", request.user.email, registration.event_id)
        return Response(serializer.data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, *args, **kwargs):
        registration = self.get_object()
        if not (self._is_owner_or_admin(registration) or registration.event.is_managed_by(request.user)):
            raise PermissionDenied('You can only view your own registrations')
        return Response(RegistrationSerializer(registration).data)

    def partial_update(self, request, *args, **kwargs):
        registration = self.get_object()
        self._require_owner(registration, 'update')
        serializer = self.get_serializer(registration, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        new_status = serializer.validated_data.get('status')
        if new_status and new_status != Registration.Status.CANCELLED and not request.user.is_admin:
            raise PermissionDenied('You can only cancel your own registrations')
        with transaction.atomic():
            _prepare_confirmation(registration, new_status)
            serializer.save()
        return Response(serializer.data)

    def destroy(self, request, *args, **kwargs):
        registration = self.get_object()
        self._require_owner(registration, 'delete')
        logger.info("Registration %s deleted by %s", registration.pk, request.user.email)
        registration.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['patch'])
    def cancel(self, request, pk=None):
        registration = self.get_object()
        self._require_owner(registration, 'cancel')
        return self._change_status(registration, Registration.Status.CANCELLED)

    @action(detail=True, methods=['patch'])
    def confirm(self, request, pk=None):
        registration = self.get_object()
        self._require_organizer(registration, 'Only event organizer or admin can confirm registrations')
        return self._change_status(registration, Registration.Status.CONFIRMED)

    @action(detail=True, methods=['patch'])
    def attended(self, request, pk=None):
        registration = self.get_object()
        self._require_organizer(registration, 'Only event organizer or admin can mark attendance')
        return self._change_status(registration, Registration.Status.ATTENDED)

    @action(detail=True, methods=['patch'], url_path='no-show')
    def no_show(self, request, pk=None):
        registration = self.get_object()
        self._require_organizer(registration, 'Only event organizer or admin can mark attendance')
        return self._change_status(registration, Registration.Status.NO_SHOW)

    @action(detail=False, methods=['get'], url_path='my-registrations')
    def my_registrations(self, request):
        registrations = self.get_queryset().filter(user=request.user).order_by('-created_at')
        return Response(RegistrationSerializer(registrations, many=True).data)

    def _event_registrations(self, event):
        registrations = self.get_queryset().filter(event=event).order_by('-created_at')
        return Response(RegistrationSerializer(registrations, many=True).data)

    def _managed_event(self, event_id):
        event = _get_event(event_id)
        if not event.is_managed_by(self.request.user):
            raise PermissionDenied('You can only view registrations for your own events')
        return event

    @action(detail=False, methods=['get'], url_path=r'event/(?P<event_id>[^/.]+)', permission_classes=[IsAdminRole])
    def for_event(self, request, event_id=None):
        return self._event_registrations(_get_event(event_id))

    @action(detail=False, methods=['get'], url_path=r'event/(?P<event_id>[^/.]+)/stats', permission_classes=[IsAdminRole])
    def event_stats(self, request, event_id=None):
        return Response(_registration_stats(_get_event(event_id)))

    @action(detail=False, methods=['get'], url_path=r'my-event/(?P<event_id>[^/.]+)')
    def my_event(self, request, event_id=None):
        return self._event_registrations(self._managed_event(event_id))

    @action(detail=False, methods=['get'], url_path=r'my-event/(?P<event_id>[^/.]+)/stats')
    def my_event_stats(self, request, event_id=None):
        return Response(_registration_stats(self._managed_event(event_id)))


# Public

class PublicRegistrationView(generics.CreateAPIView):
    """Guest sign-up for an event, no account needed."""
    serializer_class = GuestRegistrationSerializer
    permission_classes = [permissions.AllowAny]

    def create(self, request, *args, **kwargs):
        with transaction.atomic():
            serializer = self.get_serializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            registration = serializer.save()
        logger.info("Guest %s registered for event %s", registration.guest_email, registration.event_id)
        return Response(serializer.data, status=status.HTTP_201_CREATED)


class PublicHealthView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def get(self, request):
        return Response({
            'status': 'ok',
            'message': 'Public API is working',
            'timestamp': timezone.now(),
        })


class HealthView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def get(self, request):
        try:
            connection.ensure_connection()
            database = 'connected'
        except DatabaseError:
            logger.exception("Database health check failed")
            database = 'disconnected'

        smtp = settings.EMAIL_BACKEND.endswith('smtp.EmailBackend')
        return Response({
            'status': 'ok' if database == 'connected' else 'degraded',
            'timestamp': timezone.now(),
            'services': {
                'api': 'running',
                'email': 'configured' if smtp else 'simulated',
                'database': database,
            },
        })
