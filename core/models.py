import re
import uuid

from django.contrib.auth.base_user import AbstractBaseUser, BaseUserManager
from django.contrib.auth.models import PermissionsMixin
from django.db import models
from django.utils import timezone


class UserManager(BaseUserManager):
    use_in_migrations = True

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("Users must have an email address")
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('role', User.Role.ADMIN)
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_email_verified', True)
        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    class Role(models.TextChoices):
        ADMIN = 'admin', 'Admin'
        MANAGER = 'manager', 'Manager'
        GUEST = 'guest', 'Guest'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=150)
    email = models.EmailField(unique=True)
    company = models.CharField(max_length=200, blank=True, null=True)
    position = models.CharField(max_length=200, blank=True, null=True)
    phone = models.CharField(max_length=30, blank=True, null=True)
    department = models.CharField(max_length=200, blank=True, null=True)
    role = models.CharField(max_length=10, choices=Role.choices, default=Role.GUEST)

    # Email verification
    is_email_verified = models.BooleanField(default=False)
    email_verification_token = models.CharField(max_length=64, blank=True, null=True)
    email_verification_expires = models.DateTimeField(blank=True, null=True)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    class Meta:
        ordering = ['-created_at']

    @property
    def is_admin(self):
        return self.role == self.Role.ADMIN or self.is_superuser

    def __str__(self):
        return self.email


class Event(models.Model):
    class Type(models.TextChoices):
        CONFERENCE = 'conference', 'Conference'
        WORKSHOP = 'workshop', 'Workshop'
        SEMINAR = 'seminar', 'Seminar'
        MEETUP = 'meetup', 'Meetup'
        WEBINAR = 'webinar', 'Webinar'
        NETWORKING = 'networking', 'Networking'
        OTHER = 'other', 'Other'

    class Status(models.TextChoices):
        DRAFT = 'draft', 'Draft'
        PUBLISHED = 'published', 'Published'
        CANCELLED = 'cancelled', 'Cancelled'
        COMPLETED = 'completed', 'Completed'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organizer = models.ForeignKey(User, on_delete=models.CASCADE, related_name='organized_events')
    title = models.CharField(max_length=200)
    description = models.TextField()
    type = models.CharField(max_length=20, choices=Type.choices, default=Type.OTHER)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    location = models.CharField(max_length=200)
    address = models.CharField(max_length=500, blank=True, null=True)
    max_attendees = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    requirements = models.TextField(blank=True, null=True)
    agenda = models.TextField(blank=True, null=True)
    tags = models.JSONField(blank=True, default=list)
    image_url = models.URLField(max_length=500, blank=True, null=True)
    registration_deadline = models.DateTimeField(blank=True, null=True)

    # Landing page customization
    landing_page_html = models.TextField(blank=True, null=True)
    landing_page_config = models.JSONField(blank=True, null=True)
    custom_css = models.TextField(blank=True, null=True)
    custom_js = models.TextField(blank=True, null=True)
    slug = models.SlugField(max_length=100, unique=True, blank=True, null=True)

    # Custom registration form and campaign settings
    registration_fields = models.JSONField(blank=True, null=True)
    email_campaign_config = models.JSONField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['start_date']

    @property
    def is_registration_open(self):
        now = timezone.now()
        deadline = self.registration_deadline or self.start_date
        return (
            self.status == self.Status.PUBLISHED
            and now < deadline
            and now < self.start_date
        )

    @property
    def confirmed_count(self):
        return self.registrations.filter(status=Registration.Status.CONFIRMED).count()

    @property
    def remaining_slots(self):
        return max(self.max_attendees - self.confirmed_count, 0)

    @property
    def is_full(self):
        return self.confirmed_count >= self.max_attendees

    def is_managed_by(self, user):
        """True for the event organizer and for admins."""
        if not user or not user.is_authenticated:
            return False
        return self.organizer_id == user.id or user.is_admin

    def required_custom_fields(self):
        fields = (self.registration_fields or {}).get('fields') or []
        return [
            f['id'] for f in fields
            if f.get('required') and f.get('visible', True) and f.get('id')
        ]

    def __str__(self):
        return self.title


def slugify_title(title):
    slug = title.lower()
    slug = re.sub(r'[^a-z0-9\s-]', '', slug)
    slug = re.sub(r'\s+', '-', slug)
    slug = re.sub(r'-+', '-', slug)
    return slug.strip('-')


def generate_unique_slug(title, exclude_id=None):
    """Builds a slug from ``title``, suffixing -1, -2... until no other event uses it."""
    base_slug = slugify_title(title) or 'event'
    slug = base_slug
    counter = 1
    others = Event.objects.all()
    if exclude_id:
        others = others.exclude(pk=exclude_id)
    while others.filter(slug=slug).exists():
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug


class Registration(models.Model):
    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        CONFIRMED = 'confirmed', 'Confirmed'
        CANCELLED = 'cancelled', 'Cancelled'
        ATTENDED = 'attended', 'Attended'
        NO_SHOW = 'no_show', 'No show'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, on_delete=models.CASCADE, null=True, blank=True, related_name='registrations')
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name='registrations')
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    notes = models.TextField(blank=True, null=True)
    additional_info = models.JSONField(blank=True, null=True)
    custom_fields = models.JSONField(blank=True, null=True)

    # Contact info for guest registrations
    guest_name = models.CharField(max_length=150, blank=True, null=True)
    guest_email = models.EmailField(blank=True, null=True)
    guest_phone = models.CharField(max_length=30, blank=True, null=True)

    # Tracking
    email_opened_at = models.DateTimeField(blank=True, null=True)
    email_clicked_at = models.DateTimeField(blank=True, null=True)
    registration_source = models.CharField(max_length=100, blank=True, null=True)
    utm_source = models.CharField(max_length=100, blank=True, null=True)
    utm_medium = models.CharField(max_length=100, blank=True, null=True)
    utm_campaign = models.CharField(max_length=100, blank=True, null=True)

    registered_at = models.DateTimeField(blank=True, null=True)
    confirmed_at = models.DateTimeField(blank=True, null=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)
    attended_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    STATUS_TIMESTAMPS = {
        'confirmed': 'confirmed_at',
        'cancelled': 'cancelled_at',
        'attended': 'attended_at',
    }

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['guest_email', 'event'], name='unique_guest_email_per_event'),
            models.UniqueConstraint(
                fields=['user', 'event'],
                condition=models.Q(user__isnull=False),
                name='unique_user_per_event',
            ),
        ]

    @property
    def contact_email(self):
        if self.user_id:
            return self.user.email
        return self.guest_email

    @property
    def contact_name(self):
        if self.user_id:
            return self.user.name or self.user.email
        return self.guest_name or self.guest_email

    def transition_to(self, status):
        """Sets ``status`` and stamps the matching timestamp. Does not save."""
        self.status = status
        stamp = self.STATUS_TIMESTAMPS.get(str(status))
        if stamp:
            setattr(self, stamp, timezone.now())

    def __str__(self):
        return f"{self.contact_name} - {self.event.title}"
