import secrets

from django.conf import settings
from django.utils import timezone
from rest_framework import serializers
from rest_framework.exceptions import NotFound
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .exceptions import Conflict
from .models import Event, Registration, User

HEX_COLOR = r'^#(?:[0-9a-fA-F]{3}){1,2}$'
SLUG_PATTERN = r'^[a-z0-9]+(?:-[a-z0-9]+)*$'


def _ensure_email_free(email, exclude=None):
    others = User.objects.filter(email__iexact=email)
    if exclude is not None:
        others = others.exclude(pk=exclude.pk)
    if others.exists():
        raise Conflict('Email already exists')
    return email


# Users & auth

class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            'id', 'name', 'email', 'company', 'position', 'phone', 'department',
            'role', 'is_email_verified', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class UserCreateSerializer(serializers.ModelSerializer):
    # Declared explicitly so a duplicate is reported as 409, not a field error
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)

    class Meta:
        model = User
        fields = [
            'id', 'name', 'email', 'password', 'company', 'position', 'phone',
            'department', 'role',
        ]

    def validate_email(self, value):
        return _ensure_email_free(value)

    def create(self, validated_data):
        password = validated_data.pop('password')
        validated_data['is_staff'] = validated_data.get('role') == User.Role.ADMIN
        return User.objects.create_user(password=password, **validated_data)

    def to_representation(self, instance):
        return UserSerializer(instance).data


class UserUpdateSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(required=False)
    password = serializers.CharField(write_only=True, min_length=8, required=False)

    class Meta:
        model = User
        fields = [
            'name', 'email', 'password', 'company', 'position', 'phone',
            'department', 'role',
        ]

    def validate_email(self, value):
        return _ensure_email_free(value, exclude=self.instance)

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        if password:
            instance.set_password(password)
        if 'role' in validated_data:
            # Admins get Django admin access, other roles lose it
            validated_data['is_staff'] = validated_data['role'] == User.Role.ADMIN or instance.is_superuser
        return super().update(instance, validated_data)

    def to_representation(self, instance):
        return UserSerializer(instance).data


class ProfileSerializer(UserUpdateSerializer):
    """Self-service profile edits. The role is not editable here."""

    class Meta(UserUpdateSerializer.Meta):
        read_only_fields = ['role']


class RegisterSerializer(serializers.ModelSerializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)

    class Meta:
        model = User
        fields = ['name', 'email', 'password', 'company', 'position', 'phone', 'department']

    def validate_email(self, value):
        return _ensure_email_free(value)

    def create(self, validated_data):
        password = validated_data.pop('password')
        return User.objects.create_user(
            password=password,
            role=User.Role.GUEST,
            is_email_verified=False,
            email_verification_token=secrets.token_hex(32),
            email_verification_expires=timezone.now() + settings.EMAIL_VERIFICATION_TTL,
            **validated_data,
        )


class LoginSerializer(TokenObtainPairSerializer):
    """Email/password login answering with both tokens and the user."""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['role'] = user.role
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        user = self.user
        return {
            'access_token': data['access'],
            'refresh_token': data['refresh'],
            'user': {
                'id': str(user.id),
                'email': user.email,
                'name': user.name,
                'role': user.role,
                'created_at': user.created_at,
                'updated_at': user.updated_at,
            },
        }


class VerifyEmailSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=64)


class ResendVerificationSerializer(serializers.Serializer):
    email = serializers.EmailField()


# Events

class RegistrationFieldSerializer(serializers.Serializer):
    TYPES = [
        'text', 'email', 'phone', 'select', 'multiselect', 'textarea',
        'checkbox', 'radio', 'date', 'number',
    ]

    id = serializers.CharField(max_length=100)
    type = serializers.ChoiceField(choices=TYPES)
    label = serializers.CharField(max_length=200)
    placeholder = serializers.CharField(max_length=200, required=False, allow_blank=True)
    required = serializers.BooleanField(default=False)
    options = serializers.ListField(child=serializers.CharField(), required=False)
    validation = serializers.DictField(required=False)
    order = serializers.IntegerField(required=False)
    visible = serializers.BooleanField(default=True)


class RegistrationFieldsSerializer(serializers.Serializer):
    fields = RegistrationFieldSerializer(many=True)
    required_fields = serializers.ListField(child=serializers.CharField(), required=False)
    optional_fields = serializers.ListField(child=serializers.CharField(), required=False)


class EventSerializer(serializers.ModelSerializer):
    organizer_name = serializers.ReadOnlyField(source='organizer.name')
    registration_count = serializers.IntegerField(source='registrations.count', read_only=True)
    confirmed_count = serializers.ReadOnlyField()
    remaining_slots = serializers.ReadOnlyField()
    is_registration_open = serializers.ReadOnlyField()
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)

    class Meta:
        model = Event
        fields = '__all__'
        read_only_fields = [
            'organizer', 'status', 'slug', 'landing_page_html', 'landing_page_config',
            'custom_css', 'custom_js',
        ]
        extra_kwargs = {
            'title': {'min_length': 3},
            'description': {'min_length': 10},
            'max_attendees': {'min_value': 1},
            'price': {'min_value': 0},
        }

    def validate_registration_fields(self, value):
        if value is None:
            return value
        config = RegistrationFieldsSerializer(data=value)
        config.is_valid(raise_exception=True)
        return _plain(config.validated_data)

    def validate(self, attrs):
        instance = self.instance
        start = attrs.get('start_date', getattr(instance, 'start_date', None))
        end = attrs.get('end_date', getattr(instance, 'end_date', None))
        deadline = attrs.get('registration_deadline', getattr(instance, 'registration_deadline', None))

        if start and end and start >= end:
            raise serializers.ValidationError('End date must be after start date')
        if instance is None and start and start <= timezone.now():
            raise serializers.ValidationError('Start date must be in the future')
        if deadline and start and deadline > start:
            raise serializers.ValidationError('Registration deadline must be before start date')
        return attrs


class ThemeSerializer(serializers.Serializer):
    primary_color = serializers.RegexField(HEX_COLOR, required=False)
    secondary_color = serializers.RegexField(HEX_COLOR, required=False)
    background_color = serializers.RegexField(HEX_COLOR, required=False)
    text_color = serializers.RegexField(HEX_COLOR, required=False)
    font_family = serializers.CharField(max_length=100, required=False)


class HeroSerializer(serializers.Serializer):
    title = serializers.CharField(min_length=1, max_length=200, required=False)
    subtitle = serializers.CharField(min_length=1, max_length=500, required=False)
    background_image = serializers.URLField(required=False)
    background_video = serializers.URLField(required=False)
    cta_text = serializers.CharField(min_length=1, max_length=50, required=False)
    cta_color = serializers.RegexField(HEX_COLOR, required=False)


class CustomSectionSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=100)
    content = serializers.CharField(max_length=5000)
    type = serializers.ChoiceField(choices=['text', 'image', 'video', 'html'])
    order = serializers.IntegerField(required=False)


class SectionsSerializer(serializers.Serializer):
    show_about = serializers.BooleanField(required=False)
    show_agenda = serializers.BooleanField(required=False)
    show_speakers = serializers.BooleanField(required=False)
    show_location = serializers.BooleanField(required=False)
    show_pricing = serializers.BooleanField(required=False)
    show_testimonials = serializers.BooleanField(required=False)
    custom_sections = CustomSectionSerializer(many=True, required=False)


class SocialMediaSerializer(serializers.Serializer):
    facebook = serializers.URLField(required=False)
    twitter = serializers.URLField(required=False)
    linkedin = serializers.URLField(required=False)
    instagram = serializers.URLField(required=False)


class ContactSerializer(serializers.Serializer):
    email = serializers.CharField(required=False)
    phone = serializers.CharField(required=False)
    website = serializers.URLField(required=False)
    social_media = SocialMediaSerializer(required=False)


class SeoSerializer(serializers.Serializer):
    title = serializers.CharField(min_length=1, max_length=60, required=False)
    description = serializers.CharField(min_length=1, max_length=160, required=False)
    keywords = serializers.ListField(child=serializers.CharField(), required=False)
    og_image = serializers.URLField(required=False)


class LandingPageConfigSerializer(serializers.Serializer):
    theme = ThemeSerializer(required=False)
    hero = HeroSerializer(required=False)
    sections = SectionsSerializer(required=False)
    contact = ContactSerializer(required=False)
    seo = SeoSerializer(required=False)


class LandingPageSerializer(serializers.ModelSerializer):
    landing_page_config = LandingPageConfigSerializer(required=False, allow_null=True)
    slug = serializers.RegexField(
        SLUG_PATTERN, min_length=3, max_length=100, required=False, allow_null=True,
        error_messages={'invalid': 'Slug must contain only lowercase letters, numbers, and hyphens'},
    )

    class Meta:
        model = Event
        fields = ['landing_page_config', 'landing_page_html', 'custom_css', 'custom_js', 'slug']

    def validate_slug(self, value):
        if value:
            others = Event.objects.filter(slug=value)
            if self.instance is not None:
                others = others.exclude(pk=self.instance.pk)
            if others.exists():
                raise serializers.ValidationError('Slug already exists')
        return value

    def update(self, instance, validated_data):
        # Stored as plain JSON rather than written through the nested serializer
        if 'landing_page_config' in validated_data:
            config = validated_data.pop('landing_page_config')
            instance.landing_page_config = _plain(config) if config is not None else None
        return super().update(instance, validated_data)


def _plain(value):
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


# Registrations

class RegistrationSerializer(serializers.ModelSerializer):
    event_title = serializers.ReadOnlyField(source='event.title')
    event_id = serializers.UUIDField(read_only=True)
    user_id = serializers.UUIDField(read_only=True)
    user_name = serializers.ReadOnlyField(source='user.name', default=None)
    user_email = serializers.ReadOnlyField(source='user.email', default=None)

    class Meta:
        model = Registration
        exclude = ['event', 'user']


class RegistrationCreateSerializer(serializers.ModelSerializer):
    """
    Registers the requesting user for an event.

    ``validate`` locks the event row, so the caller must run ``is_valid`` and
    ``save`` inside one ``transaction.atomic`` block for the capacity check
    to hold until the registration row is written.
    """
    event_id = serializers.UUIDField(write_only=True)
    guest = False

    class Meta:
        model = Registration
        fields = [
            'event_id', 'notes', 'additional_info', 'custom_fields',
            'registration_source', 'utm_source', 'utm_medium', 'utm_campaign',
        ]
        # Uniqueness is checked in validate() to answer with 409
        validators = []

    def _locked_event(self, event_id):
        try:
            return Event.objects.select_for_update().get(pk=event_id)
        except Event.DoesNotExist:
            raise NotFound('Event not found')

    def check_duplicate(self, event, attrs):
        user = self.context['request'].user
        if Registration.objects.filter(event=event, user=user).exists():
            raise Conflict('User is already registered for this event')

    def validate(self, attrs):
        event = self._locked_event(attrs.pop('event_id'))
        if not event.is_registration_open:
            raise serializers.ValidationError('Registration is not open for this event')
        self.check_duplicate(event, attrs)
        if event.is_full:
            raise serializers.ValidationError('Event is fully booked')

        answers = attrs.get('custom_fields') or {}
        missing = [f for f in event.required_custom_fields() if answers.get(f) in (None, '', [])]
        if missing:
            raise serializers.ValidationError(
                {'custom_fields': [f"Missing required field: {f}" for f in missing]}
            )
        attrs['event'] = event
        return attrs

    def create(self, validated_data):
        if not self.guest:
            validated_data['user'] = self.context['request'].user
        validated_data['status'] = Registration.Status.PENDING
        validated_data['registered_at'] = timezone.now()
        return super().create(validated_data)

    def to_representation(self, instance):
        return RegistrationSerializer(instance).data


class GuestRegistrationSerializer(RegistrationCreateSerializer):
    guest = True

    class Meta(RegistrationCreateSerializer.Meta):
        fields = RegistrationCreateSerializer.Meta.fields + ['guest_name', 'guest_email', 'guest_phone']
        # The model allows nulls for user registrations; guests must give both
        extra_kwargs = {
            'guest_name': {'required': True, 'allow_blank': False, 'allow_null': False},
            'guest_email': {'required': True, 'allow_blank': False, 'allow_null': False},
        }

    def validate_guest_email(self, value):
        return value.lower()

    def check_duplicate(self, event, attrs):
        if Registration.objects.filter(event=event, guest_email__iexact=attrs['guest_email']).exists():
            raise Conflict('Email already registered for this event')


class RegistrationUpdateSerializer(serializers.ModelSerializer):
    status = serializers.ChoiceField(choices=Registration.Status.choices, required=False)

    class Meta:
        model = Registration
        fields = [
            'status', 'notes', 'additional_info', 'custom_fields', 'guest_name',
            'guest_phone',
        ]

    def update(self, instance, validated_data):
        status = validated_data.pop('status', None)
        if status is not None:
            instance.transition_to(status)
        return super().update(instance, validated_data)

    def to_representation(self, instance):
        return RegistrationSerializer(instance).data
