from django.contrib import admin
from .models import User, Event, Registration


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'name', 'role', 'is_email_verified', 'is_active', 'created_at')
    list_filter = ('role', 'is_email_verified', 'is_active')
    search_fields = ('email', 'name', 'company')
    # Passwords are set through the API or `manage.py changepassword`
    readonly_fields = ('password', 'last_login', 'created_at', 'updated_at')
    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Profile', {'fields': ('name', 'company', 'position', 'phone', 'department')}),
        ('Access', {'fields': ('role', 'is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Verification', {'fields': ('is_email_verified', 'email_verification_token', 'email_verification_expires')}),
        ('Dates', {'fields': ('last_login', 'created_at', 'updated_at')}),
    )


class RegistrationInline(admin.TabularInline):
    model = Registration
    extra = 0
    fields = ('user', 'guest_name', 'guest_email', 'status', 'registered_at')
    readonly_fields = ('registered_at',)


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ('title', 'organizer', 'type', 'status', 'start_date', 'registration_count', 'confirmed_count')
    list_filter = ('status', 'type')
    search_fields = ('title', 'location', 'slug')
    inlines = [RegistrationInline]

    def registration_count(self, obj):
        return obj.registrations.count()

    def confirmed_count(self, obj):
        return obj.confirmed_count


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    list_display = ('__str__', 'event', 'status', 'registered_at', 'confirmed_at')
    list_filter = ('status', 'event')
    search_fields = ('guest_name', 'guest_email', 'user__email', 'user__name')
