from rest_framework import permissions


class IsAdminRole(permissions.BasePermission):
    """
    Allows access only to users with the ``admin`` role.
    """
    message = 'Forbidden - Admin role required'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)


class IsOrganizerOrAdmin(permissions.BasePermission):
    """
    Event organizers (and admins) may modify an event. Anyone may read it.
    """
    verbs = {
        'update': 'update',
        'partial_update': 'update',
        'destroy': 'delete',
        'publish': 'publish',
        'cancel': 'cancel',
        'complete': 'complete',
    }

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        if obj.is_managed_by(request.user):
            return True
        self.message = f"You can only {self.verbs.get(view.action, 'manage')} your own events"
        return False


class IsEventOrganizer(permissions.BasePermission):
    """
    Landing pages can only be edited by the event's own organizer.
    """

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        if request.user.is_authenticated and obj.organizer_id == request.user.id:
            return True
        verb = 'preview' if request.method == 'POST' else 'edit'
        self.message = f"You can only {verb} your own events"
        return False
