from rest_framework.permissions import BasePermission, SAFE_METHODS


# ---- Helper functions -------------------------------------------------


def is_app_admin(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    return getattr(user, "role", None) == "admin" or user.is_superuser


def can_manage_project(user, project) -> bool:
    """
    Creator of the project, or an admin.
    """
    if not user or not user.is_authenticated or project is None:
        return False

    if is_app_admin(user):
        return True

    return project.created_by_id is not None and project.created_by_id == user.id


# ---- Permission classes -----------------------------------------------


class IsProjectManagerOrReadOnly(BasePermission):
    """
    - SAFE methods: any authenticated user.
    - Writes on an existing project: creator or admin.
    """

    def has_object_permission(self, request, view, obj):
        if request.method in SAFE_METHODS:
            return True
        return can_manage_project(request.user, obj)


class IsAppAdmin(BasePermission):
    message = "Only admins can do this."

    def has_permission(self, request, view):
        return is_app_admin(request.user)
