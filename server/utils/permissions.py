from rest_framework.permissions import BasePermission


def is_content_admin(user) -> bool:
    """Staff and superusers author content and may see drafts."""
    return bool(
        user and user.is_authenticated and (user.is_superuser or user.is_staff)
    )


class IsContentAdmin(BasePermission):
    message = "Somente administradores podem gerenciar conteudos."

    def has_permission(self, request, view):
        return is_content_admin(request.user)

    def has_object_permission(self, request, view, obj):
        return is_content_admin(request.user)

