"""Module-level access control"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

from .models import ModuleAccess, ACCESS_READ_WRITE, ACCESS_READ_ONLY, ACCESS_NONE, MODULE_IDS


def get_access_level(user, module):
    """Return the effective access level of a user for a module"""
    if not user or not user.is_authenticated:
        return ACCESS_NONE
    if user.is_app_admin:
        return ACCESS_READ_WRITE
    access = ModuleAccess.objects.filter(user=user, module=module).values_list('access_level', flat=True).first()
    return access or ACCESS_NONE


def get_access_map(user):
    """Return {module: access_level} for every module"""
    if user.is_app_admin:
        return {module: ACCESS_READ_WRITE for module in MODULE_IDS}
    access_map = {module: ACCESS_NONE for module in MODULE_IDS}
    for row in ModuleAccess.objects.filter(user=user):
        access_map[row.module] = row.access_level
    return access_map


def can_read(user, module):
    return get_access_level(user, module) in (ACCESS_READ_ONLY, ACCESS_READ_WRITE)


def can_write(user, module):
    return get_access_level(user, module) == ACCESS_READ_WRITE


class HasModuleAccess(BasePermission):
    """
    Grants safe methods to read-only or read-write users of `module`
    and unsafe methods to read-write users only.
    """
    module = None
    message = 'You do not have access to this module.'

    def has_permission(self, request, view):
        if self.module is None:
            return False
        if request.method in SAFE_METHODS:
            return can_read(request.user, self.module)
        return can_write(request.user, self.module)


def module_access(module):
    """Build a HasModuleAccess permission class bound to a module"""
    return type(f'Has{module.title()}Access', (HasModuleAccess,), {'module': module})


class IsAppAdmin(BasePermission):
    message = 'Admin access required.'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_app_admin)
