"""
Permission catalog.

Single source of truth for every permission name the portal knows about.
Seeding, role validation and the route layer all read from here. Names may be
added over time; a name is never removed while a role still references it.
"""
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Tuple

from app.config import settings
from app.core.errors import ValidationError


@dataclass(frozen=True)
class PermissionDef:
    name: str
    description: str
    category: str


class PERMISSIONS:
    # Navigation
    VIEW_DASHBOARD = "view_dashboard"
    VIEW_TASKS = "view_tasks"
    VIEW_CLIENTS = "view_clients"
    VIEW_TEAM = "view_team"
    VIEW_SETTINGS = "view_settings"
    VIEW_ROLES = "view_roles"
    VIEW_PERMISSIONS = "view_permissions"
    VIEW_USERS = "view_users"
    VIEW_CHATS = "view_chats"
    VIEW_FILES = "view_files"

    # Tasks
    CREATE_TASKS = "create_tasks"
    EDIT_TASKS = "edit_tasks"
    DELETE_TASKS = "delete_tasks"
    SUBMIT_TASKS = "submit_tasks"
    COMPLETE_TASKS = "complete_tasks"
    RETURN_TASKS = "return_tasks"
    VIEW_ALL_TASKS = "view_all_tasks"

    # Clients
    CREATE_CLIENTS = "create_clients"
    EDIT_CLIENTS = "edit_clients"
    DELETE_CLIENTS = "delete_clients"
    VIEW_ALL_CLIENTS = "view_all_clients"

    # Users
    INVITE_USERS = "invite_users"
    EDIT_USERS = "edit_users"
    DELETE_USERS = "delete_users"
    MANAGE_USER_ROLES = "manage_user_roles"
    VIEW_ALL_USERS = "view_all_users"

    # Files
    UPLOAD_FILES = "upload_files"
    DELETE_FILES = "delete_files"
    APPROVE_FILES = "approve_files"
    REJECT_FILES = "reject_files"

    # Comments
    CREATE_COMMENTS = "create_comments"
    EDIT_COMMENTS = "edit_comments"
    DELETE_COMMENTS = "delete_comments"

    # Roles
    CREATE_ROLES = "create_roles"
    EDIT_ROLES = "edit_roles"
    DELETE_ROLES = "delete_roles"
    ASSIGN_PERMISSIONS = "assign_permissions"

    # Audit logs
    VIEW_AUDIT_LOGS = "view_audit_logs"


PERMISSION_CATEGORIES: Dict[str, str] = {
    "navigation": "Navigation",
    "tasks": "Aufgaben",
    "clients": "Mandanten",
    "users": "Benutzer",
    "files": "Dateien",
    "comments": "Kommentare",
    "roles": "Rollen",
    "audit": "Protokoll",
}


PERMISSION_REGISTRY: Tuple[PermissionDef, ...] = (
    PermissionDef(PERMISSIONS.VIEW_DASHBOARD, "Dashboard anzeigen", "navigation"),
    PermissionDef(PERMISSIONS.VIEW_TASKS, "Aufgaben anzeigen", "navigation"),
    PermissionDef(PERMISSIONS.VIEW_CLIENTS, "Mandanten anzeigen", "navigation"),
    PermissionDef(PERMISSIONS.VIEW_TEAM, "Team anzeigen", "navigation"),
    PermissionDef(PERMISSIONS.VIEW_SETTINGS, "Einstellungen anzeigen", "navigation"),
    PermissionDef(PERMISSIONS.VIEW_ROLES, "Rollen anzeigen", "navigation"),
    PermissionDef(PERMISSIONS.VIEW_PERMISSIONS, "Berechtigungen anzeigen", "navigation"),
    PermissionDef(PERMISSIONS.VIEW_USERS, "Benutzer anzeigen", "navigation"),
    PermissionDef(PERMISSIONS.VIEW_CHATS, "Zugriff auf den Chat-Bereich", "navigation"),
    PermissionDef(PERMISSIONS.VIEW_FILES, "Zugriff auf den Dateien-Bereich", "navigation"),
    PermissionDef(PERMISSIONS.CREATE_TASKS, "Aufgaben erstellen", "tasks"),
    PermissionDef(PERMISSIONS.EDIT_TASKS, "Aufgaben bearbeiten", "tasks"),
    PermissionDef(PERMISSIONS.DELETE_TASKS, "Aufgaben löschen", "tasks"),
    PermissionDef(PERMISSIONS.SUBMIT_TASKS, "Aufgaben einreichen", "tasks"),
    PermissionDef(PERMISSIONS.COMPLETE_TASKS, "Aufgaben abschließen", "tasks"),
    PermissionDef(PERMISSIONS.RETURN_TASKS, "Aufgaben zurückgeben", "tasks"),
    PermissionDef(PERMISSIONS.VIEW_ALL_TASKS, "Alle Aufgaben anzeigen", "tasks"),
    PermissionDef(PERMISSIONS.CREATE_CLIENTS, "Mandanten erstellen", "clients"),
    PermissionDef(PERMISSIONS.EDIT_CLIENTS, "Mandanten bearbeiten", "clients"),
    PermissionDef(PERMISSIONS.DELETE_CLIENTS, "Mandanten löschen", "clients"),
    PermissionDef(PERMISSIONS.VIEW_ALL_CLIENTS, "Alle Mandanten anzeigen", "clients"),
    PermissionDef(PERMISSIONS.INVITE_USERS, "Benutzer einladen", "users"),
    PermissionDef(PERMISSIONS.EDIT_USERS, "Benutzer bearbeiten", "users"),
    PermissionDef(PERMISSIONS.DELETE_USERS, "Benutzer löschen", "users"),
    PermissionDef(PERMISSIONS.MANAGE_USER_ROLES, "Benutzerrollen verwalten", "users"),
    PermissionDef(PERMISSIONS.VIEW_ALL_USERS, "Alle Benutzer anzeigen", "users"),
    PermissionDef(PERMISSIONS.UPLOAD_FILES, "Dateien hochladen", "files"),
    PermissionDef(PERMISSIONS.DELETE_FILES, "Dateien löschen", "files"),
    PermissionDef(PERMISSIONS.APPROVE_FILES, "Dateien freigeben", "files"),
    PermissionDef(PERMISSIONS.REJECT_FILES, "Dateien ablehnen", "files"),
    PermissionDef(PERMISSIONS.CREATE_COMMENTS, "Kommentieren", "comments"),
    PermissionDef(PERMISSIONS.EDIT_COMMENTS, "Kommentare bearbeiten", "comments"),
    PermissionDef(PERMISSIONS.DELETE_COMMENTS, "Kommentare löschen", "comments"),
    PermissionDef(PERMISSIONS.CREATE_ROLES, "Rollen erstellen", "roles"),
    PermissionDef(PERMISSIONS.EDIT_ROLES, "Rollen bearbeiten", "roles"),
    PermissionDef(PERMISSIONS.DELETE_ROLES, "Rollen löschen", "roles"),
    PermissionDef(PERMISSIONS.ASSIGN_PERMISSIONS, "Berechtigungen zuweisen", "roles"),
    PermissionDef(PERMISSIONS.VIEW_AUDIT_LOGS, "Protokoll anzeigen", "audit"),
)

PERMISSION_NAMES: FrozenSet[str] = frozenset(p.name for p in PERMISSION_REGISTRY)

PERMISSIONS_BY_CATEGORY: Dict[str, List[str]] = {}
for _perm in PERMISSION_REGISTRY:
    PERMISSIONS_BY_CATEGORY.setdefault(_perm.category, []).append(_perm.name)


def is_known_permission(name: str) -> bool:
    return name in PERMISSION_NAMES


def validate_permission_names(names: Iterable[str]) -> List[str]:
    """
    Return the de-duplicated names in input order, or raise ValidationError
    naming every unknown entry. Nothing is persisted by callers on failure.
    """
    seen: List[str] = []
    unknown: List[str] = []
    for name in names:
        if name not in PERMISSION_NAMES:
            unknown.append(name)
        elif name not in seen:
            seen.append(name)

    if unknown:
        raise ValidationError(
            "Unknown permission names",
            error_code="UNKNOWN_PERMISSION",
            details={"field": "permission_names", "unknown": unknown},
        )
    return seen


# Default system roles seeded at initialization. The administrator role is a
# wildcard role (grants_all_permissions) instead of an explicit list.
_EMPLOYEE_PERMISSIONS: Tuple[str, ...] = (
    PERMISSIONS.VIEW_DASHBOARD, PERMISSIONS.VIEW_TASKS, PERMISSIONS.VIEW_CLIENTS,
    PERMISSIONS.VIEW_TEAM, PERMISSIONS.VIEW_SETTINGS, PERMISSIONS.VIEW_CHATS,
    PERMISSIONS.VIEW_FILES, PERMISSIONS.CREATE_TASKS, PERMISSIONS.EDIT_TASKS,
    PERMISSIONS.COMPLETE_TASKS, PERMISSIONS.RETURN_TASKS, PERMISSIONS.EDIT_CLIENTS,
    PERMISSIONS.INVITE_USERS, PERMISSIONS.UPLOAD_FILES, PERMISSIONS.DELETE_FILES,
    PERMISSIONS.APPROVE_FILES, PERMISSIONS.REJECT_FILES, PERMISSIONS.CREATE_COMMENTS,
)

_CUSTOMER_PERMISSIONS: Tuple[str, ...] = (
    PERMISSIONS.VIEW_DASHBOARD, PERMISSIONS.VIEW_TASKS, PERMISSIONS.VIEW_SETTINGS,
    PERMISSIONS.VIEW_CHATS, PERMISSIONS.VIEW_FILES, PERMISSIONS.SUBMIT_TASKS,
    PERMISSIONS.UPLOAD_FILES, PERMISSIONS.CREATE_COMMENTS,
)

_VIEWER_PERMISSIONS: Tuple[str, ...] = (
    PERMISSIONS.VIEW_DASHBOARD, PERMISSIONS.VIEW_TASKS, PERMISSIONS.VIEW_CLIENTS,
    PERMISSIONS.VIEW_TEAM,
)


@dataclass(frozen=True)
class SystemRoleDef:
    name: str
    description: str
    permissions: Tuple[str, ...] = ()
    grants_all_permissions: bool = False


DEFAULT_ROLES: Tuple[SystemRoleDef, ...] = (
    SystemRoleDef(settings.ADMIN_ROLE_NAME, "Vollzugriff auf alle Funktionen", grants_all_permissions=True),
    SystemRoleDef("Mitarbeiter", "Standard-Mitarbeiter mit Zugriff auf Mandanten und Aufgaben", _EMPLOYEE_PERMISSIONS),
    SystemRoleDef("Kunde", "Mandant mit eingeschränktem Zugriff auf eigene Aufgaben", _CUSTOMER_PERMISSIONS),
    SystemRoleDef("Betrachter", "Nur-Lese-Zugriff", _VIEWER_PERMISSIONS),
)
