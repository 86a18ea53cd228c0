"""Closed identifiers for modules, actions and roles.

Values are the canonical names used in role claims, policy names and the
matrix file. They are fixed at build time; there is no runtime registration.
"""

from __future__ import annotations

from enum import Enum


class Module(str, Enum):
    """Functional area of the host application."""

    DASHBOARD = "Dashboard"
    WORK_PERMIT_MANAGEMENT = "WorkPermitManagement"
    INCIDENT_MANAGEMENT = "IncidentManagement"
    RISK_MANAGEMENT = "RiskManagement"
    INSPECTION_MANAGEMENT = "InspectionManagement"
    AUDIT_MANAGEMENT = "AuditManagement"
    PPE_MANAGEMENT = "PPEManagement"
    TRAINING_MANAGEMENT = "TrainingManagement"
    LICENSE_MANAGEMENT = "LicenseManagement"
    WASTE_MANAGEMENT = "WasteManagement"
    HEALTH_MONITORING = "HealthMonitoring"
    PHYSICAL_SECURITY = "PhysicalSecurity"
    INFORMATION_SECURITY = "InformationSecurity"
    PERSONNEL_SECURITY = "PersonnelSecurity"
    SECURITY_INCIDENT_MANAGEMENT = "SecurityIncidentManagement"
    COMPLIANCE_MANAGEMENT = "ComplianceManagement"
    REPORTING = "Reporting"
    USER_MANAGEMENT = "UserManagement"
    APPLICATION_SETTINGS = "ApplicationSettings"
    WORKFLOW_MANAGEMENT = "WorkflowManagement"

    def __str__(self) -> str:
        return self.value


class Action(str, Enum):
    """Operation kind within a module."""

    READ = "Read"
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
    EXPORT = "Export"
    CONFIGURE = "Configure"
    APPROVE = "Approve"
    ASSIGN = "Assign"

    def __str__(self) -> str:
        return self.value


class Role(str, Enum):
    """Organizational role a caller may hold (zero or more at once)."""

    SUPER_ADMIN = "SuperAdmin"
    DEVELOPER = "Developer"
    ADMIN = "Admin"
    INCIDENT_MANAGER = "IncidentManager"
    RISK_MANAGER = "RiskManager"
    PPE_MANAGER = "PPEManager"
    HEALTH_MONITOR = "HealthMonitor"
    INSPECTION_MANAGER = "InspectionManager"
    SECURITY_MANAGER = "SecurityManager"
    SECURITY_OFFICER = "SecurityOfficer"
    COMPLIANCE_OFFICER = "ComplianceOfficer"
    WORKFLOW_MANAGER = "WorkflowManager"
    REPORTER = "Reporter"
    VIEWER = "Viewer"
    EMPLOYEE = "Employee"

    def __str__(self) -> str:
        return self.value


# ---- Role groups ---------------------------------------------------------------------

SYSTEM_ADMIN_ROLES: frozenset[Role] = frozenset({Role.SUPER_ADMIN, Role.DEVELOPER})

ADMIN_ROLES: frozenset[Role] = SYSTEM_ADMIN_ROLES | {Role.ADMIN}

MANAGER_ROLES: frozenset[Role] = frozenset(
    {
        Role.INCIDENT_MANAGER,
        Role.RISK_MANAGER,
        Role.PPE_MANAGER,
        Role.HEALTH_MONITOR,
        Role.INSPECTION_MANAGER,
        Role.SECURITY_MANAGER,
        Role.WORKFLOW_MANAGER,
    }
)

READ_ONLY_ROLES: frozenset[Role] = frozenset({Role.REPORTER, Role.VIEWER})


# ---- Permission presets --------------------------------------------------------------

ALL_ACTIONS: frozenset[Action] = frozenset(Action)

CRUD_ACTIONS: frozenset[Action] = frozenset(
    {Action.READ, Action.CREATE, Action.UPDATE, Action.DELETE, Action.EXPORT}
)

READ_ONLY_ACTIONS: frozenset[Action] = frozenset({Action.READ, Action.EXPORT})

PRESETS: dict[str, frozenset[Action]] = {
    "all": ALL_ACTIONS,
    "crud": CRUD_ACTIONS,
    "read_only": READ_ONLY_ACTIONS,
}


_ROLES_BY_NAME: dict[str, Role] = {role.value: role for role in Role}


def parse_role(claim: str) -> Role | None:
    """
    Map a role claim onto ``Role`` by exact canonical name.

    Matching is case-sensitive with no trimming, so ``"superadmin"`` and
    ``" Admin"`` are not roles. Returns None instead of raising.
    """

    if not isinstance(claim, str):
        return None
    return _ROLES_BY_NAME.get(claim)
