"""Role permission helper sets."""

from app.db.enums.auth import Role

# Roles that can read the dashboard (submissions, documents, payments)
ROLES_CAN_VIEW = [Role.ADMIN, Role.AGENT, Role.VIEWER]

# Roles that can drive the submission workflow and manage clients
ROLES_STAFF = [Role.ADMIN, Role.AGENT]

# Roles that can delete records, manage users and read the activity log
ROLES_ADMIN = [Role.ADMIN]
