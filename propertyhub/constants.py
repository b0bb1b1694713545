ROLE_TENANT = "tenant"
ROLE_LANDLORD = "landlord"
ROLE_ADMIN = "admin"
ROLE_MAINTENANCE = "maintenance"
ROLE_ACCOUNTANT = "accountant"

DEFAULT_ROLES = [
    (ROLE_TENANT, "Tenant occupying a unit"),
    (ROLE_LANDLORD, "Landlord owning or managing properties"),
    (ROLE_ADMIN, "Administrator with full access"),
    (ROLE_MAINTENANCE, "Maintenance staff attached to a property"),
    (ROLE_ACCOUNTANT, "Accountant handling property finances"),
]

STATUS_ACTIVE = "active"
STATUS_INACTIVE = "inactive"

UNIT_VACANT = "vacant"
UNIT_OCCUPIED = "occupied"

MAINTENANCE_PENDING = "pending"
MAINTENANCE_IN_PROGRESS = "in-progress"
MAINTENANCE_RESOLVED = "resolved"
MAINTENANCE_STATES = [MAINTENANCE_PENDING, MAINTENANCE_IN_PROGRESS, MAINTENANCE_RESOLVED]

PAYMENT_PENDING = "pending"
RECEIPT_PENDING = "pending"
MESSAGE_SENT = "sent"

RECEIPT_PREFIX = "RCP"

# Activity log verbs
ACTION_VIEW = "VIEW"
ACTION_CREATE = "CREATE"
ACTION_UPDATE = "UPDATE"
ACTION_SIGNUP = "SIGNUP"
ACTION_LOGIN = "LOGIN"
ACTION_LOGOUT = "LOGOUT"

# Notification event types
EVENT_MAINTENANCE_CREATED = "maintenance_created"
EVENT_MAINTENANCE_RESOLVED = "maintenance_resolved"
EVENT_MESSAGE_RECEIVED = "message_received"
EVENT_ANNOUNCEMENT_POSTED = "announcement_posted"
EVENT_PAYMENT_RECORDED = "payment_recorded"
EVENT_RECEIPT_ISSUED = "receipt_issued"
EVENT_UNIT_ASSIGNED = "unit_assigned"
