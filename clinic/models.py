# clinic/models.py
# Importing this module registers every table on Base.metadata.
from clinic.modules.users.models import AuditLog, User, UserRole  # noqa: F401
from clinic.modules.patients.models import Patient  # noqa: F401
from clinic.modules.availability.models import TimeBlock, WeeklyScheduleRule  # noqa: F401
from clinic.modules.appointments.models import Appointment, ApptStatus  # noqa: F401
