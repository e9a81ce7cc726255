# Import models here so Alembic can discover metadata.
from hure_core.models.clinic import Clinic  # noqa: F401
from hure_core.models.user import User  # noqa: F401
from hure_core.models.otp_code import OtpCode  # noqa: F401
from hure_core.models.subscription import Subscription  # noqa: F401
from hure_core.models.audit_log import AuditLog  # noqa: F401
