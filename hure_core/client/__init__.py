from hure_core.client.api import HureClient  # noqa: F401
from hure_core.client.errors import (  # noqa: F401
    AuthExpiry,
    BackendRejection,
    HureClientError,
    NetworkFailure,
    ValidationError,
)
from hure_core.client.onboarding import (  # noqa: F401
    BusinessDetails,
    OnboardingFlow,
    OnboardingSession,
    OnboardingStep,
)
from hure_core.client.session import ApiSession, MemoryTokenStore, TokenStore  # noqa: F401
