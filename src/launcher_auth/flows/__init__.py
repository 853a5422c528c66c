"""Authorization Flows

Microsoft ProviderToken을 얻는 두 가지 방법.
- Redirect Code Flow: 브라우저 redirect로 받은 code 교환
- Device Code Flow: redirect URI 없이 user_code 입력 후 폴링
"""

from launcher_auth.flows.base import AuthorizationStrategy
from launcher_auth.flows.device_code import (
    DeviceCodeFlow,
    DeviceCodeSession,
    DeviceCodeState,
    PollOutcome,
    PollStatus,
    display_device_instructions,
)
from launcher_auth.flows.redirect_code import RedirectCodeFlow

__all__ = [
    "AuthorizationStrategy",
    # Redirect Code Flow
    "RedirectCodeFlow",
    # Device Code Flow
    "DeviceCodeFlow",
    "DeviceCodeSession",
    "DeviceCodeState",
    "PollOutcome",
    "PollStatus",
    "display_device_instructions",
]
