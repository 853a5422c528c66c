"""Launcher Auth Module

Microsoft -> Xbox Live -> XSTS -> Minecraft 인증 체인.
런처가 매번 재로그인하지 않고 Minecraft bearer token을 유지하도록 한다.

Example:
    from launcher_auth import (
        AccountManager, AuthenticationClient, AuthProperties, DeviceCodeFlow
    )

    client = AuthenticationClient(AuthProperties.from_env())
    manager = AccountManager(client)
    bundle = await manager.login(DeviceCodeFlow(client))
    await manager.ensure_fresh(bundle)
"""

from launcher_auth.account import (
    AccountManager,
    ConsoleIdentityRecord,
    CredentialBundle,
    GameSessionRecord,
)
from launcher_auth.client import AuthenticationClient
from launcher_auth.config import AuthProperties
from launcher_auth.exceptions import (
    AuthenticationError,
    DecodeError,
    DeviceCodeExpiredError,
    ExchangeError,
    ExchangeHop,
    Provider,
    ProviderRejectedError,
    ServerFaultError,
    TransportError,
    UnauthenticatedError,
)
from launcher_auth.flows import (
    AuthorizationStrategy,
    DeviceCodeFlow,
    DeviceCodeSession,
    PollOutcome,
    PollStatus,
    RedirectCodeFlow,
)
from launcher_auth.pipeline import TokenExchangePipeline
from launcher_auth.providers import ProviderToken
from launcher_auth.storage import BundleStore

__version__ = "0.1.0"

__all__ = [
    # Core
    "AuthProperties",
    "AuthenticationClient",
    "AuthorizationStrategy",
    "RedirectCodeFlow",
    "DeviceCodeFlow",
    "DeviceCodeSession",
    "PollOutcome",
    "PollStatus",
    "ProviderToken",
    "TokenExchangePipeline",
    "AccountManager",
    "CredentialBundle",
    "ConsoleIdentityRecord",
    "GameSessionRecord",
    "BundleStore",
    # Exceptions
    "AuthenticationError",
    "TransportError",
    "DecodeError",
    "ProviderRejectedError",
    "ServerFaultError",
    "UnauthenticatedError",
    "DeviceCodeExpiredError",
    "ExchangeError",
    "ExchangeHop",
    "Provider",
]
