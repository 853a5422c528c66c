"""Providers

인증 체인의 각 provider 호출.
Microsoft -> Xbox Live -> XSTS -> Minecraft.
"""

from launcher_auth.providers.microsoft import MicrosoftIdentity, ProviderToken
from launcher_auth.providers.minecraft import (
    GameSessionToken,
    MinecraftAuth,
    build_identity_token,
)
from launcher_auth.providers.xbox import (
    ConsoleIdentityToken,
    SecurityToken,
    XboxLiveAuth,
    XboxLiveResponse,
    XboxLiveToken,
)

__all__ = [
    "ProviderToken",
    "MicrosoftIdentity",
    "XboxLiveToken",
    "ConsoleIdentityToken",
    "SecurityToken",
    "XboxLiveResponse",
    "XboxLiveAuth",
    "GameSessionToken",
    "MinecraftAuth",
    "build_identity_token",
]
