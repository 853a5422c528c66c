"""Token Exchange Pipeline

ProviderToken -> ConsoleIdentityToken -> SecurityToken -> GameSessionToken

세 단계는 데이터 의존성이 있어 항상 순서대로 실행한다.
어느 단계든 실패하면 ExchangeError(hop=...)로 중단한다.
"""

import logging

from launcher_auth.client import AuthenticationClient
from launcher_auth.exceptions import AuthenticationError, ExchangeError, ExchangeHop
from launcher_auth.providers.microsoft import ProviderToken
from launcher_auth.providers.minecraft import GameSessionToken, MinecraftAuth
from launcher_auth.providers.xbox import (
    ConsoleIdentityToken,
    SecurityToken,
    XboxLiveAuth,
)

logger = logging.getLogger(__name__)


class TokenExchangePipeline:
    """세 단계 토큰 교환.

    Example:
        pipeline = TokenExchangePipeline(client)
        identity, game_session = await pipeline.exchange_full(provider_token)
    """

    def __init__(self, client: AuthenticationClient):
        self.client = client
        self.xbox = XboxLiveAuth(client)
        self.minecraft = MinecraftAuth(client)

    async def console_identity(self, provider_token: ProviderToken) -> ConsoleIdentityToken:
        """1단계: Microsoft access_token -> Xbox Live token"""
        try:
            return await self.xbox.authenticate_xbl(provider_token.access_token)
        except AuthenticationError as e:
            logger.error("Could not get Xbox Live token: %s", e)
            raise ExchangeError(ExchangeHop.CONSOLE_IDENTITY, e) from e

    async def security_token(self, console_identity: ConsoleIdentityToken) -> SecurityToken:
        """2단계: Xbox Live token -> XSTS token"""
        try:
            return await self.xbox.authenticate_xsts(console_identity.token)
        except AuthenticationError as e:
            logger.error("Could not get XSTS token: %s", e)
            raise ExchangeError(ExchangeHop.SECURITY_TOKEN, e) from e

    async def game_session(self, security_token: SecurityToken) -> GameSessionToken:
        """3단계: XSTS token -> Minecraft token"""
        try:
            return await self.minecraft.authenticate_minecraft(security_token)
        except AuthenticationError as e:
            logger.error("Could not get Minecraft token: %s", e)
            raise ExchangeError(ExchangeHop.GAME_SESSION, e) from e

    async def exchange_from_console_identity(
        self, console_identity: ConsoleIdentityToken
    ) -> GameSessionToken:
        """2, 3단계만 실행 (Xbox Live token이 아직 유효할 때)"""
        security = await self.security_token(console_identity)
        return await self.game_session(security)

    async def exchange_full(
        self, provider_token: ProviderToken
    ) -> tuple[ConsoleIdentityToken, GameSessionToken]:
        """세 단계 전체 실행.

        Args:
            provider_token: Microsoft 위임 토큰

        Returns:
            (ConsoleIdentityToken, GameSessionToken)

        Raises:
            ExchangeError: 실패한 단계와 원인 포함
        """
        identity = await self.console_identity(provider_token)
        game_session = await self.exchange_from_console_identity(identity)
        return identity, game_session
