"""Credential Bundle & Refresh Policy

저장되는 최소 상태와, 만료된 단계만 다시 실행하는 갱신 로직.

저장 항목과 수명:
- Microsoft refresh_token (수명 불명, 갱신 시 바뀔 수 있음)
- Xbox Live token (약 14일)
- Minecraft token (약 24시간)

XSTS token은 Minecraft token과 수명이 같으므로 저장하지 않는다.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime

from launcher_auth.client import AuthenticationClient
from launcher_auth.exceptions import (
    AuthenticationError,
    DecodeError,
    ExchangeError,
    ExchangeHop,
)
from launcher_auth.flows.base import AuthorizationStrategy
from launcher_auth.pipeline import TokenExchangePipeline
from launcher_auth.providers.microsoft import MicrosoftIdentity, ProviderToken
from launcher_auth.providers.minecraft import GameSessionToken
from launcher_auth.providers.xbox import ConsoleIdentityToken
from launcher_auth.utils.time import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)


@dataclass
class ConsoleIdentityRecord:
    """저장되는 Xbox Live token"""

    token: str
    user_hash: str
    expires_at: datetime

    @classmethod
    def from_token(cls, token: ConsoleIdentityToken) -> "ConsoleIdentityRecord":
        return cls(token=token.token, user_hash=token.user_hash, expires_at=token.not_after)

    def to_token(self) -> ConsoleIdentityToken:
        return ConsoleIdentityToken(
            token=self.token, user_hash=self.user_hash, not_after=self.expires_at
        )

    def to_dict(self) -> dict:
        return {
            "token": self.token,
            "user_hash": self.user_hash,
            "expires_at": format_timestamp(self.expires_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConsoleIdentityRecord":
        return cls(
            token=data["token"],
            user_hash=data["user_hash"],
            expires_at=parse_timestamp(data["expires_at"]),
        )


@dataclass
class GameSessionRecord:
    """저장되는 Minecraft token"""

    token: str
    expires_at: datetime

    @classmethod
    def from_token(cls, token: GameSessionToken) -> "GameSessionRecord":
        return cls(token=token.token, expires_at=token.expires_at)

    def to_dict(self) -> dict:
        return {
            "token": self.token,
            "expires_at": format_timestamp(self.expires_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GameSessionRecord":
        return cls(token=data["token"], expires_at=parse_timestamp(data["expires_at"]))


@dataclass
class CredentialBundle:
    """저장되는 자격증명 묶음.

    필드 이름은 저장 포맷의 일부이므로 바꾸지 않는다.
    """

    refresh_token: str
    console_identity: ConsoleIdentityRecord
    game_session: GameSessionRecord

    @property
    def bearer_token(self) -> str:
        """Minecraft API에 보낼 bearer token"""
        return self.game_session.token

    def authorization_header(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.game_session.token}"}

    def is_fresh(self, now: datetime) -> bool:
        """Minecraft token이 아직 유효한지"""
        return self.game_session.expires_at > now

    def to_dict(self) -> dict:
        """딕셔너리로 변환 (저장용)"""
        return {
            "refresh_token": self.refresh_token,
            "console_identity": self.console_identity.to_dict(),
            "game_session": self.game_session.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CredentialBundle":
        """딕셔너리에서 생성

        Raises:
            DecodeError: 필드 누락 또는 형식 오류
        """
        try:
            return cls(
                refresh_token=data["refresh_token"],
                console_identity=ConsoleIdentityRecord.from_dict(data["console_identity"]),
                game_session=GameSessionRecord.from_dict(data["game_session"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(f"저장된 자격증명 형식이 잘못되었습니다: {e!r}") from e

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str) -> "CredentialBundle":
        try:
            data = json.loads(text)
        except ValueError as e:
            raise DecodeError(f"저장된 자격증명이 JSON이 아닙니다: {e}") from e
        if not isinstance(data, dict):
            raise DecodeError("저장된 자격증명이 JSON object가 아닙니다")
        return cls.from_dict(data)


class AccountManager:
    """CredentialBundle 생성 및 갱신.

    같은 bundle에 대한 ensure_fresh 동시 호출은 내부에서 조정하지 않는다.
    계정별로 갱신을 직렬화하는 것은 호출자 책임이다.

    Example:
        manager = AccountManager(client)
        bundle = await manager.create(provider_token)
        if await manager.ensure_fresh(bundle):
            await store.save("default", bundle)
    """

    def __init__(self, client: AuthenticationClient):
        self.client = client
        self.identity = MicrosoftIdentity(client)
        self.pipeline = TokenExchangePipeline(client)

    async def create(self, provider_token: ProviderToken) -> CredentialBundle:
        """전체 교환을 한 번 실행해서 bundle 생성.

        Raises:
            ExchangeError: 실패한 단계 포함
        """
        identity, game_session = await self.pipeline.exchange_full(provider_token)
        return CredentialBundle(
            refresh_token=provider_token.refresh_token,
            console_identity=ConsoleIdentityRecord.from_token(identity),
            game_session=GameSessionRecord.from_token(game_session),
        )

    async def login(self, strategy: AuthorizationStrategy, **kwargs) -> CredentialBundle:
        """strategy로 ProviderToken을 받은 뒤 bundle 생성"""
        provider_token = await strategy.login(**kwargs)
        return await self.create(provider_token)

    async def ensure_fresh(self, bundle: CredentialBundle) -> bool:
        """만료된 단계만 다시 실행해서 bundle 갱신.

        1. Minecraft token 유효: 아무것도 하지 않음
        2. Xbox Live token 유효: XSTS + Minecraft만 다시 실행
        3. 둘 다 만료: refresh_token 교환 후 세 단계 전체 실행

        refresh_token이 바뀌면 이후 단계가 실패해도 bundle에는 새 값이 남는다.

        Args:
            bundle: 갱신할 bundle (in-place 수정)

        Returns:
            bool: 네트워크 호출이 있었는지 (다시 저장해야 하는지)

        Raises:
            ExchangeError: 실패한 단계 포함 (refresh 단계는 ExchangeHop.REFRESH)
        """
        now = self.client.now()
        if bundle.game_session.expires_at > now:
            return False

        logger.debug("Minecraft token expired")
        if bundle.console_identity.expires_at <= now:
            logger.debug("Xbox Live token expired")
            try:
                provider_token = await self.identity.refresh(bundle.refresh_token)
            except AuthenticationError as e:
                logger.error("Could not refresh the Microsoft token: %s", e)
                raise ExchangeError(ExchangeHop.REFRESH, e) from e
            bundle.refresh_token = provider_token.refresh_token

            identity = await self.pipeline.console_identity(provider_token)
            bundle.console_identity = ConsoleIdentityRecord.from_token(identity)

        game_session = await self.pipeline.exchange_from_console_identity(
            bundle.console_identity.to_token()
        )
        bundle.game_session = GameSessionRecord.from_token(game_session)
        return True
