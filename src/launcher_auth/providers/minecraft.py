"""Minecraft Services Provider

XSTS token을 Minecraft bearer token으로 교환한다.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from launcher_auth.client import AuthenticationClient
from launcher_auth.exceptions import DecodeError, Provider
from launcher_auth.providers.xbox import SecurityToken
from launcher_auth.utils.time import expires_after

logger = logging.getLogger(__name__)

IDENTITY_SCHEME = "XBL3.0"


def build_identity_token(user_hash: str, token: str) -> str:
    """'XBL3.0 x={user_hash};{token}'"""
    return f"{IDENTITY_SCHEME} x={user_hash};{token}"


@dataclass
class GameSessionToken:
    """Minecraft bearer token.

    provider는 유효 시간(초)만 주므로 expires_at은 생성 시점 기준으로 계산한다.
    """

    token: str
    expires_at: datetime
    username: str = ""
    roles: list[str] = field(default_factory=list)
    token_type: str = "Bearer"

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    @classmethod
    def from_response(cls, data: dict, now: datetime) -> "GameSessionToken":
        """login_with_xbox 응답에서 생성

        Raises:
            DecodeError: 필수 필드 누락, expires_in이 양수가 아님
        """
        try:
            access_token = data["access_token"]
            expires_in = int(data["expires_in"])
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(
                f"Minecraft 응답 형식이 잘못되었습니다: {e!r}", Provider.MINECRAFT
            ) from e
        if not isinstance(access_token, str):
            raise DecodeError("Minecraft access_token이 문자열이 아닙니다", Provider.MINECRAFT)
        if expires_in <= 0:
            raise DecodeError(
                f"Minecraft expires_in이 양수가 아닙니다: {expires_in}", Provider.MINECRAFT
            )
        return cls(
            token=access_token,
            expires_at=expires_after(now, expires_in),
            username=data.get("username") or "",
            roles=list(data.get("roles") or []),
            token_type=data.get("token_type") or "Bearer",
        )


class MinecraftAuth:
    """Minecraft login_with_xbox 호출."""

    def __init__(self, client: AuthenticationClient):
        self.client = client

    async def authenticate_minecraft(
        self, security_token: SecurityToken
    ) -> GameSessionToken:
        """XSTS token으로 Minecraft token 발급.

        Args:
            security_token: authenticate_xsts 결과

        Returns:
            GameSessionToken
        """
        logger.debug("Acquiring the Minecraft token")
        payload = {
            "identityToken": build_identity_token(
                security_token.user_hash, security_token.token
            )
        }
        data = await self.client.post_json(
            self.client.properties.minecraft_login_url, payload, Provider.MINECRAFT
        )
        return GameSessionToken.from_response(data, self.client.now())
