"""Xbox Live Provider

Console identity broker.
- user.auth.xboxlive.com: Microsoft access_token -> Xbox Live token
- xsts.auth.xboxlive.com: Xbox Live token -> XSTS token (relying party 지정)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from launcher_auth.client import AuthenticationClient
from launcher_auth.config import XBOX_RELYING_PARTY, XBOX_SANDBOX_ID, XBOX_SITE_NAME
from launcher_auth.exceptions import DecodeError, Provider
from launcher_auth.utils.time import parse_timestamp

logger = logging.getLogger(__name__)


@dataclass
class XboxLiveToken:
    """Xbox Live 계열 토큰"""

    token: str
    user_hash: str
    not_after: datetime
    issue_instant: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.not_after <= now


class ConsoleIdentityToken(XboxLiveToken):
    """Xbox Live user token. CredentialBundle에 저장된다."""


class SecurityToken(XboxLiveToken):
    """XSTS token. 유효 기간이 게임 토큰과 같아서 저장하지 않는다."""


@dataclass
class XboxLiveResponse:
    """Xbox Live / XSTS 표준 응답"""

    token: str
    not_after: datetime
    issue_instant: datetime | None = None
    claims: list = field(default_factory=list)

    @property
    def user_hash(self) -> str:
        """첫 번째 xui claim의 uhs.

        broker 계약상 목록이 비어 있지 않지만 그대로 믿지 않는다.

        Raises:
            DecodeError: claims 목록이 비어 있거나 uhs가 없음
        """
        if not self.claims:
            raise DecodeError(
                "Xbox Live 응답에 DisplayClaims.xui 항목이 없습니다", Provider.XBOX_LIVE
            )
        first = self.claims[0]
        user_hash = first.get("uhs") if isinstance(first, dict) else None
        if not isinstance(user_hash, str) or not user_hash:
            raise DecodeError(
                "Xbox Live 응답의 첫 번째 xui claim에 uhs가 없습니다",
                Provider.XBOX_LIVE,
            )
        return user_hash

    @classmethod
    def from_response(cls, data: dict) -> "XboxLiveResponse":
        """응답 본문에서 생성

        Raises:
            DecodeError: 필수 필드 누락 또는 형식 오류
        """
        try:
            token = data["Token"]
            not_after = parse_timestamp(data["NotAfter"])
            issue_instant = (
                parse_timestamp(data["IssueInstant"])
                if data.get("IssueInstant")
                else None
            )
            claims = data["DisplayClaims"]["xui"]
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(
                f"Xbox Live 응답 형식이 잘못되었습니다: {e!r}", Provider.XBOX_LIVE
            ) from e
        if not isinstance(token, str) or not isinstance(claims, list):
            raise DecodeError("Xbox Live 응답 형식이 잘못되었습니다", Provider.XBOX_LIVE)
        return cls(
            token=token,
            not_after=not_after,
            issue_instant=issue_instant,
            claims=claims,
        )

    def to_token(self, token_cls: type, now: datetime):
        """ConsoleIdentityToken 또는 SecurityToken으로 변환.

        Raises:
            DecodeError: user_hash 없음, NotAfter가 이미 지남
        """
        if self.not_after <= now:
            raise DecodeError(
                f"Xbox Live 토큰이 이미 만료되었습니다 (NotAfter={self.not_after.isoformat()})",
                Provider.XBOX_LIVE,
            )
        return token_cls(
            token=self.token,
            user_hash=self.user_hash,
            not_after=self.not_after,
            issue_instant=self.issue_instant,
        )


class XboxLiveAuth:
    """Xbox Live / XSTS 토큰 교환.

    Example:
        xbox = XboxLiveAuth(client)
        identity = await xbox.authenticate_xbl(provider_token.access_token)
        security = await xbox.authenticate_xsts(identity.token)
    """

    def __init__(self, client: AuthenticationClient):
        self.client = client

    async def authenticate_xbl(self, access_token: str) -> ConsoleIdentityToken:
        """Microsoft access_token으로 Xbox Live token 발급.

        Args:
            access_token: ProviderToken.access_token

        Returns:
            ConsoleIdentityToken
        """
        logger.debug("Acquiring a Xbox Live token")
        payload = {
            "Properties": {
                "AuthMethod": "RPS",
                "SiteName": XBOX_SITE_NAME,
                "RpsTicket": f"d={access_token}",
            },
            "RelyingParty": XBOX_RELYING_PARTY,
            "TokenType": "JWT",
        }
        data = await self.client.post_json(
            self.client.properties.xbox_user_auth_url, payload, Provider.XBOX_LIVE
        )
        response = XboxLiveResponse.from_response(data)
        return response.to_token(ConsoleIdentityToken, self.client.now())

    async def authenticate_xsts(
        self, xbox_live_token: str, relying_party: str | None = None
    ) -> SecurityToken:
        """Xbox Live token으로 XSTS token 발급.

        Args:
            xbox_live_token: ConsoleIdentityToken.token
            relying_party: 대상 서비스 (기본: Minecraft services)

        Returns:
            SecurityToken
        """
        logger.debug("Acquiring the XSTS token")
        payload = {
            "Properties": {
                "SandboxId": XBOX_SANDBOX_ID,
                "UserTokens": [xbox_live_token],
            },
            "RelyingParty": relying_party
            or self.client.properties.minecraft_relying_party,
            "TokenType": "JWT",
        }
        data = await self.client.post_json(
            self.client.properties.xbox_xsts_auth_url, payload, Provider.XBOX_LIVE
        )
        response = XboxLiveResponse.from_response(data)
        return response.to_token(SecurityToken, self.client.now())
