"""Microsoft Identity Provider

Microsoft identity platform의 token 엔드포인트.
authorization_code / device_code / refresh_token grant가 모두 이 엔드포인트를 쓴다.
"""

import logging
from dataclasses import dataclass

from launcher_auth.client import AuthenticationClient
from launcher_auth.exceptions import DecodeError, Provider, UnauthenticatedError

logger = logging.getLogger(__name__)


@dataclass
class ProviderToken:
    """Microsoft가 발급한 위임 토큰.

    직접 저장하지 않는다. refresh_token만 CredentialBundle로 넘어간다.

    Attributes:
        access_token: Xbox Live 토큰 교환에 쓰는 값
        refresh_token: 새 access_token을 받을 때 쓰는 값
        expires_in: access_token 유효 시간 (초)
    """

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "Bearer"
    scope: str = ""

    @classmethod
    def from_response(cls, data: dict) -> "ProviderToken":
        """token 엔드포인트 응답에서 생성

        Raises:
            DecodeError: 필수 필드 누락
        """
        try:
            access_token = data["access_token"]
            refresh_token = data["refresh_token"]
            expires_in = int(data["expires_in"])
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(
                f"Microsoft token 응답 형식이 잘못되었습니다: {e!r}",
                Provider.MICROSOFT,
            ) from e
        if not isinstance(access_token, str) or not isinstance(refresh_token, str):
            raise DecodeError(
                "Microsoft token 응답의 토큰이 문자열이 아닙니다", Provider.MICROSOFT
            )
        if expires_in <= 0:
            raise DecodeError(
                f"Microsoft token 응답의 expires_in이 양수가 아닙니다: {expires_in}",
                Provider.MICROSOFT,
            )
        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=expires_in,
            token_type=data.get("token_type") or "Bearer",
            scope=data.get("scope") or "",
        )


class MicrosoftIdentity:
    """Microsoft token 엔드포인트 호출.

    두 AuthorizationStrategy와 RefreshPolicy가 공유한다.
    """

    def __init__(self, client: AuthenticationClient):
        self.client = client

    @property
    def properties(self):
        return self.client.properties

    async def request_token(self, form: dict) -> ProviderToken:
        """token 엔드포인트에 form POST 후 ProviderToken 생성.

        Raises:
            TransportError, ServerFaultError, ProviderRejectedError, DecodeError
        """
        data = await self.client.post_form(
            self.properties.token_endpoint, form, Provider.MICROSOFT
        )
        return ProviderToken.from_response(data)

    async def refresh(self, refresh_token: str) -> ProviderToken:
        """Refresh token으로 새 ProviderToken 발급.

        응답의 refresh_token이 바뀔 수 있으므로 호출자는 새 값을 저장해야 한다.

        Args:
            refresh_token: 저장해 둔 refresh token

        Returns:
            ProviderToken: 새 토큰
        """
        if not refresh_token:
            raise UnauthenticatedError(
                "Refresh token이 없습니다. 다시 로그인하세요.", Provider.MICROSOFT
            )

        logger.debug("Acquiring an access_token from Microsoft via refresh_token")
        return await self.request_token(
            {
                "client_id": self.properties.client_id,
                "scope": self.properties.scope,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            }
        )
