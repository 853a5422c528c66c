"""AuthorizationStrategy 추상 클래스

Microsoft ProviderToken을 얻는 두 가지 방법의 공통 인터페이스.
구현체는 RedirectCodeFlow, DeviceCodeFlow 두 개뿐이다.
"""

from abc import ABC, abstractmethod

from launcher_auth.client import AuthenticationClient
from launcher_auth.providers.microsoft import MicrosoftIdentity, ProviderToken


class AuthorizationStrategy(ABC):
    """ProviderToken 발급 전략"""

    def __init__(self, client: AuthenticationClient):
        self.client = client
        self.identity = MicrosoftIdentity(client)

    @property
    @abstractmethod
    def name(self) -> str:
        """전략 이름"""
        pass

    @abstractmethod
    async def login(self, **kwargs) -> ProviderToken:
        """로그인 수행

        Returns:
            ProviderToken: Microsoft 위임 토큰
        """
        pass

    async def refresh(self, refresh_token: str) -> ProviderToken:
        """Refresh token으로 갱신 (두 전략 공통)"""
        return await self.identity.refresh(refresh_token)
