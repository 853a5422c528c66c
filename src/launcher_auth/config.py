"""Auth 설정

Microsoft Client ID, scope, 각 provider 엔드포인트.
인자 > 환경변수 > 기본값 순서로 결정된다.
"""

import os
from dataclasses import dataclass

MICROSOFT_LOGIN_URL = "https://login.microsoftonline.com/consumers"
MICROSOFT_SCOPE = "XboxLive.signin offline_access"

XBOX_USER_AUTH_URL = "https://user.auth.xboxlive.com/user/authenticate"
XBOX_XSTS_AUTH_URL = "https://xsts.auth.xboxlive.com/xsts/authorize"
XBOX_SITE_NAME = "user.auth.xboxlive.com"
XBOX_RELYING_PARTY = "http://auth.xboxlive.com"
XBOX_SANDBOX_ID = "RETAIL"

MINECRAFT_LOGIN_URL = (
    "https://api.minecraftservices.com/authentication/login_with_xbox"
)
MINECRAFT_RELYING_PARTY = "rp://api.minecraftservices.com/"

DEVICE_CODE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"

DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "launcher-auth"


@dataclass
class AuthProperties:
    """인증 설정.

    Attributes:
        client_id: Azure 앱 등록의 Microsoft Client ID
        scope: Microsoft OAuth scope
        login_url: Microsoft 테넌트 base URL
        xbox_user_auth_url: Xbox Live user 인증 엔드포인트
        xbox_xsts_auth_url: XSTS 인증 엔드포인트
        minecraft_login_url: Minecraft login_with_xbox 엔드포인트
        minecraft_relying_party: XSTS 토큰을 발급받을 relying party
        timeout: HTTP 타임아웃 (초)
        user_agent: User-Agent 헤더
    """

    client_id: str
    scope: str = MICROSOFT_SCOPE
    login_url: str = MICROSOFT_LOGIN_URL
    xbox_user_auth_url: str = XBOX_USER_AUTH_URL
    xbox_xsts_auth_url: str = XBOX_XSTS_AUTH_URL
    minecraft_login_url: str = MINECRAFT_LOGIN_URL
    minecraft_relying_party: str = MINECRAFT_RELYING_PARTY
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self):
        if not self.client_id:
            raise ValueError("client_id가 필요합니다.")

    @property
    def authorize_endpoint(self) -> str:
        return f"{self.login_url}/oauth2/v2.0/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.login_url}/oauth2/v2.0/token"

    @property
    def device_code_endpoint(self) -> str:
        return f"{self.login_url}/oauth2/v2.0/devicecode"

    @classmethod
    def from_env(cls, client_id: str | None = None) -> "AuthProperties":
        """환경변수에서 설정 로드.

        - LAUNCHER_AUTH_CLIENT_ID
        - LAUNCHER_AUTH_SCOPE
        - LAUNCHER_AUTH_TIMEOUT

        Raises:
            ValueError: client_id를 찾을 수 없음
        """
        client_id = client_id or os.getenv("LAUNCHER_AUTH_CLIENT_ID")
        if not client_id:
            raise ValueError(
                "LAUNCHER_AUTH_CLIENT_ID 환경변수 또는 client_id 인자가 필요합니다."
            )
        timeout = os.getenv("LAUNCHER_AUTH_TIMEOUT")
        return cls(
            client_id=client_id,
            scope=os.getenv("LAUNCHER_AUTH_SCOPE") or MICROSOFT_SCOPE,
            timeout=float(timeout) if timeout else DEFAULT_TIMEOUT,
        )
