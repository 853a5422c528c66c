"""Redirect Code Flow (OAuth 2.0 Authorization Code)

사용자 브라우저를 Microsoft 로그인 페이지로 보내고,
redirect_uri로 돌아온 code를 ProviderToken으로 교환한다.

https://learn.microsoft.com/en-us/entra/identity-platform/v2-oauth2-auth-code-flow
"""

import logging
from urllib.parse import parse_qs, quote, urlencode, urlparse

from launcher_auth.client import AuthenticationClient
from launcher_auth.exceptions import Provider, UnauthenticatedError
from launcher_auth.flows.base import AuthorizationStrategy
from launcher_auth.providers.microsoft import ProviderToken

logger = logging.getLogger(__name__)


class RedirectCodeFlow(AuthorizationStrategy):
    """Redirect Code Flow.

    Example:
        flow = RedirectCodeFlow(client, "http://localhost:8080/callback")
        url = flow.generate_login_url()
        # ... 사용자가 로그인하고 redirect_uri로 돌아옴 ...
        token = await flow.exchange_code(code)
    """

    def __init__(self, client: AuthenticationClient, redirect_uri: str):
        """초기화.

        Args:
            client: 인증 HTTP 클라이언트
            redirect_uri: Azure 앱에 등록된 redirect URI
        """
        super().__init__(client)
        self.redirect_uri = redirect_uri
        # 마지막으로 만든 로그인 URL의 redirect_uri. token 요청에도 같은 값을 보내야 한다
        self.authorize_redirect_uri = redirect_uri

    @property
    def name(self) -> str:
        return "redirect_code"

    def generate_login_url(self, redirect_uri: str | None = None) -> str:
        """로그인 URL 생성.

        설정과 redirect_uri만으로 결정된다. 네트워크 호출 없음.
        사용한 redirect_uri는 exchange_code()가 그대로 보내도록 기록해 둔다.

        Args:
            redirect_uri: 기본값은 생성자에 넘긴 값

        Returns:
            str: 브라우저에서 열어야 할 URL
        """
        properties = self.client.properties
        self.authorize_redirect_uri = redirect_uri or self.redirect_uri
        params = {
            "client_id": properties.client_id,
            "response_type": "code",
            "redirect_uri": self.authorize_redirect_uri,
            "scope": properties.scope,
        }
        return f"{properties.authorize_endpoint}?{urlencode(params, quote_via=quote)}"

    @staticmethod
    def parse_callback_url(callback_url: str) -> str:
        """redirect된 URL에서 code 추출.

        Args:
            callback_url: 브라우저가 돌아온 URL

        Returns:
            str: authorization code

        Raises:
            UnauthenticatedError: 사용자가 거부했거나 code가 없음
        """
        params = parse_qs(urlparse(callback_url).query)

        if "error" in params:
            error = params["error"][0]
            error_desc = params.get("error_description", [error])[0]
            raise UnauthenticatedError(f"인증 실패: {error_desc}", Provider.MICROSOFT)

        if "code" not in params:
            raise UnauthenticatedError(
                "URL에서 code 파라미터를 찾을 수 없습니다.", Provider.MICROSOFT
            )

        return params["code"][0]

    async def exchange_code(self, code: str, redirect_uri: str | None = None) -> ProviderToken:
        """authorization code를 ProviderToken으로 교환.

        code는 일회용이므로 실패해도 재시도하지 않는다.

        Args:
            code: redirect로 받은 authorization code
            redirect_uri: 로그인 URL에 쓴 값. 기본값은 generate_login_url()이 마지막으로 쓴 값

        Returns:
            ProviderToken
        """
        properties = self.client.properties
        logger.debug("Exchanging the authorization code")
        return await self.identity.request_token(
            {
                "client_id": properties.client_id,
                "code": code,
                "scope": properties.scope,
                "grant_type": "authorization_code",
                "redirect_uri": redirect_uri or self.authorize_redirect_uri,
            }
        )

    async def login(
        self,
        code: str | None = None,
        callback_url: str | None = None,
        redirect_uri: str | None = None,
        **kwargs,
    ) -> ProviderToken:
        """code 또는 callback URL로 로그인.

        Raises:
            ValueError: code와 callback_url이 모두 없음
        """
        if code is None:
            if callback_url is None:
                raise ValueError("code 또는 callback_url이 필요합니다.")
            code = self.parse_callback_url(callback_url)
        return await self.exchange_code(code, redirect_uri)
