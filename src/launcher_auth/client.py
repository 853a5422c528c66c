"""Authentication HTTP Client

모든 provider 호출이 공유하는 transport.
요청을 보내고 실패 응답을 ErrorTaxonomy에 따라 분류한다.
프로토콜 상태는 갖지 않는다.
"""

import logging

import httpx

from launcher_auth.config import AuthProperties
from launcher_auth.exceptions import (
    ERROR_BODY_SCHEMAS,
    DecodeError,
    Provider,
    ProviderRejectedError,
    ServerFaultError,
    TransportError,
)
from launcher_auth.utils.time import Clock, utc_now

logger = logging.getLogger(__name__)


def _decode_json(response: httpx.Response, provider: Provider) -> dict:
    try:
        data = response.json()
    except ValueError as e:
        raise DecodeError(
            f"{provider.value} 응답이 JSON이 아닙니다 (status {response.status_code})",
            provider,
        ) from e
    if not isinstance(data, dict):
        raise DecodeError(
            f"{provider.value} 응답이 JSON object가 아닙니다: {type(data).__name__}",
            provider,
        )
    return data


def classify_response(response: httpx.Response, provider: Provider) -> dict:
    """응답 분류.

    - 2xx: JSON 본문 반환
    - 3xx: 이 프로토콜에서는 항상 비정상. 경고 로그 후 4xx처럼 처리
    - 5xx: 본문 파싱 없이 ServerFaultError
    - 그 외: provider별 에러 스키마로 파싱해서 ProviderRejectedError

    Args:
        response: httpx 응답
        provider: 호출한 provider (에러 스키마 선택)

    Returns:
        dict: 성공 응답 본문

    Raises:
        DecodeError: 본문이 JSON이 아니거나 에러 스키마와 맞지 않음
        ServerFaultError: 5xx 응답
        ProviderRejectedError: 구조화된 거부 응답
    """
    status = response.status_code
    if response.is_success:
        logger.debug("%s responded %d", provider.value, status)
        return _decode_json(response, provider)

    if response.is_redirect or 300 <= status < 400:
        logger.warning(
            "Unexpected redirect from %s (%d -> %s). Redirects are never followed",
            provider.value,
            status,
            response.headers.get("location"),
        )

    if response.is_server_error:
        logger.error("%s server error: %d", provider.value, status)
        raise ServerFaultError(status, provider)

    body = _decode_json(response, provider)
    schema = ERROR_BODY_SCHEMAS[provider]
    try:
        error_body = schema.from_dict(body)
    except ValueError as e:
        logger.error("Could not parse the error body from %s: %s", provider.value, body)
        raise DecodeError(
            f"{provider.value} 에러 응답 파싱 실패 (status {status}): {e}", provider
        ) from e

    logger.debug("%s rejected the request: %s", provider.value, error_body)
    raise ProviderRejectedError.from_body(provider, error_body, status)


class AuthenticationClient:
    """Provider 호출용 HTTP 클라이언트.

    httpx.AsyncClient를 주입하면 그 클라이언트를 재사용하고,
    없으면 요청마다 새 클라이언트를 연다.

    Example:
        client = AuthenticationClient(AuthProperties.from_env())
        data = await client.post_json(url, payload, Provider.XBOX_LIVE)
    """

    def __init__(
        self,
        properties: AuthProperties,
        http_client: httpx.AsyncClient | None = None,
        clock: Clock | None = None,
    ):
        """초기화.

        Args:
            properties: 인증 설정
            http_client: 공유 httpx 클라이언트 (선택)
            clock: 현재 시각 함수 (테스트용 주입)
        """
        self.properties = properties
        self.http_client = http_client
        self.clock = clock or utc_now

    def now(self):
        return self.clock()

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": self.properties.user_agent,
        }

    async def post_form(self, url: str, data: dict, provider: Provider) -> dict:
        """form-encoded POST"""
        return await self._post(url, provider, data=data)

    async def post_json(self, url: str, payload: dict, provider: Provider) -> dict:
        """JSON POST"""
        return await self._post(url, provider, json=payload)

    async def _post(self, url: str, provider: Provider, **kwargs) -> dict:
        logger.debug("POST %s", url)
        try:
            if self.http_client is not None:
                response = await self.http_client.post(
                    url, headers=self._headers(), follow_redirects=False, **kwargs
                )
            else:
                async with httpx.AsyncClient(
                    timeout=self.properties.timeout, follow_redirects=False
                ) as client:
                    response = await client.post(url, headers=self._headers(), **kwargs)
        except httpx.RequestError as e:
            logger.error("Request to %s failed: %s", provider.value, e)
            raise TransportError(f"{provider.value} 요청 실패: {e}", provider) from e

        return classify_response(response, provider)
