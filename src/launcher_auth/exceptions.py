"""Custom authentication exceptions.

인증 체인에서 발생하는 예외 클래스 정의.
실패한 응답을 transport / decode / provider-rejected / server-fault 로 분류하고,
provider별 에러 응답 스키마도 여기에 둔다.
"""

from dataclasses import dataclass, field
from enum import Enum


class Provider(str, Enum):
    """체인에 참여하는 인증 제공자"""

    MICROSOFT = "microsoft"
    XBOX_LIVE = "xbox_live"
    MINECRAFT = "minecraft"


class ExchangeHop(str, Enum):
    """토큰 교환 단계.

    실패한 단계를 식별해서 호출자가 전체 체인을 다시 돌릴지,
    뒷 단계만 다시 돌릴지 판단할 수 있게 한다.
    """

    REFRESH = "refresh"
    CONSOLE_IDENTITY = "console_identity"
    SECURITY_TOKEN = "security_token"
    GAME_SESSION = "game_session"


@dataclass
class MicrosoftErrorBody:
    """Microsoft identity platform 에러 응답.

    https://learn.microsoft.com/en-us/entra/identity-platform/v2-oauth2-auth-code-flow#error-response-1
    """

    error: str
    error_description: str = ""
    error_codes: list[int] = field(default_factory=list)
    timestamp: str = ""
    trace_id: str = ""
    correlation_id: str = ""

    @property
    def code(self) -> str:
        return self.error

    @property
    def description(self) -> str:
        return self.error_description

    @classmethod
    def from_dict(cls, data: dict) -> "MicrosoftErrorBody":
        """딕셔너리에서 생성

        Raises:
            ValueError: 'error' 필드가 없거나 문자열이 아님
        """
        error = data.get("error")
        if not isinstance(error, str) or not error:
            raise ValueError("Microsoft error body has no 'error' field")
        return cls(
            error=error,
            error_description=data.get("error_description") or "",
            error_codes=list(data.get("error_codes") or []),
            timestamp=data.get("timestamp") or "",
            trace_id=data.get("trace_id") or "",
            correlation_id=data.get("correlation_id") or "",
        )


@dataclass
class XboxErrorBody:
    """Xbox Live / XSTS 에러 응답 (XErr)"""

    xerr: str
    identity: str = ""
    message: str = ""
    redirect: str = ""

    @property
    def code(self) -> str:
        return self.xerr

    @property
    def description(self) -> str:
        return self.message

    @classmethod
    def from_dict(cls, data: dict) -> "XboxErrorBody":
        """딕셔너리에서 생성

        Raises:
            ValueError: 'XErr' 필드가 없음
        """
        xerr = data.get("XErr")
        if xerr is None or isinstance(xerr, (dict, list, bool)):
            raise ValueError("Xbox error body has no 'XErr' field")
        return cls(
            xerr=str(xerr),
            identity=str(data.get("Identity") or ""),
            message=data.get("Message") or "",
            redirect=data.get("Redirect") or "",
        )


@dataclass
class MinecraftErrorBody:
    """Minecraft services 에러 응답"""

    error: str
    path: str = ""
    error_type: str = ""
    error_message: str = ""
    developer_message: str = ""

    @property
    def code(self) -> str:
        return self.error

    @property
    def description(self) -> str:
        return self.error_message or self.developer_message

    @classmethod
    def from_dict(cls, data: dict) -> "MinecraftErrorBody":
        """딕셔너리에서 생성

        'error'가 없으면 'errorType'을 코드로 사용한다.

        Raises:
            ValueError: 코드로 쓸 필드가 없음
        """
        error = data.get("error") or data.get("errorType")
        if not isinstance(error, str) or not error:
            raise ValueError("Minecraft error body has no 'error' field")
        return cls(
            error=error,
            path=data.get("path") or "",
            error_type=data.get("errorType") or "",
            error_message=data.get("errorMessage") or "",
            developer_message=data.get("developerMessage") or "",
        )


ErrorBody = MicrosoftErrorBody | XboxErrorBody | MinecraftErrorBody

ERROR_BODY_SCHEMAS: dict[Provider, type] = {
    Provider.MICROSOFT: MicrosoftErrorBody,
    Provider.XBOX_LIVE: XboxErrorBody,
    Provider.MINECRAFT: MinecraftErrorBody,
}


class AuthenticationError(Exception):
    """기본 인증 예외.

    모든 인증 관련 예외의 베이스 클래스.

    Attributes:
        provider: 인증 제공자 (Provider 또는 None)
    """

    retryable = False

    def __init__(self, message: str, provider: Provider | None = None):
        self.provider = provider
        super().__init__(message)


class TransportError(AuthenticationError):
    """연결/IO 실패.

    일시적인 오류로 간주되며 호출자가 재시도 여부를 결정한다.
    """

    retryable = True


class DecodeError(AuthenticationError):
    """응답 본문이 기대한 스키마와 다름.

    빈 claims 목록, 이미 지난 만료 시간 등도 여기에 포함된다.
    """

    pass


class ProviderRejectedError(AuthenticationError):
    """Provider가 구조화된 4xx 에러로 요청을 거부함.

    Attributes:
        code: provider 에러 코드 (예: 'invalid_grant', '2148916233')
        description: 에러 설명
        status_code: HTTP 상태 코드
        body: provider별 에러 본문
    """

    def __init__(
        self,
        provider: Provider,
        code: str,
        description: str = "",
        status_code: int | None = None,
        body: ErrorBody | None = None,
    ):
        self.code = code
        self.description = description
        self.status_code = status_code
        self.body = body
        message = f"{provider.value} rejected the request: {code}"
        if description:
            message = f"{message} - {description}"
        super().__init__(message, provider)

    @classmethod
    def from_body(
        cls, provider: Provider, body: ErrorBody, status_code: int | None = None
    ) -> "ProviderRejectedError":
        return cls(
            provider,
            code=body.code,
            description=body.description,
            status_code=status_code,
            body=body,
        )


class ServerFaultError(AuthenticationError):
    """5xx 응답. 본문은 신뢰할 수 없으므로 파싱하지 않는다."""

    retryable = True

    def __init__(self, status_code: int, provider: Provider | None = None):
        self.status_code = status_code
        name = provider.value if provider else "server"
        super().__init__(f"{name} returned server error {status_code}", provider)


class UnauthenticatedError(AuthenticationError):
    """최종 거부 (예: 사용자가 device code 승인을 거절함).

    로그인을 처음부터 다시 시작해야 한다.
    """

    pass


class DeviceCodeExpiredError(UnauthenticatedError):
    """Device code가 승인되기 전에 만료됨."""

    pass


class ExchangeError(AuthenticationError):
    """토큰 교환 체인의 특정 단계 실패.

    Attributes:
        hop: 실패한 단계
        error: 원인 예외
    """

    def __init__(self, hop: ExchangeHop, error: AuthenticationError):
        self.hop = hop
        self.error = error
        super().__init__(f"{hop.value} exchange failed: {error}", error.provider)

    @property
    def retryable(self) -> bool:
        return self.error.retryable
