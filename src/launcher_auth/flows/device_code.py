"""Device Code Flow (RFC 8628)

redirect URI 없이 인증을 완료하는 Device Authorization Grant 구현.

플로우:
1. 앱이 device_code, user_code 요청 (start)
2. 사용자에게 verification_uri + user_code 표시
3. 사용자가 브라우저에서 URL 접속 -> 코드 입력 -> 로그인
4. 앱이 interval 간격으로 토큰 폴링 (poll)
5. 승인 시 ProviderToken 수신

https://learn.microsoft.com/en-us/entra/identity-platform/v2-oauth2-device-code
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from rich.console import Console
from rich.panel import Panel

from launcher_auth.config import DEVICE_CODE_GRANT_TYPE
from launcher_auth.exceptions import (
    DecodeError,
    DeviceCodeExpiredError,
    Provider,
    ProviderRejectedError,
    UnauthenticatedError,
)
from launcher_auth.flows.base import AuthorizationStrategy
from launcher_auth.providers.microsoft import ProviderToken
from launcher_auth.utils.time import expires_after

logger = logging.getLogger(__name__)
console = Console()

DEFAULT_POLL_INTERVAL = 5


class DeviceCodeState(str, Enum):
    """Device code 로그인 상태.

    CREATED -> PENDING -> {PENDING, APPROVED, DECLINED, EXPIRED}
    """

    CREATED = "created"
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in (
            DeviceCodeState.APPROVED,
            DeviceCodeState.DECLINED,
            DeviceCodeState.EXPIRED,
        )


class PollStatus(str, Enum):
    PENDING = "pending"
    DECLINED = "declined"
    APPROVED = "approved"


@dataclass
class PollOutcome:
    """poll() 결과. APPROVED일 때만 token이 있다."""

    status: PollStatus
    token: ProviderToken | None = None

    @classmethod
    def pending(cls) -> "PollOutcome":
        return cls(PollStatus.PENDING)

    @classmethod
    def declined(cls) -> "PollOutcome":
        return cls(PollStatus.DECLINED)

    @classmethod
    def approved(cls, token: ProviderToken) -> "PollOutcome":
        return cls(PollStatus.APPROVED, token)


@dataclass
class DeviceCodeSession:
    """진행 중인 device code 로그인.

    호출자가 소유하며 승인/거부/만료 후에는 버린다.

    Attributes:
        device_code: 토큰 폴링에 쓰는 값
        user_code: 사용자가 입력할 코드
        verification_uri: 사용자가 접속할 URL
        interval: 최소 폴링 간격 (초)
        expires_at: device code 만료 시각
        last_poll_at: 마지막으로 실제 요청을 보낸 시각
        message: provider가 준 안내 문구
        state: 현재 상태
    """

    device_code: str
    user_code: str
    verification_uri: str
    interval: int
    expires_at: datetime
    last_poll_at: datetime
    message: str = ""
    state: DeviceCodeState = DeviceCodeState.CREATED

    @property
    def next_poll_at(self) -> datetime:
        return self.last_poll_at + timedelta(seconds=self.interval)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    @classmethod
    def from_response(cls, data: dict, now: datetime) -> "DeviceCodeSession":
        """devicecode 응답에서 생성

        Raises:
            DecodeError: 필수 필드 누락
        """
        try:
            device_code = data["device_code"]
            user_code = data["user_code"]
            verification_uri = data["verification_uri"]
            expires_in = int(data["expires_in"])
            interval = int(data.get("interval") or DEFAULT_POLL_INTERVAL)
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(
                f"device code 응답 형식이 잘못되었습니다: {e!r}", Provider.MICROSOFT
            ) from e
        if expires_in <= 0:
            raise DecodeError(
                f"device code expires_in이 양수가 아닙니다: {expires_in}",
                Provider.MICROSOFT,
            )
        return cls(
            device_code=device_code,
            user_code=user_code,
            verification_uri=verification_uri,
            interval=max(interval, 0),
            expires_at=expires_after(now, expires_in),
            last_poll_at=now,
            message=data.get("message") or "",
        )


def display_device_instructions(session: DeviceCodeSession) -> None:
    """사용자 안내 메시지 출력.

    Args:
        session: start()로 받은 세션
    """
    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Microsoft Device Code 로그인[/bold cyan]\n\n"
            f"다음 URL을 브라우저에서 열고 코드를 입력하세요:\n\n"
            f"[bold]URL:[/bold] [link={session.verification_uri}]"
            f"{session.verification_uri}[/link]\n"
            f"[bold]코드:[/bold] [bold yellow]{session.user_code}[/bold yellow]\n\n"
            f"[dim]만료: {session.expires_at.astimezone():%H:%M:%S}[/dim]",
            title="[AUTH] Device Code Login",
            border_style="cyan",
        )
    )
    console.print()


class DeviceCodeFlow(AuthorizationStrategy):
    """Device Code Flow.

    poll()은 interval보다 빨리 호출되면 네트워크 요청 없이 PENDING을 반환한다.
    바깥 폴링 루프는 호출자 책임이다 (login()은 기본 루프 제공).

    Example:
        flow = DeviceCodeFlow(client)
        session = await flow.start()
        display_device_instructions(session)
        while True:
            await asyncio.sleep(session.interval)
            outcome = await flow.poll(session)
            if outcome.status is not PollStatus.PENDING:
                break
    """

    ERROR_AUTHORIZATION_PENDING = "authorization_pending"
    ERROR_AUTHORIZATION_DECLINED = "authorization_declined"
    ERROR_EXPIRED_TOKEN = "expired_token"

    @property
    def name(self) -> str:
        return "device_code"

    async def start(self) -> DeviceCodeSession:
        """Device code 요청.

        Returns:
            DeviceCodeSession: PENDING 상태의 세션
        """
        properties = self.client.properties
        data = await self.client.post_form(
            properties.device_code_endpoint,
            {
                "client_id": properties.client_id,
                "scope": properties.scope,
            },
            Provider.MICROSOFT,
        )
        session = DeviceCodeSession.from_response(data, self.client.now())
        session.state = DeviceCodeState.PENDING
        logger.debug(
            "Device code issued (user_code=%s, interval=%ds)",
            session.user_code,
            session.interval,
        )
        return session

    async def poll(self, session: DeviceCodeSession) -> PollOutcome:
        """토큰 폴링 1회.

        Args:
            session: start()로 받은 세션

        Returns:
            PollOutcome: PENDING / DECLINED / APPROVED(token)

        Raises:
            UnauthenticatedError: 이미 종료된 세션
            ProviderRejectedError: pending/declined 외의 거부 코드
                (expired_token, bad_verification_code 등)
        """
        if session.state.is_terminal:
            raise UnauthenticatedError(
                f"device code 세션이 이미 종료되었습니다 ({session.state.value})",
                Provider.MICROSOFT,
            )

        now = self.client.now()
        if now < session.next_poll_at:
            return PollOutcome.pending()

        session.last_poll_at = now
        try:
            token = await self.identity.request_token(
                {
                    "client_id": self.client.properties.client_id,
                    "grant_type": DEVICE_CODE_GRANT_TYPE,
                    "device_code": session.device_code,
                }
            )
        except ProviderRejectedError as e:
            if e.code == self.ERROR_AUTHORIZATION_PENDING:
                session.state = DeviceCodeState.PENDING
                return PollOutcome.pending()
            if e.code == self.ERROR_AUTHORIZATION_DECLINED:
                logger.debug("User declined the device code request")
                session.state = DeviceCodeState.DECLINED
                return PollOutcome.declined()
            if e.code == self.ERROR_EXPIRED_TOKEN:
                session.state = DeviceCodeState.EXPIRED
            logger.error("Unexpected device code error: %s", e.code)
            raise

        session.state = DeviceCodeState.APPROVED
        return PollOutcome.approved(token)

    async def login(
        self,
        timeout: float | None = None,
        on_prompt: Callable[[DeviceCodeSession], None] | None = None,
        **kwargs,
    ) -> ProviderToken:
        """전체 인증 플로우 실행.

        1. Device code 요청
        2. 사용자 안내 출력
        3. next_poll_at까지 기다렸다가 폴링

        Args:
            timeout: 최대 대기 시간 (초, None이면 device code 만료까지)
            on_prompt: 안내 출력 함수 (기본: rich 패널)

        Returns:
            ProviderToken

        Raises:
            UnauthenticatedError: 사용자 거부 또는 타임아웃
            DeviceCodeExpiredError: 승인 전에 device code 만료
        """
        session = await self.start()
        (on_prompt or display_device_instructions)(session)

        deadline = None
        if timeout is not None:
            deadline = expires_after(self.client.now(), timeout)

        while True:
            # throttle과 같은 시계 기준으로 next_poll_at까지 기다린다
            delay = (session.next_poll_at - self.client.now()).total_seconds()
            await asyncio.sleep(max(delay, 0))

            now = self.client.now()
            if session.is_expired(now):
                session.state = DeviceCodeState.EXPIRED
                raise DeviceCodeExpiredError(
                    "device code가 승인 전에 만료되었습니다.", Provider.MICROSOFT
                )
            if deadline is not None and now >= deadline:
                raise UnauthenticatedError("인증 시간 초과 (timeout)", Provider.MICROSOFT)

            outcome = await self.poll(session)
            if outcome.status is PollStatus.APPROVED:
                console.print("[bold green][OK] 인증 성공![/bold green]")
                return outcome.token
            if outcome.status is PollStatus.DECLINED:
                raise UnauthenticatedError(
                    "사용자가 로그인을 거부했습니다.", Provider.MICROSOFT
                )
