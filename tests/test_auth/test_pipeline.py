"""Token Exchange Pipeline 테스트.

ProviderToken -> Xbox Live -> XSTS -> Minecraft
"""

from datetime import timedelta

import pytest

from conftest import NOW, minecraft_payload, xbox_payload
from launcher_auth.exceptions import (
    DecodeError,
    ExchangeError,
    ExchangeHop,
    ProviderRejectedError,
    ServerFaultError,
)
from launcher_auth.pipeline import TokenExchangePipeline
from launcher_auth.providers.microsoft import ProviderToken
from launcher_auth.providers.minecraft import build_identity_token
from launcher_auth.providers.xbox import (
    ConsoleIdentityToken,
    SecurityToken,
    XboxLiveResponse,
)

XBL_EXPIRY = NOW + timedelta(days=14)
XSTS_EXPIRY = NOW + timedelta(hours=16)


@pytest.fixture
def provider_token():
    return ProviderToken(access_token="ms-access", refresh_token="ms-refresh", expires_in=3600)


@pytest.fixture
def pipeline(client):
    return TokenExchangePipeline(client)


def add_all_hops(server, properties, user_hash="uhs-123"):
    server.add(properties.xbox_user_auth_url, json=xbox_payload("xbl-token", XBL_EXPIRY, user_hash))
    server.add(properties.xbox_xsts_auth_url, json=xbox_payload("xsts-token", XSTS_EXPIRY, user_hash))
    server.add(properties.minecraft_login_url, json=minecraft_payload("mc-token", 86400))


class TestExchangeFull:
    """exchange_full() 테스트."""

    @pytest.mark.asyncio
    async def test_game_session_expiry_is_now_plus_expires_in(
        self, pipeline, server, properties, provider_token
    ):
        add_all_hops(server, properties)

        identity, game_session = await pipeline.exchange_full(provider_token)

        assert game_session.expires_at == NOW + timedelta(seconds=86400)
        assert game_session.token == "mc-token"
        assert isinstance(identity, ConsoleIdentityToken)
        assert identity.token == "xbl-token"
        assert identity.user_hash == "uhs-123"

    @pytest.mark.asyncio
    async def test_hops_run_in_order(self, pipeline, server, properties, provider_token):
        add_all_hops(server, properties)

        await pipeline.exchange_full(provider_token)

        assert server.urls == [
            properties.xbox_user_auth_url,
            properties.xbox_xsts_auth_url,
            properties.minecraft_login_url,
        ]

    @pytest.mark.asyncio
    async def test_request_bodies(self, pipeline, server, properties, provider_token):
        add_all_hops(server, properties)

        await pipeline.exchange_full(provider_token)

        assert server.json(0) == {
            "Properties": {
                "AuthMethod": "RPS",
                "SiteName": "user.auth.xboxlive.com",
                "RpsTicket": "d=ms-access",
            },
            "RelyingParty": "http://auth.xboxlive.com",
            "TokenType": "JWT",
        }
        assert server.json(1) == {
            "Properties": {"SandboxId": "RETAIL", "UserTokens": ["xbl-token"]},
            "RelyingParty": "rp://api.minecraftservices.com/",
            "TokenType": "JWT",
        }
        assert server.json(2) == {"identityToken": "XBL3.0 x=uhs-123;xsts-token"}

    @pytest.mark.asyncio
    async def test_console_identity_failure_short_circuits(
        self, pipeline, server, properties, provider_token
    ):
        server.add(
            properties.xbox_user_auth_url,
            status_code=400,
            json={"Identity": "0", "XErr": 2148916233, "Message": "", "Redirect": ""},
        )

        with pytest.raises(ExchangeError) as exc:
            await pipeline.exchange_full(provider_token)

        assert exc.value.hop is ExchangeHop.CONSOLE_IDENTITY
        assert isinstance(exc.value.error, ProviderRejectedError)
        assert exc.value.error.code == "2148916233"
        assert server.call_count == 1

    @pytest.mark.asyncio
    async def test_security_token_failure_identifies_hop(
        self, pipeline, server, properties, provider_token
    ):
        server.add(properties.xbox_user_auth_url, json=xbox_payload("xbl-token", XBL_EXPIRY))
        server.add(properties.xbox_xsts_auth_url, status_code=503, content=b"unavailable")

        with pytest.raises(ExchangeError) as exc:
            await pipeline.exchange_full(provider_token)

        assert exc.value.hop is ExchangeHop.SECURITY_TOKEN
        assert isinstance(exc.value.error, ServerFaultError)
        assert exc.value.retryable is True
        assert server.call_count == 2

    @pytest.mark.asyncio
    async def test_game_session_failure_identifies_hop(
        self, pipeline, server, properties, provider_token
    ):
        server.add(properties.xbox_user_auth_url, json=xbox_payload("xbl-token", XBL_EXPIRY))
        server.add(properties.xbox_xsts_auth_url, json=xbox_payload("xsts-token", XSTS_EXPIRY))
        server.add(
            properties.minecraft_login_url,
            status_code=403,
            json={
                "path": "/authentication/login_with_xbox",
                "errorType": "FORBIDDEN",
                "error": "FORBIDDEN",
                "errorMessage": "Invalid app registration",
            },
        )

        with pytest.raises(ExchangeError) as exc:
            await pipeline.exchange_full(provider_token)

        assert exc.value.hop is ExchangeHop.GAME_SESSION
        assert exc.value.error.code == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_empty_claims_is_decode_error(
        self, pipeline, server, properties, provider_token
    ):
        """xui 목록이 비어 있으면 crash 대신 DecodeError."""
        server.add(
            properties.xbox_user_auth_url,
            json=xbox_payload("xbl-token", XBL_EXPIRY, user_hash=None),
        )

        with pytest.raises(ExchangeError) as exc:
            await pipeline.exchange_full(provider_token)

        assert exc.value.hop is ExchangeHop.CONSOLE_IDENTITY
        assert isinstance(exc.value.error, DecodeError)

    @pytest.mark.asyncio
    async def test_expired_not_after_is_decode_error(
        self, pipeline, server, properties, provider_token
    ):
        server.add(
            properties.xbox_user_auth_url,
            json=xbox_payload("xbl-token", NOW - timedelta(seconds=1)),
        )

        with pytest.raises(ExchangeError) as exc:
            await pipeline.exchange_full(provider_token)
        assert isinstance(exc.value.error, DecodeError)

    @pytest.mark.asyncio
    async def test_exchange_from_console_identity_skips_first_hop(self, pipeline, server, properties):
        server.add(properties.xbox_xsts_auth_url, json=xbox_payload("xsts-token", XSTS_EXPIRY))
        server.add(properties.minecraft_login_url, json=minecraft_payload("mc-token"))
        identity = ConsoleIdentityToken(token="xbl-token", user_hash="uhs-123", not_after=XBL_EXPIRY)

        game_session = await pipeline.exchange_from_console_identity(identity)

        assert game_session.token == "mc-token"
        assert server.urls == [properties.xbox_xsts_auth_url, properties.minecraft_login_url]


class TestXboxLiveResponse:
    """XboxLiveResponse 파싱 테스트."""

    def test_parses_seven_digit_fraction(self):
        response = XboxLiveResponse.from_response(xbox_payload("t", XBL_EXPIRY))
        assert response.not_after.replace(microsecond=0) == XBL_EXPIRY
        assert response.user_hash == "uhs-123"

    def test_user_hash_on_empty_claims(self):
        response = XboxLiveResponse.from_response(xbox_payload("t", XBL_EXPIRY, user_hash=None))
        with pytest.raises(DecodeError):
            response.user_hash

    def test_user_hash_only_from_first_claim(self):
        """첫 claim이 object가 아니면 뒤의 claim으로 대신하지 않는다."""
        data = xbox_payload("t", XBL_EXPIRY)
        data["DisplayClaims"]["xui"] = ["not-a-claim", {"uhs": "uhs-later"}]

        response = XboxLiveResponse.from_response(data)

        assert len(response.claims) == 2
        with pytest.raises(DecodeError):
            response.user_hash

    def test_missing_display_claims(self):
        data = xbox_payload("t", XBL_EXPIRY)
        del data["DisplayClaims"]
        with pytest.raises(DecodeError):
            XboxLiveResponse.from_response(data)

    def test_to_token_type(self):
        response = XboxLiveResponse.from_response(xbox_payload("t", XBL_EXPIRY))
        token = response.to_token(SecurityToken, NOW)
        assert isinstance(token, SecurityToken)
        assert token.not_after == response.not_after


class TestMinecraft:
    def test_identity_token_format(self):
        assert build_identity_token("abc", "tok") == "XBL3.0 x=abc;tok"

    @pytest.mark.asyncio
    async def test_non_positive_expires_in_is_decode_error(self, pipeline, server, properties):
        server.add(properties.minecraft_login_url, json=minecraft_payload("mc", expires_in=0))
        security = SecurityToken(token="xsts", user_hash="uhs", not_after=XSTS_EXPIRY)

        with pytest.raises(ExchangeError) as exc:
            await pipeline.game_session(security)
        assert isinstance(exc.value.error, DecodeError)
