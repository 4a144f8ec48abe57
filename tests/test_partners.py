import hashlib
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from bethub.errors import PartnerError
from bethub.services.core.signature import sign
from bethub.services.partners import (
    PartnerClient,
    ProvisioningService,
    ProvisioningTarget,
    date_token,
    derive_key,
)
from config.settings import GamePlatformSettings, PartnerSettings

NOON_UTC = datetime(2024, 12, 1, 12, 0, tzinfo=timezone.utc)


def md5(text: str) -> str:
    return hashlib.md5(text.encode()).hexdigest()


class TestDateToken:
    def test_unpadded_month_and_day(self):
        assert date_token(NOON_UTC) == "24121"

    def test_reference_timezone_is_utc_minus_4(self):
        # 02:00 UTC 1 марта, а в Пуэрто-Рико ещё 29 февраля
        assert date_token(datetime(2024, 3, 1, 2, 0, tzinfo=timezone.utc)) == "24229"

    def test_naive_datetime_treated_as_utc(self):
        assert date_token(datetime(2024, 12, 1, 12, 0)) == "24121"

    def test_custom_timezone(self):
        assert date_token(datetime(2024, 3, 1, 2, 0, tzinfo=timezone.utc), "UTC") == "2431"


class TestDeriveKey:
    def test_matches_reference_computation(self):
        key_g = md5("24121" + "agent-7" + "agent-secret")
        body = md5("Account=9876543210&AgentId=agent-7" + key_g)
        assert derive_key("9876543210", "agent-7", "agent-secret", NOON_UTC) == f"123456{body}abcdef"

    def test_deterministic(self):
        args = ("9876543210", "agent-7", "agent-secret", NOON_UTC)
        assert derive_key(*args) == derive_key(*args)

    def test_changes_with_account(self):
        assert derive_key("9876543210", "a", "s", NOON_UTC) != derive_key("9876543211", "a", "s", NOON_UTC)

    def test_changes_with_day(self):
        next_day = datetime(2024, 12, 2, 12, 0, tzinfo=timezone.utc)
        assert derive_key("9876543210", "a", "s", NOON_UTC) != derive_key("9876543210", "a", "s", next_day)

    def test_secret_is_not_embedded(self):
        key = derive_key("9876543210", "a", "very-secret", NOON_UTC, prefix="AAAAAA", suffix="ZZZZZZ")
        assert "very-secret" not in key
        assert key.startswith("AAAAAA") and key.endswith("ZZZZZZ")
        assert len(key) == 6 + 32 + 6


class TestPartnerClient:
    @pytest.fixture
    def client(self):
        return PartnerClient(
            GamePlatformSettings(
                api_url="https://games.example.com/api",
                pid="PID1",
                version="1.0",
                api_secret="game-secret",
            ),
            PartnerSettings(
                base_url="https://partner.example.com/",
                agent_id="agent-7",
                agent_secret="agent-secret",
            ),
            clock=lambda: NOON_UTC,
        )

    def test_register_payload_is_signed_with_apikey(self, client):
        payload = client.build_register_payload("Member12345", "1", "10.0.0.1")
        unsigned = {k: v for k, v in payload.items() if k != "sign"}
        assert unsigned == {
            "pid": "PID1",
            "ver": "1.0",
            "method": "REGISTER",
            "username": "Member12345",
            "org": "1",
            "ip": "10.0.0.1",
        }
        assert payload["sign"] == sign(unsigned, "game-secret", "apikey")

    def test_member_payload_uses_derived_key(self, client):
        payload = client.build_member_payload("9876543210")
        assert payload == {
            "Account": "9876543210",
            "AgentId": "agent-7",
            "Key": derive_key("9876543210", "agent-7", "agent-secret", NOON_UTC),
        }

    async def test_create_member_posts_form(self, client, monkeypatch):
        post = AsyncMock(return_value={"ErrorCode": 0})
        monkeypatch.setattr(client, "_post", post)
        assert await client.create_member("9876543210") == {"ErrorCode": 0}
        args, kwargs = post.call_args
        assert args == ("https://partner.example.com/CreateMember",)
        assert kwargs["data"]["Account"] == "9876543210"
        assert kwargs["timeout"] == 10.0

    async def test_disabled_partner_raises(self):
        client = PartnerClient(GamePlatformSettings(), PartnerSettings())
        assert not client.partner_enabled and not client.game_platform_enabled
        with pytest.raises(PartnerError):
            await client.create_member("9876543210")
        with pytest.raises(PartnerError):
            await client.register_player("Member1", "10.0.0.1")


class TestProvisioningService:
    target = ProvisioningTarget(account_id="9876543210", username="Member12345", ip="10.0.0.1")

    def _client(self, **kwargs):
        client = MagicMock(spec=PartnerClient)
        client.game_platform_enabled = True
        client.partner_enabled = True
        client.register_player = AsyncMock(**kwargs.get("register", {}))
        client.create_member = AsyncMock(**kwargs.get("member", {}))
        return client

    async def test_both_calls_made(self):
        client = self._client()
        report = await ProvisioningService(client).provision(self.target)
        client.register_player.assert_awaited_once_with("Member12345", "10.0.0.1")
        client.create_member.assert_awaited_once_with("9876543210")
        assert (report.game_platform, report.partner) == ("ok", "ok")

    async def test_failures_are_reported_not_raised(self):
        client = self._client(
            register={"side_effect": PartnerError("HTTP 502")},
            member={"side_effect": PartnerError("timeout")},
        )
        report = await ProvisioningService(client).provision(self.target)
        assert (report.game_platform, report.partner) == ("failed", "failed")

    async def test_one_failure_does_not_skip_the_other(self):
        client = self._client(register={"side_effect": PartnerError("HTTP 500")})
        report = await ProvisioningService(client).provision(self.target)
        client.create_member.assert_awaited_once()
        assert report.partner == "ok"
