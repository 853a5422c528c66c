"""login_device.py 스크립트 테스트"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import login_device


@pytest.fixture
def store():
    store = MagicMock()
    store.storage_dir = "/tmp/launcher-auth"
    store.save = AsyncMock(return_value=True)
    return store


class TestSaveBundle:
    """save_bundle() 테스트"""

    @pytest.mark.asyncio
    async def test_save_success(self, store, capsys):
        bundle = MagicMock()

        await login_device.save_bundle(store, bundle)

        store.save.assert_awaited_once_with(login_device.ACCOUNT, bundle)
        assert "[OK] 자격증명 저장 완료" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_save_failure_exits(self, store, capsys):
        store.save.return_value = False

        with pytest.raises(SystemExit) as exc:
            await login_device.save_bundle(store, MagicMock())

        assert exc.value.code == 1
        out = capsys.readouterr().out
        assert "[ERROR]" in out
        assert "저장 완료" not in out


class TestMain:
    """main() 갱신 경로 테스트"""

    @pytest.mark.asyncio
    async def test_refresh_with_failed_save_exits(self, store, capsys):
        """갱신된 bundle을 저장하지 못하면 성공으로 보고하지 않는다."""
        store.load = AsyncMock(return_value=MagicMock())
        store.save.return_value = False
        manager = MagicMock()
        manager.ensure_fresh = AsyncMock(return_value=True)

        with (
            patch.object(login_device, "AuthProperties"),
            patch.object(login_device, "AuthenticationClient"),
            patch.object(login_device, "BundleStore", return_value=store),
            patch.object(login_device, "AccountManager", return_value=manager),
        ):
            with pytest.raises(SystemExit) as exc:
                await login_device.main()

        assert exc.value.code == 1
        store.save.assert_awaited_once()
        out = capsys.readouterr().out
        assert "[ERROR] 자격증명 저장 실패" in out
        assert "Minecraft Token" not in out

    @pytest.mark.asyncio
    async def test_fresh_bundle_is_not_saved(self, store):
        bundle = MagicMock()
        bundle.bearer_token = "mc-token"
        store.load = AsyncMock(return_value=bundle)
        manager = MagicMock()
        manager.ensure_fresh = AsyncMock(return_value=False)

        with (
            patch.object(login_device, "AuthProperties"),
            patch.object(login_device, "AuthenticationClient"),
            patch.object(login_device, "BundleStore", return_value=store),
            patch.object(login_device, "AccountManager", return_value=manager),
        ):
            await login_device.main()

        store.save.assert_not_awaited()
