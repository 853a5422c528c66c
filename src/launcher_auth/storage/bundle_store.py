"""Bundle Store

CredentialBundle을 계정별 JSON 파일로 저장한다.
암호화나 OS 키체인 연동은 하지 않는다.
"""

import logging
import os
import platform
from pathlib import Path

from launcher_auth.account import CredentialBundle

logger = logging.getLogger(__name__)


class BundleStore:
    """자격증명 파일 저장소

    OS별 기본 위치:
    - Windows: %APPDATA%/launcher-auth
    - macOS: ~/Library/Application Support/launcher-auth
    - Linux: $XDG_CONFIG_HOME/launcher-auth

    Example:
        store = BundleStore()
        await store.save("default", bundle)
        bundle = await store.load("default")
        await store.delete("default")
    """

    def __init__(self, storage_dir: Path | None = None):
        self.storage_dir = storage_dir or self._default_storage_dir()
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def _default_storage_dir(self) -> Path:
        """OS별 기본 저장 디렉토리"""
        system = platform.system()
        if system == "Windows":
            base = Path(os.environ.get("APPDATA", Path.home()))
        elif system == "Darwin":  # macOS
            base = Path.home() / "Library" / "Application Support"
        else:  # Linux
            base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
        return base / "launcher-auth"

    def _bundle_file_path(self, account: str) -> Path:
        """계정 파일 경로

        Raises:
            ValueError: 경로 구분자나 ".."가 들어간 계정 이름
        """
        if (
            not account
            or account in (".", "..")
            or "/" in account
            or "\\" in account
            or Path(account).name != account
        ):
            raise ValueError(f"잘못된 계정 이름입니다: {account!r}")
        file_path = self.storage_dir / f"{account}.json"
        if file_path.resolve().parent != self.storage_dir.resolve():
            raise ValueError(f"잘못된 계정 이름입니다: {account!r}")
        return file_path

    async def save(self, account: str, bundle: CredentialBundle) -> bool:
        """bundle 저장

        Args:
            account: 계정 이름
            bundle: 저장할 bundle

        Returns:
            bool: 성공 여부

        Raises:
            ValueError: 잘못된 계정 이름
        """
        file_path = self._bundle_file_path(account)
        try:
            file_path.write_text(bundle.to_json())
            # 보안: 사용자만 읽기/쓰기
            file_path.chmod(0o600)
            return True
        except OSError as e:
            logger.error("Bundle save error (%s): %s", file_path, e)
            return False

    async def load(self, account: str) -> CredentialBundle | None:
        """bundle 로드

        Args:
            account: 계정 이름

        Returns:
            CredentialBundle 또는 None

        Raises:
            DecodeError: 파일 내용이 손상됨
        """
        return self.load_sync(account)

    def load_sync(self, account: str) -> CredentialBundle | None:
        """bundle 로드 (동기 버전)"""
        file_path = self._bundle_file_path(account)
        if not file_path.exists():
            return None
        try:
            text = file_path.read_text()
        except OSError as e:
            logger.error("Bundle load error (%s): %s", file_path, e)
            return None
        return CredentialBundle.from_json(text)

    async def delete(self, account: str) -> bool:
        """bundle 삭제

        Returns:
            bool: 성공 여부
        """
        file_path = self._bundle_file_path(account)
        try:
            if file_path.exists():
                file_path.unlink()
            return True
        except OSError as e:
            logger.error("Bundle delete error (%s): %s", file_path, e)
            return False

    async def list_accounts(self) -> list[str]:
        """저장된 계정 목록"""
        return sorted(file_path.stem for file_path in self.storage_dir.glob("*.json"))
