"""Device Code 로그인 스크립트.

저장된 자격증명이 있으면 갱신만 하고, 없으면 Device Code Flow로 로그인한다.
LAUNCHER_AUTH_CLIENT_ID 환경변수가 필요하다.
"""

import asyncio
import logging
import sys

from launcher_auth import (
    AccountManager,
    AuthenticationClient,
    AuthenticationError,
    AuthProperties,
    BundleStore,
    DeviceCodeFlow,
)

ACCOUNT = "default"


async def save_bundle(store: BundleStore, bundle) -> None:
    """bundle 저장. 실패하면 종료한다 (갱신된 refresh_token을 잃지 않도록)."""
    if not await store.save(ACCOUNT, bundle):
        print(f"[ERROR] 자격증명 저장 실패: {store.storage_dir}")
        sys.exit(1)
    print("[OK] 자격증명 저장 완료")


async def main():
    """메인 함수."""
    print("Minecraft Device Code 로그인")
    print("=" * 60)

    client = AuthenticationClient(AuthProperties.from_env())
    manager = AccountManager(client)
    store = BundleStore()

    try:
        # 기존 자격증명 확인
        bundle = await store.load(ACCOUNT)
        if bundle is not None:
            print("[INFO] 저장된 자격증명 발견, 만료 여부 확인...")
            if await manager.ensure_fresh(bundle):
                print("[OK] 토큰 갱신 완료")
                await save_bundle(store, bundle)
            print(f"[OK] Minecraft Token: {bundle.bearer_token[:20]}...")
            print(f"[OK] Expires At: {bundle.game_session.expires_at}")
            return

        # Device Code 로그인
        print("\n[INFO] Device Code 로그인 시작...")
        bundle = await manager.login(DeviceCodeFlow(client))

        print("\n[OK] 로그인 성공!")
        print(f"[OK] Minecraft Token: {bundle.bearer_token[:20]}...")
        print(f"[OK] Expires At: {bundle.game_session.expires_at}")

        await save_bundle(store, bundle)

    except AuthenticationError as e:
        print(f"\n[ERROR] 인증 실패: {e}")
        if e.retryable:
            print("[INFO] 일시적인 오류입니다. 잠시 후 다시 시도하세요.")
        sys.exit(1)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
