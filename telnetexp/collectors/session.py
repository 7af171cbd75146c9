"""
Telnet Session - 호스트별 세션 관리

상태 흐름: DISCONNECTED → CONNECTED → (AUTHENTICATED) → READY → CLOSED
수집 주기마다 새 세션을 열고, 주기가 끝나면 닫습니다 (연결 풀 없음).
"""

import asyncio
import logging
from enum import Enum
from typing import Optional

from ..errors import CommandError, HostConnectionError, TransportError
from ..models.config import Host
from .telnet import TelnetTransport

logger = logging.getLogger(__name__)

# 초기 출력에서 기다리는 마커 (프롬프트 또는 로그인 요청)
INITIAL_MARKERS = [">", "$", "#", "login", "Password"]
LOGIN_MARKERS = ("login", "Password")


class SessionState(Enum):
    """세션 상태"""
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"
    READY = "ready"
    CLOSED = "closed"


class TelnetSession:
    """
    호스트 Telnet 세션

    사용 예시:
    ```python
    async with TelnetSession(host) as session:
        output = await session.send_command("show version")
    ```
    """

    INITIAL_READ_TIMEOUT = 5.0  # 초기 프롬프트 대기 상한 (초)
    COMMAND_READ_TIMEOUT = 3.0  # 명령 응답 대기 (호스트 command_timeout과 무관)
    SETTLE_INTERVAL = 0.5  # 명령 전송 후 읽기 전 대기

    def __init__(self, host: Host):
        self.host = host
        self.state = SessionState.DISCONNECTED
        self._transport: Optional[TelnetTransport] = None

    async def __aenter__(self) -> "TelnetSession":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def connect(self):
        """
        접속 및 초기 프롬프트 대기, 필요 시 로그인

        Raises:
            HostConnectionError: 접속 실패 또는 초기 출력 수신 실패
        """
        host = self.host

        try:
            self._transport = await TelnetTransport.open(host.address, host.port, host.connect_timeout)
        except asyncio.TimeoutError:
            raise HostConnectionError(host.name, f"connect timed out after {host.connect_timeout}s")
        except (OSError, ValueError, OverflowError) as e:
            # 잘못된 포트(OverflowError)나 인코딩 불가 호스트명(UnicodeError)도 접속 실패
            raise HostConnectionError(host.name, str(e) or type(e).__name__) from e

        self.state = SessionState.CONNECTED

        # 읽기 데드라인은 command_timeout 기준이지만 초기 대기는 5초로 제한
        timeout = min(host.command_timeout, self.INITIAL_READ_TIMEOUT)
        try:
            output = await self._transport.read_until(INITIAL_MARKERS, timeout)
        except TransportError as e:
            logger.debug(f"[{host.name}] Partial initial output: {e.output!r}")
            await self.close()
            raise HostConnectionError(host.name, str(e)) from e

        logger.debug(f"[{host.name}] Received initial output: {output!r}")

        if any(marker in output for marker in LOGIN_MARKERS):
            await self._login()

        self.state = SessionState.READY

    async def _login(self):
        """
        사용자명/비밀번호 전송

        인증 성공 여부는 확인하지 않고 진행합니다.
        (잘못된 계정이면 이후 명령에서 프롬프트를 찾지 못해 실패)
        """
        name = self.host.name
        logger.debug(f"[{name}] Login prompt detected")

        try:
            output = await self.send_command(self.host.username, "Password")
            logger.debug(f"[{name}] Sent username: {output!r}")
        except CommandError as e:
            logger.debug(f"[{name}] No password prompt after username: {e.reason}")

        try:
            output = await self.send_command(self.host.password, "#")
            logger.debug(f"[{name}] Sent password: {output!r}")
        except CommandError as e:
            logger.debug(f"[{name}] No prompt after password: {e.reason}")

        self.state = SessionState.AUTHENTICATED

    async def send_command(self, command: str, prompt: Optional[str] = None) -> str:
        """
        명령 전송 후 프롬프트까지 응답 읽기

        Args:
            command: 전송할 명령 (줄바꿈은 자동 추가)
            prompt: 응답 종료 마커, None이면 호스트 prompt 사용
                    빈 문자열이면 응답을 읽지 않고 "" 반환

        Raises:
            CommandError: 전송 실패, 응답 타임아웃, 연결 종료
        """
        if self._transport is None:
            raise CommandError(command, "session is not connected")

        if prompt is None:
            prompt = self.host.prompt

        try:
            await self._transport.write((command + "\n").encode("utf-8"))
        except OSError as e:
            raise CommandError(command, str(e)) from e

        # 출력이 바로 시작되지 않으므로 잠시 대기
        await asyncio.sleep(self.SETTLE_INTERVAL)

        if not prompt:
            return ""

        try:
            return await self._transport.read_until([prompt], self.COMMAND_READ_TIMEOUT)
        except TransportError as e:
            raise CommandError(command, str(e), e.output) from e

    async def close(self):
        """세션 종료"""
        if self._transport is not None:
            await self._transport.close()
            self._transport = None
        self.state = SessionState.CLOSED
