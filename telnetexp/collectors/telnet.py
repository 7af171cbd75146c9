"""
Telnet Transport - 최소 Telnet 프로토콜 처리

asyncio 스트림 위에서 옵션 협상(항상 거절)과
"마커가 나올 때까지 읽기(read_until)"만 구현합니다.
"""

import asyncio
import logging
from typing import Sequence

from ..errors import ConnectionClosedError, ReadTimeoutError

logger = logging.getLogger(__name__)

# Telnet 명령 바이트
IAC = 255
DONT = 254
DO = 253
WONT = 252
WILL = 251

# 소켓에서 한 번에 읽는 크기 (스캔은 버퍼 안에서 1바이트씩)
READ_CHUNK_SIZE = 4096


class TelnetTransport:
    """
    Telnet 바이트 스트림 처리기

    서버가 제안하는 모든 옵션을 거절합니다:
    - DO <opt>   → WONT <opt>
    - WILL <opt> → DONT <opt>
    """

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer
        # 이전 read_until에서 마커 뒤에 남은 바이트
        self._pending = b""
        self._pos = 0

    @classmethod
    async def open(cls, host: str, port: int, timeout: float) -> "TelnetTransport":
        """TCP 연결 생성 (timeout 초 안에 연결되지 않으면 asyncio.TimeoutError)"""
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port),
            timeout=timeout
        )
        return cls(reader, writer)

    async def write(self, data: bytes):
        self.writer.write(data)
        await self.writer.drain()

    async def close(self):
        """연결 종료"""
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error while closing connection: {e}")

    async def _read_byte(self, deadline: float) -> int:
        """데드라인 안에서 1바이트 읽기 (내부 버퍼가 비었을 때만 소켓에서 청크 단위로 읽음)"""
        if self._pos >= len(self._pending):
            remaining = deadline - asyncio.get_running_loop().time()
            if remaining <= 0:
                raise asyncio.TimeoutError()

            data = await asyncio.wait_for(self.reader.read(READ_CHUNK_SIZE), timeout=remaining)
            if not data:
                raise EOFError("connection closed by remote host")
            self._pending = data
            self._pos = 0

        b = self._pending[self._pos]
        self._pos += 1
        return b

    async def _negotiate(self, command: int, deadline: float):
        """IAC <command> 다음의 옵션 바이트를 읽고 거절 응답 전송"""
        option = await self._read_byte(deadline)

        if command == DO:
            response = bytes([IAC, WONT, option])
        elif command == WILL:
            response = bytes([IAC, DONT, option])
        else:
            return

        logger.debug(f"Refusing telnet option {option} (command {command})")
        await self.write(response)

    async def read_until(self, stop_words: Sequence[str], timeout: float) -> str:
        """
        stop_words 중 하나가 나타날 때까지 읽기

        Args:
            stop_words: 종료 마커 목록 (먼저 나타나는 것이 이김, 우선순위 없음)
            timeout: 전체 읽기 데드라인 (초)

        Returns:
            str: 마커를 포함한 누적 출력

        Raises:
            ReadTimeoutError: 데드라인 초과 (output에 부분 출력)
            ConnectionClosedError: EOF 또는 소켓 오류 (output에 부분 출력)
        """
        deadline = asyncio.get_running_loop().time() + timeout
        markers = [word.encode("utf-8") for word in stop_words]
        buffer = bytearray()

        try:
            while True:
                b = await self._read_byte(deadline)

                if b == IAC:
                    command = await self._read_byte(deadline)
                    await self._negotiate(command, deadline)
                    continue

                buffer.append(b)
                # 새 매칭은 방금 추가한 바이트로 끝나는 경우뿐
                if any(buffer.endswith(marker) for marker in markers):
                    return _decode(buffer)

        except asyncio.TimeoutError:
            raise ReadTimeoutError(
                f"read timeout after {timeout}s waiting for {list(stop_words)}",
                _decode(buffer)
            )
        except (EOFError, OSError) as e:
            raise ConnectionClosedError(str(e) or type(e).__name__, _decode(buffer))


def _decode(buffer: bytearray) -> str:
    return bytes(buffer).decode("utf-8", errors="replace")
