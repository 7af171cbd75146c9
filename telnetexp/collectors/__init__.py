"""
Collectors 패키지

원격 호스트 수집을 위한 모듈:
- telnet: Telnet 옵션 협상 및 read_until
- session: 호스트 세션 (접속/로그인/명령 실행)
"""

from .telnet import TelnetTransport, IAC, DONT, DO, WONT, WILL
from .session import TelnetSession, SessionState

__all__ = [
    "TelnetTransport",
    "TelnetSession",
    "SessionState",
    "IAC",
    "DONT",
    "DO",
    "WONT",
    "WILL",
]
