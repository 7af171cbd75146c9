"""
Errors - 수집기 예외 계층

LoadError만 프로세스에 치명적이며, 나머지는 가능한 가장 작은 단위
(호스트 / 명령 / 메트릭)만 포기하고 수집을 계속합니다.
"""


class TelnetExporterError(Exception):
    """모든 수집기 예외의 기반 클래스"""


class LoadError(TelnetExporterError):
    """설정 로드 실패 (잘못된 YAML, 스키마, 정규식) - 시작 시 치명적"""


class TransportError(TelnetExporterError):
    """
    Telnet 전송 계층 오류

    read_until이 중단되기 전까지 누적된 부분 출력을 output에 보관합니다.
    부분 출력은 로그용일 뿐, 성공한 매칭으로 취급하면 안 됩니다.
    """

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


class ReadTimeoutError(TransportError):
    """read_until 데드라인 초과"""


class ConnectionClosedError(TransportError):
    """원격 측에서 연결을 닫음 (EOF)"""


class HostConnectionError(TelnetExporterError):
    """호스트 접속 실패 - 해당 호스트의 up=0, 명령 생략"""

    def __init__(self, host: str, reason: str):
        super().__init__(f"Failed to connect to {host}: {reason}")
        self.host = host
        self.reason = reason


class CommandError(TelnetExporterError):
    """명령 송수신 실패 - 해당 명령의 메트릭만 생략"""

    def __init__(self, command: str, reason: str, output: str = ""):
        super().__init__(f"Command '{command}' failed: {reason}")
        self.command = command
        self.reason = reason
        self.output = output


class ExtractionError(TelnetExporterError):
    """메트릭 추출 실패 (캡처 그룹 없음, value 그룹 누락)"""


class TargetNotFoundError(TelnetExporterError):
    """요청한 target이 설정에 없음 (HTTP 404)"""

    def __init__(self, target: str):
        super().__init__(f"Target not configured: {target}")
        self.target = target
