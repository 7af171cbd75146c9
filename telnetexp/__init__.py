"""
telnetexp - Telnet 기반 원격 메트릭 수집기

원격 호스트에 Telnet으로 접속해 명령을 실행하고,
정규식으로 출력에서 수치를 추출하여 Prometheus 메트릭으로 노출합니다.
"""

__version__ = "1.0.0"
