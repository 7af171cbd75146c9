"""
Telnet Collector - 다중 호스트 수집 오케스트레이션

기능:
- 호스트별 잠금 (한 호스트에 동시에 하나의 세션만)
- 호스트 간 병렬 수집 (동시 실행 제한 없음)
- 호스트별 up 메트릭 (항상 해당 호스트의 다른 샘플보다 먼저)
"""

import asyncio
import time
from typing import Callable, Dict, Iterable, List
import logging

from ..collectors.session import TelnetSession
from ..errors import CommandError, HostConnectionError
from ..models.config import Command, Host
from ..models.metrics import UP_DESCRIPTOR, Sample
from ..parsers.metric import MetricExtractor

logger = logging.getLogger(__name__)


class HostLockRegistry:
    """
    호스트 이름별 asyncio.Lock 보관

    설정 스냅샷과 독립적이므로 설정을 다시 로드해도 같은 잠금을 사용합니다.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def get(self, host_name: str) -> asyncio.Lock:
        lock = self._locks.get(host_name)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[host_name] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


class TelnetCollector:
    """
    스크레이프 요청마다 호스트 수만큼 작업을 띄워 수집

    사용 예시:
    ```python
    collector = TelnetCollector()
    samples = await collector.collect(config.select(target))
    ```
    """

    def __init__(
        self,
        locks: HostLockRegistry = None,
        session_factory: Callable[[Host], TelnetSession] = TelnetSession
    ):
        """
        Args:
            locks: 호스트 잠금 레지스트리 (스크레이프 간 공유)
            session_factory: 호스트 → 세션 생성 함수
        """
        self.locks = locks if locks is not None else HostLockRegistry()
        self.session_factory = session_factory

    async def collect(self, hosts: Iterable[Host]) -> List[Sample]:
        """
        모든 호스트 수집이 끝날 때까지 대기 후 샘플 반환

        호스트 내부 순서(up → 명령 순서)는 유지되며, 호스트 간 순서는 보장하지 않습니다.
        """
        hosts = list(hosts)
        logger.debug(f"Starting collection for {len(hosts)} host(s)")

        results = await asyncio.gather(*(self._collect_host(host) for host in hosts))

        samples: List[Sample] = []
        for host_samples in results:
            samples.extend(host_samples)
        return samples

    async def _collect_host(self, host: Host) -> List[Sample]:
        # 접속부터 모든 명령이 끝날 때까지 잠금 유지
        async with self.locks.get(host.name):
            return await self._run_cycle(host)

    async def _run_cycle(self, host: Host) -> List[Sample]:
        start_time = time.monotonic()
        session = self.session_factory(host)

        try:
            await session.connect()
        except HostConnectionError as e:
            logger.error(f"Failed to connect to host {host.name}: {e.reason}")
            return [Sample(UP_DESCRIPTOR, (host.name,), 0.0)]

        samples = [Sample(UP_DESCRIPTOR, (host.name,), 1.0)]
        extractor = MetricExtractor()

        try:
            for command in host.commands:
                samples.extend(await self._collect_command(session, host, command, extractor))
        finally:
            await session.close()

        duration_ms = (time.monotonic() - start_time) * 1000
        logger.debug(f"Finished collection for host {host.name} in {duration_ms:.0f}ms")
        return samples

    async def _collect_command(
        self,
        session: TelnetSession,
        host: Host,
        command: Command,
        extractor: MetricExtractor
    ) -> List[Sample]:
        """명령 하나 실행 및 추출 (실패 시 해당 명령만 건너뜀)"""
        try:
            output = await session.send_command(command.command)
        except CommandError as e:
            logger.error(f"Failed to send command '{command.command}' to host {host.name}: {e.reason}")
            if e.output:
                logger.debug(f"[{host.name}] Partial output: {e.output!r}")
            return []

        logger.debug(f"[{host.name}] Received output for '{command.command}': {output!r}")
        return extractor.extract_all(output, command, host=host.name)
