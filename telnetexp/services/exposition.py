"""
Exposition - 샘플 → Prometheus 텍스트 포맷

요청마다 CollectorRegistry를 새로 만들어 이번 주기의 샘플만 노출합니다.
"""

from typing import Dict, Iterable, List

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import Metric

from ..models.metrics import Sample


class SampleCollector:
    """수집된 샘플을 메트릭 이름별 gauge 패밀리로 묶어 내보내는 collector"""

    def __init__(self, samples: Iterable[Sample]):
        self.samples = list(samples)

    def collect(self):
        families: Dict[str, Metric] = {}

        for sample in self.samples:
            descriptor = sample.descriptor
            family = families.get(descriptor.name)
            if family is None:
                # 같은 이름이 여러 호스트/명령에 있으면 처음 help를 사용
                family = Metric(descriptor.name, descriptor.help, "gauge")
                families[descriptor.name] = family
            family.add_sample(descriptor.name, sample.labels, sample.value)

        return list(families.values())


def encode_samples(samples: List[Sample]) -> bytes:
    """샘플 목록을 Prometheus 텍스트 포맷으로 인코딩"""
    registry = CollectorRegistry(auto_describe=False)
    registry.register(SampleCollector(samples))
    return generate_latest(registry)
