"""
Metric Models - 메트릭 디스크립터와 샘플
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple


@dataclass(frozen=True)
class MetricDescriptor:
    """
    메트릭 식별자 (이름 + 가변 라벨 이름 + 상수 라벨)

    설정 로드 시 한 번만 생성되고 프로세스 수명 동안 재사용됩니다.
    """
    name: str
    help: str
    label_names: Tuple[str, ...] = ()
    const_labels: Tuple[Tuple[str, str], ...] = ()

    def labels_for(self, label_values: Tuple[str, ...]) -> Dict[str, str]:
        """상수 라벨 + 가변 라벨 값을 하나의 dict로 합침"""
        labels = dict(self.const_labels)
        labels.update(zip(self.label_names, label_values))
        return labels


@dataclass(frozen=True)
class Sample:
    """수집 주기마다 새로 만들어지는 메트릭 샘플 (캐시하지 않음)"""
    descriptor: MetricDescriptor
    label_values: Tuple[str, ...]
    value: float

    @property
    def labels(self) -> Dict[str, str]:
        return self.descriptor.labels_for(self.label_values)


UP_DESCRIPTOR = MetricDescriptor(
    name="telnet_exporter_up",
    help="1 if an Telnet connection can be established",
    label_names=("target",),
)


class DescriptorRegistry:
    """
    디스크립터 레지스트리 (append-only)

    키: (호스트, 명령, 메트릭 이름)
    같은 키로 다시 등록하면 기존 디스크립터를 그대로 반환합니다.
    """

    def __init__(self):
        self._descriptors: Dict[Tuple[str, str, str], MetricDescriptor] = {}

    def register(
        self,
        key: Tuple[str, str, str],
        name: str,
        help: str,
        label_names: List[str],
        const_labels: Dict[str, str]
    ) -> MetricDescriptor:
        existing = self._descriptors.get(key)
        if existing is not None:
            return existing

        descriptor = MetricDescriptor(
            name=name,
            help=help,
            label_names=tuple(label_names),
            const_labels=tuple(const_labels.items()),
        )
        self._descriptors[key] = descriptor
        return descriptor

    def get(self, key: Tuple[str, str, str]) -> Optional[MetricDescriptor]:
        return self._descriptors.get(key)

    def __iter__(self) -> Iterator[MetricDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)
