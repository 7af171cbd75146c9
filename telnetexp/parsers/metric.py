"""
Metric Extractor - 명령 출력 → 메트릭 샘플 변환

정규식을 한 번 적용(첫 매칭만)하여 값과 라벨을 추출합니다.
값 변환 모드:
- 숫자: float 변환 (실패 시 0 + 에러 기록)
- value_as_label: 캡처 값을 라벨로, 값은 1
- value_as_label + value_enum: enum 항목별 one-hot (일치 1, 나머지 0)
"""

import re
import logging
from typing import List, Tuple

from ..errors import ExtractionError
from ..models.config import Command, MetricDefinition
from ..models.metrics import Sample

logger = logging.getLogger(__name__)

MISSING_GROUP_PLACEHOLDER = "!! match group not found !!"
VALUE_GROUP = "value"


class MetricExtractor:
    """명령 출력 파서"""

    def __init__(self):
        self._errors: List[str] = []

    def extract_all(self, output: str, command: Command, host: str = "") -> List[Sample]:
        """명령에 정의된 모든 메트릭 추출 (정의 순서 유지)"""
        samples = []
        for metric in command.metrics.values():
            samples.extend(self.extract(output, metric, host=host, command=command.command))
        return samples

    def extract(
        self,
        output: str,
        metric: MetricDefinition,
        host: str = "",
        command: str = ""
    ) -> List[Sample]:
        """
        단일 메트릭 추출

        Args:
            output: 명령 출력
            metric: 메트릭 정의
            host, command: 로그용 컨텍스트

        Returns:
            List[Sample]: 매칭되지 않으면 빈 리스트 (0으로 내보내지 않음)
        """
        match = metric.pattern.search(output)
        if match is None:
            return []

        try:
            if metric.dynamic_labels is None:
                return self._materialize(metric, self._first_group(match), ())

            label_values = tuple(
                self._group_value(match, label_name)
                for label_name in metric.dynamic_labels
            )
            if VALUE_GROUP not in metric.pattern.groupindex:
                raise ExtractionError(
                    "Must define a value match group for metric value if using dynamic values"
                )

            value = match.group(VALUE_GROUP) or ""
            return self._materialize(metric, value, label_values)

        except ExtractionError as e:
            self._report(f"{e} (host='{host}', command='{command}', metric='{metric.name}')")
            return []

    @staticmethod
    def _first_group(match: re.Match) -> str:
        if match.re.groups < 1:
            raise ExtractionError("Regex has no capture group for metric value")
        return match.group(1) or ""

    @staticmethod
    def _group_value(match: re.Match, name: str) -> str:
        """이름 있는 그룹 값 (그룹이 없으면 placeholder, 매칭 안 된 그룹은 빈 문자열)"""
        if name not in match.re.groupindex:
            return MISSING_GROUP_PLACEHOLDER
        return match.group(name) or ""

    def _materialize(
        self,
        metric: MetricDefinition,
        value: str,
        label_values: Tuple[str, ...]
    ) -> List[Sample]:
        descriptor = metric.descriptor

        if metric.value_as_label is None:
            return [Sample(descriptor, label_values, self._to_float(value, metric.name))]

        if metric.value_enum is None:
            return [Sample(descriptor, label_values + (value,), 1.0)]

        return [
            Sample(descriptor, label_values + (entry,), 1.0 if entry == value else 0.0)
            for entry in metric.value_enum
        ]

    def _to_float(self, value: str, metric_name: str) -> float:
        try:
            # float()는 앞뒤 공백과 "1_000"도 허용하므로 먼저 거름
            if value != value.strip() or "_" in value:
                raise ValueError(value)
            return float(value)
        except ValueError:
            self._report(f"Could not parse value '{value}' as float (metric='{metric_name}')")
            return 0.0

    def _report(self, message: str):
        logger.error(message)
        self._errors.append(message)

    def get_errors(self) -> List[str]:
        """추출 중 발생한 에러 반환"""
        return self._errors.copy()

    def clear_errors(self):
        """에러 목록 초기화"""
        self._errors = []
