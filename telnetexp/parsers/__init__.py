"""
Parsers 패키지

명령 출력에서 메트릭 추출
"""

from .metric import MetricExtractor, MISSING_GROUP_PLACEHOLDER

__all__ = [
    "MetricExtractor",
    "MISSING_GROUP_PLACEHOLDER",
]
