"""
Services 패키지

수집 오케스트레이션 및 노출 포맷
"""

from .collector import TelnetCollector, HostLockRegistry
from .exposition import SampleCollector, encode_samples

__all__ = [
    "TelnetCollector",
    "HostLockRegistry",
    "SampleCollector",
    "encode_samples",
]
