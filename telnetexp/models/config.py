"""
Config Loader - 설정 로드 및 런타임 스냅샷 생성

YAML 파일 → 스키마 검증 → 기본값 적용 → 정규식 컴파일 → 라벨 병합 → 디스크립터 등록
결과 ExporterConfig는 로드 이후 변경되지 않습니다 (reload 시 새 스냅샷 생성).
"""

import re
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from ..errors import LoadError, TargetNotFoundError
from .metrics import DescriptorRegistry, MetricDescriptor
from .schemas import ConfigFile, HostSettings

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 5
DEFAULT_COMMAND_TIMEOUT = 20
DEFAULT_PORT = 23
DEFAULT_PROMPT = "#"


@dataclass(frozen=True)
class MetricDefinition:
    """명령 출력에서 추출할 메트릭 정의"""
    name: str
    pattern: re.Pattern
    descriptor: MetricDescriptor
    help: str = ""
    labels: Dict[str, str] = field(default_factory=dict)  # 병합된 정적 라벨
    dynamic_labels: Optional[Tuple[str, ...]] = None  # [] 도 동적 라벨 모드 (value 그룹 필요)
    value_as_label: Optional[str] = None
    value_enum: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class Command:
    command: str
    metrics: Dict[str, MetricDefinition] = field(default_factory=dict)


@dataclass(frozen=True)
class Host:
    """호스트 설정 (잠금은 포함하지 않음 - HostLockRegistry 참조)"""
    name: str
    port: int = DEFAULT_PORT
    username: str = ""
    password: str = field(default="", repr=False)
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT
    prompt: str = DEFAULT_PROMPT
    labels: Dict[str, str] = field(default_factory=dict)
    commands: Tuple[Command, ...] = ()

    @property
    def address(self) -> str:
        # 설정의 호스트 키가 곧 접속 주소
        return self.name


@dataclass(frozen=True)
class ExporterConfig:
    """로드 완료된 설정 스냅샷"""
    hosts: Dict[str, Host] = field(default_factory=dict)
    descriptors: DescriptorRegistry = field(default_factory=DescriptorRegistry)

    def select(self, target: Optional[str] = None) -> List[Host]:
        """
        수집 대상 호스트 선택

        Args:
            target: 호스트 식별자, None이면 전체

        Raises:
            TargetNotFoundError: 설정에 없는 target
        """
        if target is None:
            return list(self.hosts.values())

        host = self.hosts.get(target)
        if host is None:
            raise TargetNotFoundError(target)
        return [host]


def merge_labels(
    metric_labels: Optional[Dict[str, str]],
    host_labels: Optional[Dict[str, str]]
) -> Dict[str, str]:
    """
    메트릭 정적 라벨 계산

    메트릭 라벨이 없으면 호스트 라벨을 그대로 사용하고,
    있으면 호스트 라벨을 덮어써서 병합합니다 (같은 키는 호스트 라벨이 이김).
    """
    if metric_labels is None:
        return dict(host_labels or {})

    merged = dict(metric_labels)
    merged.update(host_labels or {})
    return merged


def _build_host(
    host_name: str,
    settings: HostSettings,
    registry: DescriptorRegistry
) -> Host:
    commands = []

    for command_settings in settings.commands:
        metrics: Dict[str, MetricDefinition] = {}

        for metric_name, metric in command_settings.metrics.items():
            try:
                pattern = re.compile(metric.regex)
            except re.error as e:
                raise LoadError(
                    f"Could not compile regex (host='{host_name}', command='{command_settings.command}', "
                    f"metric='{metric_name}') '{metric.regex}': {e}"
                ) from e

            labels = merge_labels(metric.labels, settings.labels)
            dynamic_labels = tuple(metric.dynamic_labels) if metric.dynamic_labels is not None else None

            label_names = list(dynamic_labels or ())
            if metric.value_as_label:
                label_names.append(metric.value_as_label)

            const_labels = {
                "target": host_name,
                "command": command_settings.command,
            }
            const_labels.update(labels)

            descriptor = registry.register(
                (host_name, command_settings.command, metric_name),
                name=metric_name,
                help=metric.help,
                label_names=label_names,
                const_labels=const_labels,
            )

            metrics[metric_name] = MetricDefinition(
                name=metric_name,
                pattern=pattern,
                descriptor=descriptor,
                help=metric.help,
                labels=labels,
                dynamic_labels=dynamic_labels,
                value_as_label=metric.value_as_label or None,
                value_enum=tuple(metric.value_enum) if metric.value_enum is not None else None,
            )

        commands.append(Command(command=command_settings.command, metrics=metrics))

    return Host(
        name=host_name,
        port=settings.port or DEFAULT_PORT,
        username=settings.username,
        password=settings.password,
        connect_timeout=settings.connect_timeout or DEFAULT_CONNECT_TIMEOUT,
        command_timeout=settings.command_timeout or DEFAULT_COMMAND_TIMEOUT,
        prompt=DEFAULT_PROMPT if settings.prompt is None else settings.prompt,
        labels=dict(settings.labels or {}),
        commands=tuple(commands),
    )


def build_config(config_file: ConfigFile) -> ExporterConfig:
    """검증된 스키마로부터 런타임 스냅샷 생성"""
    registry = DescriptorRegistry()
    hosts = {
        host_name: _build_host(host_name, settings, registry)
        for host_name, settings in config_file.hosts.items()
    }
    return ExporterConfig(hosts=hosts, descriptors=registry)


def parse_config(content: str) -> ExporterConfig:
    """YAML 문자열 파싱"""
    try:
        raw = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise LoadError(f"Invalid YAML: {e}") from e

    try:
        config_file = ConfigFile.model_validate(raw or {})
    except ValidationError as e:
        raise LoadError(f"Invalid configuration: {e}") from e

    return build_config(config_file)


def load_config(path) -> ExporterConfig:
    """설정 파일 로드"""
    path = Path(path)
    logger.info(f"Loading configuration from {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise LoadError(f"Could not read configuration file {path}: {e}") from e

    config = parse_config(content)
    logger.info(f"Loaded {len(config.hosts)} host(s) from configuration")
    return config
