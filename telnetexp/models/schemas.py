"""
Config Schemas - 설정 파일(YAML) 스키마

파일 구조를 그대로 검증만 하고, 기본값 적용/정규식 컴파일/라벨 병합은
config.load_config에서 수행합니다.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional


def _stringify_labels(value: Any) -> Any:
    # YAML에서 숫자/불리언으로 읽힌 라벨 값도 문자열로 받음
    if isinstance(value, dict):
        return {str(k): "" if v is None else str(v) for k, v in value.items()}
    return value


class MetricSettings(BaseModel):
    regex: str
    help: str = ""
    labels: Optional[Dict[str, str]] = None
    dynamic_labels: Optional[List[str]] = None
    value_as_label: Optional[str] = None  # 캡처 값을 담을 라벨 이름
    value_enum: Optional[List[str]] = None

    @field_validator("labels", mode="before")
    @classmethod
    def stringify_labels(cls, value):
        return _stringify_labels(value)

    @field_validator("value_enum", mode="before")
    @classmethod
    def stringify_enum(cls, value):
        if isinstance(value, list):
            return [str(v) for v in value]
        return value


class CommandSettings(BaseModel):
    command: str
    metrics: Dict[str, MetricSettings] = Field(default_factory=dict)


class HostSettings(BaseModel):
    port: Optional[int] = Field(default=None, ge=0, le=65535)  # 0/None이면 기본값 23
    username: str = ""
    password: str = ""
    connect_timeout: Optional[int] = None
    command_timeout: Optional[int] = None
    prompt: Optional[str] = None  # None이면 "#", ""이면 응답을 읽지 않음
    labels: Optional[Dict[str, str]] = None
    commands: List[CommandSettings] = Field(default_factory=list)

    @field_validator("labels", mode="before")
    @classmethod
    def stringify_labels(cls, value):
        return _stringify_labels(value)

    @field_validator("username", "password", mode="before")
    @classmethod
    def stringify_credentials(cls, value):
        # 숫자 비밀번호 (예: 1234) 허용
        if value is None:
            return ""
        return str(value)


class ConfigFile(BaseModel):
    """설정 파일 최상위"""
    hosts: Dict[str, HostSettings] = Field(default_factory=dict)

    @field_validator("hosts", mode="before")
    @classmethod
    def empty_hosts(cls, value):
        return {} if value is None else value
