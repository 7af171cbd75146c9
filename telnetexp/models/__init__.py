"""
Models 패키지

설정 스키마, 런타임 설정 스냅샷, 메트릭 디스크립터/샘플
"""
