"""
App - FastAPI 애플리케이션 생성 및 로깅 설정
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from . import __version__
from .api.routes import build_router
from .models.config import ExporterConfig
from .services.collector import TelnetCollector

logger = logging.getLogger(__name__)

LOG_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


class JsonFormatter(logging.Formatter):
    """한 줄 JSON 로그 포맷 (LOG_FORMAT=json)"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(level: str = "info", log_format: str = "console"):
    """
    로깅 설정

    Args:
        level: error, warn(ing), info, debug, trace, off/no (그 외는 info)
        log_format: "json"이면 JSON 라인, 그 외는 콘솔 포맷
    """
    level = (level or "").lower()

    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))

    root = logging.getLogger()
    root.handlers = [handler]

    if level in ("off", "no"):
        root.setLevel(logging.CRITICAL + 1)
    else:
        root.setLevel(LOG_LEVELS.get(level, logging.INFO))

    # 외부 라이브러리 로그 줄이기
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def create_app(
    config: ExporterConfig,
    metrics_path: str = "/metrics",
    collector: Optional[TelnetCollector] = None
) -> FastAPI:
    """
    애플리케이션 생성

    Args:
        config: 로드된 설정 스냅샷
        metrics_path: 메트릭 노출 경로
        collector: 수집기 (테스트에서 주입, 기본은 새 TelnetCollector)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Serving {len(app.state.config.hosts)} host(s) on {metrics_path}")
        yield
        logger.info("Server stopped")

    app = FastAPI(
        title="telnet-exporter",
        version=__version__,
        description="Scrape any metric from remote systems via Telnet",
        lifespan=lifespan
    )
    app.state.config = config
    app.state.collector = collector if collector is not None else TelnetCollector()

    app.include_router(build_router(metrics_path))
    return app
