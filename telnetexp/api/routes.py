from fastapi import APIRouter, HTTPException, Query, Request, Response
from fastapi.responses import HTMLResponse
from prometheus_client import CONTENT_TYPE_LATEST
from typing import Optional

from .. import __version__
from ..errors import TargetNotFoundError
from ..services.exposition import encode_samples


def build_router(metrics_path: str = "/metrics") -> APIRouter:
    """인덱스 페이지와 메트릭 경로 라우터 생성 (메트릭 경로는 설정값)"""
    router = APIRouter()

    @router.get("/", response_class=HTMLResponse)
    async def index():
        return f"""<html>
            <head><title>telnet-exporter (Version {__version__})</title></head>
            <body>
            <h1>telnet-exporter</h1>
            <p><a href="{metrics_path}">Metrics</a></p>
            </body>
            </html>"""

    @router.get(metrics_path)
    async def metrics(request: Request, target: Optional[str] = Query(None)):
        """Scrape configured hosts (target 지정 시 해당 호스트만)"""
        config = request.app.state.config
        collector = request.app.state.collector

        try:
            hosts = config.select(target or None)
        except TargetNotFoundError:
            raise HTTPException(status_code=404, detail="Target not configured")

        samples = await collector.collect(hosts)
        return Response(content=encode_samples(samples), media_type=CONTENT_TYPE_LATEST)

    return router
