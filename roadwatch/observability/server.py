"""
HTTP server runner for RoadWatch.
"""

import uvicorn
from fastapi import FastAPI
from roadwatch.settings import Settings
from roadwatch.observability.logging_setup import get_logger

log = get_logger("roadwatch.http")

def build_server(app: FastAPI, settings: Settings) -> uvicorn.Server:
    """
    uvicorn 서버를 생성합니다 (실행은 호출자가 serve()로).
    
    Args:
        app: FastAPI 애플리케이션
        settings: 애플리케이션 설정
    """
    host = settings.observability.http_host
    port = settings.observability.http_port
    log.info(f"HTTP 서버 구성 host:{host} port:{port}")
    return uvicorn.Server(uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level=settings.observability.log_level.lower(),
        access_log=True,
    ))
