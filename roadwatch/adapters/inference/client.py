"""
Image inference client for RoadWatch.

Sends a road photo to the external multimodal inference service and
returns its raw answer. Interpreting the answer is core.normalize's job.
"""

import aiohttp
import base64
from typing import Any, Dict, Optional
from roadwatch.common.retry import retry_with_backoff
from roadwatch.core.errors import InferenceError
from roadwatch.observability import metrics
from roadwatch.observability.logging_setup import get_logger

log = get_logger("roadwatch.inference")

class InferenceClient:
    """이미지 추론 서비스 클라이언트"""
    
    def __init__(self,
                 base_url: str,
                 api_key: str = "",
                 *,
                 prompt: str = "",
                 timeout: int = 30,
                 max_retries: int = 2):
        """
        초기화합니다.
        
        Args:
            base_url: 추론 서비스 기본 URL
            api_key: Bearer 토큰 (비어 있으면 헤더 생략)
            prompt: 모델에 전달할 지시문
            timeout: 요청 타임아웃 (초)
            max_retries: 최대 재시도 횟수
        """
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.prompt = prompt
        self.timeout = timeout
        self.max_retries = max_retries
        self.session: Optional[aiohttp.ClientSession] = None
    
    async def __aenter__(self):
        """비동기 컨텍스트 매니저 진입"""
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        self.session = aiohttp.ClientSession(
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        )
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """비동기 컨텍스트 매니저 종료"""
        if self.session:
            await self.session.close()
            self.session = None
    
    async def analyze(self, image: bytes, mime_type: str = "image/jpeg") -> Dict[str, Any]:
        """
        사진을 분석합니다.
        
        Args:
            image: 사진 바이트
            mime_type: 사진 MIME 타입
            
        Returns:
            추론 서비스 원시 응답
            
        Raises:
            InferenceError: 호출 실패 (재시도 소진)
        """
        if not self.session:
            raise RuntimeError("세션이 초기화되지 않았습니다. async with를 사용하세요.")
        
        payload = {
            "image": base64.b64encode(image).decode("ascii"),
            "mime_type": mime_type,
            "prompt": self.prompt,
        }
        url = f"{self.base_url}/analyze"
        
        async def _request():
            async with self.session.post(url, json=payload) as response:
                response.raise_for_status()
                return await response.json()
        
        try:
            with metrics.inference_seconds.time():
                data = await retry_with_backoff(
                    _request,
                    max_retries=self.max_retries,
                    base_delay=0.5,
                    max_delay=5.0,
                    retry_on=(aiohttp.ClientError, TimeoutError),
                )
        except (aiohttp.ClientError, TimeoutError, ValueError) as e:
            # ValueError: 응답 본문이 JSON이 아님
            metrics.inference_failures.inc()
            log.error(f"이미지 추론 실패 url:{url} error:{e}")
            raise InferenceError(str(e)) from e
        
        log.info(f"이미지 추론 완료 bytes:{len(image)}")
        return data
