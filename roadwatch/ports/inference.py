"""
Image inference port interface.
"""

from typing import Any, Dict, Protocol

class InferencePort(Protocol):
    """이미지 추론 포트 인터페이스"""
    
    async def analyze(self, image: bytes, mime_type: str = "image/jpeg") -> Dict[str, Any]:
        """
        사진을 분석해 원시 응답을 반환합니다.
        
        Raises:
            InferenceError: 서비스 호출 실패
        """
        ...
