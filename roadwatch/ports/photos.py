"""
Photo store port interface.
"""

from typing import List, Protocol

class PhotoStorePort(Protocol):
    """사진 저장소 포트 인터페이스"""
    
    async def put(self, data: bytes, report_id: str) -> str:
        """
        사진을 저장합니다.
        
        Returns:
            저장된 사진 참조 (상대 경로)
        """
        ...
    
    async def list_refs(self) -> List[str]:
        ...
    
    async def delete(self, ref: str) -> None:
        ...
