"""
Filesystem photo store for RoadWatch.
"""

import asyncio
import time
from pathlib import Path
from typing import List
from roadwatch.observability.logging_setup import get_logger

log = get_logger("roadwatch.photos")

class FilePhotoStore:
    """파일시스템 기반 사진 저장소"""
    
    def __init__(self, root: str, prefix: str = "baches"):
        """
        초기화합니다.
        
        Args:
            root: 저장 루트 디렉터리
            prefix: 사진 하위 디렉터리
        """
        self.root = Path(root)
        self.prefix = prefix.strip("/")
        (self.root / self.prefix).mkdir(parents=True, exist_ok=True)
    
    def _resolve(self, ref: str) -> Path:
        path = (self.root / ref).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"photo reference outside store: {ref}")
        return path
    
    async def put(self, data: bytes, report_id: str) -> str:
        """
        사진을 저장합니다.
        
        Returns:
            "<prefix>/<millis>_<report_id>.jpg" 형식의 참조
        """
        ref = f"{self.prefix}/{int(time.time() * 1000)}_{report_id}.jpg"
        await asyncio.to_thread(self._resolve(ref).write_bytes, data)
        log.info(f"사진 저장됨 ref:{ref} bytes:{len(data)}")
        return ref
    
    async def read(self, ref: str) -> bytes:
        return await asyncio.to_thread(self._resolve(ref).read_bytes)
    
    async def list_refs(self) -> List[str]:
        folder = self.root / self.prefix
        files = await asyncio.to_thread(lambda: sorted(p for p in folder.iterdir() if p.is_file()))
        return [f"{self.prefix}/{p.name}" for p in files]
    
    async def delete(self, ref: str) -> None:
        await asyncio.to_thread(self._resolve(ref).unlink, True)
        log.info(f"사진 삭제됨 ref:{ref}")
