"""
Ghost observation generator for SightGuard.

Draws a randomized batch of decoy observations around each real
observation. The batch is persisted by the recorder together with
the real row.
"""

import random
from typing import Callable, List, Optional
from sightguard.core.ghosts import make_ghosts, random_reporter_hash
from sightguard.core.models import Device, Observation
from sightguard.observability.logging_setup import get_logger

log = get_logger("sightguard.ghosts")

class GhostObservationGenerator:
    """고스트 관측 생성기"""
    
    def __init__(self,
                 *,
                 ghost_min: int = 3,
                 ghost_max: int = 7,
                 rng: Optional[random.Random] = None,
                 hash_factory: Callable[[], str] = random_reporter_hash):
        """
        초기화합니다.
        
        Args:
            ghost_min: 최소 고스트 수 (포함)
            ghost_max: 최대 고스트 수 (포함)
            rng: 난수 생성기, None이면 SystemRandom
            hash_factory: 의사 신고자 해시 생성 함수
        """
        if ghost_min > ghost_max:
            raise ValueError(f"ghost_min({ghost_min}) > ghost_max({ghost_max})")
        self.ghost_min = ghost_min
        self.ghost_max = ghost_max
        self.rng = rng or random.SystemRandom()
        self.hash_factory = hash_factory
    
    def generate(self, device: Device, real: Observation) -> List[Observation]:
        """
        실제 관측 주변에 고스트를 생성합니다 (저장하지 않음).
        
        Args:
            device: 대상 디바이스
            real: 저장 전 실제 관측
            
        Returns:
            고스트 목록
        """
        ghosts = make_ghosts(real, self.ghost_min, self.ghost_max,
                             rng=self.rng, hash_factory=self.hash_factory)
        log.debug(f"고스트 관측 {len(ghosts)}개 생성됨 device:{device.id}")
        return ghosts
