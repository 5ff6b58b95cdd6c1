"""
Ghost observation synthesis for SightGuard.

This module contains pure functions that derive decoy ("ghost")
observations from a real observation, so that a harvested observation
stream cannot separate genuine reporter trajectories from noise.
"""

import hashlib
import random
import secrets
from datetime import timedelta
from typing import Callable, List, Optional
from .models import Observation

# 공간 지터 (도 단위, 약 1km 반경 박스)
SPATIAL_JITTER_DEG = 0.005
# 시간 지터 (분)
TEMPORAL_JITTER_MIN = 30
# 정확도 배율 범위
ACCURACY_FACTOR_RANGE = (0.75, 1.25)
# 신뢰도 감소량 최대값 (포함)
CONFIDENCE_DROP_MAX = 29
# 고스트 신뢰도 하한
CONFIDENCE_FLOOR = 10


def random_reporter_hash() -> str:
    """
    실제 신고자와 무관한 의사 신고자 해시를 생성합니다.

    Returns:
        64자리 16진수 SHA-256 다이제스트
    """
    return hashlib.sha256(secrets.token_bytes(32)).hexdigest()


def ghost_confidence(real_confidence: int, drop: int) -> int:
    """
    고스트 신뢰도를 계산합니다. 하한은 10, 상한은 실제 신뢰도입니다.

    Args:
        real_confidence: 실제 관측 신뢰도
        drop: 감소량 (0-29)

    Returns:
        고스트 신뢰도
    """
    return min(real_confidence, max(CONFIDENCE_FLOOR, real_confidence - drop))


def _jitter_point(lat: float, lon: float, rng: random.Random) -> tuple[float, float]:
    # 실제 좌표와 정확히 겹치는 점은 다시 뽑는다
    while True:
        glat = lat + rng.uniform(-SPATIAL_JITTER_DEG, SPATIAL_JITTER_DEG)
        glon = lon + rng.uniform(-SPATIAL_JITTER_DEG, SPATIAL_JITTER_DEG)
        if glat != lat or glon != lon:
            return glat, glon


def make_ghost(real: Observation,
               rng: random.Random,
               hash_factory: Callable[[], str] = random_reporter_hash) -> Observation:
    """
    실제 관측 하나로부터 고스트 관측 하나를 만듭니다.

    Args:
        real: 실제 관측
        rng: 난수 생성기
        hash_factory: 의사 신고자 해시 생성 함수

    Returns:
        is_ghost=True 인 관측
    """
    lat, lon = _jitter_point(real.latitude, real.longitude, rng)
    minutes = rng.randint(-TEMPORAL_JITTER_MIN, TEMPORAL_JITTER_MIN)
    factor = rng.uniform(*ACCURACY_FACTOR_RANGE)
    drop = rng.randint(0, CONFIDENCE_DROP_MAX)

    return Observation(
        device_id=real.device_id,
        observation_time=real.observation_time + timedelta(minutes=minutes),
        latitude=lat,
        longitude=lon,
        accuracy=real.accuracy * factor,
        confidence=ghost_confidence(real.confidence, drop),
        reporter_hash=hash_factory(),
        is_ghost=True,
    )


def make_ghosts(real: Observation,
                ghost_min: int,
                ghost_max: int,
                rng: Optional[random.Random] = None,
                hash_factory: Callable[[], str] = random_reporter_hash) -> List[Observation]:
    """
    실제 관측 주변에 고스트 관측 묶음을 생성합니다.

    개수는 [ghost_min, ghost_max] 에서 균등하게 선택됩니다.

    Args:
        real: 실제 관측 (is_ghost=False)
        ghost_min: 최소 개수 (포함)
        ghost_max: 최대 개수 (포함)
        rng: 난수 생성기, None이면 SystemRandom 사용
        hash_factory: 의사 신고자 해시 생성 함수

    Returns:
        고스트 관측 목록
    """
    if real.is_ghost:
        raise ValueError("고스트 관측으로부터 고스트를 만들 수 없습니다")
    if ghost_min > ghost_max:
        raise ValueError(f"ghost_min({ghost_min}) > ghost_max({ghost_max})")

    rng = rng or random.SystemRandom()
    count = rng.randint(ghost_min, ghost_max)
    return [make_ghost(real, rng, hash_factory) for _ in range(count)]
