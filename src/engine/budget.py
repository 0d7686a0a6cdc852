"""Budget Manager - 검색 1회의 시간 측정과 프로바이더 타임아웃

엔진 인스턴스는 검색 간 상태를 갖지 않으므로 BudgetManager는
search() 호출마다 새로 만들어집니다.
"""

from dataclasses import dataclass
from time import perf_counter
from typing import Optional


@dataclass
class BudgetConfig:
    """예산 설정"""

    provider_timeout: float = 30.0  # 프로바이더별 검색 타임아웃 (초)

    def __post_init__(self):
        """설정 검증"""
        if self.provider_timeout <= 0:
            raise ValueError(
                f"provider_timeout must be positive, got {self.provider_timeout}s"
            )

    @classmethod
    def from_timeout_ms(cls, timeout_ms: int) -> "BudgetConfig":
        return cls(provider_timeout=timeout_ms / 1000.0)


class BudgetManager:
    """검색 시간 관리자

    Usage:
        manager = BudgetManager(BudgetConfig.from_timeout_ms(15000))
        manager.start()

        manager.checkpoint("availability_checked")
        timeout = manager.get_timeout_for("provider")

        report = manager.get_report()
    """

    def __init__(self, config: Optional[BudgetConfig] = None):
        self.config = config or BudgetConfig()
        self.start_time: Optional[float] = None
        self._checkpoints: dict[str, float] = {}

    def start(self) -> None:
        """측정 시작"""
        self.start_time = perf_counter()
        self._checkpoints.clear()

    def checkpoint(self, name: str) -> None:
        """체크포인트 기록

        Args:
            name: 체크포인트 이름 (예: "availability_checked", "fanout_done")

        Raises:
            RuntimeError: start()가 호출되지 않은 경우
        """
        if self.start_time is None:
            raise RuntimeError("Budget not started. Call start() first.")
        self._checkpoints[name] = perf_counter() - self.start_time

    def elapsed(self) -> float:
        """경과 시간 반환 (초). start() 전에는 0.0"""
        if self.start_time is None:
            return 0.0
        return perf_counter() - self.start_time

    def elapsed_ms(self) -> float:
        """경과 시간 반환 (밀리초)"""
        return self.elapsed() * 1000

    def get_timeout_for(self, stage: str) -> Optional[float]:
        """단계별 타임아웃 (초)

        Args:
            stage: "provider" 만 타임아웃이 있고 나머지 단계는 제한 없음(None)
        """
        if stage == "provider":
            return self.config.provider_timeout
        return None

    def get_report(self) -> dict:
        """시간 사용 리포트

        Returns:
            dict: provider_timeout, elapsed, checkpoints
        """
        return {
            "provider_timeout": self.config.provider_timeout,
            "elapsed": self.elapsed(),
            "checkpoints": self._checkpoints.copy(),
        }
