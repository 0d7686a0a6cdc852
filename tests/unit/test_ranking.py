"""랭킹 테스트 (5단계 우선순위)"""
from datetime import datetime, timedelta, timezone

from src.engine.ranking import (
    DEFAULT_RELIABILITY,
    GOOGLE_VISION_PROVIDER_NAME,
    PROPRIETARY_PROVIDER_NAME,
    TINEYE_PROVIDER_NAME,
    compare_results,
    get_provider_reliability,
    rank_results,
)
from src.schemas.search_schema import MatchStatus


class TestProviderReliability:
    def test_known_providers(self):
        assert get_provider_reliability(PROPRIETARY_PROVIDER_NAME) == 10
        assert get_provider_reliability(TINEYE_PROVIDER_NAME) == 9
        assert get_provider_reliability(GOOGLE_VISION_PROVIDER_NAME) == 8

    def test_unknown_provider(self):
        assert get_provider_reliability("Some New Engine") == DEFAULT_RELIABILITY == 5


class TestRankResults:
    def test_status_first(self, make_search_result):
        clean = make_search_result(url="https://a.com/1.jpg", similarity=99, result_id="clean")
        partial = make_search_result(url="https://b.com/1.jpg", similarity=80, status=MatchStatus.PARTIAL, result_id="partial")
        violation = make_search_result(url="https://c.com/1.jpg", similarity=70, status=MatchStatus.VIOLATION, result_id="violation")

        assert [r.id for r in rank_results([clean, partial, violation])] == ["violation", "partial", "clean"]

    def test_risk_before_similarity(self, make_search_result):
        low = make_search_result(url="https://a.com/1.jpg", similarity=99, risk="low", result_id="low")
        high = make_search_result(url="https://b.com/1.jpg", similarity=75, risk="high", result_id="high")
        medium = make_search_result(url="https://c.com/1.jpg", similarity=80, risk="medium", result_id="medium")

        assert [r.id for r in rank_results([low, medium, high])] == ["high", "medium", "low"]

    def test_missing_risk_treated_as_low(self, make_search_result):
        unknown = make_search_result(url="https://a.com/1.jpg", similarity=99, result_id="unknown")
        medium = make_search_result(url="https://b.com/1.jpg", similarity=75, risk="medium", result_id="medium")

        assert rank_results([unknown, medium])[0].id == "medium"

    def test_similarity_when_gap_above_one(self, make_search_result):
        a = make_search_result(url="https://a.com/1.jpg", similarity=85, provider=PROPRIETARY_PROVIDER_NAME, result_id="a")
        b = make_search_result(url="https://b.com/1.jpg", similarity=90, provider=GOOGLE_VISION_PROVIDER_NAME, result_id="b")

        assert rank_results([a, b])[0].id == "b"

    def test_small_similarity_gap_falls_through_to_reliability(self, make_search_result):
        """차이가 1점 이하면 프로바이더 신뢰도로 결정"""
        gv = make_search_result(url="https://a.com/1.jpg", similarity=91, provider=GOOGLE_VISION_PROVIDER_NAME, result_id="gv")
        prop = make_search_result(url="https://b.com/1.jpg", similarity=90, provider=PROPRIETARY_PROVIDER_NAME, result_id="prop")

        assert rank_results([gv, prop])[0].id == "prop"

    def test_recency_last(self, make_search_result):
        now = datetime(2024, 6, 1, tzinfo=timezone.utc)
        old = make_search_result(url="https://a.com/1.jpg", detected_at=now - timedelta(days=3), result_id="old")
        new = make_search_result(url="https://b.com/1.jpg", detected_at=now, result_id="new")

        assert rank_results([old, new])[0].id == "new"

    def test_naive_and_aware_datetimes_compare(self, make_search_result):
        naive = make_search_result(url="https://a.com/1.jpg", detected_at=datetime(2024, 1, 2), result_id="naive")
        aware = make_search_result(url="https://b.com/1.jpg", detected_at=datetime(2024, 1, 1, tzinfo=timezone.utc), result_id="aware")

        assert rank_results([aware, naive])[0].id == "naive"

    def test_stable_and_idempotent(self, make_search_result):
        results = [
            make_search_result(url=f"https://s{i}.com/1.jpg", similarity=80 + (i % 3) * 0.5, result_id=f"r{i}")
            for i in range(10)
        ]
        once = rank_results(results)
        twice = rank_results(once)

        assert [r.id for r in once] == [r.id for r in twice]
        # 완전 동률은 입력 순서 유지
        assert [r.id for r in once] == [f"r{i}" for i in range(10)]

    def test_compare_is_antisymmetric(self, make_search_result):
        a = make_search_result(url="https://a.com/1.jpg", similarity=95)
        b = make_search_result(url="https://b.com/1.jpg", similarity=80, status=MatchStatus.PARTIAL)

        assert compare_results(a, b) == -compare_results(b, a) != 0

    def test_input_not_mutated(self, make_search_result):
        results = [make_search_result(url="https://a.com/1.jpg", similarity=70), make_search_result(url="https://b.com/1.jpg", similarity=99)]
        before = list(results)
        rank_results(results)

        assert results == before
