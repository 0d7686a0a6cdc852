"""Configuration Resolver 테스트

레이어 우선순위: plan < search type < security level
"""
import pytest

from src.core.exceptions import UnknownPolicyException
from src.engine.resolver import (
    BING_VISUAL,
    GOOGLE_VISION,
    PROPRIETARY,
    TINEYE,
    YANDEX,
    AggregationOverride,
    PolicyLayer,
    apply_layer,
    build_default_config,
    build_policy_tables,
    get_config_for_user,
)
from src.schemas.search_schema import ProviderConfig


@pytest.fixture
def tables(full_credentials_settings):
    return build_policy_tables(full_credentials_settings)


@pytest.fixture
def bare_tables(no_credentials_settings):
    return build_policy_tables(no_credentials_settings)


class TestDefaultConfig:
    def test_external_providers_follow_credentials(self, no_credentials_settings, full_credentials_settings):
        bare = build_default_config(no_credentials_settings)
        full = build_default_config(full_credentials_settings)

        assert bare.providers[PROPRIETARY].enabled
        assert not bare.providers[GOOGLE_VISION].enabled
        assert not bare.providers[TINEYE].enabled
        assert full.providers[GOOGLE_VISION].enabled
        assert full.providers[TINEYE].enabled
        assert not full.providers[YANDEX].enabled
        assert not full.providers[BING_VISUAL].enabled

    def test_tineye_needs_both_keys(self, full_credentials_settings):
        half = full_credentials_settings.model_copy(update={"tineye_private_key": None})

        assert not build_default_config(half).providers[TINEYE].enabled

    def test_default_aggregation(self, full_credentials_settings):
        agg = build_default_config(full_credentials_settings).aggregation

        assert (agg.deduplication_threshold, agg.minimum_similarity, agg.max_results_per_provider, agg.timeout_ms) == (
            0.85, 70, 25, 30000,
        )

    def test_fallback_providers_declared(self, full_credentials_settings):
        assert build_default_config(full_credentials_settings).providers[PROPRIETARY].fallback_providers == [GOOGLE_VISION, TINEYE]


class TestPlanLayer:
    def test_free_is_proprietary_only(self, tables):
        config = get_config_for_user("free", tables=tables)

        assert set(config.providers) == {PROPRIETARY}
        assert config.aggregation.max_results_per_provider == 10
        assert config.aggregation.timeout_ms == 15000

    def test_basic_adds_google_vision(self, tables):
        config = get_config_for_user("basic", tables=tables)

        assert set(config.providers) == {PROPRIETARY, GOOGLE_VISION}
        assert config.aggregation.max_results_per_provider == 20

    def test_pro_has_everything(self, tables):
        config = get_config_for_user("pro", tables=tables)

        assert set(config.providers) == {PROPRIETARY, GOOGLE_VISION, TINEYE, YANDEX, BING_VISUAL}


class TestLayerPrecedence:
    def test_search_type_overrides_aggregation(self, tables):
        assert get_config_for_user("pro", "copyright_detection", tables=tables).aggregation.minimum_similarity == 80
        assert get_config_for_user("pro", "general_search", tables=tables).aggregation.minimum_similarity == 75

    def test_security_level_wins_over_search_type(self, tables):
        config = get_config_for_user("pro", "copyright_detection", "deep", tables=tables)

        assert config.aggregation.minimum_similarity == 50
        assert config.aggregation.timeout_ms == 60000
        assert config.aggregation.max_results_per_provider == 50
        # deep이 지정하지 않은 필드는 search type 값 유지
        assert config.aggregation.deduplication_threshold == 0.95

    def test_security_level_overrides_plan_timeout(self, tables):
        """plan과 무관하게 상위 레이어가 timeout_ms를 덮어씀"""
        assert get_config_for_user("free", "general_search", "deep", tables=tables).aggregation.timeout_ms == 60000

    def test_plan_limits_survive_when_not_overridden(self, tables):
        config = get_config_for_user("free", "revenge_detection", "standard", tables=tables)

        assert config.aggregation.max_results_per_provider == 10
        assert config.aggregation.timeout_ms == 15000

    def test_fast_cannot_add_tineye_to_free(self, tables):
        config = get_config_for_user("free", "general_search", "fast", tables=tables)

        assert set(config.providers) == {PROPRIETARY}
        assert config.aggregation.max_results_per_provider == 15

    def test_fast_keeps_other_plan_providers(self, tables):
        config = get_config_for_user("basic", "general_search", "fast", tables=tables)

        assert set(config.providers) == {PROPRIETARY, GOOGLE_VISION}

    def test_revenge_raises_proprietary_priority(self, tables):
        config = get_config_for_user("pro", "revenge_detection", tables=tables)

        assert config.providers[PROPRIETARY].priority == 15
        assert config.aggregation.deduplication_threshold == 0.90

    def test_returns_fresh_objects(self, tables):
        first = get_config_for_user("pro", tables=tables)
        first.aggregation.minimum_similarity = 1

        assert get_config_for_user("pro", tables=tables).aggregation.minimum_similarity == 75


class TestApplyLayer:
    def test_layer_cannot_introduce_provider(self, tables):
        base = get_config_for_user("free", tables=tables)
        layer = PolicyLayer(providers={"brand_new": ProviderConfig(enabled=True, priority=99)})

        assert "brand_new" not in apply_layer(base, layer).providers

    def test_partial_aggregation_override(self, tables):
        base = get_config_for_user("pro", tables=tables)
        merged = apply_layer(base, PolicyLayer(aggregation=AggregationOverride(timeout_ms=1234)))

        assert merged.aggregation.timeout_ms == 1234
        assert merged.aggregation.minimum_similarity == base.aggregation.minimum_similarity


class TestUnknownPolicy:
    @pytest.mark.parametrize(
        "args",
        [("enterprise",), ("free", "face_search"), ("free", "general_search", "paranoid")],
    )
    def test_unknown_values_raise(self, tables, args):
        with pytest.raises(UnknownPolicyException):
            get_config_for_user(*args, tables=tables)
