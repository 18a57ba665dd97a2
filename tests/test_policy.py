import pytest

from src.courier_dispatch.config import Settings
from src.courier_dispatch.services.dispatch.policy import DispatchConfig


def test_defaults():
    config = DispatchConfig()

    assert config.max_orders_per_courier == 4
    assert config.max_distance_for_grouping_km == 3.0
    assert config.max_additional_wait_minutes == 20.0
    assert config.min_orders_for_hybrid == 3
    assert config.delivery_search_radius_km == 15.0
    assert (config.distance_weight, config.workload_weight) == (0.4, 0.1)


def test_from_settings_reads_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DISPATCH_MAX_ORDERS_PER_COURIER", "6")
    monkeypatch.setenv("DISPATCH_CLUSTER_SEEDING", "random")
    monkeypatch.setenv("DISPATCH_CLUSTER_SEED", "11")

    config = DispatchConfig.from_settings(Settings())

    assert config.max_orders_per_courier == 6
    assert config.cluster_seeding == "random"
    assert config.cluster_seed == 11


def test_overrides_ignore_none_and_return_a_copy():
    base = DispatchConfig()

    updated = base.with_overrides(max_orders_per_courier=2, max_distance_for_grouping_km=None)

    assert updated.max_orders_per_courier == 2
    assert updated.max_distance_for_grouping_km == 3.0
    assert base.max_orders_per_courier == 4


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_orders_per_courier": 0},
        {"max_distance_for_grouping_km": 0.0},
        {"delivery_search_radius_km": -1.0},
        {"cluster_seeding": "kmeans++"},
        {"cluster_seeding": "random"},
        {"max_claim_retries": -1},
    ],
)
def test_invalid_configuration_is_rejected(overrides):
    with pytest.raises(ValueError):
        DispatchConfig().with_overrides(**overrides)


def test_config_is_immutable():
    config = DispatchConfig()

    with pytest.raises(AttributeError):
        config.max_orders_per_courier = 9


def test_random_seeding_needs_a_seed(monkeypatch: pytest.MonkeyPatch):
    with pytest.raises(ValueError, match="cluster_seed"):
        DispatchConfig(cluster_seeding="random", cluster_seed=None).validate()

    monkeypatch.setenv("DISPATCH_CLUSTER_SEEDING", "random")
    monkeypatch.delenv("DISPATCH_CLUSTER_SEED", raising=False)

    with pytest.raises(ValueError):
        DispatchConfig.from_settings(Settings())

    assert DispatchConfig(cluster_seeding="random", cluster_seed=0).cluster_seed == 0
