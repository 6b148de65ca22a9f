import pytest

from src.core.plans import PLAN_DURATION, PLANS, get_plan, purchasable_tiers
from src.models.enums import PlanTier


def test_catalog():
    assert get_plan("free").storage_mb == 100
    assert get_plan(PlanTier.basic).storage_mb == 1024
    assert get_plan("premium").storage_mb == 10240
    assert get_plan("basic").price == 99
    assert get_plan("premium").price == 999
    assert PLAN_DURATION.days == 30


def test_every_plan_allows_files_within_its_storage():
    for spec in PLANS.values():
        assert 0 < spec.max_file_mb <= spec.storage_mb


def test_purchasable_tiers():
    assert purchasable_tiers() == [PlanTier.basic, PlanTier.premium]


def test_storage_label():
    assert get_plan("free").storage_label == "100 MB"
    assert get_plan("basic").storage_label == "1 GB"
    assert get_plan("premium").storage_label == "10 GB"


def test_unknown_tier():
    with pytest.raises(ValueError):
        get_plan("gold")
