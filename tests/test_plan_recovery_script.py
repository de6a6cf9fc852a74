import pytest

from realms_sheet.optimizer import Pool, RecoveryRequest
from scripts.dump_character import _json_safe, sample_build
from scripts.plan_recovery import _pool_from_value, _request_from_dict


def test_request_from_dict_parses_pools_and_options():
    request = _request_from_dict(
        {
            "health": {"current": "20", "maximum": 40},
            "energy": [10, 20],
            "mode": "Partial",
            "hours": "6",
            "allocation": "manual",
            "health_quarters": 2,
        }
    )
    assert request.health == Pool(20, 40)
    assert request.energy == Pool(10, 20)
    assert request.mode == "partial"
    assert request.hours == 6
    assert request.allocation == "manual"
    assert request.health_quarters == 2


def test_request_defaults():
    request = _request_from_dict({"health": {"max": 40}, "energy": {"current": 0, "maximum": 20}})
    assert request.health == Pool(40, 40)
    assert request.mode == "partial"
    assert request.hours == 4
    assert request.allocation == "automatic"
    assert request.health_quarters is None


def test_request_overrides_character_base():
    base = RecoveryRequest(health=Pool(5, 30), energy=Pool(2, 12))
    request = _request_from_dict({"mode": "full"}, base)
    assert request.health == Pool(5, 30)
    assert request.mode == "full"


def test_request_without_pools_needs_character():
    with pytest.raises(ValueError):
        _request_from_dict({"mode": "full"})


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        _request_from_dict({"health": [0, 10], "energy": [0, 10], "mode": "nap"})


def test_pool_requires_maximum():
    with pytest.raises(ValueError):
        _pool_from_value({"current": 3})
    with pytest.raises(ValueError):
        _pool_from_value("full")


def test_dump_sample_build_serializes_enum_keys():
    payload = _json_safe({"abilities": sample_build().abilities})
    assert payload["abilities"][0] == 3
    assert all(type(k) is int for k in payload["abilities"])
