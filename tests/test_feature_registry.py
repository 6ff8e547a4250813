from app.petcare.modules.features.registry import (
    AVAILABLE_FEATURES,
    CORE_FEATURES,
    core_feature_names,
    dependencies_satisfied,
    is_core_feature,
    list_features,
    resolve_feature,
    routes_for,
)


def test_core_features_are_fixed():
    assert core_feature_names() == {"dashboard", "pets", "settings"}
    assert all(f.is_core for f in CORE_FEATURES)
    assert not any(f.is_core for f in AVAILABLE_FEATURES)


def test_names_are_unique():
    names = [f.name for f in CORE_FEATURES + AVAILABLE_FEATURES]
    assert len(names) == len(set(names)) == 14


def test_list_features_core_first_then_category_then_name():
    ordered = list_features()
    assert [f.name for f in ordered[:3]] == ["dashboard", "pets", "settings"]
    optional = ordered[3:]
    keys = [(f.category, f.display_name.lower()) for f in optional]
    assert keys == sorted(keys)


def test_resolve_and_is_core():
    assert resolve_feature("expenses").category == "finance"
    assert resolve_feature("nope") is None
    assert is_core_feature("pets") is True
    assert is_core_feature("expenses") is False
    assert is_core_feature("nope") is False


def test_dependencies_satisfied():
    assert dependencies_satisfied("medications", {"health-tracking"}) is True
    assert dependencies_satisfied("medications", set()) is False
    # core dependencies count as satisfied even when not listed
    assert dependencies_satisfied("expenses", set()) is True
    assert dependencies_satisfied("lost-pet-alerts", {"pets"}) is False
    assert dependencies_satisfied("unknown-feature", set()) is True


def test_routes_for_follows_registry_order():
    routes = routes_for({"expenses", "dashboard"})
    assert routes[0] == "/"
    assert "/expenses/reports" in routes


def test_descriptor_to_dict_is_camel_case():
    d = resolve_feature("medications").to_dict()
    assert d["id"] == "medications"
    assert d["displayName"] == "Medications"
    assert d["isCore"] is False
    assert d["dependencies"] == ["pets", "health-tracking"]
