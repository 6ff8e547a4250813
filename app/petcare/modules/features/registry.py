"""
Static catalog of known features.

The registry is compiled in and independent of database state; the manager
seeds the `features` table from it and the client cache uses it to answer
"is this a core feature" without a round trip.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

CATEGORIES = ("core", "health", "finance", "social", "advanced")


@dataclass(frozen=True)
class FeatureDescriptor:
    name: str
    display_name: str
    description: str
    category: str
    is_core: bool = False
    version: str = "1.0.0"
    routes: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = field(default=())

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.name,
            "name": self.name,
            "displayName": self.display_name,
            "description": self.description,
            "category": self.category,
            "isCore": self.is_core,
            "version": self.version,
            "routes": list(self.routes),
            "dependencies": list(self.dependencies),
        }


CORE_FEATURES: tuple[FeatureDescriptor, ...] = (
    FeatureDescriptor(
        name="dashboard",
        display_name="Dashboard",
        description="Main dashboard with overview statistics",
        category="core",
        is_core=True,
        routes=("/",),
    ),
    FeatureDescriptor(
        name="pets",
        display_name="Pet Management",
        description="Manage pet profiles and basic information",
        category="core",
        is_core=True,
        routes=("/pets", "/pets/new", "/pets/[id]"),
    ),
    FeatureDescriptor(
        name="settings",
        display_name="Settings",
        description="Application settings and preferences",
        category="core",
        is_core=True,
        routes=("/settings",),
    ),
)

AVAILABLE_FEATURES: tuple[FeatureDescriptor, ...] = (
    FeatureDescriptor(
        name="health-tracking",
        display_name="Health Tracking",
        description="Track vaccinations, vet visits, and medical records",
        category="health",
        routes=("/health", "/health/vaccinations", "/health/records"),
        dependencies=("pets",),
    ),
    FeatureDescriptor(
        name="appointments",
        display_name="Appointments",
        description="Schedule and manage vet appointments",
        category="health",
        routes=("/appointments", "/appointments/new", "/appointments/[id]"),
        dependencies=("pets",),
    ),
    FeatureDescriptor(
        name="medications",
        display_name="Medications",
        description="Track medications and dosage schedules",
        category="health",
        routes=("/medications", "/medications/new"),
        dependencies=("pets", "health-tracking"),
    ),
    FeatureDescriptor(
        name="expenses",
        display_name="Expense Tracking",
        description="Track pet-related expenses and generate reports",
        category="finance",
        routes=("/expenses", "/expenses/new", "/expenses/reports"),
        dependencies=("pets",),
    ),
    FeatureDescriptor(
        name="feeding-schedule",
        display_name="Feeding Schedule",
        description="Manage feeding times and dietary requirements",
        category="health",
        routes=("/feeding", "/feeding/schedule"),
        dependencies=("pets",),
    ),
    FeatureDescriptor(
        name="activities",
        display_name="Activity Tracking",
        description="Track walks, exercise, and daily activities",
        category="health",
        routes=("/activities", "/activities/new"),
        dependencies=("pets",),
    ),
    FeatureDescriptor(
        name="documents",
        display_name="Document Management",
        description="Store and organize pet documents and certificates",
        category="advanced",
        routes=("/documents", "/documents/upload"),
        dependencies=("pets",),
    ),
    FeatureDescriptor(
        name="reminders",
        display_name="Reminders & Notifications",
        description="Set up automated reminders for important tasks",
        category="advanced",
        routes=("/reminders", "/reminders/new"),
        dependencies=("pets",),
    ),
    FeatureDescriptor(
        name="social-profile",
        display_name="Social Profiles",
        description="Share pet profiles and connect with other pet owners",
        category="social",
        routes=("/social", "/social/profile", "/social/connect"),
        dependencies=("pets",),
    ),
    FeatureDescriptor(
        name="lost-pet-alerts",
        display_name="Lost Pet Alerts",
        description="Report lost pets and help find missing animals",
        category="social",
        routes=("/lost-pets", "/lost-pets/report"),
        dependencies=("pets", "social-profile"),
    ),
    FeatureDescriptor(
        name="ai-vet",
        display_name="AI Veterinarian",
        description="AI-powered veterinary consultations and health advice",
        category="health",
        routes=("/ai-vet", "/ai-vet/consultation"),
        dependencies=("pets",),
    ),
)

_BY_NAME: dict[str, FeatureDescriptor] = {f.name: f for f in CORE_FEATURES + AVAILABLE_FEATURES}


def resolve_feature(name: str) -> FeatureDescriptor | None:
    return _BY_NAME.get(name)


def sort_key(is_core: bool, category: str, display_name: str) -> tuple[int, str, str]:
    """Core first, then category, then display name (case-insensitive)."""
    return (0 if is_core else 1, category, display_name.lower())


def list_features() -> list[FeatureDescriptor]:
    return sorted(_BY_NAME.values(), key=lambda f: sort_key(f.is_core, f.category, f.display_name))


def is_core_feature(name: str) -> bool:
    f = _BY_NAME.get(name)
    return bool(f and f.is_core)


def core_feature_names() -> frozenset[str]:
    return frozenset(f.name for f in CORE_FEATURES)


def dependencies_satisfied(name: str, enabled: Iterable[str]) -> bool:
    f = _BY_NAME.get(name)
    if f is None or not f.dependencies:
        return True
    enabled_set = set(enabled)
    return all(dep in enabled_set or is_core_feature(dep) for dep in f.dependencies)


def routes_for(names: Iterable[str]) -> list[str]:
    """Routes contributed by the given features, in registry order."""
    wanted = set(names)
    out: list[str] = []
    for f in list_features():
        if f.name in wanted:
            out.extend(f.routes)
    return out
