"""Pricing plan catalogue."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class PricingTier:
    """Declarative pricing tier definition."""

    identifier: str
    name: str
    price: str
    highlights: tuple[str, ...]
    cta: str
    badge: str
    featured: bool = False


class Plan(Enum):
    """Plans that can be purchased (single source of truth)."""

    STARTER_CAPSULE = PricingTier(
        identifier="starter-capsule",
        name="Starter Capsule",
        price="£249 one-time",
        highlights=(
            "1–2 hr guided audio session",
            "Up to 30 photos digitised",
            "Mini storybook (20 pages)",
            "Private vault access",
        ),
        cta="Get Starter",
        badge="Great for first-timers",
    )
    FAMILY_LEGACY_VAULT = PricingTier(
        identifier="family-legacy-vault",
        name="Family Legacy Vault",
        price="£990 one-time",
        highlights=(
            "Up to 6 hrs video + audio",
            "100+ photos & documents",
            "Hardcover life storybook (100 pages)",
            "Future messages scheduling",
        ),
        cta="Build Your Vault",
        badge="Most popular",
        featured=True,
    )
    KINRECALL_BOX = PricingTier(
        identifier="kinrecall-box",
        name="KinRecall Box",
        price="£2,900 one-time",
        highlights=(
            "Documentary film (30–60 min)",
            "Engraved keepsake box + USB",
            "Archival-quality hardcover",
            "Interactive frame with voice play",
        ),
        cta="Create an Heirloom",
        badge="Luxury heirloom",
    )


def find_plan(identifier: str) -> PricingTier | None:
    """Return the tier for a plan identifier, if known."""
    for entry in Plan:
        if entry.value.identifier == identifier:
            return entry.value
    return None


def pricing_tiers() -> list[dict[str, object]]:
    """Return tiers formatted for API responses."""
    return [
        {
            "identifier": entry.value.identifier,
            "name": entry.value.name,
            "price": entry.value.price,
            "highlights": list(entry.value.highlights),
            "cta": entry.value.cta,
            "badge": entry.value.badge,
            "featured": entry.value.featured,
        }
        for entry in Plan
    ]
