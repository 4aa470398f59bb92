"""Portfolio construction, allocation checks and sorting."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from coinfolio.core.models import Asset, AssetSortKey, PortfolioAsset

BALANCE_TOLERANCE = 0.1


def create_portfolio_assets(
    assets: Sequence[Asset],
    allocations: Mapping[str, float],
    total_value: float,
) -> list[PortfolioAsset]:
    """Attach allocations (percent) and derived USD values to assets.

    Assets missing from ``allocations`` get a 0% allocation.
    """
    result: list[PortfolioAsset] = []
    for asset in assets:
        allocation = allocations.get(asset.id, 0.0)
        result.append(
            PortfolioAsset(
                **asset.model_dump(exclude={"allocation", "value"}),
                allocation=allocation,
                value=(allocation / 100) * total_value,
            )
        )
    return result


def total_allocation(assets: Sequence[PortfolioAsset]) -> float:
    return sum(a.allocation for a in assets)


def is_allocation_balanced(
    assets: Sequence[PortfolioAsset], tolerance: float = BALANCE_TOLERANCE
) -> bool:
    """True if allocations sum to 100% within ``tolerance`` points.

    Imbalance is reported, never corrected.
    """
    return abs(total_allocation(assets) - 100) <= tolerance


def sort_assets(
    assets: Sequence[PortfolioAsset],
    sort_by: AssetSortKey | str = AssetSortKey.MARKET_CAP,
    descending: bool = True,
) -> list[PortfolioAsset]:
    """Return a sorted copy. Missing 24h/7d changes sort as 0."""
    key = AssetSortKey(sort_by)
    if key == AssetSortKey.NAME:
        return sorted(assets, key=lambda a: a.name.lower(), reverse=descending)
    if key == AssetSortKey.PRICE:
        return sorted(assets, key=lambda a: a.current_price, reverse=descending)
    if key == AssetSortKey.CHANGE_24H:
        return sorted(assets, key=lambda a: a.price_change_24h or 0.0, reverse=descending)
    if key == AssetSortKey.CHANGE_7D:
        return sorted(assets, key=lambda a: a.price_change_7d or 0.0, reverse=descending)
    return sorted(assets, key=lambda a: a.market_cap, reverse=descending)
