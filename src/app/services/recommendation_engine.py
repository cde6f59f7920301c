from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from decimal import Decimal

from app.domain.models import (
    MetricRecord,
    Priority,
    ProductRecord,
    Recommendation,
    RecommendationSet,
    SaleRecord,
    Timeframe,
)
from app.domain.ports import RecommendationEnginePort

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = Decimal("5")
AOV_TARGET = Decimal("500")
LOW_MARGIN_PERCENT = Decimal("20")
HIGH_MARGIN_PERCENT = Decimal("50")
TOP_MARGIN_PERCENT = Decimal("30")
LARGE_CATALOG_SIZE = 10
MAX_FUTURE_PRODUCTS = 3

# Schlüsselwort im Produktnamen -> naheliegende Varianten
_BEST_SELLER_VARIATIONS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("bowl", ("Ceramic Plate Set", "Matching Ceramic Mugs")),
    ("scarf", ("Matching Gloves", "Cozy Blanket")),
    ("table", ("Matching Chairs", "Coffee Table")),
    ("ceramic", ("Ceramic Vase", "Decorative Ceramic Tiles")),
    ("wooden", ("Wooden Cutting Board", "Wooden Utensils")),
)

_HIGH_MARGIN_COMPLEMENTS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("bowl", "ceramic"), ("Hand-painted Ceramic Art", "Custom Ceramic Jewelry")),
    (("scarf", "textile"), ("Handwoven Wall Hanging", "Textile Art Piece")),
    (("wooden", "table"), ("Hand-carved Wooden Art", "Custom Wooden Sign")),
)

_SEASONAL: dict[str, tuple[str, ...]] = {
    "winter": ("Holiday Ornaments", "Winter Accessories", "Gift Sets"),
    "spring": ("Garden Decor", "Spring Accessories", "Fresh Flower Arrangements"),
    "summer": ("Beach Accessories", "Summer Decor", "Outdoor Items"),
    "autumn": ("Autumn Decor", "Cozy Home Items", "Harvest-themed Products"),
}


def _season(month: int) -> str:
    if month in (11, 12, 1, 2):
        return "winter"
    if month in (3, 4, 5):
        return "spring"
    if month in (6, 7, 8):
        return "summer"
    return "autumn"


def best_sellers(sales: Sequence[SaleRecord], limit: int = 2) -> list[str]:
    """Produktnamen (lowercase) sortiert nach verkaufter Stückzahl."""
    units: dict[str, Decimal] = defaultdict(Decimal)
    for sale in sales:
        if sale.product_name:
            units[sale.product_name.lower()] += sale.quantity
    ranked = sorted(units.items(), key=lambda item: item[1], reverse=True)
    return [name for name, _ in ranked[:limit]]


def future_product_ideas(
    products: Sequence[ProductRecord], sales: Sequence[SaleRecord], now: datetime
) -> list[str]:
    ideas: list[str] = []

    top_sellers = best_sellers(sales)
    if top_sellers:
        top = top_sellers[0]
        for keyword, variations in _BEST_SELLER_VARIATIONS:
            if keyword in top:
                ideas.extend(variations)
                break
        else:
            ideas.append(f"{top.capitalize()} Gift Set")

    top_margin = sorted(
        (p for p in products if p.margin_percent > TOP_MARGIN_PERCENT),
        key=lambda p: p.margin_percent,
        reverse=True,
    )
    if top_margin:
        name = top_margin[0].name.lower()
        for keywords, complements in _HIGH_MARGIN_COMPLEMENTS:
            if any(k in name for k in keywords):
                ideas.extend(complements)
                break

    ideas.extend(_SEASONAL[_season(now.month)])

    if products:
        avg_price = sum((p.price for p in products), Decimal("0")) / len(products)
        if avg_price < 100:
            ideas.append("Premium Collection (₹200-500 range)")
        elif avg_price > 200:
            ideas.append("Budget-friendly Options (₹50-150 range)")

    # Reihenfolge erhalten, Duplikate entfernen
    return list(dict.fromkeys(ideas))[:MAX_FUTURE_PRODUCTS]


class RuleBasedRecommendationEngine(RecommendationEnginePort):
    """
    Leitet Empfehlungen deterministisch aus Lagerbestand, Margen und Verkäufen ab.
    Wird genutzt, wenn keine externe Engine konfiguriert ist.
    """

    name = "rule_based"

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(UTC))

    async def compute(
        self,
        products: Sequence[ProductRecord],
        sales: Sequence[SaleRecord],
        metrics: Sequence[MetricRecord],
    ) -> RecommendationSet:
        now = self._clock()
        immediate: list[Recommendation] = []
        short_term: list[Recommendation] = []
        long_term: list[Recommendation] = []

        # Immediate (1-7 Tage)
        out_of_stock = [p for p in products if p.quantity == 0]
        low_stock = [p for p in products if 0 < p.quantity < LOW_STOCK_THRESHOLD]
        if out_of_stock:
            names = ", ".join(p.name for p in out_of_stock)
            immediate.append(
                Recommendation(
                    id="restock-empty",
                    title="Alert: Out of Stock",
                    description=f"{len(out_of_stock)} products are out of stock: {names}.",
                    priority=Priority.HIGH,
                    category="inventory",
                    timeframe=Timeframe.IMMEDIATE,
                )
            )
        if low_stock:
            immediate.append(
                Recommendation(
                    id="restock-low",
                    title="Alert: Low Stock Warning",
                    description=(
                        f"{len(low_stock)} products are running low on stock. "
                        "Consider restocking soon."
                    ),
                    category="inventory",
                    timeframe=Timeframe.IMMEDIATE,
                )
            )
        if products and not sales:
            immediate.append(
                Recommendation(
                    id="record-sales",
                    title="Start: Record Your Sales",
                    description="No sales recorded yet. Log sales to unlock revenue insights.",
                    priority=Priority.LOW,
                    category="sales",
                    timeframe=Timeframe.IMMEDIATE,
                )
            )

        # Short term (1-4 Wochen)
        if sales:
            revenue = sum((s.value for s in sales), Decimal("0"))
            aov = revenue / len(sales)
            if aov < AOV_TARGET:
                short_term.append(
                    Recommendation(
                        id="increase-aov",
                        title="Increase: Average Order Value",
                        description=(
                            f"Current AOV is ₹{aov.quantize(Decimal('1'))}. "
                            "Consider bundling products or upselling strategies."
                        ),
                        category="sales",
                        timeframe=Timeframe.SHORT_TERM,
                    )
                )
        low_margin = [p for p in products if p.price > 0 and p.margin_percent < LOW_MARGIN_PERCENT]
        if low_margin:
            short_term.append(
                Recommendation(
                    id="review-pricing",
                    title="Review: Low Margin Pricing",
                    description=(
                        f"{len(low_margin)} products earn less than {LOW_MARGIN_PERCENT}% margin. "
                        "Review material costs or raise prices."
                    ),
                    category="pricing",
                    timeframe=Timeframe.SHORT_TERM,
                )
            )

        # Long term (1-3 Monate)
        high_margin = [p for p in products if p.margin_percent > HIGH_MARGIN_PERCENT]
        if high_margin:
            long_term.append(
                Recommendation(
                    id="scale-profitable",
                    title="Scale: Profitable Products",
                    description=(
                        f"{len(high_margin)} products have excellent profit margins "
                        f"(>{HIGH_MARGIN_PERCENT}%). Consider expanding production."
                    ),
                    priority=Priority.LOW,
                    category="growth",
                    timeframe=Timeframe.LONG_TERM,
                )
            )

        ideas = future_product_ideas(products, sales, now)
        if ideas:
            long_term.append(
                Recommendation(
                    id="future-products",
                    title="Create: Future Products",
                    description=(
                        "Based on your current success, consider making: " + ", ".join(ideas)
                    ),
                    category="product_development",
                    timeframe=Timeframe.LONG_TERM,
                )
            )

        if len(products) > LARGE_CATALOG_SIZE:
            long_term.append(
                Recommendation(
                    id="improve-turnover",
                    title="Improve: Inventory Turnover",
                    description=(
                        "Your catalogue is large. Consider better demand forecasting "
                        "and inventory management."
                    ),
                    category="operations",
                    timeframe=Timeframe.LONG_TERM,
                )
            )

        logger.debug(
            "Generated %d/%d/%d recommendations",
            len(immediate),
            len(short_term),
            len(long_term),
        )
        return RecommendationSet(
            immediate=immediate,
            short_term=short_term,
            long_term=long_term,
            future_products=ideas,
            generated_at=now,
        )
