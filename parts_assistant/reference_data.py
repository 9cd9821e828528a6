"""
Reference Data Module

Static seed data the assistant works against:
- Function: build_model_database() -> list[ModelInfo]
- Function: build_seed_orders() -> list[Order]
- Order lookup by order number

The part catalog itself lives in data/parts.json and is owned by CatalogStore.
"""

from datetime import datetime
from typing import Optional

from .models import Category, ModelInfo, Order, OrderItem, OrderStatus


def build_model_database() -> list[ModelInfo]:
    """
    Build the appliance model reference list.

    compatible_parts mirrors the compatibleModels lists in the bundled catalog.
    """
    fridge = Category.REFRIGERATOR
    dish = Category.DISHWASHER
    return [
        ModelInfo(model_number="WRS325SDHZ", brand="Whirlpool", type=fridge,
                  compatible_parts=["PS11752778", "PS11743427", "PS11752927", "PS11753399", "PS11757023"]),
        ModelInfo(model_number="WRS588FIHZ", brand="Whirlpool", type=fridge,
                  compatible_parts=["PS11752778", "PS11752927", "PS11753399", "PS11757023", "PS11757119"]),
        ModelInfo(model_number="WRF555SDFZ", brand="Whirlpool", type=fridge,
                  compatible_parts=["PS11752778", "PS11743427", "PS11752927", "PS11753399", "PS11757023"]),
        ModelInfo(model_number="WRX735SDHZ", brand="Whirlpool", type=fridge,
                  compatible_parts=["PS11752778", "PS11743427", "PS11752927", "PS11753399"]),
        ModelInfo(model_number="KRSC503ESS", brand="KitchenAid", type=fridge,
                  compatible_parts=["PS11752778", "PS11753399", "PS11749827", "PS11752535"]),
        ModelInfo(model_number="GSS25GSHSS", brand="GE", type=fridge,
                  compatible_parts=["PS11747867", "PS11750673", "PS11750412"]),
        ModelInfo(model_number="RF28HMEDBSR", brand="Samsung", type=fridge,
                  compatible_parts=["PS11750673", "PS11757074", "PS11752853"]),
        ModelInfo(model_number="WDT780SAEM1", brand="Whirlpool", type=dish,
                  compatible_parts=["WPW10195416", "W10712395", "W10872845", "W10653840", "W10491331"]),
        ModelInfo(model_number="WDT750SAHZ", brand="Whirlpool", type=dish,
                  compatible_parts=["WPW10195416", "W10712395", "W10872845", "W10653840", "W10491331"]),
        ModelInfo(model_number="KDTM354ESS", brand="KitchenAid", type=dish,
                  compatible_parts=["WPW10195416", "W10712395", "W10653840", "W10491331"]),
        ModelInfo(model_number="KDTE334GPS", brand="KitchenAid", type=dish,
                  compatible_parts=["WPW10195416", "W10712395", "W10491330"]),
        ModelInfo(model_number="FFCD2418US", brand="Frigidaire", type=dish,
                  compatible_parts=["W10854221"]),
    ]


def build_seed_orders() -> list[Order]:
    """Build the three demo orders used for order-status lookups."""
    return [
        Order(
            id="1",
            order_number="PS-2024-78542",
            status=OrderStatus.SHIPPED,
            items=[
                OrderItem(part_number="PS11752778", name="Ice Maker Assembly", quantity=1, price=89.95),
                OrderItem(part_number="PS11743427", name="Refrigerator Water Filter", quantity=2, price=49.99),
            ],
            shipping_address="123 Main St, Anytown, USA 12345",
            tracking_number="1Z999AA10123456784",
            estimated_delivery="February 4, 2026",
            created_at=datetime(2026, 1, 28),
        ),
        Order(
            id="2",
            order_number="PS-2024-78123",
            status=OrderStatus.DELIVERED,
            items=[
                OrderItem(part_number="W10712395", name="Dishwasher Drain Pump", quantity=1, price=67.50),
            ],
            shipping_address="456 Oak Ave, Springfield, USA 67890",
            tracking_number="1Z999AA10123456785",
            estimated_delivery="January 25, 2026",
            created_at=datetime(2026, 1, 20),
        ),
        Order(
            id="3",
            order_number="PS-2024-79001",
            status=OrderStatus.PROCESSING,
            items=[
                OrderItem(part_number="WPW10195416", name="Dishwasher Pump and Motor Assembly", quantity=1, price=189.99),
            ],
            shipping_address="789 Pine Rd, Lakeville, USA 11223",
            created_at=datetime(2026, 1, 31),
        ),
    ]


def category_for_model(models: list[ModelInfo], model_number: str) -> Optional[Category]:
    """Appliance type of a known model (case-insensitive exact match), else None."""
    wanted = model_number.strip().upper()
    for info in models:
        if info.model_number.upper() == wanted:
            return info.type
    return None


def find_order(orders: list[Order], order_number: str) -> Optional[Order]:
    """Case-insensitive exact lookup by order number."""
    wanted = order_number.strip().lower()
    for order in orders:
        if order.order_number.lower() == wanted:
            return order
    return None
