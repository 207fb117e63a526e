"""Order pricing and snapshot building.

Turns a validated basket plus the catalog rows it references into OrderItem /
OrderItemOption rows with totals computed and product/option fields copied.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from orderease.core.errors import InvalidOption, NotFound, PriceBelowZero
from orderease.core.ids import new_id
from orderease.models.order import OrderItem, OrderItemOption
from orderease.models.product import Product, ProductOption, ProductOptionCategory
from orderease.schemas.order import OrderItemIn

CENT = Decimal("0.01")


def money(v) -> Decimal:
    if not isinstance(v, Decimal):
        v = Decimal(str(v))
    return v.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class CatalogSnapshot:
    """Catalog rows referenced by a basket, read inside the ordering transaction."""

    products: dict[int, Product] = field(default_factory=dict)
    categories: dict[int, ProductOptionCategory] = field(default_factory=dict)
    options: dict[int, ProductOption] = field(default_factory=dict)


def item_total(unit_price: Decimal, adjustments: list[Decimal], quantity: int) -> Decimal:
    total = money(money(unit_price) + sum((money(a) for a in adjustments), Decimal("0")))
    total = money(total * quantity)
    if total < 0:
        raise PriceBelowZero()
    return total


def build_items(order_id: int, basket: list[OrderItemIn], snapshot: CatalogSnapshot) -> tuple[list[OrderItem], Decimal]:
    """Build item rows for ``order_id``. Returns the rows and the order total."""
    items: list[OrderItem] = []
    order_total = Decimal("0.00")

    for line in basket:
        product = snapshot.products.get(line.product_id)
        if product is None:
            raise NotFound(f"product {line.product_id} not found")

        option_rows: list[OrderItemOption] = []
        adjustments: list[Decimal] = []
        for ref in line.options:
            option = snapshot.options.get(ref.option_id)
            category = snapshot.categories.get(ref.category_id)
            if option is None or category is None:
                raise InvalidOption(f"option {ref.option_id} not found")
            if option.category_id != category.id or category.product_id != product.id:
                raise InvalidOption(f"option {ref.option_id} does not belong to product {product.id}")

            adjustments.append(option.price_adjustment)
            option_rows.append(
                OrderItemOption(
                    id=new_id(),
                    category_id=category.id,
                    option_id=option.id,
                    option_name=option.name,
                    category_name=category.name,
                    price_adjustment=money(option.price_adjustment),
                )
            )

        total = item_total(product.price, adjustments, line.quantity)
        item = OrderItem(
            id=new_id(),
            order_id=order_id,
            product_id=product.id,
            quantity=line.quantity,
            price=money(product.price),
            total_price=total,
            product_name=product.name,
            product_description=product.description,
            product_image_url=product.image_url,
        )
        item.options = option_rows
        items.append(item)
        order_total += total

    return items, money(order_total)
