# models.py
import logging
import numbers
from dataclasses import dataclass, replace
from enum import Enum
from typing import ClassVar, Dict, Iterable, List, Optional, Union

logger = logging.getLogger("checkout.models")


class CheckoutError(ValueError):
    """Base class for bad pricing input."""


class InvalidItem(CheckoutError):
    pass


class InvalidRuleConfiguration(CheckoutError):
    pass


class RuleKind(Enum):
    ITEM = "item"
    BASKET = "basket"


@dataclass(frozen=True)
class Item:
    """A product and its unit price."""
    name: str
    price: float

    def __post_init__(self):
        if not self.price >= 0:
            raise InvalidItem(f"Item '{self.name}' must have a non-negative price, got {self.price}")


@dataclass(frozen=True)
class ItemRule:
    """
    Buy `quantity` of `item` for `bundle_price`.
    Only whole bundles are discounted.
    """
    kind: ClassVar[RuleKind] = RuleKind.ITEM

    item: Item
    quantity: int
    bundle_price: float

    def __post_init__(self):
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, numbers.Integral) or self.quantity <= 0:
            raise InvalidRuleConfiguration(
                f"Bundle quantity for '{self.item.name}' must be a positive integer, got {self.quantity!r}")
        if not self.bundle_price >= 0:
            raise InvalidRuleConfiguration(
                f"Bundle price for '{self.item.name}' must be non-negative, got {self.bundle_price}")

    def discount(self, item: Item, count: int):
        if item.name != self.item.name:
            return 0
        per_bundle = (self.item.price * self.quantity) - self.bundle_price
        return (count // self.quantity) * per_bundle


@dataclass(frozen=True)
class BasketRule:
    """Take `discount_percent` off the whole basket once it reaches `min_basket_price`."""
    kind: ClassVar[RuleKind] = RuleKind.BASKET

    min_basket_price: float
    discount_percent: float

    def __post_init__(self):
        if not self.min_basket_price >= 0:
            raise InvalidRuleConfiguration(
                f"Minimum basket price must be non-negative, got {self.min_basket_price}")
        if not 0 <= self.discount_percent <= 100:
            raise InvalidRuleConfiguration(
                f"Discount percent must be between 0 and 100, got {self.discount_percent}")

    def discount(self, subtotal):
        if subtotal < self.min_basket_price:
            return 0
        return subtotal * self.discount_percent / 100


PricingRule = Union[ItemRule, BasketRule]


@dataclass(frozen=True)
class ItemGroup:
    name: str
    unit_price: float
    count: int
    representative: Item


@dataclass(frozen=True)
class PricedGroup:
    name: str
    unit_price: float
    count: int
    gross: float
    discount: float
    net: float


@dataclass(frozen=True)
class PricingResult:
    lines: List[PricedGroup]
    subtotal: float
    basket_discount: float
    total: float


def group_items(items: Iterable[Item]) -> Dict[str, ItemGroup]:
    """
    Collapse scanned items into one group per name.
    The first item scanned under a name sets the group's unit price.
    """
    groups: Dict[str, ItemGroup] = {}
    for item in items:
        group = groups.get(item.name)
        if group is None:
            groups[item.name] = ItemGroup(item.name, item.price, 1, item)
            continue
        if item.price != group.unit_price:
            logger.warning(f"Price mismatch for '{item.name}': "
                           f"{item.price} scanned, keeping {group.unit_price}")
        groups[item.name] = replace(group, count=group.count + 1)
    return groups


def price_items(items: Iterable[Item], rules: Iterable[PricingRule]) -> PricingResult:
    """
    Price a basket from scratch.
    Item rules run first, per group; basket rules then all see the same subtotal.
    """
    item_rules = []
    basket_rules = []
    for rule in rules:
        if rule.kind is RuleKind.ITEM:
            item_rules.append(rule)
        elif rule.kind is RuleKind.BASKET:
            basket_rules.append(rule)

    lines = []
    for group in group_items(items).values():
        gross = group.unit_price * group.count
        # overlapping rules stack
        discount = sum(r.discount(group.representative, group.count) for r in item_rules)
        lines.append(PricedGroup(group.name, group.unit_price, group.count,
                                 gross, discount, gross - discount))

    subtotal = sum(line.net for line in lines)
    basket_discount = sum(r.discount(subtotal) for r in basket_rules)
    return PricingResult(lines, subtotal, basket_discount, subtotal - basket_discount)


def price_basket(items: Iterable[Item], rules: Iterable[PricingRule]):
    return price_items(items, rules).total


class Checkout:
    """
    Accumulates scanned items and prices them against a fixed rule set.
    Not thread-safe; guard scan/total with a lock if shared.
    """
    def __init__(self, pricing_rules: Iterable[PricingRule]):
        self._pricing_rules = tuple(pricing_rules)
        for rule in self._pricing_rules:
            if not isinstance(rule, (ItemRule, BasketRule)):
                raise InvalidRuleConfiguration(f"Not a pricing rule: {rule!r}")
        self._items: Dict[str, List[Item]] = {}
        self.total_price: Optional[float] = None

    @property
    def pricing_rules(self):
        return self._pricing_rules

    @property
    def items(self) -> Dict[str, List[Item]]:
        return {name: list(group) for name, group in self._items.items()}

    def scan(self, item: Item):
        self._items.setdefault(item.name, []).append(item)
        logger.debug(f"Scanned {item.name} ({len(self._items[item.name])} in basket)")

    def scanned(self) -> List[Item]:
        return [item for group in self._items.values() for item in group]

    def clear(self):
        self._items = {}
        self.total_price = None

    def breakdown(self) -> PricingResult:
        """Price the basket and return every line along with the totals."""
        result = price_items(self.scanned(), self._pricing_rules)
        self.total_price = result.total
        logger.debug(f"Priced {len(result.lines)} groups: subtotal={result.subtotal}, "
                     f"basket discount={result.basket_discount}, total={result.total}")
        return result

    def total(self):
        return self.breakdown().total
