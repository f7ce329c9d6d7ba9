import pytest

from models import BasketRule, Checkout, Item, ItemRule


@pytest.fixture
def items():
    return {
        'A': Item('A', 50),
        'B': Item('B', 30),
        'C': Item('C', 20),
    }


@pytest.fixture
def pricing_rules(items):
    return [
        ItemRule(items['A'], 2, 90),
        ItemRule(items['B'], 3, 75),
        BasketRule(200, 10),
    ]


@pytest.fixture
def checkout(pricing_rules):
    return Checkout(pricing_rules)


@pytest.fixture
def scan(checkout, items):
    """Scan a sequence of item names into the checkout."""
    def _scan(names):
        for name in names:
            checkout.scan(items[name])
        return checkout
    return _scan
