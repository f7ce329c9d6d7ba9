# utils.py
import os
import json
import logging
from dataclasses import asdict
import pandas as pd
from logger import configure_logger
from models import BasketRule, CheckoutError, Checkout, Item, ItemRule

logger = logging.getLogger("checkout.utils")

DEFAULT_CONFIG = {
    "catalog": {
        "items_file": "items.csv",
        "rules_file": "rules.csv"
    },
    "logging": {
        "level": "INFO",
        "file": None
    }
}

RULE_COLUMNS = ["kind", "item", "quantity", "bundle_price",
                "min_basket_price", "discount_percent"]


class CatalogError(CheckoutError):
    """Malformed item or rule file content."""


def load_config(config_path="config.json"):
    """Load configuration from a JSON file, falling back to defaults."""
    config = {section: dict(values) for section, values in DEFAULT_CONFIG.items()}
    if not os.path.exists(config_path):
        logger.info(f"No configuration at {config_path}, using defaults")
        return config

    try:
        with open(config_path, 'r') as f:
            loaded = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading config: {e}")
        return config

    if not isinstance(loaded, dict):
        logger.error(f"Error loading config: {config_path} does not hold a JSON object")
        return config

    for section, values in loaded.items():
        if isinstance(values, dict):
            config[section] = {**config.get(section, {}), **values}
        else:
            config[section] = values
    logger.info(f"Configuration loaded from {config_path}")
    return config


def import_items_csv(file_path: str):
    """
    Read CSV with columns name,price into a catalog keyed by item name.
    """
    df = pd.read_csv(file_path, dtype={"name": str})
    missing = {"name", "price"} - set(df.columns)
    if missing:
        raise CatalogError(f"{file_path} is missing columns: {', '.join(sorted(missing))}")

    catalog = {}
    for _, row in df.iterrows():
        name = str(row['name'])
        if name in catalog:
            raise CatalogError(f"Duplicate item '{name}' in {file_path}")
        catalog[name] = Item(name, float(row['price']))
    logger.info(f"Imported {len(catalog)} items from {file_path}")
    return catalog


def _rule_from_row(row, catalog):
    kind = str(row['kind']).strip().lower()
    if kind == "item":
        name = str(row['item'])
        if name not in catalog:
            raise CatalogError(f"Rule references unknown item '{name}'")
        if pd.isna(row['quantity']) or pd.isna(row['bundle_price']):
            raise CatalogError(f"Item rule for '{name}' needs quantity and bundle_price")
        if not float(row['quantity']).is_integer():
            raise CatalogError(f"Item rule for '{name}' has a fractional quantity: {row['quantity']}")
        return ItemRule(catalog[name], int(row['quantity']), float(row['bundle_price']))
    if kind == "basket":
        if pd.isna(row['min_basket_price']) or pd.isna(row['discount_percent']):
            raise CatalogError("Basket rule needs min_basket_price and discount_percent")
        return BasketRule(float(row['min_basket_price']), float(row['discount_percent']))
    raise CatalogError(f"Unknown rule kind '{row['kind']}'")


def import_rules_csv(file_path: str, catalog: dict):
    """
    Read CSV with columns kind,item,quantity,bundle_price,min_basket_price,discount_percent.
    Rows keep their file order. Cells a rule kind does not use stay empty.
    """
    df = pd.read_csv(file_path, dtype={"kind": str, "item": str})
    df = df.reindex(columns=RULE_COLUMNS)
    rules = [_rule_from_row(row, catalog) for _, row in df.iterrows()]
    logger.info(f"Imported {len(rules)} pricing rules from {file_path}")
    return rules


def load_pricing(config):
    """Build the item catalog and rule set named in the config's catalog section."""
    catalog_config = {**DEFAULT_CONFIG["catalog"], **config.get("catalog", {})}
    catalog = import_items_csv(catalog_config["items_file"])
    rules = import_rules_csv(catalog_config["rules_file"], catalog)
    return catalog, rules


def init_pricing(config_path="config.json"):
    """
    Load configuration, apply its logging settings and read the pricing files.
    Returns (config, catalog, rules).
    """
    config = load_config(config_path)
    configure_logger(config)
    catalog, rules = load_pricing(config)
    return config, catalog, rules


def generate_price_breakdown(checkout: Checkout):
    """Price a checkout and tabulate its item groups."""
    result = checkout.breakdown()
    if not result.lines:
        return None, "No items scanned."

    df = pd.DataFrame([asdict(line) for line in result.lines])

    summary = {
        'num_items': int(df['count'].sum()),
        'num_groups': len(df),
        'subtotal': result.subtotal,
        'basket_discount': result.basket_discount,
        'total': result.total
    }

    return df, summary
