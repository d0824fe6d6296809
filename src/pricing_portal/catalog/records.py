"""
Catalog record adapters - which fields of each catalog table carry prices.

Every function takes one record (a dict as loaded from storage) and returns
an adjusted copy with the same keys in the same order.
"""
from typing import Callable

from ..engine.adapters import (
    adjust_dollar_price,
    adjust_embedded_prices,
    adjust_price,
    adjust_price_list,
    adjust_text_list,
    first_price,
)
from ..engine.models import CatalogTable, RuleSet
from ..engine.price_text import count_decimals, format_dollars
from ..engine.propagation import adjust_niches_from_main_price, propagate

RecordAdapter = Callable[[dict, RuleSet], dict]


def adjust_publication(record: dict, rules: RuleSet) -> dict:
    """
    Publications carry price arrays plus an erotic-content price that is a
    multiple of the base price, so it follows the first default price.
    """
    updated = dict(record)
    base_price = first_price(record.get('default_price'))

    if 'default_price' in updated:
        updated['default_price'] = adjust_price_list(updated['default_price'], rules)
    if 'custom_price' in updated:
        updated['custom_price'] = adjust_price_list(updated['custom_price'], rules)

    erotic_price = updated.get('erotic_price')
    if erotic_price is not None and erotic_price != '':
        if base_price is None:
            if _is_dollar_text(erotic_price):
                updated['erotic_price'] = adjust_dollar_price(erotic_price, rules)
            else:
                updated['erotic_price'] = adjust_price(erotic_price, rules)
        else:
            numeric = first_price(erotic_price)
            if numeric is not None:
                propagated = propagate(numeric, base_price, rules)
                if propagated != numeric:
                    updated['erotic_price'] = _in_source_format(erotic_price, propagated)

    return updated


def _is_dollar_text(value) -> bool:
    return isinstance(value, str) and '$' in value


def _in_source_format(source, amount):
    """Render ``amount`` the way ``source`` was written ("$150", "150" or 150)."""
    if _is_dollar_text(source):
        return format_dollars(amount, count_decimals(source))
    if isinstance(source, str):
        return str(amount)
    return amount


def _dollar_field(field: str) -> RecordAdapter:
    def adapter(record: dict, rules: RuleSet) -> dict:
        updated = dict(record)
        if field in updated:
            updated[field] = adjust_dollar_price(updated[field], rules)
        return updated
    adapter.__name__ = f"adjust_{field}_field"
    return adapter


def adjust_best_seller(record: dict, rules: RuleSet) -> dict:
    """Niche prices move with the main price, not against rule ranges."""
    updated = dict(record)
    main_price = record.get('price')
    if 'price' in updated:
        updated['price'] = adjust_dollar_price(main_price, rules)
    if 'niches' in updated:
        updated['niches'] = adjust_niches_from_main_price(updated['niches'], main_price, rules)
    return updated


def adjust_listicle(record: dict, rules: RuleSet) -> dict:
    updated = dict(record)
    if 'price' in updated:
        updated['price'] = adjust_embedded_prices(updated['price'], rules)
    return updated


def _adjust_nested(list_field: str, text_fields: tuple[str, ...]) -> RecordAdapter:
    """Adjust embedded prices in text fields of each item of a nested list."""
    def adapter(record: dict, rules: RuleSet) -> dict:
        updated = dict(record)
        items = updated.get(list_field)
        if not isinstance(items, list):
            return updated

        adjusted_items = []
        for item in items:
            if not isinstance(item, dict):
                adjusted_items.append(item)
                continue
            adjusted = dict(item)
            for text_field in text_fields:
                value = adjusted.get(text_field)
                if isinstance(value, list):
                    adjusted[text_field] = adjust_text_list(value, rules)
                elif isinstance(value, str):
                    adjusted[text_field] = adjust_embedded_prices(value, rules)
            adjusted_items.append(adjusted)
        updated[list_field] = adjusted_items
        return updated
    adapter.__name__ = f"adjust_{list_field}"
    return adapter


RECORD_ADAPTERS: dict[CatalogTable, RecordAdapter] = {
    CatalogTable.PUBLICATIONS: adjust_publication,
    CatalogTable.SOCIAL_POSTS: _dollar_field('price'),
    CatalogTable.DIGITAL_TV: _dollar_field('rate'),
    CatalogTable.BROADCAST_TV: _dollar_field('rate'),
    CatalogTable.BEST_SELLERS: adjust_best_seller,
    CatalogTable.LISTICLES: adjust_listicle,
    # "Bundle 1 — $800", "Retail Value — $900"; older rows used retail_value
    CatalogTable.PR_BUNDLES: _adjust_nested('bundles', ('name', 'retailValue', 'retail_value')),
    # "Full Page $7500"
    CatalogTable.PRINT: _adjust_nested('magazines', ('details',)),
    CatalogTable.OTHERS: _adjust_nested('items', ('description',)),
}


def adjust_record(table_name, record: dict, rules) -> dict:
    """Adjust every price-bearing field of one record."""
    table = CatalogTable(table_name)
    return RECORD_ADAPTERS[table](record, RuleSet.coerce(rules))


def adjust_records(table_name, records: list[dict], rules) -> list[dict]:
    """Adjust a list of records from one catalog table."""
    table = CatalogTable(table_name)
    rule_set = RuleSet.coerce(rules)
    adapter = RECORD_ADAPTERS[table]
    return [adapter(record, rule_set) for record in records]
