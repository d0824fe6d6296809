"""Engine subpackage - price adjustment resolution and format adapters."""
from .models import AdjustmentRule, CatalogTable, Resolution, RuleScope, RuleSet, normalize_rules
from .resolver import resolve, resolve_detailed, select_rule
from .adapters import adjust_dollar_price, adjust_embedded_prices, adjust_price, adjust_price_list
from .propagation import adjust_niches_from_main_price, propagate

__all__ = [
    'AdjustmentRule', 'CatalogTable', 'Resolution', 'RuleScope', 'RuleSet', 'normalize_rules',
    'resolve', 'resolve_detailed', 'select_rule',
    'adjust_dollar_price', 'adjust_embedded_prices', 'adjust_price', 'adjust_price_list',
    'adjust_niches_from_main_price', 'propagate',
]
