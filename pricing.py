"""
Price calculation for the three service pricing models.

Every function here is pure: same service and selection in, same price out.
"""
from typing import Any, Callable, Dict, Mapping

from errors import InvalidOption, InvalidSelection, MissingOption, UnsupportedPricingModel

FIXED_PACKAGE_WITH_ADDONS = "fixed_package_with_addons"
MULTI_CATEGORY_OPTIONS = "multi_category_options"
SINGLE_OPTION = "single_option"


def _fixed_package_with_addons(service, selection: Mapping[str, Any]) -> float:
    addons = selection.get("addons") or []
    if not isinstance(addons, (list, tuple)):
        raise InvalidSelection("Addons must be a list of addon names.")
    price = service.base_price
    for name in addons:
        # unknown addons are ignored
        price += service.addons.get(str(name).lower(), 0)
    return price


def _multi_category_options(service, selection: Mapping[str, Any]) -> float:
    price = 0.0
    for category, choices in service.options.items():
        choice = selection.get(category)
        if choice is None:
            continue
        if not isinstance(choice, str) or choice not in choices:
            raise InvalidOption(f'Option "{choice}" is not available for "{category}".')
        price += choices[choice]
    return price


def _single_option(service, selection: Mapping[str, Any]) -> float:
    option = selection.get("option")
    if not option:
        raise MissingOption("An option must be selected for this service.")
    if not isinstance(option, str) or option not in service.options:
        raise InvalidOption(f'Option "{option}" is not available for this service.')
    return service.options[option]


_CALCULATORS: Dict[str, Callable[[Any, Mapping[str, Any]], float]] = {
    FIXED_PACKAGE_WITH_ADDONS: _fixed_package_with_addons,
    MULTI_CATEGORY_OPTIONS: _multi_category_options,
    SINGLE_OPTION: _single_option,
}

PRICING_MODELS = tuple(_CALCULATORS)


def compute_price(service, selection: Mapping[str, Any]) -> float:
    """Unit price of ``service`` for the customer's ``selection``.

    Raises UnsupportedPricingModel for an unknown ``service.pricing_model``
    and InvalidSelection (MissingOption/InvalidOption) for a bad selection.
    """
    calculator = _CALCULATORS.get(getattr(service, "pricing_model", None))
    if calculator is None:
        raise UnsupportedPricingModel("This service's pricing model is not valid or is misconfigured.")
    if selection is None:
        selection = {}
    if not isinstance(selection, Mapping):
        raise InvalidSelection("The order detail must be an object.")
    return round(float(calculator(service, selection)), 2)
