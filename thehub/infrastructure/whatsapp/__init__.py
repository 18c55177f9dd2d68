from .checkout import (
    Business,
    CheckoutComposer,
    CheckoutForm,
    DeliveryOption,
    OrderLine,
    Product,
    ProfileType,
    clean_phone,
    round_dollars,
)

__all__ = [
    "Business",
    "CheckoutComposer",
    "CheckoutForm",
    "DeliveryOption",
    "OrderLine",
    "Product",
    "ProfileType",
    "clean_phone",
    "round_dollars",
]
