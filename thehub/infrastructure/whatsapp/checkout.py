"""
Checkout Composer - WhatsApp Order Messages
============================================

Turns a cart into the order text a customer sends to the business on
WhatsApp, plus the wa.me deep link that pre-fills it.

Two business profiles:
- standard:         priced order with totals and delivery details
- product_inquiry:  ask the business to quote prices (no totals)

USAGE:
    composer = CheckoutComposer(business, lines, form)
    composer.validate()
    print(composer.whatsapp_url())
"""

import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional
from urllib.parse import quote

from ...domain.errors import ValidationError

logger = logging.getLogger(__name__)

WHATSAPP_LINK = "https://wa.me/{phone}?text={text}"

# Characters encodeURIComponent leaves alone, so links match the web storefront
_URI_SAFE = "!~*'()"


class ProfileType(Enum):
    STANDARD = "standard"
    PRODUCT_INQUIRY = "product_inquiry"


class DeliveryOption(Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"
    ISLAND_WIDE = "island_wide"
    INQUIRY = "inquiry"
    OVERSEAS = "overseas"


@dataclass
class Business:
    """The seller, as configured in the storefront catalog."""
    name: str
    whatsapp_number: str
    profile_type: ProfileType = ProfileType.STANDARD
    has_delivery: bool = False
    delivery_area: str = ""
    delivery_cost: float = 0.0
    island_wide_delivery: str = ""  # carrier name, empty if not offered
    island_wide_delivery_cost: float = 0.0

    @property
    def is_inquiry(self) -> bool:
        return self.profile_type == ProfileType.PRODUCT_INQUIRY


@dataclass
class Product:
    name: str
    price: float = 0.0


@dataclass
class OrderLine:
    product: Product
    quantity: int = 1

    @property
    def total(self) -> float:
        return self.product.price * self.quantity


@dataclass
class CheckoutForm:
    """What the customer typed on the cart page."""
    customer_name: str
    delivery_option: DeliveryOption = DeliveryOption.PICKUP
    delivery_address: str = ""
    pickup_time: str = ""
    inquiry_message: str = ""
    parish: str = ""
    country: str = ""


def round_dollars(amount: float) -> int:
    """Round half up to whole dollars, as the storefront displays prices."""
    return int(math.floor(amount + 0.5))


def clean_phone(phone: str) -> str:
    """
    Clean and normalize phone number for wa.me links.
    Removes spaces, dashes, + signs and a leading 00.
    """
    cleaned = re.sub(r'\D', '', phone or '')
    if cleaned.startswith('00'):
        cleaned = cleaned[2:]
    return cleaned


class CheckoutComposer:
    """Builds the order summary, message and link for one checkout."""

    def __init__(self, business: Business, lines: List[OrderLine], form: CheckoutForm):
        self.business = business
        self.lines = list(lines)
        self.form = form

    # ── Amounts ────────────────────────────────────────────────────

    @property
    def subtotal(self) -> float:
        # Inquiry businesses quote prices themselves
        if self.business.is_inquiry:
            return 0.0
        return sum(line.total for line in self.lines)

    @property
    def delivery_cost(self) -> float:
        option = self.form.delivery_option
        if option == DeliveryOption.DELIVERY:
            return self.business.delivery_cost or 0.0
        if option == DeliveryOption.ISLAND_WIDE:
            return self.business.island_wide_delivery_cost or 0.0
        return 0.0

    @property
    def total(self) -> float:
        return self.subtotal + self.delivery_cost

    # ── Validation ─────────────────────────────────────────────────

    def validate(self) -> None:
        """Raise ValidationError with the message to show the customer."""
        form = self.form
        option = form.delivery_option

        if not self.lines:
            raise ValidationError("Your cart is empty")
        if not form.customer_name.strip():
            raise ValidationError("Please fill in all required fields")

        if not self.business.is_inquiry:
            if option == DeliveryOption.DELIVERY and not form.delivery_address.strip():
                raise ValidationError("Please enter a delivery address")
            if option == DeliveryOption.PICKUP and not form.pickup_time.strip():
                raise ValidationError("Please enter a preferred pickup time")
            if option == DeliveryOption.INQUIRY and not form.inquiry_message.strip():
                raise ValidationError("Please enter your inquiry message")
            if option == DeliveryOption.OVERSEAS:
                raise ValidationError("Overseas shipping is only available for product inquiries")
            return

        if option == DeliveryOption.PICKUP:
            if not form.pickup_time.strip():
                raise ValidationError("Please enter a preferred date and time")
        elif option == DeliveryOption.ISLAND_WIDE:
            if not form.parish.strip():
                raise ValidationError("Please enter a parish")
            if not form.delivery_address.strip():
                raise ValidationError("Please enter a delivery address")
        elif option == DeliveryOption.OVERSEAS:
            if not form.country.strip():
                raise ValidationError("Please enter a country")
            if form.country.strip().lower() == "jamaica":
                raise ValidationError(
                    "Please choose 'Island Wide Delivery' for deliveries within Jamaica"
                )
            if not form.delivery_address.strip():
                raise ValidationError("Please enter a delivery address")
        else:
            raise ValidationError(
                f"{self.business.name} only takes pickup, island wide or overseas inquiries"
            )

    # ── Message ────────────────────────────────────────────────────

    def build_order_summary(self) -> str:
        summary = ""
        for line in self.lines:
            if self.business.is_inquiry:
                summary += f"{line.product.name} x {line.quantity}\n"
            else:
                summary += (
                    f"{line.product.name} x {line.quantity} "
                    f"@ ${round_dollars(line.product.price)} = ${round_dollars(line.total)}\n"
                )

        if self.business.is_inquiry:
            return summary

        summary += f"\nTotal: ${round_dollars(self.total)}"
        option = self.form.delivery_option
        if option == DeliveryOption.DELIVERY and self.business.has_delivery:
            summary += f"\nDelivery Area: {self.business.delivery_area}"
            if self.business.delivery_cost:
                summary += f"\nDelivery Cost: ${round_dollars(self.business.delivery_cost)}"
        elif option == DeliveryOption.ISLAND_WIDE and self.business.island_wide_delivery:
            summary += f"\nIsland Wide Delivery via {self.business.island_wide_delivery}"
            if self.business.island_wide_delivery_cost:
                summary += f"\nDelivery Cost: ${round_dollars(self.business.island_wide_delivery_cost)}"
        return summary

    def delivery_method(self) -> str:
        option = self.form.delivery_option
        if option == DeliveryOption.ISLAND_WIDE:
            return "Island Wide Delivery"
        if self.business.is_inquiry:
            return "Overseas Shipping" if option == DeliveryOption.OVERSEAS else "Pickup"
        if option == DeliveryOption.DELIVERY:
            return "Delivery"
        if option == DeliveryOption.INQUIRY:
            return "Product Inquiry"
        return "Pickup"

    def _address_info(self) -> str:
        form = self.form
        option = form.delivery_option
        if option in (DeliveryOption.DELIVERY, DeliveryOption.ISLAND_WIDE):
            return f"Delivery Address: {form.delivery_address}"
        if option == DeliveryOption.PICKUP:
            return f"Pickup Time: {form.pickup_time}"
        if option == DeliveryOption.INQUIRY:
            return f"Inquiry Message: {form.inquiry_message}"
        return ""

    def compose_message(self) -> str:
        """The order text, after validate() has passed."""
        self.validate()
        business = self.business
        form = self.form
        summary = self.build_order_summary()

        if not business.is_inquiry:
            return (
                f"Hello {business.name}, I would like to place an order for:\n{summary}\n"
                f"Name: {form.customer_name}\n"
                f"Delivery Method: {self.delivery_method()}\n"
                f"{self._address_info()}"
            )

        opening = f"Hello {business.name}, could you please provide the price for the following {summary}"
        option = form.delivery_option
        if option == DeliveryOption.PICKUP:
            return f"{opening}\nI would like pickup on {form.pickup_time}\nName: {form.customer_name}"
        if option == DeliveryOption.ISLAND_WIDE:
            return (
                f"{opening}along with the price to have it delivered to {form.delivery_address} "
                f"in the parish of {form.parish}\nName: {form.customer_name}"
            )
        return (
            f"{opening}along with the price to have it delivered to {form.delivery_address} "
            f"in {form.country}\nName: {form.customer_name}"
        )

    def whatsapp_url(self, message: Optional[str] = None) -> str:
        """wa.me link that opens a chat with the business, message pre-filled."""
        message = self.compose_message() if message is None else message
        phone = clean_phone(self.business.whatsapp_number)
        if not phone:
            raise ValidationError(f"{self.business.name} has no WhatsApp number")
        logger.info(f"Checkout link for {self.business.name}: {len(self.lines)} item(s)")
        return WHATSAPP_LINK.format(phone=phone, text=quote(message, safe=_URI_SAFE))
