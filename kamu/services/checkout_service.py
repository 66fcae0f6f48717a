"""
Checkout orchestration: cart -> order -> payment -> cleared cart.

One ``checkout()`` call is one attempt. Steps run strictly in order and the
cart is cleared only after the order exists and (for card payments) the
payment has been captured, so any failure leaves the cart intact for a retry.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Protocol

from kamu.core import sentry_integration
from kamu.core.cart_math import calc_items_total, calc_total_price, to_money
from kamu.core.exceptions import KamuException, OrderCreationError, PaymentError, ValidationError
from kamu.core.metrics import MetricsRegistry
from kamu.core.metrics import metrics as default_metrics
from kamu.domain.cart import CartLine
from kamu.domain.entities.card import CardDetails
from kamu.domain.entities.order import Order, OrderItem
from kamu.domain.entities.payment import PaymentResult
from kamu.domain.order import OrderStatus, PaymentMethod
from kamu.services.cart_service import CartService

logger = logging.getLogger(__name__)


class CheckoutState(str, Enum):
    VALIDATING = "validating"
    CREATING_ORDER = "creating_order"
    PROCESSING_PAYMENT = "processing_payment"
    CLEARING_CART = "clearing_cart"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (CheckoutState.SUCCEEDED, CheckoutState.FAILED)


class OrderCreator(Protocol):
    async def create_order(
        self,
        customer_id: str,
        restaurant_id: str,
        items: list[OrderItem],
        total_bill: Decimal,
        delivery_fee: Decimal,
        status: str = ...,
    ) -> Order: ...


class PaymentProcessor(Protocol):
    async def process_payment(
        self, amount: Decimal, payment_method_id: str, order_id: str
    ) -> PaymentResult: ...


class SavedCardProvider(Protocol):
    async def list_saved_cards(self) -> list[CardDetails]: ...


class SessionProvider(Protocol):
    customer_id: str | None

    @property
    def is_valid(self) -> bool: ...


@dataclass
class CheckoutRequest:
    payment_method: str | None
    restaurant_id: str | None = None
    card_id: str | None = None


@dataclass
class CheckoutContext:
    """Per-attempt data frozen at confirmation time."""

    customer_id: str
    restaurant_id: str
    lines: tuple[CartLine, ...]
    payment_method: str
    card_id: str | None
    delivery_fee: Decimal
    items_total: Decimal
    total_bill: Decimal

    def order_items(self) -> list[OrderItem]:
        return [
            OrderItem(
                food_item_id=line.item_id,
                quantity=line.quantity,
                price=line.unit_price,
                name=line.name,
            )
            for line in self.lines
        ]


@dataclass
class CheckoutOutcome:
    state: CheckoutState
    order_id: str | None = None
    transaction_id: str | None = None
    error: str | None = None
    error_key: str | None = None
    total_bill: Decimal | None = None
    payment_method: str | None = None
    transitions: list[CheckoutState] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state is CheckoutState.SUCCEEDED


class CheckoutOrchestrator:
    """Runs checkout attempts for one session's cart."""

    BUSY_MESSAGE = "Your order is already being placed."

    def __init__(
        self,
        cart: CartService,
        order_client: OrderCreator,
        payment_client: PaymentProcessor,
        card_provider: SavedCardProvider | None,
        session: SessionProvider | None,
        *,
        delivery_fee: Decimal | str | float = Decimal("0"),
        metrics: MetricsRegistry | None = None,
    ):
        self.cart = cart
        self.order_client = order_client
        self.payment_client = payment_client
        self.card_provider = card_provider
        self.session = session
        self.delivery_fee = to_money(delivery_fee)
        if self.delivery_fee < 0:
            raise ValueError("delivery_fee must not be negative")
        self._metrics = metrics or default_metrics
        self._state: CheckoutState | None = None
        self.last_outcome: CheckoutOutcome | None = None

    @property
    def state(self) -> CheckoutState | None:
        return self._state

    @property
    def is_busy(self) -> bool:
        """True while an attempt is in flight; the confirm action stays disabled."""
        return self._state is not None and not self._state.is_terminal

    def _enter(self, state: CheckoutState, transitions: list[CheckoutState]) -> None:
        self._state = state
        transitions.append(state)
        logger.debug("Checkout -> %s", state.value)
        sentry_integration.add_breadcrumb(f"checkout {state.value}", category="checkout")

    async def checkout(self, request: CheckoutRequest) -> CheckoutOutcome:
        method = PaymentMethod.normalize(request.payment_method)
        if self.is_busy:
            logger.info("Checkout ignored: attempt already in flight (%s)", self._state.value)
            return CheckoutOutcome(
                state=CheckoutState.FAILED,
                error=self.BUSY_MESSAGE,
                error_key="busy",
                payment_method=method,
            )

        started = time.monotonic()
        transitions: list[CheckoutState] = []
        try:
            outcome = await self._run(request, transitions)
        except BaseException:
            # Never leave the confirm action locked behind a crashed attempt
            self._state = CheckoutState.FAILED
            raise
        finally:
            self._metrics.checkout_duration.observe(time.monotonic() - started, method=method or "")

        self._metrics.checkout_attempts_total.inc(outcome=outcome.state.value, method=method or "")
        self.last_outcome = outcome
        return outcome

    async def retry(self, request: CheckoutRequest) -> CheckoutOutcome:
        """Start a fresh attempt after a failure; nothing is resumed."""
        return await self.checkout(request)

    async def _run(self, request: CheckoutRequest, transitions: list[CheckoutState]) -> CheckoutOutcome:
        self._enter(CheckoutState.VALIDATING, transitions)
        try:
            context = await self._validate(request)
        except ValidationError as exc:
            logger.info("Checkout validation failed: %s", exc.message)
            return self._fail(transitions, "validation", exc.message, method=request.payment_method)

        self._enter(CheckoutState.CREATING_ORDER, transitions)
        try:
            order = await self.order_client.create_order(
                context.customer_id,
                context.restaurant_id,
                context.order_items(),
                context.total_bill,
                context.delivery_fee,
                OrderStatus.PENDING,
            )
        except OrderCreationError as exc:
            logger.warning("Order creation failed: %s", exc.message)
            return self._fail(transitions, "order_creation", exc.message, context=context)
        except Exception as exc:
            logger.exception("Unexpected error while creating order")
            sentry_integration.capture_exception(exc, checkout={"step": "create_order"})
            return self._fail(
                transitions,
                "order_creation",
                "We could not place your order. Please try again.",
                context=context,
            )

        if not order.id:
            logger.warning("Order service returned an order without id")
            return self._fail(
                transitions,
                "order_creation",
                "Order service did not return an order id",
                context=context,
            )
        order_id = str(order.id)
        transaction_id = None

        if PaymentMethod.requires_capture(context.payment_method):
            self._enter(CheckoutState.PROCESSING_PAYMENT, transitions)
            try:
                result = await self.payment_client.process_payment(
                    context.total_bill, context.card_id, order_id
                )
            except PaymentError as exc:
                logger.warning("Payment service failure for order %s: %s", order_id, exc.message)
                sentry_integration.capture_exception(exc, checkout={"order_id": order_id})
                return self._fail(transitions, "payment", exc.message, context=context, order_id=order_id)
            except Exception as exc:
                logger.exception("Unexpected error while processing payment for order %s", order_id)
                sentry_integration.capture_exception(exc, checkout={"order_id": order_id})
                return self._fail(
                    transitions,
                    "payment",
                    "Payment could not be processed. Please try again.",
                    context=context,
                    order_id=order_id,
                )

            if not result.success:
                # Order stays PENDING server-side; reconciliation is the backend's job
                logger.info("Payment declined for order %s: %s", order_id, result.error)
                return self._fail(
                    transitions,
                    "payment",
                    result.error or "Payment failed",
                    context=context,
                    order_id=order_id,
                )
            transaction_id = result.transaction_id

        self._enter(CheckoutState.CLEARING_CART, transitions)
        self.cart.remove_ordered(context.lines)

        self._enter(CheckoutState.SUCCEEDED, transitions)
        logger.info(
            "Checkout succeeded: order %s, %s %s",
            order_id,
            context.payment_method,
            context.total_bill,
        )
        return CheckoutOutcome(
            state=CheckoutState.SUCCEEDED,
            order_id=order_id,
            transaction_id=transaction_id,
            total_bill=context.total_bill,
            payment_method=context.payment_method,
            transitions=list(transitions),
        )

    def _fail(
        self,
        transitions: list[CheckoutState],
        error_key: str,
        message: str,
        *,
        context: CheckoutContext | None = None,
        method: str | None = None,
        order_id: str | None = None,
    ) -> CheckoutOutcome:
        self._enter(CheckoutState.FAILED, transitions)
        return CheckoutOutcome(
            state=CheckoutState.FAILED,
            order_id=order_id,
            error=message,
            error_key=error_key,
            total_bill=context.total_bill if context else None,
            payment_method=context.payment_method if context else PaymentMethod.normalize(method),
            transitions=list(transitions),
        )

    async def _validate(self, request: CheckoutRequest) -> CheckoutContext:
        session = self.session
        customer_id = getattr(session, "customer_id", None) if session else None
        if session is None or not session.is_valid or not customer_id:
            raise ValidationError("Please sign in to place an order.")

        snapshot = self.cart.snapshot()
        if snapshot.is_empty:
            raise ValidationError("Your cart is empty.")

        if request.restaurant_id and str(request.restaurant_id) != snapshot.restaurant_id:
            raise ValidationError(
                "Your cart contains items from another restaurant. Replace the cart to continue."
            )

        method = PaymentMethod.normalize(request.payment_method)
        if not method:
            raise ValidationError("Please select a payment method.")
        if method not in PaymentMethod.all():
            raise ValidationError(f"Unsupported payment method: {request.payment_method}")

        card_id = None
        if method == PaymentMethod.CARD:
            card_id = await self._resolve_card(request.card_id)

        items_total = calc_items_total(snapshot.lines)
        return CheckoutContext(
            customer_id=str(customer_id),
            restaurant_id=snapshot.restaurant_id,
            lines=snapshot.lines,
            payment_method=method,
            card_id=card_id,
            delivery_fee=self.delivery_fee,
            items_total=items_total,
            total_bill=calc_total_price(items_total, self.delivery_fee),
        )

    async def _resolve_card(self, card_id: str | None) -> str:
        if self.card_provider is None:
            if card_id:
                return str(card_id)
            raise ValidationError("Please select a card.")

        try:
            cards = await self.card_provider.list_saved_cards()
        except KamuException as exc:
            raise ValidationError(f"Could not load saved cards: {exc.message}") from exc
        except Exception as exc:
            logger.exception("Unexpected error while loading saved cards")
            sentry_integration.capture_exception(exc, checkout={"step": "list_saved_cards"})
            raise ValidationError("Could not load saved cards. Please try again.") from exc

        if card_id:
            card = next((c for c in cards if c.id == str(card_id)), None)
            if card is None:
                raise ValidationError("The selected card is no longer available.")
        elif len(cards) == 1:
            card = cards[0]
            logger.debug("Auto-selected the only saved card %s", card.label)
        elif not cards:
            raise ValidationError("Please add a card to pay by card.")
        else:
            raise ValidationError("Please select a card.")

        if card.is_expired():
            raise ValidationError(f"Card {card.label} has expired.")
        return card.id

