"""
Example facets used across the tests.

BANK_ACCOUNT: dict state, a ledger with an overdraft. Emits accountOverdrawn
when a transaction takes the balance below zero.

ORDER: typed state and payloads. Payment webhooks can arrive twice; the
rule remembers intent ids and ignores repeats. Emits ORDER_PAID once the
balance reaches zero.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from facetstore.core.clock import FixedClock
from facetstore.core.events import Event
from facetstore.core.processor import Processor, Transition
from facetstore.core.records import Record, new_index_record
from facetstore.facet import Facet
from facetstore.store.gateway import Gateway

BANK_ACCOUNT = "BANK_ACCOUNT"
ACCOUNT_CREATION = "ACCOUNT_CREATION"
ACCOUNT_UPDATE = "ACCOUNT_UPDATE"
TRANSACTION_ACCEPTED = "TRANSACTION_ACCEPTED"
ACCOUNT_OVERDRAWN = "accountOverdrawn"
BY_CUSTOMER_EMAIL = "byCustomerEmail"


def new_account() -> Dict[str, Any]:
    return {"balance": 0, "minimumBalance": -1000}


def account_created(state, payload):
    state["id"] = payload["id"]
    state["customerEmail"] = payload["customerEmail"]
    return Transition(state)


def account_updated(state, payload):
    state["ownerFirst"] = payload["ownerFirst"]
    state["ownerLast"] = payload["ownerLast"]
    return Transition(state)


def transaction_accepted(state, payload):
    previous = state["balance"]
    balance = previous + payload["amount"]
    if balance < state["minimumBalance"]:
        raise ValueError("insufficient funds")

    emitted = []
    if previous >= 0 and balance < 0:
        emitted.append(Event(ACCOUNT_OVERDRAWN, {"accountId": state.get("id", "")}))

    state["balance"] = balance
    return Transition(state, emitted)


def account_processor(**kwargs) -> Processor:
    return Processor(
        rules={
            ACCOUNT_CREATION: account_created,
            ACCOUNT_UPDATE: account_updated,
            TRANSACTION_ACCEPTED: transaction_accepted,
        },
        initializer=new_account,
        **kwargs,
    )


def index_by_customer_email(state: Record) -> Optional[Record]:
    email = state.item.get("customerEmail")
    if not email:
        return None
    return new_index_record(state, BY_CUSTOMER_EMAIL, email)


def account_facet(gateway: Gateway, **kwargs) -> Facet:
    return Facet(
        BANK_ACCOUNT,
        gateway,
        account_processor(),
        index_funcs=[index_by_customer_email],
        clock=FixedClock(),
        **kwargs,
    )


def transaction(amount: int, desc: str = "") -> Event:
    return Event(TRANSACTION_ACCEPTED, {"desc": desc, "amount": amount})


ORDER = "ORDER"
ORDER_CREATED = "ORDER_CREATED"
PAYMENT_COMPLETED = "PAYMENT_COMPLETED"
ORDER_PAID = "ORDER_PAID"


@dataclass
class Order:
    id: str = ""
    balance: int = 0
    status: str = "new"
    items: List[Dict[str, Any]] = field(default_factory=list)
    intent_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Order":
        return Order(**data)


@dataclass(frozen=True)
class OrderCreated:
    id: str
    items: List[Dict[str, Any]]


@dataclass(frozen=True)
class PaymentCompleted:
    intent_id: str
    invoice: str
    amount: int


def order_created(order: Order, payload: OrderCreated):
    return Transition(
        dataclasses.replace(
            order,
            id=payload.id,
            items=list(payload.items),
            balance=sum(i["cost"] for i in payload.items),
            status="created",
        )
    )


def payment_completed(order: Order, payment: PaymentCompleted):
    if not order.id:
        raise ValueError(f'Order "{payment.invoice}" doesn\'t exist.')
    # Webhooks are delivered at least once.
    if payment.intent_id in order.intent_ids:
        return Transition(order)

    order = dataclasses.replace(
        order,
        intent_ids=order.intent_ids + [payment.intent_id],
        balance=order.balance - payment.amount,
    )
    if order.balance == 0:
        order = dataclasses.replace(order, status="paid")
        return Transition(order, [Event(ORDER_PAID, {"orderId": order.id})])
    return Transition(order)


def order_facet(gateway: Gateway) -> Facet:
    processor = Processor(initializer=Order)
    processor.register(ORDER_CREATED, order_created, payload_type=OrderCreated)
    processor.register(PAYMENT_COMPLETED, payment_completed, payload_type=PaymentCompleted)
    return Facet(ORDER, gateway, processor, clock=FixedClock(), state_type=Order)
