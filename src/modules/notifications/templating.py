"""WhatsApp message templates.

Templates are parsed once into a small tree and evaluated against a
``MessageContext``::

    Olá {{customer_name}}, seu pedido {{order_number}} está pronto!
    {{#if_delivery}}Endereço: {{delivery_address}}{{else}}Retire em {{store_address}}{{/if_delivery}}

Node types:

- ``Literal``: text copied as is;
- ``Variable``: one of ``VARIABLES``;
- ``Conditional``: ``{{#if_delivery}}`` or ``{{#if_pickup}}`` with an
  optional ``{{else}}`` branch.  Blocks do not nest.

Anything else between ``{{`` and ``}}`` is a ``TemplateError`` at parse
time, so a stored template either renders completely or is rejected when
the store saves it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

from modules.notifications.exceptions import TemplateError
from modules.orders.constants import DeliveryType, PaymentMethod

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.stores.models import Store

VARIABLES = frozenset(
    {
        "customer_name",
        "order_number",
        "total",
        "subtotal",
        "delivery_fee",
        "delivery_type",
        "store_name",
        "store_phone",
        "store_address",
        "items",
        "delivery_address",
        "payment_method",
        "change_amount",
        "notes",
    }
)

CONDITIONS = frozenset({"delivery", "pickup"})

NO_ADDRESS = "Endereço não informado"

_TAG = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)


# ---------------------------------------------------------------------------
# Tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class Conditional:
    condition: str
    then: Tuple[Union[Literal, Variable], ...]
    otherwise: Tuple[Union[Literal, Variable], ...] = ()


Node = Union[Literal, Variable, Conditional]


@dataclass(frozen=True)
class Template:
    nodes: Tuple[Node, ...]

    def render(self, context: MessageContext) -> str:
        return "".join(_render_node(node, context) for node in self.nodes)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def parse_template(source: str) -> Template:
    """Parse *source* or raise ``TemplateError``."""
    nodes: List[Node] = []
    block: Optional[_OpenBlock] = None
    cursor = 0

    for match in _TAG.finditer(source):
        _append_text(source[cursor : match.start()], cursor, nodes, block)
        cursor = match.end()
        tag = match.group(1).strip()
        position = match.start()

        if tag.startswith("#"):
            condition = _condition_name(tag[1:], position)
            if block is not None:
                raise TemplateError("Blocos condicionais não podem ser aninhados", position)
            block = _OpenBlock(condition=condition)
        elif tag == "else":
            if block is None:
                raise TemplateError("{{else}} fora de um bloco condicional", position)
            if block.in_else:
                raise TemplateError("{{else}} repetido no mesmo bloco", position)
            block.in_else = True
        elif tag.startswith("/"):
            condition = _condition_name(tag[1:], position)
            if block is None or block.condition != condition:
                raise TemplateError(f"{{{{{tag}}}}} sem abertura correspondente", position)
            nodes.append(block.close())
            block = None
        elif tag in VARIABLES:
            _target(nodes, block).append(Variable(tag))
        else:
            raise TemplateError(f"Variável desconhecida: {tag or '(vazia)'}", position)

    _append_text(source[cursor:], cursor, nodes, block)
    if block is not None:
        raise TemplateError(f"Bloco if_{block.condition} não foi fechado")
    return Template(tuple(nodes))


@dataclass
class _OpenBlock:
    condition: str
    then: List[Union[Literal, Variable]] = field(default_factory=list)
    otherwise: List[Union[Literal, Variable]] = field(default_factory=list)
    in_else: bool = False

    def close(self) -> Conditional:
        return Conditional(self.condition, tuple(self.then), tuple(self.otherwise))


def _condition_name(tag: str, position: int) -> str:
    if not tag.startswith("if_") or tag[3:] not in CONDITIONS:
        raise TemplateError(f"Bloco desconhecido: {tag}", position)
    return tag[3:]


def _target(nodes: List[Node], block: Optional[_OpenBlock]) -> list:
    if block is None:
        return nodes
    return block.otherwise if block.in_else else block.then


def _append_text(
    text: str, offset: int, nodes: List[Node], block: Optional[_OpenBlock]
) -> None:
    if not text:
        return
    unterminated = text.find("{{")
    if unterminated != -1:
        raise TemplateError("Marcador {{ sem fechamento", offset + unterminated)
    _target(nodes, block).append(Literal(text))


# ---------------------------------------------------------------------------
# Interpreter
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MessageContext:
    """Pre-formatted values for every template variable."""

    customer_name: str
    order_number: str
    total: str
    subtotal: str
    delivery_fee: str
    delivery_type: str
    store_name: str
    store_phone: str
    store_address: str
    items: str
    delivery_address: str
    payment_method: str
    change_amount: str
    notes: str
    is_delivery: bool

    def value(self, name: str) -> str:
        return getattr(self, name)

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _render_node(node: Node, context: MessageContext) -> str:
    if isinstance(node, Literal):
        return node.text
    if isinstance(node, Variable):
        return context.value(node.name)
    active = context.is_delivery if node.condition == "delivery" else not context.is_delivery
    branch = node.then if active else node.otherwise
    return "".join(_render_node(child, context) for child in branch)


def format_money(value: Optional[Decimal]) -> str:
    return f"R$ {Decimal(value or 0):.2f}"


def format_items(order: Order) -> str:
    blocks = []
    for item in order.items.all():
        text = f"• {item.quantity}x {item.product_name}"
        flavors = [flavor.name for flavor in item.flavors.all()]
        if flavors:
            text += f"\n  Sabores: {', '.join(flavors)}"
        addons = [addon.name for addon in item.addons.all()]
        if addons:
            text += f"\n  Adicionais: {', '.join(addons)}"
        if item.observation:
            text += f"\n  Obs: {item.observation}"
        blocks.append(text)
    return "\n\n".join(blocks)


def format_delivery_address(order: Order, store: Store) -> str:
    if order.delivery_type != DeliveryType.DELIVERY:
        return store.pickup_address or store.address or NO_ADDRESS

    address = f"{order.delivery_street}, {order.delivery_number}"
    if order.delivery_complement:
        address += f" - {order.delivery_complement}"
    address += f"\n{order.delivery_neighborhood}"
    if order.delivery_city:
        address += f" - {order.delivery_city}"
    return address


def build_message_context(order: Order, store: Store) -> MessageContext:
    is_cash = order.payment_method == PaymentMethod.CASH
    change_amount = (
        format_money(order.change_amount) if is_cash and order.change_amount else ""
    )
    try:
        payment_label = PaymentMethod(order.payment_method).label
    except ValueError:
        payment_label = order.payment_method
    try:
        delivery_label = DeliveryType(order.delivery_type).label
    except ValueError:
        delivery_label = order.delivery_type

    return MessageContext(
        customer_name=order.customer_name,
        order_number=order.order_number,
        total=format_money(order.total),
        subtotal=format_money(order.subtotal),
        delivery_fee=format_money(order.delivery_fee),
        delivery_type=delivery_label,
        store_name=store.name,
        store_phone=store.phone,
        store_address=store.address,
        items=format_items(order),
        delivery_address=format_delivery_address(order, store),
        payment_method=payment_label,
        change_amount=change_amount,
        notes=order.notes,
        is_delivery=order.delivery_type == DeliveryType.DELIVERY,
    )
