# muchshop/services/order_text.py
"""Human readable order summaries (sheet row, WhatsApp message)."""
import json
from decimal import Decimal, ROUND_HALF_UP
from urllib.parse import quote

from muchshop.domain.schemas import OrderOut, OrderType
from muchshop.utils.settings import WHATSAPP_NUMBER


def format_currency(amount) -> str:
    """Rupees with indian digit grouping, e.g. 123456.5 -> ₹1,23,456.50"""
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, frac = f"{abs(value):.2f}".split(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"{sign}₹{whole}.{frac}"



def generate_items_list(order: OrderOut) -> str:
    text = ""
    for line in order.items:
        text += f"{line.name} ×{line.qty} — {format_currency(line.line_total)}\n"

    text += f"\nSubtotal: {format_currency(order.subtotal)}\n"
    text += f"Delivery fee: {format_currency(order.delivery_fee)}\n"
    text += f"Total: {format_currency(order.total)}\n\n"

    if order.order_type == OrderType.PICKUP:
        text += f"[PICKUP] Ready by: {order.pickup_datetime.isoformat() if order.pickup_datetime else ''}\n"
    else:
        text += f"[DELIVERY]\nAddress: {order.delivery_address}\n"

    return text


def generate_items_json(order: OrderOut) -> str:
    return json.dumps([
        {
            "id": line.product_id,
            "name": line.name,
            "qty": line.qty,
            "price": str(line.price),
            "line_total": str(line.line_total),
        }
        for line in order.items
    ])


def sheet_row(order: OrderOut) -> dict:
    """Payload for the orders sheet webhook."""
    is_pickup = order.order_type == OrderType.PICKUP
    return {
        "order_id": order.id,
        "createdAt": order.created_at.isoformat() if order.created_at else None,
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "order_type": order.order_type.value,
        "pickup_datetime": order.pickup_datetime.isoformat() if is_pickup and order.pickup_datetime else "",
        "delivery_address": "" if is_pickup else (order.delivery_address or ""),
        "items_list": generate_items_list(order),
        "items_json": generate_items_json(order),
        "subtotal": str(order.subtotal),
        "delivery_fee": str(order.delivery_fee),
        "total": str(order.total),
        "status": order.status.value,
        "notes": order.notes,
        "notified": False,
    }


def checkout_whatsapp_url(order: OrderOut) -> str:
    message = f"🛒 *New Order from {order.customer_name}*\n"
    message += f"📞 Phone: {order.customer_phone}\n\n"
    message += f"{generate_items_list(order)}\n"
    message += f"💰 *Total: {format_currency(order.total)}*\n\n"

    if order.order_type == OrderType.PICKUP:
        ready_by = order.pickup_datetime.strftime("%d %b %Y, %I:%M %p") if order.pickup_datetime else ""
        message += "📦 *PICKUP*\n"
        message += f"Ready by: {ready_by}\n"
    else:
        message += "🏠 *DELIVERY*\n"
        message += f"Address: {order.delivery_address}\n"

    return f"https://wa.me/{WHATSAPP_NUMBER}?text={quote(message)}"
