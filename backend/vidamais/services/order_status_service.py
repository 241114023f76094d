"""
Vida Mais Backend — Order Status Assistant
==========================================

What:  Answers free-text order enquiries ("where is my order 1001?").
How:   A case-insensitive regex finds the first 4-digit number after the
       keyword "order" (or "pedido") and looks it up in a read-only table.
Who:   Called by POST /api/support.

Reply rules:
    keyword + known number    → order status
    keyword + unknown number  → "could not find order"
    keyword, no number        → ask for the order number
    no keyword                → greeting with usage hint
"""

import logging
import re
import time
from typing import Mapping, Optional

from vidamais.schemas.patient import SupportReply

logger = logging.getLogger(__name__)

ORDER_KEYWORD = re.compile(r"(?:order|pedido)", re.IGNORECASE)
ORDER_NUMBER = re.compile(r"(?:order|pedido).*?(\d{4})", re.IGNORECASE | re.DOTALL)

DEFAULT_ORDERS: Mapping[int, str] = {
    1000: "delivered",
    1001: "shipped",
    1002: "processing",
    1003: "awaiting payment",
    1004: "cancelled",
}


class OrderStatusService:
    """Stateless text matcher over an in-memory order table."""

    def __init__(self, orders: Optional[Mapping[int, str]] = None):
        self._orders = dict(DEFAULT_ORDERS if orders is None else orders)

    def get_status(self, order_id: int) -> Optional[str]:
        return self._orders.get(order_id)

    def reply(self, text: str, session_id: Optional[str] = None) -> SupportReply:
        session = session_id or f"session_{int(time.time() * 1000)}"

        if not ORDER_KEYWORD.search(text):
            return SupportReply(
                session_id=session,
                reply=(
                    "Hello! How can I help? If you want to know about an order, "
                    "tell me its number (e.g. order 1001)."
                ),
            )

        match = ORDER_NUMBER.search(text)
        if not match:
            return SupportReply(
                session_id=session,
                reply=(
                    "I understood you are asking about an order, but I could not find "
                    "its number. Could you tell me the order number (e.g. order 1001)?"
                ),
            )

        order_number = match.group(1)
        status = self.get_status(int(order_number))
        logger.debug("Order enquiry for %s in session %s: %s", order_number, session, status)

        if status is None:
            return SupportReply(
                session_id=session,
                reply=(
                    f"I could not find order {order_number}. "
                    "Please check the number and try again."
                ),
            )
        return SupportReply(
            session_id=session,
            reply=f"The status of your order {order_number} is **{status}**.",
        )


order_status_service = OrderStatusService()
