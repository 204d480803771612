"""
Backoffice AI Insights - Prompt Builder
=========================================
"""

from __future__ import annotations

import json
from typing import List, Sequence

from core.primitives.order import Order


PROMPT_TEMPLATE = """Dưới đây là danh sách đơn hàng gần đây của shop quần áo:
{orders_json}

Hãy thực hiện phân tích nhanh:
1. Tổng hợp tình trạng đơn hàng.
2. Đề xuất chiến lược bán hàng hoặc ưu đãi dựa trên các mặt hàng đang bán chạy.
3. Đưa ra 1 lời khuyên quản lý kho bãi.

Phản hồi bằng tiếng Việt, ngắn gọn, súc tích dưới dạng các gạch đầu dòng Markdown."""


def summarize_orders(orders: Sequence[Order]) -> List[dict]:
    """Only what the model needs: id, status, total and item names."""
    return [
        {
            "id": order.order_id,
            "status": order.status.value,
            "total": order.total_amount,
            "items": ", ".join(item.name for item in order.items),
        }
        for order in orders
    ]


def build_prompt(orders: Sequence[Order]) -> str:
    orders_json = json.dumps(summarize_orders(orders), ensure_ascii=False)
    return PROMPT_TEMPLATE.format(orders_json=orders_json)
