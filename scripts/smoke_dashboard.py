"""
Manual smoke runner for the in-memory back-office dashboard.

Usage:
    python scripts/smoke_dashboard.py
    python scripts/smoke_dashboard.py --seed 7 --order ORD-003
    python scripts/smoke_dashboard.py --insights      # needs GEMINI_API_KEY
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from dataclasses import replace

from adapters.dashboard import build_dashboard
from core.config.settings import load_settings
from core.primitives.order import OrderStatus


def _print_case(label: str, payload) -> None:
    print(f"\n[{label}]")
    print(json.dumps(payload, indent=2, sort_keys=True, default=str, ensure_ascii=False))


def run(seed: int, order_id: str, with_insights: bool) -> None:
    settings = load_settings()
    dashboard = build_dashboard(replace(settings, seed=seed))

    events = []
    dashboard.subscribe("*", lambda event: events.append(event.event_type))

    _print_case("inventory summary", dashboard.inventory_summary().__dict__)
    _print_case("pending orders", dashboard.pending_order_count())

    order = dashboard.get_order(order_id)
    _print_case(f"{order_id} before", order.to_dict() if order else None)

    result = dashboard.set_status(order_id, OrderStatus.PROCESSING)
    _print_case("set_status -> Processing", {
        "status": result.outcome.status.value,
        "reason": result.reason.to_dict() if result.reason else None,
        "sale_movements": [
            m.to_dict() for m in result.execution_result.sale_movements
        ] if result.is_accepted else [],
    })

    again = dashboard.set_status(order_id, OrderStatus.PROCESSING)
    _print_case("set_status -> Processing again", {
        "sale_movements": len(again.execution_result.sale_movements) if again.is_accepted else None,
    })

    batch = dashboard.apply_import_batch(
        [{"productId": "PROD-0001", "quantity": 5}, {"productId": "PROD-9999", "quantity": 1}],
        note="smoke batch",
    )
    _print_case("import batch with unknown product", {
        "status": batch.outcome.status.value,
        "reason": batch.reason.to_dict() if batch.reason else None,
    })

    _print_case("latest movements", [m.to_dict() for m in dashboard.get_movements()[:5]])
    _print_case("invoice", dashboard.build_invoice(order_id).to_dict())
    _print_case("events heard", events)

    if with_insights:
        insight = asyncio.run(dashboard.refresh_insights(force=True))
        _print_case("insights", {
            "ok": insight.ok,
            "text": insight.text,
            "error_kind": insight.error_kind.value if insight.error_kind else None,
        })


def main() -> None:
    parser = argparse.ArgumentParser(description="Back-office dashboard smoke runner")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--order", default="ORD-001")
    parser.add_argument("--insights", action="store_true")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run(args.seed, args.order, args.insights)


if __name__ == "__main__":
    main()
