"""NiceGUI cart page.

Renders the cart viewmodel DTO and forwards user interaction to the cart
runtime. Every handler awaits one store mutator; sections refresh from the
store listener, and stale prices never reach the page because the store
drops them.
"""

from __future__ import annotations

import argparse
import logging
from typing import Any, Dict

from nicegui import ui

from easycart.app.settings import ApiSettings, load_settings
from easycart.domain.entities import PaymentMode
from easycart.utils.logging import configure_root
from easycart.web_ui.runtime import CartRuntime

LOGGER = logging.getLogger(__name__)


def _install_theme() -> None:
    ui.add_head_html(
        """
<style>
.cart-card { border-radius: 12px; border: 1px solid #e5e7eb; }
.cart-muted { color: #6b7280; font-size: 12px; }
.cart-total { font-weight: 700; font-size: 18px; }
</style>
        """
    )


def _build_ui(settings: ApiSettings) -> None:
    """Register the NiceGUI pages; each client gets its own cart runtime."""

    @ui.page("/")
    def cart_page() -> None:
        runtime = CartRuntime(settings)
        coupon_input: Dict[str, Any] = {}

        def dto() -> Dict[str, Any]:
            return runtime.dto

        def refresh_all() -> None:
            render_progress.refresh()
            render_items.refresh()
            render_options.refresh()
            render_summary.refresh()

        async def run(action) -> None:
            # Sections refresh through the store listener; only notices are left.
            await action
            if runtime.notice:
                ui.notify(runtime.notice, color="warning")
                runtime.notice = ""

        async def on_payment_mode(value: str) -> None:
            await run(runtime.select_payment_mode(value))

        async def on_wallet() -> None:
            await run(runtime.toggle_wallet())

        async def on_plan(plan_id: str) -> None:
            selected = dto().get("vip_plan_id") == plan_id
            await run(runtime.select_vip_plan(None if selected else plan_id))

        async def on_apply_coupon() -> None:
            field = coupon_input.get("field")
            await run(runtime.apply_coupon(field.value if field else ""))

        async def on_remove_coupon() -> None:
            await run(runtime.remove_coupon())

        async def on_refresh() -> None:
            await run(runtime.refresh())

        @ui.refreshable
        def render_progress() -> None:
            data = dto()
            if data.get("loading") and not data.get("blocking_loader"):
                ui.linear_progress(show_value=False).props("indeterminate")
            if data.get("error"):
                with ui.row().classes("w-full items-center q-gutter-sm"):
                    ui.label(data["error"]).classes("text-negative")
                    ui.button("Retry", on_click=on_refresh).props("flat dense")

        @ui.refreshable
        def render_items() -> None:
            data = dto()
            if data.get("blocking_loader"):
                with ui.column().classes("w-full items-center q-pa-xl"):
                    ui.spinner(size="xl")
                    ui.label("Loading your cart...")
                return
            if data.get("empty"):
                with ui.column().classes("w-full items-center q-pa-xl"):
                    ui.label("Your cart is empty").classes("text-h6")
                    ui.label("Add a service to see prices here.").classes("cart-muted")
                return
            for heading, key in (("Services", "services"), ("Packages", "packages")):
                rows = data.get(key) or []
                if not rows:
                    continue
                with ui.card().classes("cart-card w-full"):
                    ui.label(f"{heading} ({len(rows)})").classes("text-subtitle1")
                    for _line_id, name, quantity, subtotal in rows:
                        with ui.row().classes("w-full justify-between"):
                            ui.label(f"{name} x{quantity}")
                            ui.label(subtotal)

        @ui.refreshable
        def render_options() -> None:
            data = dto()
            if not data.get("has_items"):
                return
            with ui.card().classes("cart-card w-full"):
                ui.label("Payment").classes("text-subtitle1")
                ui.radio(
                    {PaymentMode.FULL_AMOUNT.value: "Pay full amount", PaymentMode.VIP.value: "Pay with VIP"},
                    value=data.get("payment_mode"),
                    on_change=lambda e: on_payment_mode(e.value),
                ).props("inline")
                ui.switch(
                    f"Use wallet (deduct {data.get('wallet_deduction')})",
                    value=bool(data.get("wallet_enabled")),
                    on_change=lambda _: on_wallet(),
                )
                for plan_id, name, price, offer, pct, selected in data.get("plans") or []:
                    with ui.row().classes("w-full items-center justify-between"):
                        ui.label(name)
                        ui.label(f"{offer} ({price}, {pct}% off)").classes("cart-muted")
                        ui.button(
                            "Selected" if selected else "Choose",
                            on_click=lambda _, p=plan_id: on_plan(p),
                            color="primary" if selected else "grey-5",
                        ).props("dense")
                coupon = data.get("coupon")
                if coupon:
                    with ui.row().classes("items-center q-gutter-sm"):
                        ui.label(f"Coupon {coupon['code']} applied (-{coupon['discount']})")
                        ui.button("Remove", on_click=on_remove_coupon).props("flat dense")
                elif data.get("coupons_applicable"):
                    with ui.row().classes("items-center q-gutter-sm"):
                        coupon_input["field"] = ui.input("Coupon code")
                        ui.button("Apply", on_click=on_apply_coupon).props("dense")

        @ui.refreshable
        def render_summary() -> None:
            data = dto()
            if not data.get("has_items"):
                return
            with ui.card().classes("cart-card w-full"):
                for label, key in (
                    ("Item total", "subtotal"),
                    ("Savings", "savings"),
                    ("Convenience charge", "convenience"),
                    ("Taxes", "tax"),
                    ("Subscription fee", "subscription_fee"),
                    ("Wallet", "wallet_deduction"),
                ):
                    with ui.row().classes("w-full justify-between"):
                        ui.label(label)
                        ui.label(str(data.get(key, "")))
                with ui.row().classes("w-full justify-between"):
                    ui.label("To pay")
                    ui.label(str(data.get("payable", ""))).classes("cart-total")
                ui.label(f"{data.get('discount_pct', 0)}% saved").classes("cart-muted")

        with ui.column().classes("w-full max-w-xl q-mx-auto q-gutter-md"):
            with ui.row().classes("w-full justify-between items-center"):
                ui.label("Cart").classes("text-h5")
                ui.button(icon="refresh", on_click=on_refresh).props("flat round")
            render_progress()
            render_items()
            render_options()
            render_summary()

        runtime.cart_vm.on_update_cart = lambda _dto: refresh_all()
        ui.context.client.on_disconnect(runtime.close)
        ui.timer(0.1, lambda: run(runtime.mount()), once=True)


def _parse_args() -> argparse.Namespace:
    """Parse CLI args for the cart page."""
    parser = argparse.ArgumentParser(description="Run the cart pricing web UI.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--settings", default=None, help="Path to a JSON settings file.")
    parser.add_argument("--mock", action="store_true", help="Use the offline pricing engine.")
    parser.add_argument("--reload", action="store_true")
    parser.add_argument("--smoke-test", action="store_true")
    return parser.parse_args()


def main() -> None:
    """CLI entrypoint for the NiceGUI cart page."""
    args = _parse_args()
    settings = load_settings(args.settings)
    if args.mock:
        settings = settings.apply_dict({"use_mock": True})
    configure_root("DEBUG" if settings.debug_logging else "INFO")
    if args.smoke_test:
        runtime = CartRuntime(settings)
        print("cart-smoke-ok", runtime.store.status.value, settings.use_mock)
        return
    _install_theme()
    _build_ui(settings)
    LOGGER.info("Serving cart page on %s:%s (mock=%s)", args.host, args.port, settings.use_mock)
    ui.run(host=args.host, port=args.port, title="Cart", reload=args.reload, show=False)


if __name__ in {"__main__", "__mp_main__"}:
    main()
