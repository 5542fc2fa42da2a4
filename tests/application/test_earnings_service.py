"""Tests for seller earnings summaries, transactions and exports."""

import csv
import io
import json
from datetime import timedelta
from uuid import uuid4

import pytest

from backoffice.application.earnings_service import EXPORT_COLUMNS
from backoffice.domain.earnings import EarningStatus
from backoffice.domain.entities import Payout
from backoffice.domain.state_machines import OrderStatus, PaymentStatus, PayoutStatus
from backoffice.domain.value_objects import Money


@pytest.fixture
def add_payout(payout_store, bank_details, now):
    async def _add(seller_id: str, amount: int, status: PayoutStatus, requested_at=None) -> Payout:
        payout = Payout(
            id=str(uuid4()),
            seller_id=seller_id,
            amount=Money(amount),
            bank_details=bank_details,
            status=status,
            requested_at=requested_at or now - timedelta(days=1),
        )
        await payout_store.add(payout)
        return payout

    return _add


class TestEarningsSummary:
    async def test_summary_of_a_settled_order(self, earnings_service, order_store, make_order, now) -> None:
        order = make_order(
            ("seller-a", 1, 60000),
            ("seller-b", 1, 40000),
            order_status=OrderStatus.DELIVERED,
            payment_status=PaymentStatus.PAID,
            created_at=now - timedelta(days=10),
            delivered_at=now - timedelta(days=8),
        )
        await order_store.add(order)

        summary = await earnings_service.get_earnings_summary("seller-a", "30days")

        assert summary.total_revenue == Money(60000)
        assert summary.completed_revenue == Money(57000)
        assert summary.pending_revenue == Money(0)
        assert summary.platform_fees == Money(3000)
        assert summary.order_count == 1

    async def test_pending_revenue_is_net_and_skips_cancelled_orders(
        self, earnings_service, order_store, make_order, now
    ) -> None:
        await order_store.add(
            make_order(
                ("seller-a", 1, 40000),
                order_status=OrderStatus.SHIPPED,
                payment_status=PaymentStatus.PAID,
                created_at=now - timedelta(days=3),
            )
        )
        await order_store.add(
            make_order(
                ("seller-a", 1, 60000),
                order_status=OrderStatus.CANCELLED,
                payment_status=PaymentStatus.PAID,
                created_at=now - timedelta(days=2),
            )
        )

        summary = await earnings_service.get_earnings_summary("seller-a", "30days")

        assert summary.total_revenue == Money(100000)
        assert summary.completed_revenue == Money(0)
        assert summary.pending_revenue == Money(38000)

    async def test_unpaid_and_foreign_orders_are_excluded(
        self, earnings_service, order_store, make_order, completed_order
    ) -> None:
        await order_store.add(completed_order("seller-a", 10000))
        await order_store.add(make_order(("seller-a", 1, 50000)))
        await order_store.add(completed_order("seller-b", 70000))

        summary = await earnings_service.get_earnings_summary("seller-a")

        assert summary.total_revenue == Money(10000)
        assert summary.order_count == 1

    async def test_orders_outside_the_period_are_excluded(
        self, earnings_service, order_store, completed_order, now
    ) -> None:
        await order_store.add(completed_order("seller-a", 10000))
        await order_store.add(completed_order("seller-a", 20000, created_at=now - timedelta(days=20)))

        summary = await earnings_service.get_earnings_summary("seller-a", "7days")

        assert summary.total_revenue == Money(0)
        assert summary.growth == -100.0

    async def test_growth_against_previous_period(
        self, earnings_service, order_store, completed_order, now
    ) -> None:
        await order_store.add(completed_order("seller-a", 15000))
        await order_store.add(
            completed_order(
                "seller-a",
                10000,
                created_at=now - timedelta(days=40),
                delivered_at=now - timedelta(days=35),
            )
        )

        summary = await earnings_service.get_earnings_summary("seller-a", "30days")

        assert summary.total_revenue == Money(15000)
        assert summary.growth == 50.0

    async def test_growth_is_zero_without_previous_revenue(
        self, earnings_service, order_store, completed_order
    ) -> None:
        await order_store.add(completed_order("seller-a", 15000))
        summary = await earnings_service.get_earnings_summary("seller-a")
        assert summary.growth == 0.0

    async def test_all_time_summary(self, earnings_service, order_store, completed_order, now) -> None:
        await order_store.add(completed_order("seller-a", 10000, created_at=now - timedelta(days=400)))
        summary = await earnings_service.get_earnings_summary("seller-a", "all")
        assert summary.total_revenue == Money(10000)
        assert summary.growth == 0.0

    async def test_payout_totals(self, earnings_service, add_payout, now) -> None:
        await add_payout("seller-a", 5000, PayoutStatus.COMPLETED)
        await add_payout("seller-a", 2000, PayoutStatus.PENDING)
        await add_payout("seller-a", 1000, PayoutStatus.PROCESSING)
        await add_payout("seller-a", 9000, PayoutStatus.CANCELLED)
        await add_payout("seller-a", 7000, PayoutStatus.COMPLETED, requested_at=now - timedelta(days=60))
        await add_payout("seller-b", 3000, PayoutStatus.COMPLETED)

        summary = await earnings_service.get_earnings_summary("seller-a")

        assert summary.total_payouts == Money(5000)
        assert summary.pending_payouts == Money(3000)

    async def test_custom_window(self, earnings_service, order_store, completed_order, now) -> None:
        await order_store.add(completed_order("seller-a", 10000, created_at=now - timedelta(days=3)))
        await order_store.add(completed_order("seller-a", 20000, created_at=now - timedelta(days=12)))

        summary = await earnings_service.summarize("seller-a", now - timedelta(days=14), now - timedelta(days=7))

        assert summary.total_revenue == Money(20000)


class TestCompletedNetRevenue:
    async def test_counts_only_settled_revenue_over_all_time(
        self, earnings_service, order_store, completed_order, make_order, now
    ) -> None:
        await order_store.add(completed_order("seller-a", 31579, created_at=now - timedelta(days=500)))
        await order_store.add(
            make_order(
                ("seller-a", 1, 90000),
                order_status=OrderStatus.DELIVERED,
                payment_status=PaymentStatus.PAID,
                delivered_at=now - timedelta(days=1),
            )
        )

        assert await earnings_service.completed_net_revenue("seller-a") == Money(30000)


class TestTransactions:
    async def test_lists_paid_orders_newest_first(
        self, earnings_service, order_store, completed_order, make_order, now
    ) -> None:
        older = completed_order("seller-a", 10000, created_at=now - timedelta(days=20))
        newer = completed_order("seller-a", 20000, created_at=now - timedelta(days=9))
        for order in (older, newer, make_order(("seller-a", 1, 5000))):
            await order_store.add(order)

        page = await earnings_service.list_transactions("seller-a")

        assert page.total == 2
        assert [row.order_id for row in page.transactions] == [newer.id, older.id]
        first = page.transactions[0]
        assert first.order_amount == Money(20000)
        assert first.platform_fee == Money(1000)
        assert first.seller_amount == Money(19000)
        assert first.status == EarningStatus.COMPLETED
        assert first.product_names == ("Product 1",)

    async def test_status_filter(self, earnings_service, order_store, completed_order, make_order, now) -> None:
        await order_store.add(completed_order("seller-a", 10000))
        await order_store.add(
            make_order(
                ("seller-a", 1, 5000),
                order_status=OrderStatus.SHIPPED,
                payment_status=PaymentStatus.PAID,
            )
        )

        page = await earnings_service.list_transactions("seller-a", status=EarningStatus.PENDING)

        assert page.total == 1
        assert page.transactions[0].order_amount == Money(5000)

    async def test_search_by_order_number(self, earnings_service, order_store, completed_order) -> None:
        await order_store.add(completed_order("seller-a", 10000, order_number="ORD-FIND-ME"))
        await order_store.add(completed_order("seller-a", 20000, order_number="ORD-OTHER"))

        page = await earnings_service.list_transactions("seller-a", search="find")

        assert [row.order_number for row in page.transactions] == ["ORD-FIND-ME"]

    async def test_pagination(self, earnings_service, order_store, completed_order, now) -> None:
        for day in range(5):
            await order_store.add(completed_order("seller-a", 1000, created_at=now - timedelta(days=9 + day)))

        page = await earnings_service.list_transactions("seller-a", page=2, limit=2)

        assert page.total == 5
        assert page.total_pages == 3
        assert len(page.transactions) == 2


class TestExport:
    async def test_csv_export(self, earnings_service, order_store, completed_order, now) -> None:
        order = completed_order("seller-a", 60000, order_number="ORD-1001")
        await order_store.add(order)

        export = await earnings_service.export_earnings("seller-a", "30days", "csv")

        assert export.filename == "seller-earnings-30days.csv"
        assert export.content_type == "text/csv"
        rows = list(csv.reader(io.StringIO(export.content)))
        assert tuple(rows[0]) == EXPORT_COLUMNS
        assert rows[1] == [
            "ORD-1001",
            "Asha Rao",
            "asha@example.com",
            "Product 1",
            "600.00",
            "30.00",
            "570.00",
            "completed",
            order.created_at.date().isoformat(),
        ]

    async def test_json_export_uses_minor_units(self, earnings_service, order_store, completed_order) -> None:
        await order_store.add(completed_order("seller-a", 60000, order_number="ORD-1001"))

        export = await earnings_service.export_earnings("seller-a", "30days", "json")

        assert export.filename == "seller-earnings-30days.json"
        payload = json.loads(export.content)
        assert payload[0]["order_number"] == "ORD-1001"
        assert payload[0]["seller_amount"] == 57000
        assert payload[0]["currency"] == "INR"

    async def test_empty_export_has_header_only(self, earnings_service) -> None:
        export = await earnings_service.export_earnings("seller-a")
        assert export.content.strip() == ",".join(EXPORT_COLUMNS)

    async def test_unknown_format(self, earnings_service) -> None:
        with pytest.raises(ValueError):
            await earnings_service.export_earnings("seller-a", "30days", "xlsx")
