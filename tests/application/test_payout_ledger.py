"""Tests for payout admission and the payout lifecycle."""

import asyncio
from datetime import timedelta

import pytest

from backoffice.application.payout_service import PayoutLedger
from backoffice.domain.state_machines import PayoutStatus
from backoffice.domain.value_objects import Actor, Money
from backoffice.infrastructure.memory_store import InMemoryPayoutStore

ADMIN = Actor.admin()


class SlowPayoutStore(InMemoryPayoutStore):
    """Yields to the event loop between reading and acting on the balance."""

    async def sum_amounts(self, *args, **kwargs):
        total = await super().sum_amounts(*args, **kwargs)
        await asyncio.sleep(0.01)
        return total


class StuckPayoutStore(InMemoryPayoutStore):
    async def compare_and_swap(self, payout, expected_version):
        return False


@pytest.fixture
async def funded_seller(order_store, completed_order):
    """seller-a with ₹300.00 of completed net revenue."""
    await order_store.add(completed_order("seller-a", 31579))
    return "seller-a"


class TestAvailableBalance:
    async def test_balance_is_completed_net_revenue(self, ledger, funded_seller) -> None:
        assert await ledger.available_balance(funded_seller) == Money(30000)

    async def test_held_revenue_is_not_available(self, ledger, order_store, completed_order, now) -> None:
        await order_store.add(completed_order("seller-a", 31579, delivered_at=now - timedelta(days=3)))
        assert await ledger.available_balance("seller-a") == Money(0)

    async def test_committed_payouts_reduce_balance(self, ledger, funded_seller, bank_details) -> None:
        await ledger.request_payout(funded_seller, 10000, bank_details)
        assert await ledger.available_balance(funded_seller) == Money(20000)


class TestRequestPayout:
    async def test_request_within_balance(self, ledger, funded_seller, bank_details, now) -> None:
        result = await ledger.request_payout(funded_seller, 30000, bank_details)

        assert result.success
        assert result.payout.status == PayoutStatus.PENDING
        assert result.payout.amount == Money(30000)
        assert result.payout.requested_at == now

    async def test_request_exceeding_balance(self, ledger, funded_seller, bank_details, payout_store) -> None:
        result = await ledger.request_payout(funded_seller, 40000, bank_details)

        assert not result.success
        assert result.error_code == "INSUFFICIENT_BALANCE"
        assert result.details == {"available": 30000, "requested": 40000}
        assert "₹300.00" in result.error
        assert "₹400.00" in result.error
        assert await payout_store.count(seller_id=funded_seller) == 0

    @pytest.mark.parametrize("amount", [0, -100])
    async def test_non_positive_amount(self, ledger, funded_seller, bank_details, amount) -> None:
        result = await ledger.request_payout(funded_seller, amount, bank_details)
        assert result.error_code == "INVALID_PAYOUT_AMOUNT"

    async def test_second_request_sees_first(self, ledger, funded_seller, bank_details) -> None:
        first = await ledger.request_payout(funded_seller, 20000, bank_details)
        second = await ledger.request_payout(funded_seller, 20000, bank_details)

        assert first.success
        assert second.error_code == "INSUFFICIENT_BALANCE"
        assert second.details["available"] == 10000

    async def test_concurrent_requests_cannot_overdraw(
        self, order_store, earnings_service, completed_order, bank_details, now
    ) -> None:
        # ₹100.00 net available, two requests of ₹80.00 each
        await order_store.add(completed_order("seller-a", 10526))
        payout_store = SlowPayoutStore()
        ledger = PayoutLedger(payout_store, earnings_service, clock=lambda: now)

        results = await asyncio.gather(
            ledger.request_payout("seller-a", 8000, bank_details),
            ledger.request_payout("seller-a", 8000, bank_details),
        )

        assert sorted(result.success for result in results) == [False, True]
        rejected = next(result for result in results if not result.success)
        assert rejected.error_code == "INSUFFICIENT_BALANCE"
        assert await payout_store.sum_amounts([PayoutStatus.PENDING], seller_id="seller-a") == 8000


class TestCancelPayout:
    async def test_cancel_restores_balance(self, ledger, funded_seller, bank_details, now) -> None:
        requested = await ledger.request_payout(funded_seller, 30000, bank_details)

        result = await ledger.cancel_payout(funded_seller, requested.payout.id)

        assert result.payout.status == PayoutStatus.CANCELLED
        assert result.payout.cancelled_at == now
        assert await ledger.available_balance(funded_seller) == Money(30000)

    async def test_other_sellers_payout_is_not_found(self, ledger, funded_seller, bank_details) -> None:
        requested = await ledger.request_payout(funded_seller, 1000, bank_details)
        result = await ledger.cancel_payout("seller-b", requested.payout.id)
        assert result.error_code == "PAYOUT_NOT_FOUND"

    async def test_only_pending_payouts_can_be_cancelled(self, ledger, funded_seller, bank_details) -> None:
        requested = await ledger.request_payout(funded_seller, 1000, bank_details)
        await ledger.mark_processing(requested.payout.id, ADMIN)

        result = await ledger.cancel_payout(funded_seller, requested.payout.id)

        assert result.error_code == "PAYOUT_NOT_PENDING"
        assert result.details["current_status"] == "processing"


class TestAdminActions:
    async def test_approve_completes_and_keeps_balance_consumed(
        self, ledger, funded_seller, bank_details, now
    ) -> None:
        requested = await ledger.request_payout(funded_seller, 10000, bank_details)

        result = await ledger.approve_payout(requested.payout.id, ADMIN, notes="UTR 8812")

        assert result.payout.status == PayoutStatus.COMPLETED
        assert result.payout.processed_at == now
        assert result.payout.notes == "UTR 8812"
        assert await ledger.available_balance(funded_seller) == Money(20000)

    async def test_process_then_complete(self, ledger, funded_seller, bank_details) -> None:
        requested = await ledger.request_payout(funded_seller, 10000, bank_details)

        processing = await ledger.mark_processing(requested.payout.id, ADMIN)
        completed = await ledger.complete_payout(requested.payout.id, ADMIN)

        assert processing.payout.status == PayoutStatus.PROCESSING
        assert processing.payout.processed_at is None
        assert completed.payout.status == PayoutStatus.COMPLETED

    async def test_reject_releases_balance(self, ledger, funded_seller, bank_details) -> None:
        requested = await ledger.request_payout(funded_seller, 30000, bank_details)

        result = await ledger.reject_payout(requested.payout.id, "Account closed", ADMIN)

        assert result.payout.status == PayoutStatus.FAILED
        assert result.payout.notes == "Account closed"
        assert await ledger.available_balance(funded_seller) == Money(30000)

    async def test_terminal_payouts_cannot_move(self, ledger, funded_seller, bank_details) -> None:
        requested = await ledger.request_payout(funded_seller, 10000, bank_details)
        await ledger.approve_payout(requested.payout.id, ADMIN)

        result = await ledger.mark_processing(requested.payout.id, ADMIN)

        assert result.error_code == "INVALID_TRANSITION"
        assert result.details["current_state"] == "completed"

    async def test_unknown_payout(self, ledger) -> None:
        result = await ledger.approve_payout("missing", ADMIN)
        assert result.error_code == "PAYOUT_NOT_FOUND"

    async def test_stuck_writes_give_up(self, earnings_service, bank_details, funded_seller, now) -> None:
        store = StuckPayoutStore()
        ledger = PayoutLedger(store, earnings_service, max_retries=3, clock=lambda: now)
        requested = await ledger.request_payout(funded_seller, 1000, bank_details)

        result = await ledger.approve_payout(requested.payout.id, ADMIN)

        assert result.error_code == "CONCURRENT_MODIFICATION"
        assert (await store.get(requested.payout.id)).status == PayoutStatus.PENDING


class TestQueries:
    async def test_get_payout_visibility(self, ledger, funded_seller, bank_details) -> None:
        requested = await ledger.request_payout(funded_seller, 1000, bank_details)
        payout_id = requested.payout.id

        assert (await ledger.get_payout(payout_id, Actor.seller(funded_seller))).success
        assert (await ledger.get_payout(payout_id, ADMIN)).success
        foreign = await ledger.get_payout(payout_id, Actor.seller("seller-b"))
        assert foreign.error_code == "PAYOUT_NOT_FOUND"

    async def test_list_payouts_newest_first(
        self, order_store, earnings_service, completed_order, bank_details, now
    ) -> None:
        await order_store.add(completed_order("seller-a", 31579))
        ticks = iter(now + timedelta(minutes=minute) for minute in range(10))
        ledger = PayoutLedger(InMemoryPayoutStore(), earnings_service, clock=lambda: next(ticks))
        ids = [(await ledger.request_payout("seller-a", 1000, bank_details)).payout.id for _ in range(3)]
        await ledger.cancel_payout("seller-a", ids[0])

        listing = await ledger.list_payouts(seller_id="seller-a")
        pending = await ledger.list_payouts(seller_id="seller-a", status=PayoutStatus.PENDING)
        paged = await ledger.list_payouts(seller_id="seller-a", page=2, limit=2)

        assert [payout.id for payout in listing.payouts] == list(reversed(ids))
        assert listing.total == 3
        assert pending.total == 2
        assert [payout.id for payout in paged.payouts] == [ids[0]]
