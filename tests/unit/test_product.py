from datetime import date, timedelta
from decimal import Decimal

import pytest
from inventory.domain.exceptions import (
    InsufficientStock,
    InvalidAdjustment,
    InvalidRequest,
    LotNotFound,
)
from inventory.domain.models import Lot, LotState, OrderLine, Product

today = date.today()
tomorrow = today + timedelta(days=1)
later = tomorrow + timedelta(days=10)


def make_lot(
    ref: str,
    qty: int,
    acquired_on: date,
    sku: str = "RETRO-CLOCK",
    state: LotState = LotState.NEW,
    cost: str = "5.00",
):
    return Lot(
        reference=ref,
        sku=sku,
        unit_cost=Decimal(cost),
        quantity=qty,
        acquired_on=acquired_on,
        state=state,
    )


def make_product(*lots: Lot, sku: str = "RETRO-CLOCK", price: str = "9.99"):
    return Product(sku=sku, unit_price=Decimal(price), lots=list(lots))


def quantities(product: Product):
    return {lot.reference: lot.quantity for lot in product.lots}


class TestEligibleLots:
    def test_orders_by_acquisition_date(self):
        earliest = make_lot("speedy", 10, today)
        medium = make_lot("normal", 10, tomorrow)
        latest = make_lot("slow", 10, later)
        product = make_product(medium, latest, earliest)
        assert product.eligible_lots() == [earliest, medium, latest]

    def test_breaks_ties_by_reference(self):
        b = make_lot("lot-b", 10, today)
        a = make_lot("lot-a", 10, today)
        product = make_product(b, a)
        assert product.eligible_lots() == [a, b]

    def test_excludes_unsellable_states(self):
        new = make_lot("new", 10, later)
        refurbished = make_lot("refurb", 10, tomorrow, state=LotState.REFURBISHED)
        defective = make_lot("broken", 10, today, state=LotState.DEFECTIVE)
        in_repair = make_lot("repair", 10, today, state=LotState.IN_REPAIR)
        product = make_product(new, refurbished, defective, in_repair)
        assert product.eligible_lots() == [refurbished, new]

    def test_accepts_explicit_states(self):
        used = make_lot("used", 10, today, state=LotState.USED)
        new = make_lot("new", 10, today)
        product = make_product(used, new)
        assert product.eligible_lots({LotState.USED}) == [used]

    def test_keeps_empty_lots(self):
        empty = make_lot("empty", 0, today)
        product = make_product(empty)
        assert product.eligible_lots() == [empty]

    def test_no_qualifying_lots_is_empty_not_an_error(self):
        product = make_product(make_lot("broken", 10, today, state=LotState.DEFECTIVE))
        assert product.eligible_lots() == []
        assert product.available_quantity == 0


class TestAdjust:
    def test_adjusts_the_referenced_lot(self):
        product = make_product(make_lot("l1", 10, today), make_lot("l2", 10, today))
        product.adjust("l2", -4)
        assert quantities(product) == {"l1": 10, "l2": 6}

    def test_refuses_to_go_negative(self):
        product = make_product(make_lot("l1", 2, today))
        with pytest.raises(InvalidAdjustment):
            product.adjust("l1", -3)
        assert quantities(product) == {"l1": 2}

    def test_unknown_lot(self):
        product = make_product(make_lot("l1", 2, today))
        with pytest.raises(LotNotFound):
            product.adjust("nope", 1)

    def test_increments_version_number(self):
        product = make_product(make_lot("l1", 2, today))
        product.version_number = 7
        product.adjust("l1", -1)
        assert product.version_number == 8


class TestAllocate:
    def test_takes_from_oldest_lot_first(self):
        a = make_lot("A", 5, today)
        b = make_lot("B", 5, tomorrow)
        product = make_product(b, a)

        lines = product.allocate("order1", 7)

        assert [(line.lot_reference, line.quantity) for line in lines] == [
            ("A", 5),
            ("B", 2),
        ]

    def test_splits_across_lots_at_the_catalog_price(self):
        l1 = make_lot("L1", 10, date(2024, 1, 1), cost="5.00")
        l2 = make_lot("L2", 10, date(2024, 2, 1), cost="6.00")
        product = make_product(l1, l2, price="9.99")

        lines = product.allocate("order1", 15)

        assert lines == [
            OrderLine(
                order_id="order1",
                sku="RETRO-CLOCK",
                lot_reference="L1",
                quantity=10,
                unit_price=Decimal("9.99"),
            ),
            OrderLine(
                order_id="order1",
                sku="RETRO-CLOCK",
                lot_reference="L2",
                quantity=5,
                unit_price=Decimal("9.99"),
            ),
        ]
        assert l1.quantity == 0
        assert l2.quantity == 5

    def test_explicit_unit_price_wins(self):
        product = make_product(make_lot("L1", 10, today), price="9.99")
        [line] = product.allocate("order1", 1, unit_price=Decimal("7.50"))
        assert line.unit_price == Decimal("7.50")

    def test_single_lot_when_it_suffices(self):
        product = make_product(make_lot("L1", 10, today), make_lot("L2", 10, later))
        lines = product.allocate("order1", 10)
        assert [line.lot_reference for line in lines] == ["L1"]
        assert quantities(product) == {"L1": 0, "L2": 10}

    def test_skips_exhausted_lots(self):
        product = make_product(make_lot("L1", 0, today), make_lot("L2", 10, later))
        lines = product.allocate("order1", 3)
        assert [line.lot_reference for line in lines] == ["L2"]

    def test_never_prefers_cheaper_lots(self):
        old_expensive = make_lot("old", 5, today, cost="20.00")
        new_cheap = make_lot("new", 5, later, cost="1.00")
        product = make_product(new_cheap, old_expensive)
        [line] = product.allocate("order1", 5)
        assert line.lot_reference == "old"

    def test_ignores_unsellable_lots(self):
        product = make_product(
            make_lot("broken", 10, today, state=LotState.DEFECTIVE),
            make_lot("fine", 10, later),
        )
        [line] = product.allocate("order1", 4)
        assert line.lot_reference == "fine"
        assert quantities(product) == {"broken": 10, "fine": 6}

    def test_split_quantities_add_up_to_the_request(self):
        product = make_product(
            make_lot("L1", 3, today),
            make_lot("L2", 4, tomorrow),
            make_lot("L3", 5, later),
        )
        for requested in (1, 3, 4, 7, 12):
            lines = product.allocate(f"order-{requested}", requested)
            assert sum(line.quantity for line in lines) == requested
            product.revert(lines)

    @pytest.mark.parametrize("requested", [0, -1])
    def test_rejects_non_positive_quantity(self, requested: int):
        product = make_product(make_lot("L1", 10, today))
        with pytest.raises(InvalidRequest):
            product.allocate("order1", requested)
        assert quantities(product) == {"L1": 10}

    def test_insufficient_stock_changes_nothing(self):
        product = make_product(make_lot("L1", 5, today), make_lot("L2", 5, tomorrow))
        before = quantities(product)

        with pytest.raises(InsufficientStock) as excinfo:
            product.allocate("order1", 11)

        assert quantities(product) == before
        assert excinfo.value.requested == 11
        assert excinfo.value.available == 10

    def test_no_eligible_lots_fails_immediately(self):
        product = make_product(make_lot("broken", 10, today, state=LotState.IN_REVIEW))
        with pytest.raises(InsufficientStock):
            product.allocate("order1", 1)
        assert quantities(product) == {"broken": 10}

    def test_available_quantity_counts_sellable_lots_only(self):
        product = make_product(
            make_lot("L1", 3, today),
            make_lot("L2", 4, tomorrow, state=LotState.REFURBISHED),
            make_lot("L3", 100, later, state=LotState.DEFECTIVE),
        )
        assert product.available_quantity == 7


class TestRevert:
    def test_restores_every_touched_lot(self):
        product = make_product(
            make_lot("L1", 3, today),
            make_lot("L2", 4, tomorrow),
            make_lot("L3", 5, later),
        )
        before = quantities(product)
        for requested in range(1, 13):
            product.revert(product.allocate("order1", requested))
            assert quantities(product) == before

    def test_revert_after_other_allocations(self):
        product = make_product(make_lot("L1", 5, today), make_lot("L2", 5, tomorrow))
        first = product.allocate("order1", 4)
        second = product.allocate("order2", 4)
        product.revert(first)
        assert quantities(product) == {"L1": 4, "L2": 2}
        product.revert(second)
        assert quantities(product) == {"L1": 5, "L2": 5}

    def test_rejects_lines_of_another_product(self):
        product = make_product(make_lot("L1", 5, today))
        line = OrderLine(
            order_id="o1",
            sku="OTHER",
            lot_reference="L1",
            quantity=1,
            unit_price=Decimal("1"),
        )
        with pytest.raises(InvalidRequest):
            product.revert([line])
        assert quantities(product) == {"L1": 5}

    def test_unknown_lot_touches_nothing(self):
        product = make_product(make_lot("L1", 5, today))
        lines = [
            OrderLine(
                order_id="o1",
                sku="RETRO-CLOCK",
                lot_reference="L1",
                quantity=1,
                unit_price=Decimal("1"),
            ),
            OrderLine(
                order_id="o1",
                sku="RETRO-CLOCK",
                lot_reference="gone",
                quantity=1,
                unit_price=Decimal("1"),
            ),
        ]
        with pytest.raises(LotNotFound):
            product.revert(lines)
        assert quantities(product) == {"L1": 5}

    def test_reserve_is_the_inverse_of_revert(self):
        product = make_product(make_lot("L1", 5, today), make_lot("L2", 5, tomorrow))
        lines = product.allocate("order1", 7)
        product.revert(lines)
        product.reserve(lines)
        assert quantities(product) == {"L1": 0, "L2": 3}

    def test_reserve_is_all_or_nothing(self):
        product = make_product(make_lot("L1", 5, today), make_lot("L2", 1, tomorrow))
        lines = [
            OrderLine(
                order_id="o1",
                sku="RETRO-CLOCK",
                lot_reference="L1",
                quantity=2,
                unit_price=Decimal("1"),
            ),
            OrderLine(
                order_id="o1",
                sku="RETRO-CLOCK",
                lot_reference="L2",
                quantity=2,
                unit_price=Decimal("1"),
            ),
        ]
        with pytest.raises(InvalidAdjustment):
            product.reserve(lines)
        assert quantities(product) == {"L1": 5, "L2": 1}


def test_allocate_and_revert_never_drive_a_lot_negative():
    product = make_product(make_lot("L1", 2, today), make_lot("L2", 3, tomorrow))
    held = []
    for requested in (1, 2, 5, 1, 1, 3):
        try:
            held.append(product.allocate(f"o{len(held)}", requested))
        except InsufficientStock:
            product.revert(held.pop(0))
        assert all(lot.quantity >= 0 for lot in product.lots)


class TestLotReceipt:
    def test_add_lot(self):
        product = make_product()
        product.add_lot(make_lot("L1", 5, today))
        assert product.available_quantity == 5

    def test_add_lot_of_other_sku(self):
        product = make_product()
        with pytest.raises(InvalidRequest):
            product.add_lot(make_lot("L1", 5, today, sku="OTHER"))

    def test_add_duplicate_lot(self):
        product = make_product(make_lot("L1", 5, today))
        with pytest.raises(InvalidRequest):
            product.add_lot(make_lot("L1", 1, later))

    def test_lot_moved_to_repair_stops_being_allocated(self):
        product = make_product(make_lot("L1", 5, today), make_lot("L2", 5, later))
        product.change_lot_state("L1", LotState.IN_REPAIR)
        [line] = product.allocate("o1", 2)
        assert line.lot_reference == "L2"

    def test_change_price_applies_to_later_allocations(self):
        product = make_product(make_lot("L1", 5, today), price="10.00")
        [before] = product.allocate("o1", 1)
        product.change_price(Decimal("12.00"))
        [after] = product.allocate("o2", 1)
        assert before.unit_price == Decimal("10.00")
        assert after.unit_price == Decimal("12.00")
