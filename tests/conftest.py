import pytest

from bill_splitter.models.bill_models import Bill, ChargeSplit, ItemSplit, Member, ReceiptItem
from bill_splitter.services.flow_state_store import flow_state_store


@pytest.fixture(autouse=True)
def clear_flow_state_store():
    flow_state_store.clear()
    yield
    flow_state_store.clear()


@pytest.fixture
def members():
    return [
        Member(id="1", first_name="Alice", last_name="Ng"),
        Member(id="2", first_name="Bob"),
        Member(id="3", first_name="Chen"),
    ]


@pytest.fixture
def dinner_bill():
    # 30 + 10 + 4 tax = 44
    return Bill(
        store_name="Noodle Bar",
        date="2026-10-10",
        items=[
            ReceiptItem(name="Family Platter", price=30.00),
            ReceiptItem(name="Dumplings", price=10.00),
        ],
        taxes=4.00,
        total_cost=44.00,
    )


@pytest.fixture
def dinner_splits():
    return [
        ItemSplit(item_id="item-0", shared_by=["1", "2", "3"]),
        ItemSplit(item_id="item-1", shared_by=["1"]),
    ]


@pytest.fixture
def tax_split():
    return ChargeSplit(shared_by=["1", "2"])
