from datetime import datetime, timezone
from pathlib import Path

import pytest

from src.courier_dispatch.data.repository import InMemoryDispatchRepository, build_demo_repository
from src.courier_dispatch.models.domain import Courier, Location, OrderGroupView, TrackingRecord
from src.courier_dispatch.persistence.database import SupabaseDispatchRepository
from src.courier_dispatch.persistence.filesystem import FileStorage
from src.courier_dispatch.services.dispatch.errors import NotFound


class _Response:
    def __init__(self, data):
        self.data = data


class _Query:
    def __init__(self, table, op, payload=None):
        self.table = table
        self.op = op
        self.payload = payload
        self.filters = []

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def limit(self, count):
        return self

    def execute(self):
        if self.op == "insert":
            self.table.rows.append(dict(self.payload))
            return _Response([dict(self.payload)])
        rows = [row for row in self.table.rows if all(check(row) for check in self.filters)]
        if self.op == "update":
            for row in rows:
                row.update(self.payload)
        return _Response([dict(row) for row in rows])


class _Table:
    def __init__(self, rows):
        self.rows = rows

    def select(self, *args, **kwargs):
        return _Query(self, "select")

    def update(self, payload):
        return _Query(self, "update", payload)

    def insert(self, payload):
        return _Query(self, "insert", payload)


class DummySupabase:
    def __init__(self, **tables):
        self.tables = {name: _Table(rows) for name, rows in tables.items()}

    def table(self, name):
        return self.tables.setdefault(name, _Table([]))


def _client() -> DummySupabase:
    return DummySupabase(
        order_groups=[{"id": "G1", "delivery_lat": 24.72, "delivery_lng": 46.69}],
        dispatch_order_view=[
            {
                "group_id": "G1",
                "order_id": "O1",
                "order_number": "ORD-1",
                "business_id": "B1",
                "pickup_lat": 24.71,
                "pickup_lng": 46.67,
                "delivery_lat": 24.72,
                "delivery_lng": 46.69,
                "prep_time_minutes": 18,
                "item_count": 3,
            },
            {
                "group_id": "G1",
                "order_id": "O2",
                "order_number": "ORD-2",
                "business_id": "B2",
                "pickup_lat": None,
                "pickup_lng": None,
                "delivery_lat": 24.72,
                "delivery_lng": 46.69,
                "prep_time_minutes": None,
                "item_count": None,
            },
            {"group_id": "G9", "order_id": "O9", "pickup_lat": 1, "pickup_lng": 1},
        ],
        couriers=[
            {
                "id": "C1",
                "name": "Courier One",
                "last_lat": 24.7,
                "last_lng": 46.6,
                "is_online": True,
                "is_available": True,
                "active_orders": 1,
                "max_capacity": 4,
            },
            {"id": "C2", "is_online": True, "is_available": True, "active_orders": 0},
        ],
        trackings=[
            {"courier_id": "C2", "status": "going_to_client"},
            {"courier_id": "C1", "status": "arrived"},
        ],
        orders=[{"id": "O1", "status": "ready"}, {"id": "O2", "status": "ready"}],
    )


def test_file_storage_creates_run_directory(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    run_dir = storage.make_run_directory(prefix="dispatch_test")

    assert run_dir.exists()
    assert run_dir.is_dir()
    assert run_dir.parent == tmp_path / "outputs"
    assert run_dir.name.startswith("dispatch_test_")


def test_file_storage_writes_json_and_csv(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    run_dir = storage.make_run_directory(prefix="dispatch_test")

    summary_path = run_dir / "summary.json"
    assignments_path = run_dir / "assignments.csv"

    storage.write_json(summary_path, {"hello": "world"})
    storage.write_csv(assignments_path, "a,b\n1,2\n")

    assert summary_path.read_text(encoding="utf-8") == '{\n  "hello": "world"\n}'
    assert assignments_path.read_text(encoding="utf-8") == "a,b\n1,2\n"


def test_supabase_repository_reads_flattened_order_view():
    repository = SupabaseDispatchRepository(_client())

    group = repository.get_order_group("G1")

    assert group.delivery_location == Location(lat=24.72, lng=46.69)
    assert [order.order_id for order in group.orders] == ["O1", "O2"]
    first, second = group.orders
    assert first.pickup_location == Location(lat=24.71, lng=46.67)
    assert first.prep_time_minutes == 18.0
    assert first.item_count == 3
    # Missing coordinates stay missing instead of becoming (0, 0)
    assert second.pickup_location is None
    assert second.prep_time_minutes is None
    assert second.item_count == 1


def test_supabase_repository_missing_group_raises_not_found():
    with pytest.raises(NotFound):
        SupabaseDispatchRepository(_client()).get_order_group("missing")


def test_supabase_repository_couriers_and_busy_ids():
    repository = SupabaseDispatchRepository(_client())

    couriers = {courier.courier_id: courier for courier in repository.list_couriers()}

    assert couriers["C1"].location == Location(lat=24.7, lng=46.6)
    assert couriers["C1"].name == "Courier One"
    assert couriers["C2"].location is None
    assert couriers["C2"].max_capacity == 4
    assert repository.busy_courier_ids() == {"C2"}


def test_supabase_claim_is_conditional_on_active_orders():
    client = _client()
    repository = SupabaseDispatchRepository(client)

    assert not repository.claim_courier("C1", expected_active_orders=0, order_count=2)
    assert repository.claim_courier("C1", expected_active_orders=1, order_count=2)
    assert client.tables["couriers"].rows[0]["active_orders"] == 3

    repository.release_courier("C1", order_count=2)
    assert client.tables["couriers"].rows[0]["active_orders"] == 1


def test_supabase_commit_writes_orders_and_trackings():
    client = _client()
    repository = SupabaseDispatchRepository(client)

    repository.assign_orders(["O1"], "C1")
    repository.create_tracking(
        TrackingRecord(
            order_id="O1",
            courier_id="C1",
            origin=Location(lat=24.71, lng=46.67),
            destination=Location(lat=24.72, lng=46.69),
            distance_km=2.5,
            estimated_duration_minutes=33.0,
            started_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
    )

    orders = {row["id"]: row for row in client.tables["orders"].rows}
    assert orders["O1"] == {"id": "O1", "status": "confirmed", "courier_id": "C1"}
    assert orders["O2"]["status"] == "ready"
    tracking = client.tables["trackings"].rows[-1]
    assert tracking["origin"] == {"lat": 24.71, "lng": 46.67}
    assert tracking["status"] == "going_to_business"
    assert tracking["started_at"] == "2024-01-01T00:00:00+00:00"


def test_in_memory_repository_claims_and_lookups():
    group = OrderGroupView(group_id="G1", orders=[])
    courier = Courier(courier_id="C1", location=None, active_orders=1)
    repository = InMemoryDispatchRepository([group], [courier])

    assert repository.get_order_group("G1") is group
    with pytest.raises(NotFound):
        repository.get_order_group("nope")

    assert not repository.claim_courier("C1", expected_active_orders=0, order_count=1)
    assert repository.claim_courier("C1", expected_active_orders=1, order_count=1)
    assert repository.get_courier("C1").active_orders == 2

    with pytest.raises(NotFound):
        repository.claim_courier("C9", expected_active_orders=0, order_count=1)


def test_demo_repository_holds_simulated_groups_and_fleet() -> None:
    center = Location(lat=24.7136, lng=46.6753)

    repository = build_demo_repository(2, 5, 3, center, seed=7)

    first = repository.get_order_group("demo-1")
    second = repository.get_order_group("demo-2")
    assert len(first.orders) == len(second.orders) == 5
    assert first.delivery_location == center
    assert {order.order_id for order in first.orders}.isdisjoint(order.order_id for order in second.orders)
    assert [courier.courier_id for courier in repository.list_couriers()] == ["courier-1", "courier-2", "courier-3"]

    with pytest.raises(NotFound):
        repository.get_order_group("demo-3")
