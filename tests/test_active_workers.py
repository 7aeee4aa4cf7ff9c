"""Active order and active worker resolution"""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from liftboard.domain.scheduling.repository import ScheduleRepository
from liftboard.domain.scheduling.workers import (
    ActiveWorkerResolver,
    is_missing_assigned_workers_table,
    merge_worker_links,
    resolve_active_order_ids,
)
from liftboard.models import RepairItemWorker
from tests.factories import link_worker, make_item, make_order, make_worker


class TestActiveOrderIds:
    def test_order_with_open_repair_item_is_active(self, db):
        make_order(db, "ord-1")
        make_item(db, "item-1", "ord-1", status="pending")

        assert resolve_active_order_ids(db) == ["ord-1"]

    def test_completed_and_non_repair_items_do_not_count(self, db):
        make_order(db, "ord-done")
        make_item(db, "item-done", "ord-done", status="completed")
        make_order(db, "ord-service")
        make_item(db, "item-service", "ord-service", status="in_progress", repair_type="bao_duong")

        assert resolve_active_order_ids(db) == []

    def test_order_listed_once_with_many_open_items(self, db):
        make_order(db, "ord-1")
        make_item(db, "item-1", "ord-1", status="pending")
        make_item(db, "item-2", "ord-1", status="in_progress")

        assert resolve_active_order_ids(db) == ["ord-1"]


class TestMergeWorkerLinks:
    def test_union_keeps_first_seen_and_dedupes_by_worker(self):
        assigned = [("ord-1", "w-1", "An", "mechanic"), ("ord-1", "w-2", "Binh", "paint")]
        legacy = [("ord-1", "w-1", "An", "mechanic"), ("ord-2", "w-1", "An", "mechanic")]

        merged = merge_worker_links(assigned, legacy)

        assert [w.id for w in merged["ord-1"]] == ["w-1", "w-2"]
        assert [w.id for w in merged["ord-2"]] == ["w-1"]

    def test_no_sources(self):
        assert merge_worker_links() == {}


class TestActiveWorkerResolver:
    def test_worker_linked_both_ways_appears_once(self, db):
        make_worker(db, "w-1", "An")
        make_order(db, "ord-1")
        make_item(db, "item-1", "ord-1", status="in_progress", worker_id="w-1")
        link_worker(db, "item-1", "w-1")

        workers = ActiveWorkerResolver().active_workers_for_order(db, "ord-1")

        assert [(w.id, w.name, w.worker_type) for w in workers] == [("w-1", "An", "mechanic")]

    def test_legacy_and_join_workers_are_unioned(self, db):
        make_worker(db, "w-1", "An")
        make_worker(db, "w-2", "Binh")
        make_order(db, "ord-1")
        make_item(db, "item-1", "ord-1", status="in_progress", worker_id="w-1")
        make_item(db, "item-2", "ord-1", status="in_progress")
        link_worker(db, "item-2", "w-2")

        workers = ActiveWorkerResolver().active_workers_for_order(db, "ord-1")

        assert sorted(w.id for w in workers) == ["w-1", "w-2"]

    def test_only_in_progress_repair_items_count(self, db):
        make_worker(db, "w-1")
        make_worker(db, "w-2")
        make_order(db, "ord-1")
        make_item(db, "item-1", "ord-1", status="pending", worker_id="w-1")
        make_item(db, "item-2", "ord-1", status="in_progress", repair_type="bao_duong")
        link_worker(db, "item-2", "w-2")

        assert ActiveWorkerResolver().active_workers_by_order(db, ["ord-1"]) == {}

    def test_empty_order_ids_skip_the_store(self, db):
        with patch.object(ScheduleRepository, "list_legacy_worker_links") as legacy:
            assert ActiveWorkerResolver().active_workers_by_order(db, []) == {}
        legacy.assert_not_called()

    def test_missing_join_table_falls_back_to_legacy(self, db, engine):
        make_worker(db, "w-1")
        make_worker(db, "w-2")
        make_order(db, "ord-1")
        make_item(db, "item-1", "ord-1", status="in_progress", worker_id="w-1")
        link_worker(db, "item-1", "w-2")
        db.close()
        RepairItemWorker.__table__.drop(engine)

        workers = ActiveWorkerResolver().active_workers_for_order(db, "ord-1")

        assert [w.id for w in workers] == ["w-1"]

    def test_other_join_errors_propagate(self, db):
        make_order(db, "ord-1")
        error = OperationalError("SELECT ...", {}, Exception("server closed the connection"))

        with patch.object(ScheduleRepository, "list_assigned_worker_links", side_effect=error):
            with pytest.raises(OperationalError):
                ActiveWorkerResolver().active_workers_by_order(db, ["ord-1"])


class TestMissingJoinTableDetection:
    @pytest.mark.parametrize(
        "message",
        [
            'relation "repair_item_assigned_workers" does not exist',
            "no such table: repair_item_assigned_workers",
            "Could not find the table 'public.repair_item_assigned_workers' in the schema cache",
        ],
    )
    def test_recognised(self, message):
        assert is_missing_assigned_workers_table(ProgrammingError("SELECT ...", {}, Exception(message)))

    @pytest.mark.parametrize(
        "message",
        [
            'column "estimated_duration_minutes" does not exist',
            "connection refused",
            "duplicate key value violates unique constraint on repair_item_assigned_workers",
        ],
    )
    def test_other_errors_not_recognised(self, message):
        assert not is_missing_assigned_workers_table(OperationalError("SELECT ...", {}, Exception(message)))
