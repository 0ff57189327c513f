import logging
from decimal import Decimal

import pytest
from sqlalchemy import select

from repairshop.app.db.models.core_types import (
    ActivityAction,
    JobStatus,
    JobType,
    MatchKind,
    NegativeStockPolicy,
    Region,
)
from repairshop.app.db.models.models_v1 import ActivityLog, Job
from repairshop.app.schemas.job import JobCreate
from repairshop.services.errors import (
    IdentifierGenerationError,
    InsufficientStockError,
    PersistenceError,
    UnmatchedStockError,
)
from repairshop.services.job_ids import InMemorySequenceProvider
from repairshop.services.jobs import EngineOptions, create_job_with_deductions
from repairshop.services.stock_matcher import ExactMatch, FuzzyMatch, Unmatched


def _payload(repair_desc: str, branch: str = "North Branch", **kwargs) -> JobCreate:
    data = {
        "branch": branch,
        "customer": "Jane Doe",
        "phone": "0400 000 000",
        "device_model": "iPhone 11",
        "repair_desc": repair_desc,
        "price": Decimal("129.00"),
    }
    data.update(kwargs)
    return JobCreate(**data)


class _FailingProvider:
    def next_value(self, prefix):
        raise IdentifierGenerationError(f"sequence unavailable for {prefix}")


def test_exact_match_deducts_north_column(db_session, add_stock):
    battery = add_stock("Battery", north=10, south=10)

    result = create_job_with_deductions(db_session, _payload("Battery (x1)"), options=EngineOptions())

    assert result.job_id == "N-REP-00001"
    assert len(result.outcomes) == 1
    assert isinstance(result.outcomes[0], ExactMatch)
    db_session.refresh(battery)
    assert battery.stock_north == 9
    assert battery.stock_south == 10


def test_south_branch_deducts_south_column(db_session, add_stock):
    battery = add_stock("Battery", north=10, south=10)

    result = create_job_with_deductions(
        db_session, _payload("Battery (x4)", branch="Main Street"), options=EngineOptions()
    )

    assert result.job_id == "S-REP-00001"
    db_session.refresh(battery)
    assert (battery.stock_north, battery.stock_south) == (10, 6)


def test_fuzzy_match_deducts_closest_entry(db_session, add_stock):
    cell = add_stock("Battery Cell XL", north=5)

    result = create_job_with_deductions(db_session, _payload("Battery Cell (x1)"), options=EngineOptions())

    outcome = result.outcomes[0]
    assert isinstance(outcome, FuzzyMatch)
    assert outcome.entry.part_name == "Battery Cell XL"
    db_session.refresh(cell)
    assert cell.stock_north == 4


def test_unmatched_item_does_not_fail_the_job(db_session, add_stock, caplog):
    battery = add_stock("Battery", north=10)
    screen = add_stock("iPhone 11 Screen", north=3)

    with caplog.at_level(logging.WARNING, logger="repairshop.services.jobs"):
        result = create_job_with_deductions(
            db_session,
            _payload("iPhone 11 Screen (x2) || Camera Module (x1) || Battery (x1)"),
            options=EngineOptions(),
        )

    assert [o.kind for o in result.outcomes] == [MatchKind.exact, MatchKind.unmatched, MatchKind.exact]
    assert result.deducted_count == 2
    assert [line.item.part_name for line in result.unmatched] == ["Camera Module"]
    assert any("Camera Module" in r.getMessage() for r in caplog.records)

    db_session.refresh(battery)
    db_session.refresh(screen)
    assert battery.stock_north == 9
    assert screen.stock_north == 1

    job = db_session.execute(select(Job).where(Job.job_id == result.job_id)).scalar_one()
    assert job.status is JobStatus.pending
    assert job.customer == "Jane Doe"
    assert job.repair_desc == "iPhone 11 Screen (x2) || Camera Module (x1) || Battery (x1)"

    actions = db_session.execute(
        select(ActivityLog.action).where(ActivityLog.job_pk == job.id).order_by(ActivityLog.id)
    ).scalars().all()
    assert actions == [ActivityAction.stock_unmatched.value, ActivityAction.job_created.value]


def test_all_unmatched_leaves_stock_untouched(db_session, add_stock):
    battery = add_stock("Battery", north=10, south=10)

    result = create_job_with_deductions(db_session, _payload("Camera Module (x1)"), options=EngineOptions())

    assert result.outcomes == [Unmatched("Camera Module")]
    db_session.refresh(battery)
    assert (battery.stock_north, battery.stock_south) == (10, 10)
    assert db_session.execute(select(Job).where(Job.job_id == result.job_id)).scalar_one()


def test_same_part_twice_is_deducted_cumulatively(db_session, add_stock):
    battery = add_stock("Battery", north=10)

    create_job_with_deductions(db_session, _payload("Battery (x1) || Battery (x2)"), options=EngineOptions())

    db_session.refresh(battery)
    assert battery.stock_north == 7


def test_ids_increment_across_jobs(db_session, add_stock):
    add_stock("Battery", north=10)

    first = create_job_with_deductions(db_session, _payload("Battery (x1)"), options=EngineOptions())
    second = create_job_with_deductions(db_session, _payload("Battery (x1)"), options=EngineOptions())
    sale = create_job_with_deductions(
        db_session, _payload("Battery (x1)", job_type=JobType.sale), options=EngineOptions()
    )

    assert (first.job_id, second.job_id, sale.job_id) == ("N-REP-00001", "N-REP-00002", "N-SAL-00001")


def test_job_insert_failure_rolls_back_deductions(db_session, add_stock):
    battery = add_stock("Battery", north=10)
    db_session.add(Job(job_id="N-REP-00001", branch="North Branch", customer="Existing", repair_desc=""))
    db_session.commit()

    # compteur neuf -> N-REP-00001 déjà pris -> INSERT en échec
    with pytest.raises(PersistenceError):
        create_job_with_deductions(
            db_session,
            _payload("Battery (x3)"),
            options=EngineOptions(),
            provider=InMemorySequenceProvider(),
        )

    db_session.refresh(battery)
    assert battery.stock_north == 10
    assert db_session.execute(select(Job)).scalars().all()[0].customer == "Existing"
    assert db_session.execute(select(ActivityLog)).scalars().all() == []


def test_identifier_failure_aborts_before_any_deduction(db_session, add_stock):
    battery = add_stock("Battery", north=10)
    db_session.commit()

    with pytest.raises(IdentifierGenerationError):
        create_job_with_deductions(
            db_session, _payload("Battery (x1)"), options=EngineOptions(), provider=_FailingProvider()
        )

    db_session.refresh(battery)
    assert battery.stock_north == 10
    assert db_session.execute(select(Job)).scalars().all() == []


def test_strict_matching_aborts_on_unmatched_item(db_session, add_stock):
    battery = add_stock("Battery", north=10)
    db_session.commit()

    with pytest.raises(UnmatchedStockError) as exc_info:
        create_job_with_deductions(
            db_session,
            _payload("Battery (x1) || Camera Module (x1)"),
            options=EngineOptions(strict_stock_matching=True),
        )

    assert exc_info.value.search_term == "Camera Module"
    db_session.refresh(battery)
    assert battery.stock_north == 10
    assert db_session.execute(select(Job)).scalars().all() == []


def test_reject_negative_policy_rolls_back_whole_job(db_session, add_stock):
    battery = add_stock("Battery", north=10)
    screen = add_stock("iPhone 11 Screen", north=1)
    db_session.commit()

    with pytest.raises(InsufficientStockError):
        create_job_with_deductions(
            db_session,
            _payload("Battery (x2) || iPhone 11 Screen (x2)"),
            options=EngineOptions(negative_stock_policy=NegativeStockPolicy.reject),
        )

    db_session.refresh(battery)
    db_session.refresh(screen)
    assert battery.stock_north == 10
    assert screen.stock_north == 1


def test_allow_negative_policy_lets_stock_go_below_zero(db_session, add_stock):
    screen = add_stock("iPhone 11 Screen", north=1)

    create_job_with_deductions(db_session, _payload("iPhone 11 Screen (x2)"), options=EngineOptions())

    db_session.refresh(screen)
    assert screen.stock_north == -1


def test_branch_table_option(db_session, add_stock):
    battery = add_stock("Battery", north=10, south=10)

    result = create_job_with_deductions(
        db_session,
        _payload("Battery (x1)", branch="Airport Kiosk"),
        options=EngineOptions(branch_regions={"Airport": Region.north}),
    )

    assert result.job_id == "N-REP-00001"
    db_session.refresh(battery)
    assert battery.stock_north == 9


def test_empty_description_still_creates_job(db_session):
    result = create_job_with_deductions(db_session, _payload(""), options=EngineOptions())

    assert result.lines == []
    job = db_session.execute(select(Job).where(Job.job_id == result.job_id)).scalar_one()
    assert job.price == Decimal("129.00")


def test_unexpected_error_rolls_back_deductions(db_session, add_stock, monkeypatch):
    from repairshop.services import jobs as jobs_service

    battery = add_stock("Battery", north=10)
    screen = add_stock("iPhone 11 Screen", north=5)
    db_session.commit()

    real_match = jobs_service.match_stock

    def _match(db, part_name, **kwargs):
        if part_name == "iPhone 11 Screen":
            raise RuntimeError("catalog backend unavailable")
        return real_match(db, part_name, **kwargs)

    monkeypatch.setattr(jobs_service, "match_stock", _match)

    with pytest.raises(RuntimeError):
        create_job_with_deductions(
            db_session,
            _payload("Battery (x2) || iPhone 11 Screen (x1)"),
            options=EngineOptions(),
        )

    db_session.refresh(battery)
    db_session.refresh(screen)
    assert battery.stock_north == 10
    assert screen.stock_north == 5
    assert db_session.execute(select(Job)).scalars().all() == []
