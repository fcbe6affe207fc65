from datetime import datetime
from decimal import Decimal

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from yarnstock.api.endpoints import (
    dashboard, parties, yarn_categories, yarn_ex_entries, yarn_in_entries,
)
from yarnstock.schemas.party import PartyCreate, PartyUpdate
from yarnstock.schemas.yarn_category import YarnCategoryCreate, YarnCategoryUpdate
from yarnstock.schemas.yarn_entry import (
    YarnExEntryCreate, YarnExEntryUpdate, YarnInEntryCreate, YarnInEntryUpdate,
)
from yarnstock.tests.helpers import (
    add_ex_entry, add_in_entry, create_admin, create_category, create_party,
)


def _in_payload(category_id, party_id, lot_no="A", boxes=10, weight="360"):
    return YarnInEntryCreate(
        entry_date=datetime(2024, 2, 1),
        category_id=category_id,
        lot_no=lot_no,
        purchase_date=datetime(2024, 1, 30),
        party_id=party_id,
        no_of_boxes=boxes,
        weight_in_kg=Decimal(weight),
    )


def _ex_payload(category_id, lot_no="A", weight="100"):
    return YarnExEntryCreate(
        entry_date=datetime(2024, 2, 3),
        category_id=category_id,
        lot_no=lot_no,
        taking_weight_in_kg=Decimal(weight),
    )


# ========== 类别 ==========

def test_category_weight_per_box_formats():
    assert YarnCategoryCreate(name="C", weight_per_box=Decimal("36")).weight_per_box == Decimal("36.00")
    assert YarnCategoryCreate(name="C", weight_per_box=Decimal("36.125")).weight_per_box == Decimal("36.125")
    assert YarnCategoryCreate(name="C").no_of_cones == 6
    for bad in ("36.5", "36.1234", "-1"):
        with pytest.raises(ValidationError):
            YarnCategoryCreate(name="C", weight_per_box=Decimal(bad))


def test_entry_weight_allows_at_most_three_decimals():
    assert _ex_payload(1, weight="1.125").taking_weight_in_kg == Decimal("1.125")
    # 末尾的 0 不算小数位
    assert _ex_payload(1, weight="1.2000").taking_weight_in_kg == Decimal("1.2")
    assert _in_payload(1, 1, weight="360.0000").weight_in_kg == Decimal("360")
    with pytest.raises(ValidationError):
        _ex_payload(1, weight="1.1255")
    with pytest.raises(ValidationError):
        _in_payload(1, 1, weight="-5")


def test_category_crud_and_search(run_db):
    async def scenario(db):
        admin = await create_admin(db)
        created = await yarn_categories.create_category(
            db=db, current_user=admin,
            category_in=YarnCategoryCreate(name="  Cotton 40s ", description="combed", weight_per_box=Decimal("40")),
        )
        await yarn_categories.create_category(
            db=db, current_user=admin, category_in=YarnCategoryCreate(name="Polyester"),
        )
        updated = await yarn_categories.update_category(
            db=db, current_user=admin, category_id=created.id,
            category_in=YarnCategoryUpdate(no_of_cones=12),
        )
        found = await yarn_categories.list_categories(db=db, current_user=admin, search="comb")
        await yarn_categories.delete_category(db=db, current_user=admin, category_id=created.id)
        remaining = await yarn_categories.list_categories(db=db, current_user=admin, search=None)
        return created, updated, found, remaining

    created, updated, found, remaining = run_db(scenario)

    assert created.name == "Cotton 40s"
    assert created.weight_per_box == 40.0
    assert created.created_by_name == "Admin User"
    assert updated.no_of_cones == 12
    assert updated.weight_per_box == 40.0
    assert [c.name for c in found.data] == ["Cotton 40s"]
    assert [c.name for c in remaining.data] == ["Polyester"]


def test_referenced_category_and_party_cannot_be_deleted(run_db):
    async def scenario(db):
        admin = await create_admin(db)
        category = await create_category(db, admin)
        party = await create_party(db, admin)
        await add_in_entry(db, admin, category, party, "A", 10, "360")

        codes = []
        with pytest.raises(HTTPException) as exc:
            await yarn_categories.delete_category(db=db, current_user=admin, category_id=category.id)
        codes.append(exc.value.status_code)
        with pytest.raises(HTTPException) as exc:
            await parties.delete_party(db=db, current_user=admin, party_id=party.id)
        codes.append(exc.value.status_code)
        return codes

    assert run_db(scenario) == [400, 400]


# ========== 往来单位 ==========

def test_party_email_is_validated():
    with pytest.raises(ValidationError):
        PartyCreate(name="Mills", mobile_no="123", email_id="not-an-email")
    assert PartyCreate(name="Mills", mobile_no="123", email_id="Sales@Mills.com").email_id == "sales@mills.com"


def test_party_crud(run_db):
    async def scenario(db):
        admin = await create_admin(db)
        created = await parties.create_party(
            db=db, current_user=admin,
            party_in=PartyCreate(name="Sri Mills", mobile_no="9876543210", email_id="sales@srimills.com"),
        )
        updated = await parties.update_party(
            db=db, current_user=admin, party_id=created.id,
            party_in=PartyUpdate(mobile_no="9000000000"),
        )
        by_phone = await parties.list_parties(db=db, current_user=admin, search="9000")
        await parties.delete_party(db=db, current_user=admin, party_id=created.id)
        with pytest.raises(HTTPException) as exc:
            await parties.get_party(db=db, current_user=admin, party_id=created.id)
        return updated, by_phone, exc.value.status_code

    updated, by_phone, missing_code = run_db(scenario)

    assert updated.mobile_no == "9000000000"
    assert updated.name == "Sri Mills"
    assert by_phone.total == 1
    assert missing_code == 404


# ========== 入库 / 出库 ==========

def test_in_entry_create_list_and_available_lots(run_db):
    async def scenario(db):
        admin = await create_admin(db)
        category = await create_category(db, admin)
        party = await create_party(db, admin)

        created = await yarn_in_entries.create_in_entry(
            db=db, current_user=admin, entry_in=_in_payload(category.id, party.id),
        )
        await yarn_in_entries.create_in_entry(
            db=db, current_user=admin, entry_in=_in_payload(category.id, party.id, lot_no="B", boxes=5, weight="100"),
        )
        await add_ex_entry(db, admin, category, "A", "100")
        await add_ex_entry(db, admin, category, "B", "100")

        listing = await yarn_in_entries.list_in_entries(
            db=db, current_user=admin, page=1, limit=1,
            category_id=category.id, start_date=None, end_date=None, search=None,
        )
        by_party = await yarn_in_entries.list_in_entries(
            db=db, current_user=admin, page=1, limit=20,
            category_id=None, start_date=None, end_date=None, search="Sri",
        )
        lots = await yarn_in_entries.get_available_lots(db=db, current_user=admin, category_id=category.id)
        return created, listing, by_party, lots

    created, listing, by_party, lots = run_db(scenario)

    assert created.category_name == "Cotton 40s"
    assert created.party_name == "Sri Mills"
    assert created.weight_in_kg == 360.0
    assert listing.total == 2
    assert len(listing.data) == 1
    assert by_party.total == 2
    assert [(lot.lot_no, lot.available_boxes, lot.available_weight_in_kg) for lot in lots] == [("A", 7, 260.0)]


def test_in_entry_rejects_unknown_references(run_db):
    async def scenario(db):
        admin = await create_admin(db)
        category = await create_category(db, admin)
        with pytest.raises(HTTPException) as exc:
            await yarn_in_entries.create_in_entry(
                db=db, current_user=admin, entry_in=_in_payload(category.id, 999),
            )
        return exc.value.status_code, exc.value.detail

    code, detail = run_db(scenario)

    assert code == 400
    assert detail == "往来单位不存在"


def test_in_entry_update_and_delete(run_db):
    async def scenario(db):
        admin = await create_admin(db)
        category = await create_category(db, admin)
        party = await create_party(db, admin)
        entry = await add_in_entry(db, admin, category, party, "A", 10, "360")

        updated = await yarn_in_entries.update_in_entry(
            db=db, current_user=admin, entry_id=entry.id,
            entry_in=YarnInEntryUpdate(no_of_boxes=12, weight_in_kg=Decimal("432.5")),
        )
        await yarn_in_entries.delete_in_entry(db=db, current_user=admin, entry_id=entry.id)
        with pytest.raises(HTTPException) as exc:
            await yarn_in_entries.get_in_entry(db=db, current_user=admin, entry_id=entry.id)
        return updated, exc.value.status_code

    updated, missing_code = run_db(scenario)

    assert updated.no_of_boxes == 12
    assert updated.weight_in_kg == 432.5
    assert updated.lot_no == "A"
    assert missing_code == 404


def test_withdrawal_cannot_exceed_available_weight(run_db):
    async def scenario(db):
        admin = await create_admin(db)
        category = await create_category(db, admin)
        party = await create_party(db, admin)
        await add_in_entry(db, admin, category, party, "A", 10, "360")

        first = await yarn_ex_entries.create_ex_entry(
            db=db, current_user=admin, entry_in=_ex_payload(category.id, weight="300"),
        )
        codes = []
        for payload in [_ex_payload(category.id, weight="60.001"), _ex_payload(category.id, lot_no="NOPE")]:
            with pytest.raises(HTTPException) as exc:
                await yarn_ex_entries.create_ex_entry(db=db, current_user=admin, entry_in=payload)
            codes.append(exc.value.status_code)

        exact = await yarn_ex_entries.create_ex_entry(
            db=db, current_user=admin, entry_in=_ex_payload(category.id, weight="60"),
        )
        return first, exact, codes

    first, exact, codes = run_db(scenario)

    assert first.taking_weight_in_kg == 300.0
    assert first.category_name == "Cotton 40s"
    assert exact.taking_weight_in_kg == 60.0
    assert codes == [400, 400]


def test_updating_withdrawal_excludes_itself(run_db):
    async def scenario(db):
        admin = await create_admin(db)
        category = await create_category(db, admin)
        party = await create_party(db, admin)
        await add_in_entry(db, admin, category, party, "A", 10, "360")
        entry = await add_ex_entry(db, admin, category, "A", "300")

        enlarged = await yarn_ex_entries.update_ex_entry(
            db=db, current_user=admin, entry_id=entry.id,
            entry_in=YarnExEntryUpdate(taking_weight_in_kg=Decimal("360")),
        )
        with pytest.raises(HTTPException) as exc:
            await yarn_ex_entries.update_ex_entry(
                db=db, current_user=admin, entry_id=entry.id,
                entry_in=YarnExEntryUpdate(taking_weight_in_kg=Decimal("360.5")),
            )
        listing = await yarn_ex_entries.list_ex_entries(
            db=db, current_user=admin, page=1, limit=20,
            category_id=category.id, start_date=datetime(2024, 1, 1), end_date=datetime(2024, 12, 31), search="a",
        )
        await yarn_ex_entries.delete_ex_entry(db=db, current_user=admin, entry_id=entry.id)
        return enlarged, exc.value.status_code, listing

    enlarged, over_code, listing = run_db(scenario)

    assert enlarged.taking_weight_in_kg == 360.0
    assert over_code == 400
    assert listing.total == 1


# ========== 看板 ==========

def test_dashboard_summary_and_lot_detail(run_db):
    async def scenario(db):
        admin = await create_admin(db)
        cotton = await create_category(db, admin, name="Cotton")
        acrylic = await create_category(db, admin, name="Acrylic")
        unused = await create_category(db, admin, name="Unused")
        party = await create_party(db, admin)
        await add_in_entry(db, admin, cotton, party, "A", 10, "360")
        await add_in_entry(db, admin, cotton, party, "B", 5, "100")
        await add_in_entry(db, admin, acrylic, party, "A", 2, "50")
        await add_ex_entry(db, admin, cotton, "A", "100")
        # 没有入库记录的类别下的出库记录不计入批次
        await add_ex_entry(db, admin, unused, "A", "30")

        summary = await dashboard.get_summary(db=db, current_user=admin)
        all_a = await dashboard.get_lot_detail(db=db, current_user=admin, lot_no="A", category_id=None)
        cotton_a = await dashboard.get_lot_detail(db=db, current_user=admin, lot_no="A", category_id=cotton.id)
        with pytest.raises(HTTPException) as exc:
            await dashboard.get_lot_detail(db=db, current_user=admin, lot_no="ZZZ", category_id=None)
        return summary, all_a, cotton_a, exc.value.status_code

    summary, all_a, cotton_a, missing_code = run_db(scenario)

    assert [c.category_name for c in summary.categories] == ["Acrylic", "Cotton"]
    cotton_summary = summary.categories[1]
    assert cotton_summary.total_weight == 460.0
    assert cotton_summary.available_weight == 360.0
    assert [lot.lot_no for lot in cotton_summary.lots] == ["A", "B"]
    assert summary.total_weight == 510.0
    assert summary.available_weight == 410.0

    assert all_a.total_weight == 410.0
    assert all_a.available_weight == 310.0
    assert len(all_a.in_entries) == 2
    assert [e.category_name for e in all_a.ex_entries] == ["Cotton"]
    assert cotton_a.available_weight == 260.0
    assert missing_code == 404
