import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from fee_queue.api.v1.admin import service as admin_service
from fee_queue.api.v1.admin.schemas import CounterUpdate
from fee_queue.core.exceptions import StorageError

from conftest import TEST_PASSWORD, auth_headers


@pytest.mark.asyncio
async def test_admin_sets_up_counter_fee_type_and_accountant(client: AsyncClient, make_admin) -> None:
    admin = await make_admin()
    headers = auth_headers(admin)

    counter = await client.post(
        "/api/v1/admin/counters",
        json={"counterNumber": 2, "counterName": "Counter 2 - Exam", "feeTypes": ["exam", "EXAM", "library"]},
        headers=headers,
    )
    assert counter.status_code == 201
    counter_body = counter.json()
    assert counter_body["feeTypes"] == ["EXAM", "LIBRARY"]
    assert counter_body["lastSequence"] == 0

    fee_type = await client.post(
        "/api/v1/admin/fee-types",
        json={"code": "exam", "typeName": "Examination Fee", "defaultAmount": 2500},
        headers=headers,
    )
    assert fee_type.status_code == 201
    assert fee_type.json()["code"] == "EXAM"

    accountant = await client.post(
        "/api/v1/admin/accountants",
        json={
            "fullName": "Lata Menon",
            "email": "lata@college.edu",
            "password": "Counter2Pass",
            "uniqueId": "acc-002",
            "assignedCounterId": counter_body["id"],
        },
        headers=headers,
    )
    assert accountant.status_code == 201
    acc_body = accountant.json()
    assert acc_body["uniqueId"] == "ACC-002"
    assert acc_body["assignedCounterId"] == counter_body["id"]

    counters = await client.get("/api/v1/admin/counters", headers=headers)
    assert counters.json()[0]["assignedAccountantId"] == acc_body["userId"]

    login = await client.post(
        "/api/v1/auth/login",
        json={"identifier": "lata@college.edu", "password": "Counter2Pass"},
    )
    assert login.status_code == 200
    assert login.json()["user"]["role"] == "accountant"
    assert login.json()["user"]["accountant"]["assignedCounterId"] == counter_body["id"]


@pytest.mark.asyncio
async def test_duplicate_counter_number(client: AsyncClient, make_admin, make_counter) -> None:
    admin = await make_admin()
    await make_counter(1)

    response = await client.post(
        "/api/v1/admin/counters",
        json={"counterNumber": 1, "counterName": "Again"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Counter number already exists"}


@pytest.mark.asyncio
async def test_reassign_and_close_counter(client: AsyncClient, make_admin, make_counter, make_accountant) -> None:
    admin = await make_admin()
    first = await make_counter(1, "Counter 1")
    second = await make_counter(2, "Counter 2")
    accountant, _ = await make_accountant(counter=first)
    headers = auth_headers(admin)

    moved = await client.patch(
        f"/api/v1/admin/counters/{second.id}",
        json={"assignedAccountantId": str(accountant.id), "isActive": False},
        headers=headers,
    )
    assert moved.status_code == 200
    assert moved.json()["assignedAccountantId"] == str(accountant.id)
    assert moved.json()["isActive"] is False

    counters = {c["counterNumber"]: c for c in (await client.get("/api/v1/admin/counters", headers=headers)).json()}
    assert counters[1]["assignedAccountantId"] is None

    me = await client.get("/api/v1/auth/me", headers=auth_headers(accountant))
    assert me.json()["user"]["accountant"]["assignedCounterId"] == str(second.id)


@pytest.mark.asyncio
async def test_deactivate_account(client: AsyncClient, make_admin, make_student) -> None:
    admin = await make_admin()
    student, _ = await make_student(roll_number="21CS404")

    response = await client.patch(
        f"/api/v1/admin/accounts/{student.id}/active",
        json={"isActive": False},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200

    login = await client.post("/api/v1/auth/login", json={"identifier": "21CS404", "password": TEST_PASSWORD})
    assert login.status_code == 401


@pytest.mark.asyncio
async def test_admin_routes_require_admin(client: AsyncClient, make_accountant) -> None:
    accountant, _ = await make_accountant()
    response = await client.get("/api/v1/admin/counters", headers=auth_headers(accountant))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_reassigning_counter_releases_previous_accountant(
    client: AsyncClient, make_admin, make_counter, make_accountant
) -> None:
    admin = await make_admin()
    counter = await make_counter(1, "Counter 1")
    first, _ = await make_accountant(full_name="First Holder", email="first@college.edu", unique_id="ACC101", counter=counter)
    second, _ = await make_accountant(full_name="Second Holder", email="second@college.edu", unique_id="ACC102")
    headers = auth_headers(admin)

    response = await client.patch(
        f"/api/v1/admin/counters/{counter.id}",
        json={"assignedAccountantId": str(second.id)},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["assignedAccountantId"] == str(second.id)

    first_me = await client.get("/api/v1/auth/me", headers=auth_headers(first))
    assert first_me.json()["user"]["accountant"]["assignedCounterId"] is None
    second_me = await client.get("/api/v1/auth/me", headers=auth_headers(second))
    assert second_me.json()["user"]["accountant"]["assignedCounterId"] == str(counter.id)

    # A new accountant created onto the same counter takes it over the same way
    third = await client.post(
        "/api/v1/admin/accountants",
        json={
            "fullName": "Third Holder",
            "email": "third@college.edu",
            "password": "Counter1Pass",
            "uniqueId": "ACC103",
            "assignedCounterId": str(counter.id),
        },
        headers=headers,
    )
    assert third.status_code == 201

    second_me = await client.get("/api/v1/auth/me", headers=auth_headers(second))
    assert second_me.json()["user"]["accountant"]["assignedCounterId"] is None
    counters = (await client.get("/api/v1/admin/counters", headers=headers)).json()
    assert counters[0]["assignedAccountantId"] == third.json()["userId"]


@pytest.mark.asyncio
async def test_counter_update_storage_failure(db_session: AsyncSession, make_counter, monkeypatch) -> None:
    counter = await make_counter(1, "Counter 1")

    async def failing_commit():
        raise OperationalError("UPDATE counters", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db_session, "commit", failing_commit)

    with pytest.raises(StorageError):
        await admin_service.update_counter(db_session, counter.id, CounterUpdate(counter_name="Renamed"))
