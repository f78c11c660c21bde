# finance_tracker/tests/test_categories_api.py

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from finance_tracker.business_logic.category_service import CategoryService
from finance_tracker.core.exceptions import ServerError
from finance_tracker.data.database import build_engine, build_session_factory
from finance_tracker.data.models import Base, Category, Transaction, User
from finance_tracker.data.repositories import CategoryRepository, TransactionRepository


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _system_category(client, token):
    categories = client.get("/api/categories", headers=_bearer(token)).json()
    return next(c for c in categories if c["isSystem"])


def _create_category(client, token, name):
    response = client.post("/api/categories", headers=_bearer(token), json={"name": name})
    assert response.status_code == 201, response.text
    return response.json()


def _create_transaction(client, token, category_id, title="Visit", amount=120.50, date="2024-03-15"):
    response = client.post("/api/transactions", headers=_bearer(token), json={
        "title": title, "amount": amount, "type": "expense", "date": date, "categoryId": category_id
    })
    assert response.status_code == 201, response.text
    return response.json()


def test_list_puts_system_category_first(client, register_user):
    token, _ = register_user()
    _create_category(client, token, "Books")
    _create_category(client, token, "Aaa Health")

    names = [c["name"] for c in client.get("/api/categories", headers=_bearer(token)).json()]
    assert names == ["Other", "Aaa Health", "Books"]


def test_create_and_rename_category(client, register_user):
    token, user = register_user()

    created = _create_category(client, token, "  Health  ")
    assert created["name"] == "Health"
    assert created["isSystem"] is False
    assert created["userId"] == user["id"]

    renamed = client.patch(f"/api/categories/{created['id']}", headers=_bearer(token), json={"name": "Doctors"})
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Doctors"


def test_category_name_too_short(client, register_user):
    token, _ = register_user()

    response = client.post("/api/categories", headers=_bearer(token), json={"name": " x "})
    assert response.status_code == 400
    assert response.json()["issues"][0]["path"] == "name"


def test_categories_require_authentication(client):
    assert client.get("/api/categories").status_code == 401


def test_delete_reassigns_transactions_to_system_category(client, register_user):
    token, _ = register_user(email="a@x.com")
    system = _system_category(client, token)
    health = _create_category(client, token, "Health")
    transaction = _create_transaction(client, token, health["id"])
    assert transaction["categoryId"] == health["id"]

    response = client.delete(f"/api/categories/{health['id']}", headers=_bearer(token))
    assert response.status_code == 204

    transactions = client.get("/api/transactions", headers=_bearer(token)).json()
    assert len(transactions) == 1
    assert transactions[0]["id"] == transaction["id"]
    assert transactions[0]["categoryId"] == system["id"]
    assert transactions[0]["category"]["name"] == "Other"
    assert transactions[0]["amount"] == 120.50
    assert transactions[0]["date"] == "2024-03-15"

    ids = [c["id"] for c in client.get("/api/categories", headers=_bearer(token)).json()]
    assert health["id"] not in ids


def test_delete_system_category_is_rejected(client, register_user):
    token, _ = register_user()
    system = _system_category(client, token)

    response = client.delete(f"/api/categories/{system['id']}", headers=_bearer(token))
    assert response.status_code == 400
    assert response.json()["message"] == "The default category cannot be removed."


def test_delete_other_users_category_is_not_found(client, register_user):
    owner_token, _ = register_user(email="owner@x.com")
    intruder_token, _ = register_user(email="intruder@x.com")
    health = _create_category(client, owner_token, "Health")

    response = client.delete(f"/api/categories/{health['id']}", headers=_bearer(intruder_token))
    assert response.status_code == 404
    assert response.json()["message"] == "Category not found."

    still_there = [c["id"] for c in client.get("/api/categories", headers=_bearer(owner_token)).json()]
    assert health["id"] in still_there


def test_delete_only_moves_transactions_of_that_category(client, register_user):
    token, _ = register_user()
    system = _system_category(client, token)
    health = _create_category(client, token, "Health")
    food = _create_category(client, token, "Food")
    _create_transaction(client, token, health["id"], title="Visit")
    kept = _create_transaction(client, token, food["id"], title="Lunch")

    client.delete(f"/api/categories/{health['id']}", headers=_bearer(token))

    by_id = {t["id"]: t for t in client.get("/api/transactions", headers=_bearer(token)).json()}
    assert by_id[kept["id"]]["categoryId"] == food["id"]
    assert sorted(t["categoryId"] for t in by_id.values()) == sorted([food["id"], system["id"]])


def test_failed_delete_leaves_transactions_untouched(client, register_user, db_session, monkeypatch):
    token, user = register_user()
    health = _create_category(client, token, "Health")
    transaction = _create_transaction(client, token, health["id"])

    def _broken_delete(self, category_id):
        raise RuntimeError("disk full")

    monkeypatch.setattr(CategoryRepository, "delete_category", _broken_delete)

    with pytest.raises(RuntimeError):
        CategoryService(db_session).delete_category(user["id"], health["id"])

    stored = db_session.query(Transaction).filter(Transaction.id == transaction["id"]).one()
    assert stored.category_id == health["id"]
    assert db_session.query(Category).filter(Category.id == health["id"]).count() == 1


def test_delete_without_system_category_is_a_server_error(client, register_user, db_session):
    token, user = register_user()
    health = _create_category(client, token, "Health")
    db_session.query(Category).filter(Category.user_id == user["id"], Category.is_system.is_(True)).delete()
    db_session.commit()

    with pytest.raises(ServerError) as exc_info:
        CategoryService(db_session).delete_category(user["id"], health["id"])
    assert exc_info.value.message == "Default category not found for reassignment."


def test_store_rejects_deleting_a_category_still_in_use(client, register_user, db_session, monkeypatch):
    token, user = register_user()
    health = _create_category(client, token, "Health")
    transaction = _create_transaction(client, token, health["id"])

    # Skipping the reassignment leaves a reference the foreign key refuses to orphan.
    monkeypatch.setattr(TransactionRepository, "reassign_category", lambda self, *args: 0)

    with pytest.raises(IntegrityError):
        CategoryService(db_session).delete_category(user["id"], health["id"])

    stored = db_session.query(Transaction).filter(Transaction.id == transaction["id"]).one()
    assert stored.category_id == health["id"]
    assert db_session.query(Category).filter(Category.id == health["id"]).count() == 1


def _resolved_category_ids(session, user_id):
    # One statement, so the reader sees a single consistent snapshot.
    rows = session.query(Transaction.category_id, Category.id).outerjoin(
        Category, Category.id == Transaction.category_id
    ).filter(Transaction.user_id == user_id).all()
    return [tuple(row) for row in rows]


def test_reader_never_sees_a_dangling_category_during_delete(tmp_path, monkeypatch):
    # File database so the writer and the reader use separate connections.
    engine = build_engine(f"sqlite:///{tmp_path / 'categories.db'}")
    Base.metadata.create_all(engine)
    factory = build_session_factory(engine)

    setup = factory()
    user = User(id="user-1", name="Ana", email="a@x.com", password_hash="x")
    system = Category(id="cat-other", name="Other", is_system=True)
    health = Category(id="cat-health", name="Health", is_system=False)
    user.categories.extend([system, health])
    setup.add(user)
    setup.flush()
    setup.add(Transaction(id="tx-1", user_id="user-1", category_id="cat-health", title="Visit",
                          amount=Decimal("120.50"), type="expense", date=date(2024, 3, 15)))
    setup.commit()
    setup.close()

    writer, reader = factory(), factory()
    seen = []
    original_delete = CategoryRepository.delete_category

    def _delete_then_read(self, category_id):
        deleted = original_delete(self, category_id)
        # Writer has reassigned and deleted but not committed yet.
        seen.append(_resolved_category_ids(reader, "user-1"))
        reader.rollback()
        return deleted

    monkeypatch.setattr(CategoryRepository, "delete_category", _delete_then_read)

    try:
        seen.append(_resolved_category_ids(reader, "user-1"))
        reader.rollback()

        assert CategoryService(writer).delete_category("user-1", "cat-health") == 1

        seen.append(_resolved_category_ids(reader, "user-1"))
        reader.rollback()
    finally:
        writer.close()
        reader.close()
        engine.dispose()

    before, during, after = seen
    for rows in seen:
        assert rows and all(category_id == resolved for category_id, resolved in rows)
    assert before == during == [("cat-health", "cat-health")]
    assert after == [("cat-other", "cat-other")]
