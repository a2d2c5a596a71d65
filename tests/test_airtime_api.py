import httpx
from sqlalchemy.exc import OperationalError

from app.core.config import get_settings
from app.core.database import Base, engine
from app.core.errors import DatabaseNotConfiguredError
from app.models import AirtimeTransaction, PhoneNumber
from app.services import airtime as airtime_service
from app.services import one4all as one4all_service
from app.services.one4all import One4AllClient, ProviderResult

URL = "/api/airtime"


def _transactions(db, number):
    db.expire_all()
    return db.query(AirtimeTransaction).filter(AirtimeTransaction.phone_number == number).all()


def test_rejects_short_recipient(client):
    res = client.post(URL, json={"recipient": "123"})
    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert "Invalid phone number" in body["message"]


def test_rejects_missing_recipient(client, db):
    res = client.post(URL, json={"retailer": "x", "amount": "100"})
    assert res.status_code == 400
    assert res.json()["success"] is False
    assert db.query(PhoneNumber).count() == 0


def test_rejects_recipient_that_is_short_after_trimming(client):
    res = client.post(URL, json={"recipient": "   12345    "})
    assert res.status_code == 400


def test_rejects_malformed_body(client):
    res = client.post(URL, content=b"not json", headers={"Content-Type": "application/json"})
    assert res.status_code == 400
    assert res.json()["success"] is False


def test_sends_airtime_for_fresh_number(client, db):
    res = client.post(URL, json={"recipient": "0245667942", "retailer": "", "amount": ""})
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["data"]["recipient"] == "0245667942"
    assert body["data"]["amount"] == "10.00"
    assert body["data"]["reference"] == "SIM-0245667942"

    assert db.query(PhoneNumber).filter(PhoneNumber.phone_number == "0245667942").count() == 1
    [tx] = _transactions(db, "0245667942")
    assert tx.status == "completed"
    assert tx.transaction_reference == "SIM-0245667942"
    assert tx.processed_at is not None
    assert body["data"]["transaction_id"] == tx.id


def test_second_request_for_same_number_is_forbidden(client, db):
    assert client.post(URL, json={"recipient": "0245667942"}).status_code == 200

    res = client.post(URL, json={"recipient": "0245667942"})
    assert res.status_code == 403
    body = res.json()
    assert body["success"] is False
    assert "already received airtime" in body["message"]
    assert len(_transactions(db, "0245667942")) == 1


def test_recipient_is_trimmed_before_duplicate_check(client):
    assert client.post(URL, json={"recipient": " 0245667942 "}).status_code == 200
    res = client.post(URL, json={"recipient": "0245667942"})
    assert res.status_code == 403


def test_provider_failure_marks_transaction_failed(client, db):
    res = client.post(URL, json={"recipient": "0000000000"})
    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert body["data"]["reference"] is None

    [tx] = _transactions(db, "0000000000")
    assert tx.status == "failed"
    assert tx.transaction_reference is None
    assert tx.processed_at is not None

    # The number stays burned even though the top-up failed.
    assert client.post(URL, json={"recipient": "0000000000"}).status_code == 403


def test_pending_provider_outcome_is_reported_as_success(client, db, monkeypatch):
    def _pending(self, recipient):
        return ProviderResult(True, "pending", "", transaction_id="TRX-PENDING")

    monkeypatch.setattr(One4AllClient, "send_airtime", _pending)
    res = client.post(URL, json={"recipient": "0245667942"})
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["data"]["status"] == "pending"
    assert "processed" in body["message"]

    [tx] = _transactions(db, "0245667942")
    assert tx.status == "completed"
    assert tx.transaction_reference == "TRX-PENDING"


def test_provider_error_status_is_relayed(client, monkeypatch):
    def _unreachable(self, recipient):
        return ProviderResult(False, "failed", "Unable to reach airtime provider.", http_status=502)

    monkeypatch.setattr(One4AllClient, "send_airtime", _unreachable)
    res = client.post(URL, json={"recipient": "0245667942"})
    assert res.status_code == 502
    assert res.json()["message"] == "Unable to reach airtime provider."


def test_missing_provider_reference_is_synthesized(client, db, monkeypatch):
    monkeypatch.setattr(One4AllClient, "send_airtime", lambda self, recipient: ProviderResult(True, "success", "ok"))
    res = client.post(URL, json={"recipient": "0245667942"})
    assert res.status_code == 200
    reference = res.json()["data"]["reference"]
    assert reference.startswith("AIRTIME_")
    [tx] = _transactions(db, "0245667942")
    assert tx.transaction_reference == reference


def test_status_update_failure_does_not_change_success_response(client, db, monkeypatch):
    def _broken_update(*args, **kwargs):
        raise OperationalError("UPDATE airtime_transactions", {}, Exception("connection reset"))

    monkeypatch.setattr(airtime_service, "update_transaction_status", _broken_update)
    res = client.post(URL, json={"recipient": "0245667942"})
    assert res.status_code == 200
    assert res.json()["success"] is True
    [tx] = _transactions(db, "0245667942")
    assert tx.status == "pending"


def test_missing_store_during_status_update_keeps_success_response(client, db, monkeypatch):
    def _missing_store(*args, **kwargs):
        raise DatabaseNotConfiguredError()

    monkeypatch.setattr(airtime_service, "update_transaction_status", _missing_store)
    res = client.post(URL, json={"recipient": "0245667942"})
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["data"]["reference"] == "SIM-0245667942"
    [tx] = _transactions(db, "0245667942")
    assert tx.status == "pending"


def test_proxy_error_is_reported_as_bad_gateway(client, db, monkeypatch):
    def _handler(request):
        raise httpx.ProxyError("proxy refused", request=request)

    config = get_settings().model_copy(update={"airtime_test_mode": False})
    monkeypatch.setattr(
        airtime_service,
        "One4AllClient",
        lambda: One4AllClient(config, transport=httpx.MockTransport(_handler)),
    )
    res = client.post(URL, json={"recipient": "0245667942"})
    assert res.status_code == 502
    body = res.json()
    assert body["success"] is False
    assert body["message"] == "Unable to reach airtime provider."

    [tx] = _transactions(db, "0245667942")
    assert tx.status == "failed"
    assert tx.transaction_reference is None


def test_missing_provider_base_url_is_reported_as_bad_gateway(client, db, monkeypatch):
    monkeypatch.setattr(one4all_service.settings, "airtime_test_mode", False)
    monkeypatch.setattr(one4all_service.settings, "one4all_base_url", "")
    res = client.post(URL, json={"recipient": "0245667942"})
    assert res.status_code == 502
    assert res.json()["success"] is False
    [tx] = _transactions(db, "0245667942")
    assert tx.status == "failed"


def test_client_construction_failure_fails_transaction(client, db, monkeypatch):
    def _broken_client():
        raise RuntimeError("bad provider config")

    monkeypatch.setattr(airtime_service, "One4AllClient", _broken_client)
    res = client.post(URL, json={"recipient": "0245667942"})
    assert res.status_code == 500
    body = res.json()
    assert body["success"] is False
    assert "bad provider config" not in body["message"]

    [tx] = _transactions(db, "0245667942")
    assert tx.status == "failed"
    assert tx.processed_at is not None


def test_unexpected_provider_exception_fails_transaction(client, db, monkeypatch):
    def _explode(self, recipient):
        raise RuntimeError("boom")

    monkeypatch.setattr(One4AllClient, "send_airtime", _explode)
    res = client.post(URL, json={"recipient": "0245667942"})
    assert res.status_code == 500
    body = res.json()
    assert body["success"] is False
    assert "boom" not in body["message"]

    [tx] = _transactions(db, "0245667942")
    assert tx.status == "failed"
    assert tx.processed_at is not None


def test_lost_insert_race_is_treated_as_already_served(client, db, monkeypatch):
    monkeypatch.setattr(airtime_service, "save_phone_number", lambda db, number: None)
    res = client.post(URL, json={"recipient": "0245667942"})
    assert res.status_code == 403
    assert _transactions(db, "0245667942") == []


def test_missing_tables_report_database_not_configured(client):
    Base.metadata.drop_all(bind=engine)
    res = client.post(URL, json={"recipient": "0245667942"})
    assert res.status_code == 500
    body = res.json()
    assert body["success"] is False
    assert body["error_code"] == "DATABASE_NOT_CONFIGURED"


def test_health_endpoints(client):
    assert client.get("/healthz").json()["status"] == "ok"
    assert client.get("/readyz").json()["status"] == "ready"
