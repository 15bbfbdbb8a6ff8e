import pytest

import config
from app import create_app
from models import SignAllocation
from services import booking


@pytest.fixture
def clean_app():
    app = create_app({'TESTING': True, 'CRON_TOKEN': 'secret-test-token'})
    return app


@pytest.fixture
def client(clean_app):
    return clean_app.test_client()


def test_cron_clear_holds_no_token(client):
    response = client.post('/cron/clear-expired-holds')
    assert response.status_code == 401
    assert response.json == {"success": False, "error": "unauthorized"}


def test_cron_clear_holds_wrong_token(client):
    response = client.post('/cron/clear-expired-holds', headers={"X-CRON-TOKEN": "wrong"})
    assert response.status_code == 401
    assert response.json == {"success": False, "error": "unauthorized"}


def test_cron_clear_holds_denied_when_token_unset(monkeypatch):
    monkeypatch.setattr(config, "CRON_TOKEN", None)
    client = create_app({'TESTING': True}).test_client()

    response = client.post('/cron/clear-expired-holds', headers={"X-CRON-TOKEN": ""})
    assert response.status_code == 401


def test_cron_clear_holds_success(client, mocker):
    ledger = mocker.Mock()
    ledger.cleanup_expired_holds.return_value = 5
    mocker.patch('services.booking.get_ledger', return_value=ledger)

    response = client.post('/cron/clear-expired-holds', headers={"X-CRON-TOKEN": "secret-test-token"})
    assert response.status_code == 200
    assert response.json["success"] is True
    assert response.json["cleaned_count"] == 5
    assert response.json["timestamp"]


def test_cron_clear_holds_removes_expired(client, mocker):
    ledger = booking.get_ledger()
    hold = ledger.create_soft_hold([SignAllocation("letter-A")], "agency-1", "sess-1")
    later = ledger.get_hold(hold.hold_id).expires_at
    mocker.patch.object(ledger, "clock", return_value=later)
    mocker.patch('services.booking.get_ledger', return_value=ledger)

    response = client.post('/cron/clear-expired-holds', headers={"X-CRON-TOKEN": "secret-test-token"})
    assert response.json["cleaned_count"] == 1
    assert booking.get_hold_store().list_holds() == []


def test_cleanup_cli_command(clean_app, mocker):
    ledger = mocker.Mock()
    ledger.cleanup_expired_holds.return_value = 3
    mocker.patch('services.booking.get_ledger', return_value=ledger)

    result = clean_app.test_cli_runner().invoke(args=["cleanup-expired-holds"])
    assert "Deleted 3 expired holds." in result.output
