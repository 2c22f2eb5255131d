"""Tests for the acting-user session context."""

import threading

import pytest

from billsense.domain.errors import NotFoundError, ProfileTimeoutError
from billsense.domain.session import SessionContext


def test_profile_and_company_resolve(temp_db, session, user_id, company_id):
    assert session.profile.id == user_id
    assert session.profile.email == "jane@example.com"
    assert session.company_id == company_id
    assert session.require_company_id() == company_id
    assert session.company().name == "Jane Builds"


def test_profile_is_fetched_once(temp_db, user_id, config, monkeypatch):
    calls = []
    original = temp_db.get_profile

    def counting_get_profile(uid):
        calls.append(uid)
        return original(uid)

    monkeypatch.setattr(temp_db, "get_profile", counting_get_profile)
    session = SessionContext(temp_db, user_id, config)

    session.profile
    session.company_id
    session.refresh_profile()

    assert calls == [user_id, user_id]
    session.close()


def test_user_without_company(temp_db, company_service, config):
    user_id = company_service.register_user("solo@example.com", "Solo")
    session = SessionContext(temp_db, user_id, config)

    assert session.profile is not None
    assert session.company_id is None
    assert session.company() is None
    with pytest.raises(NotFoundError, match="Company profile not found"):
        session.require_company_id()
    session.close()


def test_unknown_user_has_no_profile(temp_db, config):
    session = SessionContext(temp_db, 999, config)

    assert session.profile is None
    with pytest.raises(NotFoundError):
        session.require_company_id()
    session.close()


def test_slow_profile_lookup_times_out(temp_db, user_id, config, monkeypatch):
    release = threading.Event()

    def slow_get_profile(uid):
        release.wait(2)
        return None

    monkeypatch.setattr(temp_db, "get_profile", slow_get_profile)
    session = SessionContext(temp_db, user_id, config.model_copy(update={"profile_fetch_timeout": 0.05}))

    with pytest.raises(ProfileTimeoutError):
        session.fetch_profile()
    # The property degrades to "no profile" instead of failing
    assert session.profile is None
    assert session.company_id is None

    release.set()
    session.close()


def test_refresh_listeners(session):
    calls = []

    def broken():
        raise RuntimeError("listener failed")

    session.add_refresh_listener(broken)
    session.add_refresh_listener(lambda: calls.append("reloaded"))

    session.notify_refresh()

    assert calls == ["reloaded"]


def test_close_is_idempotent(temp_db, user_id, config):
    received = []
    with SessionContext(temp_db, user_id, config) as session:
        subscription = session.subscribe_notifications(received.append)

    assert session.closed
    assert subscription.closed
    session.close()

    with pytest.raises(RuntimeError, match="Session is closed"):
        session.subscribe_notifications(received.append)
