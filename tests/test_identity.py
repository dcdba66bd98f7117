"""
Unit tests for session profiles and the external session id.
"""

from musebag.core.config import GUEST_SETTINGS
from musebag.core.session_store import Session, SessionProfile
from musebag.services.identity import get_external_session_id, get_session_profile, is_guest

TOKEN = "a" * 32 + "0123456789abcdef0123456789abcdef"


def test_guest_profile_created_once() -> None:
    session = Session(token=TOKEN)
    profile = get_session_profile(session)
    assert profile.id == "guest"
    assert profile.settings == GUEST_SETTINGS
    assert profile.query_counter == 0
    assert get_session_profile(session) is profile
    assert is_guest(session)


def test_external_session_id_format() -> None:
    session = Session(token=TOKEN)
    assert get_external_session_id(session) == "0123456789abcdef0123456789abcdef-0"


def test_external_session_id_stable_while_counter_advances() -> None:
    session = Session(token=TOKEN)
    first = get_external_session_id(session)
    session.profile.query_counter += 3
    assert get_external_session_id(session) == first
    assert session.profile.ext_session_id == first


def test_authenticated_profile() -> None:
    session = Session(token=TOKEN)
    session.profile = SessionProfile.from_user({"ID": 42, "Email": "ann@example.org", "QueryCounter": "5", "Name": "Ann"})
    assert not is_guest(session)
    assert session.profile.email == "ann@example.org"
    assert session.profile.settings == GUEST_SETTINGS
    assert get_external_session_id(session) == "0123456789abcdef0123456789abcdef-5"


class TestProfileAttributes:
    def test_wire_names_map_to_fields(self) -> None:
        profile = SessionProfile(id=1, email="a@b.c")
        assert profile.get_attribute("ID") == 1
        assert profile.get_attribute("Email") == "a@b.c"
        assert profile.get_attribute("QueryCounter") == 0
        assert profile.get_attribute("Unknown") is None

    def test_extra_attributes(self) -> None:
        profile = SessionProfile()
        profile.set_attribute("Name", "Ann")
        assert profile.get_attribute("Name") == "Ann"
        assert profile.to_dict()["Name"] == "Ann"
        assert "extSessionId" not in profile.to_dict()
