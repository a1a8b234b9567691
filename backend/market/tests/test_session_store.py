from unittest import mock

import pytest
from django.contrib.auth import get_user_model
from django.db import DatabaseError
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken
from rest_framework_simplejwt.tokens import RefreshToken

from market import results
from market.auth_service import AuthEvent, AuthService
from market.models import Profile, Role, UserRole
from market.session_store import SessionStore

User = get_user_model()


def make_member(email, *, roles=(Role.SELLER,), name="Amina Yusuf", phone="+252611234567", location="Mogadishu"):
    user = User.objects.create_user(username=email, email=email, password="pass1234")
    Profile.objects.create(user=user, name=name, email=email, phone=phone, location=location)
    for role in roles:
        UserRole.objects.create(user=user, role=role)
    return user


def test_anonymous_session_settles_immediately():
    store = SessionStore(AuthService())

    assert store.session is None
    assert store.profile is None
    assert store.roles == []
    assert store.is_loading is False
    assert store.is_authenticated is False
    assert len(store.tasks) == 0


@pytest.mark.django_db
def test_restored_session_loads_profile_after_drain():
    user = make_member("amina@example.com", roles=(Role.SELLER, Role.BUYER))
    store = SessionStore(AuthService(user=user))

    # Profile work is queued, not run inside the initial event.
    assert store.is_loading is True
    assert store.profile is None
    assert len(store.tasks) == 1

    store.tasks.drain()

    assert store.is_loading is False
    assert store.profile.name == "Amina Yusuf"
    assert store.profile.id == user.id
    assert store.roles == ["buyer", "seller"]
    assert store.is_seller is True


@pytest.mark.django_db
def test_register_creates_identity_profile_and_roles():
    store = SessionStore(AuthService())

    result = store.register(
        "Hodan Ali",
        "Hodan@Example.com ",
        "secret123",
        "Hargeisa",
        ["seller", "buyer", "seller"],
        phone="+252 63 4445566",
    )

    assert result.success is True
    user = User.objects.get(username="hodan@example.com")
    assert store.session.user_id == user.id
    assert store.session.access_token
    assert store.session.refresh_token

    profile = Profile.objects.get(user=user)
    assert profile.name == "Hodan Ali"
    assert profile.location == "Hargeisa"
    assert profile.phone == "+252 63 4445566"
    assert sorted(UserRole.objects.filter(user=user).values_list("role", flat=True)) == ["buyer", "seller"]

    store.tasks.drain()
    assert store.profile.email == "hodan@example.com"
    assert store.is_seller is True


@pytest.mark.django_db
def test_register_rejects_existing_email():
    make_member("taken@example.com")
    store = SessionStore(AuthService())

    result = store.register("Other", "taken@example.com", "secret123", "Kismayo", ["buyer"])

    assert result.success is False
    assert result.error == "User already registered"
    assert result.code == results.VALIDATION
    assert store.session is None
    assert User.objects.count() == 1


@pytest.mark.django_db
def test_register_validates_roles_and_location_before_writing():
    store = SessionStore(AuthService())

    bad_role = store.register("A", "a@example.com", "secret123", "Kismayo", ["farmer"])
    no_role = store.register("A", "a@example.com", "secret123", "Kismayo", [])
    bad_location = store.register("A", "a@example.com", "secret123", "Nairobi", ["buyer"])

    for result in (bad_role, no_role, bad_location):
        assert result.success is False
        assert result.code == results.VALIDATION
    assert User.objects.count() == 0
    assert Profile.objects.count() == 0


@pytest.mark.django_db
def test_register_rolls_back_identity_when_role_insert_fails():
    store = SessionStore(AuthService())

    with mock.patch.object(UserRole.objects, "bulk_create", side_effect=DatabaseError("insert failed")):
        result = store.register("Faadumo", "faadumo@example.com", "secret123", "Garowe", ["seller"])

    assert result.success is False
    assert result.code == results.REMOTE
    assert store.session is None
    assert User.objects.filter(username="faadumo@example.com").exists() is False
    assert Profile.objects.count() == 0


@pytest.mark.django_db
def test_login_success_and_failure():
    make_member("login@example.com")
    store = SessionStore(AuthService())

    bad = store.login("login@example.com", "wrong")
    assert bad.success is False
    assert bad.error == "Invalid login credentials"
    assert store.session is None

    good = store.login(" LOGIN@example.com", "pass1234")
    assert good.success is True
    assert store.session.email == "login@example.com"

    store.tasks.drain()
    assert store.profile.name == "Amina Yusuf"


@pytest.mark.django_db
def test_logout_clears_state_and_notifies():
    user = make_member("bye@example.com")
    store = SessionStore(AuthService(user=user))
    store.tasks.drain()

    seen = []
    store.subscribe(lambda s: seen.append((s.session, s.profile, list(s.roles))))

    store.logout()

    assert store.session is None
    assert store.profile is None
    assert store.roles == []
    assert store.is_loading is False
    assert seen[-1] == (None, None, [])


@pytest.mark.django_db
def test_logout_blacklists_only_the_sessions_own_refresh_token():
    user = make_member("owner@example.com")
    other = make_member("bystander@example.com")
    own = RefreshToken.for_user(user)
    foreign = RefreshToken.for_user(other)

    SessionStore(AuthService(user=user, refresh_token=str(foreign))).logout()
    assert not BlacklistedToken.objects.filter(token__jti=foreign["jti"]).exists()

    SessionStore(AuthService(user=user, refresh_token=str(own))).logout()
    assert BlacklistedToken.objects.filter(token__jti=own["jti"]).exists()


@pytest.mark.django_db
def test_queued_profile_load_is_dropped_after_sign_out():
    make_member("quick@example.com")
    store = SessionStore(AuthService())

    store.login("quick@example.com", "pass1234")
    store.logout()
    store.tasks.drain()

    assert store.session is None
    assert store.profile is None
    assert store.roles == []


@pytest.mark.django_db
def test_auth_events_reach_only_their_own_store():
    make_member("one@example.com")
    auth_a = AuthService()
    auth_b = AuthService()
    store_a = SessionStore(auth_a)
    store_b = SessionStore(auth_b)

    events = []
    auth_b.on_state_change(lambda sender, event, session, **kw: events.append(event))

    store_a.login("one@example.com", "pass1234")

    assert store_a.session is not None
    assert store_b.session is None
    assert events == []


@pytest.mark.django_db
def test_token_refresh_keeps_identity_and_emits_event():
    make_member("refresh@example.com")
    auth = AuthService()
    store = SessionStore(auth)
    store.login("refresh@example.com", "pass1234")
    store.tasks.drain()

    events = []
    auth.on_state_change(lambda sender, event, session, **kw: events.append(event))

    session = auth.refresh_session()

    assert events == [AuthEvent.TOKEN_REFRESHED]
    assert session.user_id == store.user_id
    store.tasks.drain()
    assert store.profile is not None


@pytest.mark.django_db
def test_profile_fetch_failure_sets_error():
    user = make_member("err@example.com")
    store = SessionStore(AuthService(user=user))

    with mock.patch.object(Profile.objects, "filter", side_effect=DatabaseError("db down")):
        store.tasks.drain()

    assert store.is_loading is False
    assert store.error == "db down"
    assert store.profile is None
