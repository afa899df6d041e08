from __future__ import annotations

from datetime import timedelta

import pytest

from labres.adapters.memory import InMemoryKeyValueStore
from labres.domain.errors import IdentityConflictError, ValidationError
from labres.domain.identity import IdentityLinkStore, normalize_email
from tests.helpers.usages import BASE_TIME, MutableClock


@pytest.mark.parametrize("raw", ["alice@example.com", "  bob@lab.example.org  "])
def test_normalize_email_accepts_valid_addresses(raw: str) -> None:
    assert normalize_email(raw) == raw.strip()


@pytest.mark.parametrize(
    "raw",
    ["", "alice", "@example.com", "alice@", "al ice@example.com", "a@b@c", "alice@exa mple.com"],
)
def test_normalize_email_rejects_malformed_addresses(raw: str) -> None:
    with pytest.raises(ValidationError):
        normalize_email(raw)


def test_relinking_replaces_previous_email() -> None:
    clock = MutableClock(BASE_TIME)
    store = IdentityLinkStore(InMemoryKeyValueStore(), clock=clock)

    store.link("U1", "a@x.com")
    clock.advance(timedelta(minutes=5))
    store.link("U1", "b@x.com")

    links = store.list()
    assert [(link.chat_user_id, link.email) for link in links] == [("U1", "b@x.com")]
    assert links[0].linked_at == BASE_TIME + timedelta(minutes=5)
    assert store.find_by_email("a@x.com") is None


def test_find_by_email_is_case_insensitive() -> None:
    store = IdentityLinkStore(InMemoryKeyValueStore())
    store.link("U1", "Alice@Example.com")

    link = store.find_by_email("alice@example.COM")

    assert link is not None
    assert link.chat_user_id == "U1"
    assert link.mention() == "<@U1>"


def test_email_owned_by_other_user_is_rejected() -> None:
    store = IdentityLinkStore(InMemoryKeyValueStore())
    store.link("U1", "shared@x.com")

    with pytest.raises(IdentityConflictError) as exc:
        store.link("U2", "SHARED@x.com")

    assert exc.value.chat_user_id == "U1"
    assert store.get("U2") is None


def test_relinking_same_email_is_allowed() -> None:
    store = IdentityLinkStore(InMemoryKeyValueStore())
    store.link("U1", "a@x.com")

    assert store.link("U1", "a@x.com").email == "a@x.com"


def test_blank_chat_user_is_rejected() -> None:
    store = IdentityLinkStore(InMemoryKeyValueStore())

    with pytest.raises(ValidationError):
        store.link("  ", "a@x.com")


def test_links_survive_store_round_trip() -> None:
    backing = InMemoryKeyValueStore()
    IdentityLinkStore(backing, clock=MutableClock(BASE_TIME)).link("U1", "a@x.com")

    reopened = IdentityLinkStore(backing)

    link = reopened.get("U1")
    assert link is not None
    assert link.email == "a@x.com"
    assert link.linked_at == BASE_TIME
