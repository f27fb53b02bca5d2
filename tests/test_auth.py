import pytest

from auth import CredentialMatcher, verify
from schemas import REJECTED_MESSAGE

pytestmark = pytest.mark.anyio


@pytest.fixture
def users(store):
    store.seed("users", "u1", email="ada@example.com", password="s3cret", name="Ada")
    store.seed("users", "u2", email="nameless@example.com", password="pass1234")
    return store


async def test_correct_password_authenticates(users):
    result = await verify(users, "ada@example.com", "s3cret")

    assert result.is_authenticated
    assert result.name == "Ada"
    assert result.email == "ada@example.com"


async def test_missing_name_defaults_to_user(users):
    result = await verify(users, "nameless@example.com", "pass1234")

    assert result.is_authenticated
    assert result.name == "User"


async def test_null_name_defaults_to_user(store):
    store.seed("users", "u3", email="null@example.com", password="abcd", name=None)

    result = await verify(store, "null@example.com", "abcd")

    assert result.name == "User"


async def test_unknown_email_is_rejected(users):
    result = await verify(users, "nobody@example.com", "s3cret")

    assert result.status == "rejected"
    assert result.message == REJECTED_MESSAGE


async def test_wrong_password_has_same_message_as_unknown_email(users):
    wrong = await verify(users, "ada@example.com", "S3CRET")
    unknown = await verify(users, "nobody@example.com", "s3cret")

    assert wrong.status == unknown.status == "rejected"
    assert wrong.message == unknown.message


async def test_email_is_trimmed_but_case_sensitive(users):
    trimmed = await verify(users, "  ada@example.com ", "s3cret")
    upper = await verify(users, "ADA@example.com", "s3cret")

    assert trimmed.is_authenticated
    assert trimmed.email == "ada@example.com"
    assert upper.status == "rejected"


async def test_duplicate_emails_use_first_match(store):
    store.seed("users", "first", email="dup@example.com", password="one1", name="First")
    store.seed("users", "second", email="dup@example.com", password="two2", name="Second")

    assert (await verify(store, "dup@example.com", "one1")).name == "First"
    assert (await verify(store, "dup@example.com", "two2")).status == "rejected"


async def test_store_failure_is_reported_as_failed(failing_store):
    result = await verify(failing_store, "ada@example.com", "s3cret")

    assert result.status == "failed"
    assert result.message == "transient error"


async def test_unreadable_user_document_is_failed(store):
    store.seed("users", "bad", email="bad@example.com", password=["not", "a", "string"])

    result = await verify(store, "bad@example.com", "whatever")

    assert result.status == "failed"


async def test_verify_does_not_write(users):
    await verify(users, "ada@example.com", "s3cret")

    assert users.writes == []


async def test_matcher_is_pluggable(users):
    class ReversedMatcher(CredentialMatcher):
        def matches(self, stored, supplied):
            return stored == supplied[::-1]

    result = await verify(users, "ada@example.com", "terc3s", matcher=ReversedMatcher())

    assert result.is_authenticated

