import pytest

from slaypoints.core.exceptions import AuthError
from slaypoints.services.auth_provider import ACCOUNTS_COLLECTION, AuthUser

pytestmark = pytest.mark.asyncio


async def _code(coro) -> str:
    with pytest.raises(AuthError) as exc:
        await coro
    return exc.value.code


async def test_create_account_normalizes_email_and_hashes_password(provider, store):
    user = await provider.create_account("  Slay@Example.com ", "hunter22")
    assert isinstance(user, AuthUser)
    assert user.email == "slay@example.com"
    account = await store.read_document(ACCOUNTS_COLLECTION, user.uid)
    assert account["email"] == "slay@example.com"
    assert account["password_hash"] != "hunter22"
    assert account["session_version"] == 0


async def test_create_account_rejects_duplicate_email(provider):
    await provider.create_account("dup@example.com", "hunter22")
    assert await _code(provider.create_account("DUP@example.com", "other-pass")) == "auth/email-already-in-use"


@pytest.mark.parametrize(
    "email,password,code",
    [
        ("not-an-email", "hunter22", "auth/invalid-email"),
        ("", "hunter22", "auth/missing-email"),
        ("a@example.com", "", "auth/missing-password"),
        ("a@example.com", "12345", "auth/weak-password"),
    ],
)
async def test_create_account_validation(provider, email, password, code):
    assert await _code(provider.create_account(email, password)) == code


async def test_weak_password_message(provider):
    with pytest.raises(AuthError) as exc:
        await provider.create_account("a@example.com", "abc")
    assert exc.value.message == "Password should be at least 6 characters."
    assert exc.value.status_code == 400


async def test_sign_in(provider, store):
    created = await provider.create_account("a@example.com", "hunter22")
    user = await provider.sign_in("A@example.com", "hunter22")
    assert user.uid == created.uid
    account = await store.read_document(ACCOUNTS_COLLECTION, user.uid)
    assert account["last_login_at"] is not None


async def test_sign_in_rejects_bad_credentials(provider):
    await provider.create_account("a@example.com", "hunter22")
    assert await _code(provider.sign_in("a@example.com", "wrong-pass")) == "auth/invalid-credential"
    assert await _code(provider.sign_in("b@example.com", "hunter22")) == "auth/invalid-credential"
    assert await _code(provider.sign_in("a@example.com", "")) == "auth/missing-password"


async def test_get_user(provider):
    created = await provider.create_account("a@example.com", "hunter22")
    assert (await provider.get_user(created.uid)).email == "a@example.com"
    assert await provider.get_user("missing") is None


async def test_password_reset_for_unknown_email_sends_nothing(provider, mailer):
    await provider.send_password_reset("nobody@example.com")
    assert mailer.sent == []


async def test_password_reset_flow(provider, mailer):
    created = await provider.create_account("a@example.com", "hunter22")
    await provider.send_password_reset("a@example.com")
    assert len(mailer.sent) == 1
    assert mailer.sent[0]["to"] == "a@example.com"

    token = mailer.last_reset_token()
    user = await provider.confirm_password_reset(token, "brand-new-pass")
    assert user.uid == created.uid
    assert user.session_version == 1

    assert (await provider.sign_in("a@example.com", "brand-new-pass")).uid == created.uid
    assert await _code(provider.sign_in("a@example.com", "hunter22")) == "auth/invalid-credential"
    # the link is single use
    assert await _code(provider.confirm_password_reset(token, "another-pass")) == "auth/invalid-action-code"


async def test_password_reset_weak_password_keeps_link_usable(provider, mailer):
    await provider.create_account("a@example.com", "hunter22")
    await provider.send_password_reset("a@example.com")
    token = mailer.last_reset_token()
    assert await _code(provider.confirm_password_reset(token, "123")) == "auth/weak-password"
    await provider.confirm_password_reset(token, "good-password")


async def test_password_reset_rejects_garbage_token(provider):
    assert await _code(provider.confirm_password_reset("not-a-token", "whatever1")) == "auth/invalid-action-code"
    assert await _code(provider.confirm_password_reset("", "whatever1")) == "auth/invalid-action-code"


async def test_password_reset_requires_valid_email(provider):
    assert await _code(provider.send_password_reset("nope")) == "auth/invalid-email"


async def test_store_failure_becomes_internal_error(provider, store):
    store.fail_writes.add(ACCOUNTS_COLLECTION)
    with pytest.raises(AuthError) as exc:
        await provider.create_account("a@example.com", "hunter22")
    assert exc.value.code == "auth/internal-error"
    assert exc.value.status_code == 500


async def test_audit_entries_for_account_events(provider, store):
    user = await provider.create_account("a@example.com", "hunter22")
    await provider.sign_in("a@example.com", "hunter22")
    for event in ("account_created", "sign_in"):
        found = await store.find_document("audit_logs", "event_type", event)
        assert found is not None
        assert found[1]["user_id"] == user.uid
