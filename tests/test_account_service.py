"""
Tests for the account flows and authenticator error classification.
"""

import asyncio
import datetime as dt
from decimal import Decimal
from types import SimpleNamespace

import pytest

from expense_tracker.errors import AuthenticationError, SessionExpiredError
from expense_tracker.models import AuthErrorCode, Category, DatabaseType, Expense, StoreMode, User
from expense_tracker.services import build_in_memory_handler
from expense_tracker.services.account_service import AccountService
from expense_tracker.services.authenticator import SupabaseAuthenticator, classify_auth_error
from expense_tracker.services.database_manager import DatabaseManager
from expense_tracker.services.session_state import SessionStateStore

ADA = User(id="u1", email="ada@example.com", first_name="Ada", last_name="Lovelace")
BOB = User(id="u2", email="bob@example.com", first_name="Bob")


class AccountHarness:
    """Account service over in-memory stores, one remote store per user id."""

    def __init__(self, authenticator, kv_store, logger):
        self.local = build_in_memory_handler(logger=logger)
        self.remotes = {}
        self.manager = DatabaseManager(self.local, logger)
        self.session_state = SessionStateStore(kv_store, logger)
        self.fail_factory = False
        self.service = AccountService(
            authenticator=authenticator,
            database_manager=self.manager,
            session_state=self.session_state,
            remote_handler_factory=self._remote_for,
            logger=logger,
        )

    def _remote_for(self, user_id):
        if self.fail_factory:
            raise RuntimeError("Supabase client is not initialised.")
        return self.remotes.setdefault(user_id, build_in_memory_handler())


@pytest.fixture
def harness(authenticator, kv_store, logger):
    authenticator.add_account("ada@example.com", "s3cret", ADA)
    return AccountHarness(authenticator, kv_store, logger)


class TestSignIn:
    """Sign-in links the stores and persists the session."""

    def test_success_links_and_persists_state(self, harness):
        result = asyncio.run(harness.service.sign_in("  Ada@Example.com ", "s3cret"))

        assert result.success
        assert result.user_id == "u1"
        assert result.sync_report is not None
        assert harness.manager.mode == StoreMode.LINKED
        stored = harness.session_state.database_type
        assert (stored.type, stored.user_id) == (DatabaseType.REMOTE, "u1")
        assert harness.session_state.is_signed_in

    def test_wrong_password(self, harness):
        result = asyncio.run(harness.service.sign_in("ada@example.com", "nope"))

        assert not result.success
        assert result.error_code == AuthErrorCode.INVALID_CREDENTIALS
        assert harness.manager.mode == StoreMode.LOCAL_ONLY

    def test_session_expired_is_distinguished(self, harness, authenticator):
        authenticator.fail_with = SessionExpiredError()

        result = asyncio.run(harness.service.sign_in("ada@example.com", "s3cret"))

        assert result.error_code == AuthErrorCode.SESSION_EXPIRED
        assert result.requires_reauthentication

    def test_network_error(self, harness, authenticator):
        authenticator.fail_with = ConnectionError("offline")
        result = asyncio.run(harness.service.sign_in("ada@example.com", "s3cret"))
        assert result.error_code == AuthErrorCode.NETWORK_ERROR

    def test_sign_up_existing_email(self, harness):
        result = asyncio.run(harness.service.sign_up("ada@example.com", "pw", "Ada", "L"))
        assert result.error_code == AuthErrorCode.EMAIL_ALREADY_EXISTS

    def test_sign_up_stores_profile_names(self, harness):
        result = asyncio.run(harness.service.sign_up("grace@example.com", "pw", " Grace ", "Hopper"))

        assert result.success
        remote_user = asyncio.run(harness.remotes[result.user_id].fetch_user())
        assert remote_user.full_name == "Grace Hopper"

    def test_provider_sign_in(self, harness):
        result = asyncio.run(harness.service.sign_in_with_provider("google", "tok"))
        assert result.success
        assert result.user_id == "google-tok"

    def test_link_failure_rolls_back_sign_in(self, harness, authenticator):
        harness.fail_factory = True

        result = asyncio.run(harness.service.sign_in("ada@example.com", "s3cret"))

        assert result.error_code == AuthErrorCode.NETWORK_ERROR
        assert authenticator.sign_out_calls == 1
        assert harness.manager.mode == StoreMode.LOCAL_ONLY
        assert not harness.session_state.is_signed_in


class TestSignOutAndRestore:
    """Sign-out purges; restore re-links without merging."""

    def test_sign_out(self, harness):
        async def scenario():
            await harness.service.sign_in("ada@example.com", "s3cret")
            return await harness.service.sign_out()

        result = asyncio.run(scenario())

        assert result.success
        assert harness.manager.mode == StoreMode.LOCAL_ONLY
        assert asyncio.run(harness.local.fetch_user()) is None
        assert harness.session_state.database_type.type == DatabaseType.LOCAL
        assert not harness.session_state.is_signed_in

    def test_sign_out_survives_provider_failure(self, harness, authenticator):
        asyncio.run(harness.service.sign_in("ada@example.com", "s3cret"))
        authenticator.fail_with = ConnectionError("offline")

        result = asyncio.run(harness.service.sign_out())

        assert result.success
        assert harness.manager.mode == StoreMode.LOCAL_ONLY

    def test_restore_session(self, harness, authenticator):
        harness.session_state.mark_signed_in("u1")
        authenticator.signed_in = ADA

        result = asyncio.run(harness.service.restore_session())

        assert result.success
        assert harness.manager.is_linked
        # No merge ran, so the remote store is still empty.
        assert asyncio.run(harness.remotes["u1"].fetch_user()) is None

    def test_restore_with_stale_session(self, harness, authenticator):
        harness.session_state.mark_signed_in("u1")
        authenticator.signed_in = None

        result = asyncio.run(harness.service.restore_session())

        assert result.error_code == AuthErrorCode.SESSION_EXPIRED
        assert harness.session_state.database_type.type == DatabaseType.LOCAL

    def test_stale_restore_does_not_leak_into_next_account(self, harness, authenticator):
        authenticator.add_account("bob@example.com", "hunter2", BOB)
        private = Expense(
            id="ada-private", name="Pharmacy", amount=Decimal("42"),
            date=dt.date(2025, 4, 1), category=Category.HEALTH,
        )

        async def scenario():
            await harness.service.sign_in("ada@example.com", "s3cret")
            await harness.manager.save_expense(private)
            # App closed while linked; the token expires before the next launch.
            await harness.manager.unlink(purge_local=False)
            authenticator.signed_in = None
            restored = await harness.service.restore_session()
            local_after_restore = await harness.local.fetch_expenses()
            await harness.service.sign_in("bob@example.com", "hunter2")
            return restored, local_after_restore, await harness.remotes["u2"].fetch_expenses()

        restored, local_after_restore, bob_expenses = asyncio.run(scenario())

        assert restored.error_code == AuthErrorCode.SESSION_EXPIRED
        assert local_after_restore == []
        assert bob_expenses == []
        assert asyncio.run(harness.local.fetch_user()) == BOB

    def test_restore_without_remote_session(self, harness):
        result = asyncio.run(harness.service.restore_session())
        assert result.error_code == AuthErrorCode.NOT_SIGNED_IN


class TestProfile:
    """Profile changes go through the authenticator and the user store."""

    def test_update_name(self, harness):
        async def scenario():
            await harness.service.sign_in("ada@example.com", "s3cret")
            return await harness.service.update_name("Augusta", "King")

        result = asyncio.run(scenario())

        assert result.success
        assert asyncio.run(harness.remotes["u1"].fetch_user()).full_name == "Augusta King"
        assert asyncio.run(harness.local.fetch_user()).full_name == "Augusta King"

    def test_update_name_without_user(self, harness):
        result = asyncio.run(harness.service.update_name("A", "B"))
        assert result.error_code == AuthErrorCode.NOT_SIGNED_IN

    def test_update_email_mirrors_user_details(self, harness, authenticator):
        async def scenario():
            await harness.service.sign_in("ada@example.com", "s3cret")
            return await harness.service.update_email("ADA@new.example")

        result = asyncio.run(scenario())

        assert result.success
        assert authenticator.updated["email"] == "ada@new.example"
        assert asyncio.run(harness.remotes["u1"].fetch_user()).email == "ada@new.example"

    def test_update_password_requires_recent_login(self, harness, authenticator):
        authenticator.fail_with = SessionExpiredError()
        result = asyncio.run(harness.service.update_password("new-password"))
        assert result.requires_reauthentication

    def test_reauthenticate(self, harness):
        assert asyncio.run(harness.service.reauthenticate("ada@example.com", "s3cret")).success


class TestAuthErrorClassification:
    """Provider errors map onto the core taxonomy."""

    @pytest.mark.parametrize("message", [
        "Auth session missing!",
        "JWT expired",
        "Session not found",
    ])
    def test_session_markers(self, message):
        exc = Exception(message)
        exc.code = "session_not_found" if "not found" in message else None
        assert isinstance(classify_auth_error(exc), SessionExpiredError)

    def test_code_is_kept_in_message(self):
        exc = Exception("Invalid login credentials")
        exc.code = "invalid_credentials"
        error = classify_auth_error(exc)
        assert type(error) is AuthenticationError
        assert "invalid_credentials" in str(error)

    def test_supabase_authenticator_translates_errors(self, logger):
        class FailingAuth:
            async def sign_in_with_password(self, credentials):
                raise RuntimeError("JWT expired")

        client = SimpleNamespace(auth=FailingAuth())
        authenticator = SupabaseAuthenticator(client, logger)

        with pytest.raises(SessionExpiredError):
            asyncio.run(authenticator.sign_in("a@b.c", "pw"))

    def test_supabase_authenticator_reads_metadata(self, logger):
        class Auth:
            async def sign_in_with_password(self, credentials):
                user = SimpleNamespace(
                    id="u9", email=credentials["email"],
                    user_metadata={"first_name": "Ada", "last_name": "Lovelace"},
                )
                return SimpleNamespace(user=user, session=None)

        authenticator = SupabaseAuthenticator(SimpleNamespace(auth=Auth()), logger)
        user = asyncio.run(authenticator.sign_in("ada@example.com", "pw"))
        assert user == ADA.model_copy(update={"id": "u9"})
