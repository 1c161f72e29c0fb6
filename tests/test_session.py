"""Tests for the identity provider and the session coordinator."""

import pytest

from goldengoose.services.identity import AuthFailureReason, InMemoryIdentityProvider
from goldengoose.sync import SessionCoordinator


class Recorder:
    """Collects session transitions in order."""

    def __init__(self, coordinator: SessionCoordinator):
        self.events = []
        coordinator.on_session_established(self.established)
        coordinator.on_session_cleared(self.cleared)

    async def established(self, identity):
        self.events.append(("established", identity.email))

    async def cleared(self):
        self.events.append(("cleared", None))


class TestInMemoryIdentityProvider:
    """Tests for the in-process identity provider."""

    @pytest.mark.asyncio
    async def test_sign_up_starts_session(self):
        """Test that sign-up signs the user in."""
        provider = InMemoryIdentityProvider()
        result = await provider.sign_up_with_password("Kid@Example.com", "secret1")

        assert result.success is True
        session = await provider.get_current_session()
        assert session.identity.email == "kid@example.com"
        assert session.access_token

    @pytest.mark.asyncio
    async def test_sign_up_rejects_weak_password(self):
        """Test the minimum password length."""
        result = await InMemoryIdentityProvider().sign_up_with_password("kid@example.com", "12345")
        assert result.success is False
        assert result.failure == AuthFailureReason.WEAK_PASSWORD

    @pytest.mark.asyncio
    async def test_sign_up_rejects_bad_email(self):
        """Test email validation."""
        result = await InMemoryIdentityProvider().sign_up_with_password("not-an-email", "secret1")
        assert result.failure == AuthFailureReason.INVALID_EMAIL

    @pytest.mark.asyncio
    async def test_duplicate_sign_up(self):
        """Test signing up twice with one email."""
        provider = InMemoryIdentityProvider()
        await provider.sign_up_with_password("kid@example.com", "secret1")
        result = await provider.sign_up_with_password("kid@example.com", "secret2")
        assert result.failure == AuthFailureReason.USER_ALREADY_EXISTS

    @pytest.mark.asyncio
    async def test_sign_in_failures(self):
        """Test unknown user and wrong password."""
        provider = InMemoryIdentityProvider()
        await provider.sign_up_with_password("kid@example.com", "secret1")

        unknown = await provider.sign_in_with_password("other@example.com", "secret1")
        wrong = await provider.sign_in_with_password("kid@example.com", "nope123")

        assert unknown.failure == AuthFailureReason.USER_NOT_FOUND
        assert wrong.failure == AuthFailureReason.INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_sign_in_keeps_identity_id(self):
        """Test that the same user gets the same opaque id."""
        provider = InMemoryIdentityProvider()
        signed_up = await provider.sign_up_with_password("kid@example.com", "secret1")
        await provider.sign_out()
        signed_in = await provider.sign_in_with_password("kid@example.com", "secret1")

        assert signed_in.session.identity.id == signed_up.session.identity.id
        assert signed_in.session.access_token != signed_up.session.access_token


class TestSessionCoordinator:
    """Tests for session transitions."""

    @pytest.mark.asyncio
    async def test_offline_never_establishes(self):
        """Test the coordinator without a provider."""
        coordinator = SessionCoordinator()
        recorder = Recorder(coordinator)

        assert await coordinator.start() is None
        result = await coordinator.sign_in("kid@example.com", "secret1")

        assert coordinator.offline is True
        assert result.failure == AuthFailureReason.PROVIDER_ERROR
        assert recorder.events == []

    @pytest.mark.asyncio
    async def test_sign_in_and_out(self):
        """Test one established and one cleared transition."""
        coordinator = SessionCoordinator(InMemoryIdentityProvider())
        recorder = Recorder(coordinator)
        await coordinator.start()

        await coordinator.sign_up("kid@example.com", "secret1")
        assert coordinator.current_identity.email == "kid@example.com"

        await coordinator.sign_out()
        assert coordinator.current_identity is None
        assert recorder.events == [("established", "kid@example.com"), ("cleared", None)]

    @pytest.mark.asyncio
    async def test_repeated_session_for_same_identity_is_ignored(self):
        """Test that a refreshed session does not fire again."""
        provider = InMemoryIdentityProvider()
        coordinator = SessionCoordinator(provider)
        recorder = Recorder(coordinator)
        await coordinator.start()

        await coordinator.sign_up("kid@example.com", "secret1")
        await coordinator.sign_in("kid@example.com", "secret1")

        assert recorder.events == [("established", "kid@example.com")]

    @pytest.mark.asyncio
    async def test_switching_identity_clears_first(self):
        """Test that a direct switch fires cleared before established."""
        provider = InMemoryIdentityProvider()
        coordinator = SessionCoordinator(provider)
        recorder = Recorder(coordinator)
        await coordinator.start()

        await coordinator.sign_up("anna@example.com", "secret1")
        await coordinator.sign_up("ben@example.com", "secret1")

        assert recorder.events == [
            ("established", "anna@example.com"),
            ("cleared", None),
            ("established", "ben@example.com"),
        ]

    @pytest.mark.asyncio
    async def test_start_picks_up_existing_session(self):
        """Test that an already signed-in user is established on start."""
        provider = InMemoryIdentityProvider()
        await provider.sign_up_with_password("kid@example.com", "secret1")

        coordinator = SessionCoordinator(provider)
        recorder = Recorder(coordinator)
        identity = await coordinator.start()

        assert identity.email == "kid@example.com"
        assert recorder.events == [("established", "kid@example.com")]

    @pytest.mark.asyncio
    async def test_stop_unsubscribes(self):
        """Test that a stopped coordinator ignores the provider."""
        provider = InMemoryIdentityProvider()
        coordinator = SessionCoordinator(provider)
        recorder = Recorder(coordinator)
        await coordinator.start()
        coordinator.stop()

        await provider.sign_up_with_password("kid@example.com", "secret1")

        assert recorder.events == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
