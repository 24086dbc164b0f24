"""
Tests for session/profile resolution.

Covers:
- Each resolved status and its message
- Re-resolution on every auth event
- Stale-result discarding across overlapping resolutions
- Bounded timeout and shutdown
- Auth client notifications on sign-in, refresh and sign-out
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from timesheet_client.auth import AuthClient, AuthEvent
from timesheet_client.resolver import ProfileResolver, ResolverStatus
from timesheet_shared.errors import QueryFault
from timesheet_shared.schemas.profiles import TokenResponse


@pytest.fixture
def auth(fake_store):
    return AuthClient(fake_store)


@pytest.fixture
def resolver(auth, fake_store):
    r = ProfileResolver(auth, fake_store)
    yield r
    r.close()


class TestResolution:
    @pytest.mark.asyncio
    async def test_initial_state(self, resolver):
        assert resolver.state.status == ResolverStatus.INIT
        assert resolver.state.loading

    @pytest.mark.asyncio
    async def test_no_session_is_unauthenticated(self, resolver):
        state = await resolver.start()
        assert state.status == ResolverStatus.UNAUTHENTICATED
        assert state.profile is None
        assert not state.loading

    @pytest.mark.asyncio
    async def test_sign_in_resolves_profile(self, resolver, auth, fake_store, new_profile):
        me = new_profile("manager")
        fake_store.add("me@example.com", me)
        await resolver.start()

        await auth.sign_in("me@example.com", "pw")

        assert resolver.state.status == ResolverStatus.READY
        assert resolver.state.profile == me
        assert resolver.state.identity == me.id
        assert resolver.state.error is None

    @pytest.mark.asyncio
    async def test_profile_missing_is_distinct(self, resolver, auth, fake_store):
        uid = fake_store.add("orphan@example.com")
        await resolver.start()
        await auth.sign_in("orphan@example.com", "pw")

        state = resolver.state
        assert state.status == ResolverStatus.PROFILE_MISSING
        assert state.identity == uid
        assert state.profile is None
        assert "Profile missing" in state.error

    @pytest.mark.asyncio
    async def test_session_fault(self, resolver, auth, fake_store, new_profile):
        fake_store.add("me@example.com", new_profile())
        await auth.sign_in("me@example.com", "pw")
        fake_store.session_error = QueryFault("connection reset")

        state = await resolver.refresh()
        assert state.status == ResolverStatus.FAULT
        assert state.error == "Auth session error: connection reset"
        assert state.profile is None

    @pytest.mark.asyncio
    async def test_profile_query_fault(self, resolver, auth, fake_store, new_profile):
        fake_store.add("me@example.com", new_profile())
        await auth.sign_in("me@example.com", "pw")
        fake_store.profile_error = QueryFault("relation does not exist", status_code=500)

        state = await resolver.refresh()
        assert state.status == ResolverStatus.FAULT
        assert state.error == "Profile query error: relation does not exist"
        assert state.profile is None

    @pytest.mark.asyncio
    async def test_rejected_token_is_unauthenticated(self, resolver, auth, fake_store, new_profile):
        fake_store.add("me@example.com", new_profile())
        await auth.sign_in("me@example.com", "pw")
        fake_store.session_user = None

        state = await resolver.refresh()
        assert state.status == ResolverStatus.UNAUTHENTICATED
        assert auth.token is None

    @pytest.mark.asyncio
    async def test_refresh_recovers_from_fault(self, resolver, auth, fake_store, new_profile):
        fake_store.add("me@example.com", new_profile())
        await auth.sign_in("me@example.com", "pw")
        fake_store.profile_error = QueryFault("boom")
        assert (await resolver.refresh()).status == ResolverStatus.FAULT

        fake_store.profile_error = None
        assert (await resolver.refresh()).status == ResolverStatus.READY


class TestAuthEvents:
    @pytest.mark.asyncio
    async def test_every_event_re_resolves(self, resolver, auth, fake_store, new_profile):
        fake_store.add("me@example.com", new_profile())
        await resolver.start()
        generations = [resolver.generation]

        await auth.sign_in("me@example.com", "pw")
        generations.append(resolver.generation)
        await auth.refresh_session()
        generations.append(resolver.generation)
        await auth.sign_out()
        generations.append(resolver.generation)

        assert generations == sorted(set(generations))
        assert resolver.state.status == ResolverStatus.UNAUTHENTICATED
        assert fake_store.logouts == 1

    @pytest.mark.asyncio
    async def test_listeners_see_loading_then_result(self, resolver, auth, fake_store, new_profile):
        fake_store.add("me@example.com", new_profile())
        seen = []

        async def listener(state):
            seen.append(state.status)

        resolver.add_listener(listener)
        await resolver.start()
        await auth.sign_in("me@example.com", "pw")

        assert seen == [
            ResolverStatus.LOADING,
            ResolverStatus.UNAUTHENTICATED,
            ResolverStatus.LOADING,
            ResolverStatus.READY,
        ]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_resolution(self, resolver, auth, fake_store, new_profile):
        fake_store.add("me@example.com", new_profile())
        await auth.sign_in("me@example.com", "pw")
        seen = []

        async def broken(state):
            raise OSError("disk full")

        async def listener(state):
            seen.append(state.status)

        resolver.add_listener(broken)
        resolver.add_listener(listener)

        state = await resolver.refresh()
        assert state.status == ResolverStatus.READY
        assert resolver.state.status == ResolverStatus.READY
        assert seen == [ResolverStatus.LOADING, ResolverStatus.READY]

    @pytest.mark.asyncio
    async def test_removed_listener_is_not_called(self, resolver):
        calls = []

        async def listener(state):
            calls.append(state)

        remove = resolver.add_listener(listener)
        remove()
        await resolver.refresh()
        assert calls == []


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_stale_result_is_discarded(self, resolver, auth, fake_store, new_profile):
        alice = new_profile(full_name="Alice")
        bob = new_profile(full_name="Bob")
        fake_store.add("alice@example.com", alice)
        fake_store.add("bob@example.com", bob)
        await auth.sign_in("alice@example.com", "pw")

        gate = asyncio.Event()
        fake_store.fetch_gates.append(gate)
        slow = asyncio.create_task(resolver.refresh())
        await asyncio.sleep(0)

        # The session switches while the first lookup is still in flight.
        fake_store.session_user = bob.id
        fast = await resolver.refresh()
        assert fast.profile == bob

        gate.set()
        await slow
        assert resolver.state.status == ResolverStatus.READY
        assert resolver.state.profile == bob

    @pytest.mark.asyncio
    async def test_timeout_becomes_fault(self, auth, fake_store, new_profile):
        fake_store.add("me@example.com", new_profile())
        await auth.sign_in("me@example.com", "pw")
        fake_store.fetch_gates.append(asyncio.Event())

        resolver = ProfileResolver(auth, fake_store, timeout_seconds=0.05)
        state = await resolver.refresh()
        assert state.status == ResolverStatus.FAULT
        assert "timed out" in state.error
        resolver.close()

    @pytest.mark.asyncio
    async def test_close_stops_publishing(self, resolver, auth, fake_store, new_profile):
        fake_store.add("me@example.com", new_profile())
        await auth.sign_in("me@example.com", "pw")
        await resolver.start()
        seen = []

        async def listener(state):
            seen.append(state.status)

        resolver.add_listener(listener)
        gate = asyncio.Event()
        fake_store.fetch_gates.append(gate)
        pending = asyncio.create_task(resolver.refresh())
        await asyncio.sleep(0)

        resolver.close()
        gate.set()
        await pending

        assert seen == [ResolverStatus.LOADING]
        assert resolver.state.status == ResolverStatus.LOADING

        # Unsubscribed: later auth events do not re-resolve.
        generation = resolver.generation
        await auth.sign_out()
        assert resolver.generation == generation


class TestAuthClient:
    @pytest.mark.asyncio
    async def test_sign_out_notifies_subscribers(self, mock_store):
        mock_store.token = "token-1"
        auth = AuthClient(mock_store)
        events = []

        async def callback(event, user_id):
            events.append((event, user_id))

        auth.on_auth_state_change(callback)
        await auth.sign_out()

        assert events == [(AuthEvent.SIGNED_OUT, None)]
        mock_store.logout.assert_awaited_once()
        assert mock_store.token is None

    @pytest.mark.asyncio
    async def test_sign_in_and_refresh_notify_subscribers(self, mock_store):
        uid = uuid.uuid4()
        expires = datetime.now(timezone.utc) + timedelta(hours=1)
        mock_store.token = None
        mock_store.login.return_value = TokenResponse(access_token="a", user_id=uid, expires_at=expires)
        mock_store.refresh_token.return_value = TokenResponse(access_token="b", user_id=uid, expires_at=expires)
        auth = AuthClient(mock_store)
        events = []

        async def callback(event, user_id):
            events.append((event, user_id))

        subscription = auth.on_auth_state_change(callback)
        assert await auth.sign_in("me@example.com", "pw") == uid
        await auth.refresh_session()
        subscription.unsubscribe()
        await auth.sign_out()

        assert events == [(AuthEvent.SIGNED_IN, uid), (AuthEvent.TOKEN_REFRESHED, uid)]
        assert mock_store.token is None
