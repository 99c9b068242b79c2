"""Fake User Backend — in-memory stand-in for the user-data service.

Invariants:
    - FakeBackend records every call in order (name, args)
    - Feed events are emitted explicitly by the test (emit_current / emit_user)
    - listen_to_user delivers a snapshot immediately only for ids in `profiles`

Design Decisions:
    - Hand-written fake over AsyncMock: feed callbacks need real registration semantics
"""

import asyncio

from userstore.core.profiles import PasswordResetResult


class FakeSubscription:
    def __init__(self, name, *args):
        self.name = name
        self.args = args
        self.unsubscribe_count = 0

    @property
    def unsubscribed(self):
        return self.unsubscribe_count > 0

    def unsubscribe(self):
        self.unsubscribe_count += 1


class FakeBackend:
    def __init__(self):
        self.calls = []
        self.subscriptions = []
        self.current_user_callbacks = []
        self.user_callbacks = {}
        self.profiles = {}
        self.saved = []
        self.login_result = None
        self.login_error = None
        self.create_result = None
        self.create_error = None
        self.logout_error = None
        self.reset_error = None
        self.on_logout = None

    def call_names(self):
        return [name for name, *_ in self.calls]

    async def listen_to_current_user(self, callback):
        self.calls.append(("listen_to_current_user",))
        self.current_user_callbacks.append(callback)
        sub = FakeSubscription("current_user")
        self.subscriptions.append(sub)
        return sub

    async def listen_to_user(self, user_id, callback):
        self.calls.append(("listen_to_user", user_id))
        self.user_callbacks.setdefault(user_id, []).append(callback)
        sub = FakeSubscription("user", user_id)
        self.subscriptions.append(sub)
        if user_id in self.profiles:
            callback(None, self.profiles[user_id])
        return sub

    async def login(self, credentials):
        self.calls.append(("login", credentials))
        if self.login_error is not None:
            raise self.login_error
        return self.login_result

    async def logout(self, user):
        self.calls.append(("logout", user))
        if self.on_logout is not None:
            self.on_logout()
        if self.logout_error is not None:
            raise self.logout_error

    async def create_user(self, credentials):
        self.calls.append(("create_user", credentials))
        if self.create_error is not None:
            raise self.create_error
        return self.create_result

    async def save_to_users_collection(self, user_id, document):
        self.calls.append(("save_to_users_collection", user_id, document))
        self.saved.append((user_id, document))

    async def send_password_reset_email(self, email):
        self.calls.append(("send_password_reset_email", email))
        if self.reset_error is not None:
            raise self.reset_error
        return PasswordResetResult(email=email, sent=True)

    # ─── Test controls ───────────────────────────────────────────

    def emit_current(self, error=None, data=None):
        for callback in list(self.current_user_callbacks):
            callback(error, data)

    def emit_user(self, user_id, error=None, profile=None):
        for callback in list(self.user_callbacks.get(user_id, [])):
            callback(error, profile)


def user_payload(user_id="u1", email="a@x.com", online=True, **tiers):
    return {
        "id": user_id,
        "publicInfo": {"email": email, "isOnline": online},
        **tiers,
    }


async def settle():
    """Let scheduled tasks and their done-callbacks run."""
    for _ in range(5):
        await asyncio.sleep(0)


class CallbackRecorder:
    """Stands in for a (error, result) callback."""

    def __init__(self):
        self.calls = []

    def __call__(self, error, result=None):
        self.calls.append((error, result))

    @property
    def error(self):
        return self.calls[-1][0]

    @property
    def result(self):
        return self.calls[-1][1]
