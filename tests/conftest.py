import base64
from typing import Dict, Optional

import pytest
from structlog.testing import capture_logs

from token_authority import (
    AuthoritySettings,
    InMemorySessionStore,
    ProfileRecord,
    create_authority,
)

SECRET = base64.b64encode(b"unit-test-signing-key-0123456789abcdef").decode()
START = 1_700_000_000.0


class FakeClock:
    def __init__(self, start: float = START) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProfileRepository:
    def __init__(self, records: Dict[str, ProfileRecord]) -> None:
        self.records = records
        self.lookups = 0

    def find_by_principal(self, principal: str) -> Optional[ProfileRecord]:
        self.lookups += 1
        return self.records.get(principal)


class FakeCredentialVerifier:
    def __init__(self, passwords: Dict[str, str]) -> None:
        self.passwords = passwords
        self.checked: list = []

    def verify(self, principal: str, secret: str) -> bool:
        self.checked.append(principal)
        return self.passwords.get(principal) == secret


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> AuthoritySettings:
    return AuthoritySettings(
        secret_key=SECRET,
        access_token_ttl_seconds=900,
        refresh_token_ttl_seconds=86400,
        issuer="test-authority",
    )


@pytest.fixture
def store(clock) -> InMemorySessionStore:
    return InMemorySessionStore(clock=clock)


@pytest.fixture
def profile() -> ProfileRecord:
    return ProfileRecord(
        id=1,
        employee_id="E001",
        name="Kim Minji",
        role="USER",
        scope="line-a",
        shift="day",
    )


@pytest.fixture
def repository(profile) -> FakeProfileRepository:
    return FakeProfileRepository({profile.employee_id: profile})


@pytest.fixture
def verifier() -> FakeCredentialVerifier:
    return FakeCredentialVerifier({"E001": "correct horse"})


@pytest.fixture
def authority(settings, store, repository, verifier, clock):
    return create_authority(
        settings,
        store=store,
        profile_repository=repository,
        credential_verifier=verifier,
        clock=clock,
    )


@pytest.fixture(autouse=True)
def log_events():
    with capture_logs() as events:
        yield events
