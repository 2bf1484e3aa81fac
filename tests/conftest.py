"""Shared pytest fixtures for campusmart tests."""

import os
import tempfile
from datetime import datetime, timedelta, UTC

import pytest
from click.testing import CliRunner

from campusmart.client import MarketplaceClient
from campusmart.config import LostReportPolicy, Settings
from campusmart.database.factories import create_sqlite_datastore
from campusmart.domain.session import SessionBridge
from campusmart.providers.auth import LocalAuthProvider
from campusmart.providers.blobs import LocalBlobStore
from campusmart.utils.retry import NO_RETRY

# Keep password hashing fast in tests
TEST_ITERATIONS = 1000
PASSWORD = "secret123"


class TickingClock:
    """Deterministic server clock advancing one second per reading."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 9, 0, tzinfo=UTC)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def temp_datastore(clock):
    """Create a temporary SQLite datastore for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    datastore = create_sqlite_datastore(database_path=db_path, clock=clock)
    datastore.database_path = db_path
    datastore.connect()
    datastore.initialize_schema()

    yield datastore

    datastore.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def open_settings():
    """Settings allowing any account to file lost-and-found reports."""
    return Settings(lost_report_policy=LostReportPolicy.ANY_ACCOUNT)


@pytest.fixture
def auth(temp_datastore):
    return LocalAuthProvider(temp_datastore, iterations=TEST_ITERATIONS)


@pytest.fixture
def register(temp_datastore, settings):
    """Return a function that signs up and verifies an account, returning its id."""

    def _register(
        email: str,
        name: str = "Test Student",
        password: str = PASSWORD,
        verify: bool = True,
        **profile,
    ) -> str:
        provider = LocalAuthProvider(temp_datastore, iterations=TEST_ITERATIONS)
        bridge = SessionBridge(provider, temp_datastore, settings)
        account_id = bridge.signup(
            email=email,
            password=password,
            display_name=name,
            registration_number=profile.get("registration_number", "21BCE0001"),
            branch=profile.get("branch", "CSE"),
            year=profile.get("year", 2),
            hostel_block=profile.get("hostel_block", "A"),
        )
        if verify:
            provider.verify_email(provider.send_email_verification(account_id))
        return account_id

    return _register


@pytest.fixture
def make_client(temp_datastore, settings, tmp_path):
    """Return a function building a client, optionally signed in."""
    clients = []

    def _make_client(email: str | None = None, password: str = PASSWORD, client_settings: Settings | None = None):
        client = MarketplaceClient(
            temp_datastore,
            LocalAuthProvider(temp_datastore, iterations=TEST_ITERATIONS),
            settings=client_settings or settings,
            blobs=LocalBlobStore(str(tmp_path / "blobs")),
            retry_policy=NO_RETRY,
        )
        clients.append(client)
        if email is not None:
            client.login(email, password)
        return client

    yield _make_client

    for client in clients:
        client.close()


@pytest.fixture
def seller_id(register):
    return register("seller@student.edu", name="Sam Seller")


@pytest.fixture
def buyer_id(register):
    return register("buyer@student.edu", name="Bea Buyer")


@pytest.fixture
def admin_id(register):
    return register("warden@vit.ac.in", name="Ada Admin")


@pytest.fixture
def seller(make_client, seller_id):
    return make_client("seller@student.edu")


@pytest.fixture
def buyer(make_client, buyer_id):
    return make_client("buyer@student.edu")


@pytest.fixture
def admin(make_client, admin_id):
    return make_client("warden@vit.ac.in")


@pytest.fixture
def sample_listing(seller, seller_id):
    """A listing owned by the seller."""
    return seller.gateway.add_listing(
        owner_id=seller_id,
        title="Calculus Textbook",
        description="Thomas' Calculus, 14th edition",
        category="Textbooks",
        price="350",
        location="Library",
        condition="Good",
        image_url="https://img.example/calc.jpg",
    )


@pytest.fixture
def cli_runner():
    return CliRunner()
