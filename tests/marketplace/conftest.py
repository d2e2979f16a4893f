import pytest
from marketplace.loyalty.ledger import reset_ledger, set_ledger
from marketplace.loyalty.ledger.fake_adapter import InMemoryLedger
from marketplace.vendors.directory import reset_directory, set_directory
from marketplace.vendors.directory.fake_adapter import StaticVendorDirectory
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace
    from marketplace.utils.db import drop_db, setup_db

    bed = DomainFixture(marketplace)
    bed.setup()
    setup_db(marketplace)
    yield bed
    drop_db(marketplace)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield

        from protean import current_domain

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()


@pytest.fixture()
def directory():
    """Vendor terms for the test; unknown vendors get the platform defaults."""
    vendor_directory = StaticVendorDirectory()
    set_directory(vendor_directory)
    yield vendor_directory
    reset_directory()


@pytest.fixture()
def ledger():
    loyalty_ledger = InMemoryLedger()
    set_ledger(loyalty_ledger)
    yield loyalty_ledger
    reset_ledger()


@pytest.fixture(autouse=True)
def _reset_ports():
    yield
    reset_directory()
    reset_ledger()
