import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def notifications_bed():
    from notifications.domain import notifications

    bed = DomainFixture(notifications)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(notifications_bed):
    with notifications_bed.domain_context():
        yield
        _reset_infrastructure()


def _reset_infrastructure():
    """Cleanup stores and process-wide adapters after every test."""
    from notifications.channel import reset_channels
    from notifications.directory import reset_directory
    from protean import current_domain

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()

    reset_channels()
    reset_directory()


@pytest.fixture()
def directory():
    """A fresh in-memory directory installed as the active adapter."""
    from notifications.directory import get_directory

    return get_directory()
