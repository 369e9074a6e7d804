from datetime import UTC, datetime

import pytest

from credcycle.models.base import as_utc
from credcycle.models.principal import Principal
from tests.factories.principal import DEFAULT_CREDENTIAL_HASH


def _principal(**overrides) -> Principal:
    fields = {"email": "p@example.com", "name": "Pat", "credential_hash": DEFAULT_CREDENTIAL_HASH}
    fields.update(overrides)
    return Principal(**fields)


def test_email_is_normalized():
    assert _principal(email="  Mixed@Example.COM ").email == "mixed@example.com"


@pytest.mark.parametrize("email", ["", "no-at-sign", "user@localhost"])
def test_bad_email_raises(email):
    with pytest.raises(ValueError):
        _principal(email=email)


def test_blank_name_raises():
    with pytest.raises(ValueError, match="Name"):
        _principal(name="   ")


def test_soft_delete_flag():
    p = _principal()
    assert not p.is_deleted

    when = datetime(2030, 1, 1, tzinfo=UTC)
    p.mark_deleted(when)

    assert p.is_deleted
    assert p.deleted_at == when


def test_as_utc_treats_naive_values_as_utc():
    naive = datetime(2030, 1, 1, 12, 0)
    assert as_utc(naive) == datetime(2030, 1, 1, 12, 0, tzinfo=UTC)
