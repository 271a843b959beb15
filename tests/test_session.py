import pytest

from mathtutor.core.config import settings
from mathtutor.core.session import SessionLocator, is_valid_session_id

KEY = settings.SESSION_COOKIE_NAME


def test_durable_store_wins():
    durable = {KEY: "durable-id"}
    ephemeral = {KEY: "ephemeral-id"}
    locator = SessionLocator(durable, ephemeral, url="https://app.test/?session=query-id")

    assert locator.get_session() == "durable-id"
    assert locator.source == "durable"
    assert ephemeral[KEY] == "ephemeral-id"


def test_ephemeral_backfills_durable():
    durable = {}
    locator = SessionLocator(durable, {KEY: "ephemeral-id"})

    assert locator.get_session() == "ephemeral-id"
    assert durable[KEY] == "ephemeral-id"


def test_query_parameter_backfills_both_stores():
    durable, ephemeral = {}, {}
    locator = SessionLocator(durable, ephemeral, url="https://app.test/plan?tab=1&session=shared-id")

    assert locator.get_session() == "shared-id"
    assert locator.source == "query"
    assert durable[KEY] == ephemeral[KEY] == "shared-id"


def test_fragment_is_last_resort():
    durable, ephemeral = {}, {}
    locator = SessionLocator(durable, ephemeral, url="https://app.test/#/home?session=frag-id&x=1")

    assert locator.get_session() == "frag-id"
    assert locator.source == "fragment"
    assert durable[KEY] == "frag-id"


def test_no_session_anywhere():
    locator = SessionLocator({}, {}, url="https://app.test/#/home")

    assert locator.get_session() is None
    assert locator.source is None


def test_get_or_create_and_reset():
    durable, ephemeral = {}, {}
    locator = SessionLocator(durable, ephemeral)

    session_id = locator.get_or_create()

    assert locator.source == "created"
    assert durable[KEY] == ephemeral[KEY] == session_id
    assert locator.get_or_create() == session_id

    locator.reset()
    assert KEY not in durable and KEY not in ephemeral


@pytest.mark.parametrize("value", ["a/b", "../plans", "id with space", "x" * 65, "abc\n", ""])
def test_malformed_session_ids_are_rejected(value):
    assert not is_valid_session_id(value)


def test_malformed_header_is_ignored():
    durable = {}
    locator = SessionLocator(durable, {KEY: "a/b"})

    assert locator.get_session() is None
    assert durable == {}


def test_malformed_cookie_falls_through_and_is_replaced():
    durable = {KEY: "bad/id"}
    locator = SessionLocator(durable, {KEY: "good-id_1"})

    assert locator.get_session() == "good-id_1"
    assert locator.source == "ephemeral"
    assert durable[KEY] == "good-id_1"
