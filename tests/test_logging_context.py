"""Tests for logging context propagation."""

import contextvars
import threading

from store_locator.domain.models import StoreRecord
from store_locator.logging.context import (
    clear_log_context,
    get_log_context,
    log_context,
    new_run_id,
    pop_log_context,
    push_log_context,
    run_log_context,
    store_log_context,
)


def test_empty_context():
    assert get_log_context() == {}


def test_push_and_pop_restores_previous_state():
    token = push_log_context(run_id="abc123", source_id="indigo")
    assert get_log_context() == {"run_id": "abc123", "source_id": "indigo"}

    pop_log_context(token)
    assert get_log_context() == {}


def test_nested_push_merges_and_overrides():
    """Inner pushes add keys and shadow same-named ones until popped."""
    outer = push_log_context(run_id="abc123", source_id="indigo")
    inner = push_log_context(source_id="walmart", identity="deadbeef")

    assert get_log_context() == {
        "run_id": "abc123",
        "source_id": "walmart",
        "identity": "deadbeef",
    }

    pop_log_context(inner)
    assert get_log_context() == {"run_id": "abc123", "source_id": "indigo"}

    pop_log_context(outer)
    assert get_log_context() == {}


def test_context_manager_nested():
    with log_context(run_id="abc123"):
        with log_context(identity="deadbeef"):
            assert get_log_context() == {"run_id": "abc123", "identity": "deadbeef"}
        assert get_log_context() == {"run_id": "abc123"}

    assert get_log_context() == {}


def test_context_manager_restores_on_exception():
    try:
        with log_context(run_id="abc123"):
            raise ValueError("boom")
    except ValueError:
        pass

    assert get_log_context() == {}


def test_clear_context():
    push_log_context(run_id="abc123")
    clear_log_context()
    assert get_log_context() == {}


def test_get_returns_copy():
    with log_context(run_id="abc123"):
        context = get_log_context()
        context["identity"] = "modified"
        assert get_log_context() == {"run_id": "abc123"}


def test_copied_context_reaches_worker_thread():
    """A thread started through a copied context sees the caller's fields."""
    seen = {}

    def worker():
        with log_context(identity="deadbeef"):
            seen.update(get_log_context())

    with log_context(run_id="abc123"):
        ctx = contextvars.copy_context()
        thread = threading.Thread(target=ctx.run, args=(worker,))
        thread.start()
        thread.join()

        # The worker's own push does not leak back
        assert get_log_context() == {"run_id": "abc123"}

    assert seen == {"run_id": "abc123", "identity": "deadbeef"}



def test_run_context_carries_pipeline_and_generated_id():
    with run_log_context("ingestion"):
        context = get_log_context()

    assert context["pipeline"] == "ingestion"
    assert len(context["run_id"]) == 32
    assert get_log_context() == {}


def test_run_context_reuses_given_id():
    with run_log_context("enrichment", "abc123"):
        assert get_log_context() == {"run_id": "abc123", "pipeline": "enrichment"}


def test_new_run_ids_differ():
    assert new_run_id() != new_run_id()


def test_store_context_names_the_store():
    store = StoreRecord(identity="deadbeef", brand="Indigo", name="Bay")

    with run_log_context("enrichment", "abc123"):
        with store_log_context(store):
            assert get_log_context() == {
                "run_id": "abc123",
                "pipeline": "enrichment",
                "identity": "deadbeef",
                "brand": "Indigo",
                "store_name": "Bay",
            }


def test_store_context_skips_absent_fields():
    with store_log_context(StoreRecord(identity="deadbeef", brand="Indigo")):
        assert get_log_context() == {"identity": "deadbeef", "brand": "Indigo"}
