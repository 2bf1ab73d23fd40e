from __future__ import annotations

from typing import Any

import pytest

from targetstate.config import EngineConfig
from targetstate.exceptions import InvalidArgumentError
from targetstate.ingestion import DropReason, MergeDiagnostics, store_emissions
from targetstate.models import Emission
from targetstate.state import TargetState, create_state


def _state() -> TargetState:
    return create_state(
        [
            {"id": "visits", "type": "count"},
            {"id": "coverage", "type": "percent"},
        ]
    )


def _emission(
    emission_id: str,
    target: str = "visits",
    contact: str | None = "c1",
    *,
    passed: Any = True,
    date: Any = 1000,
    reported: Any = None,
    group: Any = None,
    deleted: bool = False,
) -> dict[str, Any]:
    emission: dict[str, Any] = {"_id": emission_id, "type": target, "pass": passed, "date": date}
    if contact is not None:
        emission["contact"] = {"_id": contact}
        if reported is not None:
            emission["contact"]["reported_date"] = reported
    if group is not None:
        emission["groupBy"] = group
    if deleted:
        emission["deleted"] = True
    return emission


def test_merge_stores_requestor_entry() -> None:
    state = _state()

    updated = store_emissions(state, ["c1"], [_emission("e1", reported=500, group="hh-1")])

    assert updated is True
    entry = state.targets["visits"].emissions["e1"]["c1"]
    assert entry.passed is True
    assert entry.group_by == "hh-1"
    assert entry.date == 1000
    assert entry.order == 500


def test_missing_reported_date_has_no_order() -> None:
    state = _state()

    store_emissions(state, ["c1"], [_emission("e1")])

    assert state.targets["visits"].emissions["e1"]["c1"].order is None


def test_pass_follows_truthiness() -> None:
    state = _state()

    store_emissions(state, None, [_emission("e1", passed=1), _emission("e2", passed=None), _emission("e3", passed="")])

    emissions = state.targets["visits"].emissions
    assert emissions["e1"]["c1"].passed is True
    assert emissions["e2"]["c1"].passed is False
    assert emissions["e3"]["c1"].passed is False


def test_cancellation_removes_every_entry_of_the_contact() -> None:
    state = _state()
    store_emissions(
        state,
        None,
        [
            _emission("e1", "visits", "c1"),
            _emission("e2", "coverage", "c1"),
            _emission("e1", "visits", "c2"),
        ],
    )

    assert store_emissions(state, ["c1"], []) is True
    assert state.requestor_ids() == {"c2"}
    assert "e2" not in state.targets["coverage"].emissions

    # Nothing left to cancel.
    assert store_emissions(state, ["c1"], []) is False


def test_cancellation_keeps_empty_emission_maps_when_pruning_disabled() -> None:
    state = _state()
    store_emissions(state, ["c1"], [_emission("e1")])

    store_emissions(state, ["c1"], [], config=EngineConfig(prune_empty_emissions=False))

    assert state.targets["visits"].emissions == {"e1": {}}


def test_contact_ids_accepts_single_string() -> None:
    state = _state()
    store_emissions(state, None, [_emission("e1", contact="c1"), _emission("e2", contact="c2")])

    assert store_emissions(state, "c1", []) is True
    assert state.requestor_ids() == {"c2"}


def test_cancellation_ids_are_normalized_like_stored_contact_ids() -> None:
    state = _state()
    store_emissions(state, None, [_emission("e1", contact=" c1 "), {**_emission("e2"), "contact": {"_id": 7}}])

    assert state.requestor_ids() == {"c1", "7"}
    assert store_emissions(state, [" c1 ", 7, None, ""], []) is True
    assert state.requestor_ids() == set()


def test_full_reset_without_contact_ids() -> None:
    state = _state()
    store_emissions(state, None, [_emission("e1", contact="c1"), _emission("e2", "coverage", contact="c2")])

    assert store_emissions(state, None, []) is True
    assert all(entry.emissions == {} for entry in state.targets.values())
    assert store_emissions(state, None, []) is False


def test_resubmission_overwrites_in_place() -> None:
    state = _state()
    store_emissions(state, ["c1"], [_emission("e1", passed=False)])

    store_emissions(state, ["c1"], [_emission("e1", passed=True)])

    assert list(state.targets["visits"].emissions["e1"]) == ["c1"]
    assert state.targets["visits"].emissions["e1"]["c1"].passed is True


def test_upsert_reports_change_only_when_entry_differs() -> None:
    state = _state()

    assert store_emissions(state, [], [_emission("e1")]) is True
    assert store_emissions(state, [], [_emission("e1")]) is False
    assert store_emissions(state, [], [_emission("e1", passed=False)]) is True


def test_merge_is_idempotent() -> None:
    state = _state()
    batch = [_emission("e1", reported=10), _emission("e2", "coverage", passed=False)]

    store_emissions(state, ["c1"], batch)
    first = state.to_blob()
    store_emissions(state, ["c1"], batch)

    assert state.to_blob() == first


def test_accepts_emission_models() -> None:
    state = _state()
    emission = Emission.model_validate(_emission("e1", reported=42))

    assert store_emissions(state, ["c1"], (emission,)) is True
    assert state.targets["visits"].emissions["e1"]["c1"].order == 42


@pytest.mark.parametrize(
    ("emission", "reason"),
    [
        (_emission("e1", target="unknown"), DropReason.UNKNOWN_TARGET),
        ({"_id": "e1", "pass": True}, DropReason.UNKNOWN_TARGET),
        (_emission("e1", contact=None), DropReason.MISSING_CONTACT),
        ({"_id": "e1", "type": "visits", "contact": {"name": "no id"}}, DropReason.MISSING_CONTACT),
        ({"_id": "e1", "type": "visits", "contact": "c1"}, DropReason.MISSING_CONTACT),
        (_emission("e1", deleted=True), DropReason.DELETED),
        ({"type": "visits", "contact": {"_id": "c1"}}, DropReason.INVALID),
        (42, DropReason.INVALID),
    ],
)
def test_broken_emissions_are_skipped(emission: Any, reason: DropReason) -> None:
    state = _state()
    diagnostics = MergeDiagnostics()
    seen: list[tuple[DropReason, Any]] = []

    updated = store_emissions(
        state,
        ["c1"],
        [emission],
        diagnostics=diagnostics,
        on_drop=lambda r, e: seen.append((r, e)),
    )

    assert updated is False
    assert state.requestor_ids() == set()
    assert diagnostics.dropped[reason] == 1
    assert diagnostics.total_dropped == 1
    assert seen == [(reason, emission)]


def test_failing_drop_hook_does_not_abort_merge() -> None:
    state = _state()

    def _hook(reason: DropReason, emission: Any) -> None:
        raise RuntimeError("boom")

    updated = store_emissions(
        state,
        ["c1"],
        [_emission("e1", target="unknown"), _emission("e2")],
        on_drop=_hook,
    )

    assert updated is True
    assert "e2" in state.targets["visits"].emissions


def test_diagnostics_counters() -> None:
    state = _state()
    diagnostics = MergeDiagnostics()

    store_emissions(state, ["c1"], [_emission("e1"), _emission("e2", deleted=True)], diagnostics=diagnostics)
    store_emissions(state, ["c1"], [], diagnostics=diagnostics)

    assert diagnostics.as_dict() == {
        "merges": 2,
        "stored": 1,
        "cleared": 1,
        "dropped": {"invalid": 0, "unknown_target": 0, "missing_contact": 0, "deleted": 1},
    }
    diagnostics.reset()
    assert diagnostics.total_dropped == 0
    assert diagnostics.merges == 0


@pytest.mark.parametrize(
    "emissions",
    [None, "e1", {"e1": _emission("e1")}, (e for e in [_emission("e1")]), 42],
)
def test_non_sequence_emissions_rejected_before_mutation(emissions: Any) -> None:
    state = _state()
    store_emissions(state, None, [_emission("e1", contact="c1"), _emission("e2", contact="c2")])
    before = state.to_blob()

    with pytest.raises(InvalidArgumentError) as excinfo:
        store_emissions(state, ["c1"], emissions)

    assert excinfo.value.argument == "emissions"
    assert isinstance(excinfo.value, TypeError)
    assert state.to_blob() == before
