import itertools

import pytest

from datashelf.services.policy import (
    Operation,
    Verdict,
    Visibility,
    check_patch_fields,
    decide,
    is_allowed,
    merge_visibility,
    operation_for_method,
    writable_fields,
)

USERS = ["u1", "u2", "u3"]


def all_visibilities() -> list[Visibility]:
    """Every visibility record over a small universe of users, owned by u1."""
    records = []
    for editors_mask, viewers_mask, is_public in itertools.product(range(8), range(8), (False, True)):
        editors = [u for i, u in enumerate(USERS) if editors_mask & (1 << i)]
        viewers = [u for i, u in enumerate(USERS) if viewers_mask & (1 << i)]
        records.append(Visibility(owner="u1", editors=editors, viewers=viewers, is_public=is_public))
    return records


def test_owner_is_always_an_editor() -> None:
    visibility = Visibility(owner="u1", editors=["u2", "u2"], viewers=["u3", "u3"])
    assert visibility.editors == ["u1", "u2"]
    assert visibility.viewers == ["u3"]
    assert visibility.is_public is False


def test_read_allowed_iff_editor_viewer_or_public() -> None:
    for visibility, caller in itertools.product(all_visibilities(), USERS + ["stranger"]):
        expected = caller in visibility.editors or caller in visibility.viewers or visibility.is_public
        assert is_allowed(visibility, caller, Operation.READ) is expected


def test_delete_allowed_iff_owner() -> None:
    for visibility, caller in itertools.product(all_visibilities(), USERS + ["stranger"]):
        assert is_allowed(visibility, caller, Operation.DELETE) is (caller == visibility.owner)


@pytest.mark.parametrize("operation", [Operation.UPDATE, Operation.CREATE_SUBRESOURCE])
def test_write_operations_need_owner_or_editor(operation: Operation) -> None:
    for visibility, caller in itertools.product(all_visibilities(), USERS + ["stranger"]):
        expected = caller == visibility.owner or caller in visibility.editors
        assert is_allowed(visibility, caller, operation) is expected


def test_viewer_cannot_write() -> None:
    visibility = Visibility(owner="u1", viewers=["u2"], is_public=True)
    assert decide(visibility, "u2", Operation.READ) is Verdict.ALLOW
    assert decide(visibility, "u2", Operation.UPDATE) is Verdict.DENY
    assert decide(visibility, "u2", Operation.CREATE_SUBRESOURCE) is Verdict.DENY
    assert decide(visibility, "u2", Operation.DELETE) is Verdict.DENY


def test_editor_cannot_delete() -> None:
    visibility = Visibility(owner="u1", editors=["u2"])
    assert decide(visibility, "u2", Operation.UPDATE) is Verdict.ALLOW
    assert decide(visibility, "u2", Operation.DELETE) is Verdict.DENY


def test_identity_is_compared_exactly() -> None:
    visibility = Visibility(owner="u1", viewers=["u2"])
    assert decide(visibility, "U2", Operation.READ) is Verdict.DENY
    assert decide(visibility, "u2 ", Operation.READ) is Verdict.DENY


@pytest.mark.parametrize("operation", ["list", "purge", "", None, "READ"])
def test_unknown_operations_are_denied(operation: object) -> None:
    visibility = Visibility(owner="u1", is_public=True)
    assert decide(visibility, "u1", operation) is Verdict.DENY  # type: ignore[arg-type]


def test_operation_accepts_plain_strings() -> None:
    visibility = Visibility(owner="u1")
    assert decide(visibility, "u1", "delete") is Verdict.ALLOW


@pytest.mark.parametrize(
    "method, operation",
    [
        ("GET", Operation.READ),
        ("get", Operation.READ),
        ("PATCH", Operation.UPDATE),
        ("DELETE", Operation.DELETE),
        ("POST", Operation.CREATE_SUBRESOURCE),
        ("PUT", Operation.CREATE_SUBRESOURCE),
        ("HEAD", None),
        ("OPTIONS", None),
    ],
)
def test_operation_for_method(method: str, operation: Operation) -> None:
    assert operation_for_method(method) is operation


def test_unmapped_method_is_denied() -> None:
    visibility = Visibility(owner="u1", is_public=True)
    assert decide(visibility, "u1", operation_for_method("TRACE")) is Verdict.DENY


def test_writable_fields() -> None:
    visibility = Visibility(owner="u1", editors=["u2"], viewers=["u3"])
    assert writable_fields(visibility, "u1") == {"title", "is_public", "editors", "viewers"}
    assert writable_fields(visibility, "u2") == {"title"}
    assert writable_fields(visibility, "u3") == frozenset()


def test_check_patch_fields() -> None:
    visibility = Visibility(owner="u1", editors=["u2"])
    assert check_patch_fields(visibility, "u1", ["title", "is_public"]) == []
    assert check_patch_fields(visibility, "u2", ["title"]) == []
    assert check_patch_fields(visibility, "u2", ["viewers", "title", "is_public"]) == ["is_public", "viewers"]


def test_merge_visibility_keeps_owner() -> None:
    visibility = Visibility(owner="u1", editors=["u2"])
    merged = merge_visibility(visibility, {"editors": ["u3"], "is_public": True, "title": "ignored"})
    assert merged.owner == "u1"
    assert merged.editors == ["u1", "u3"]
    assert merged.viewers == []
    assert merged.is_public is True
