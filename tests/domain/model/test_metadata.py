from __future__ import annotations

import pytest

from dappsync.domain.model import (
    ProvenanceMismatchError,
    SourceTag,
    UnifiedMetadata,
    completeness_score,
    is_present,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, False),
        ("", False),
        ("  ", False),
        ([], False),
        ({}, False),
        ("x", True),
        (0, True),
        (False, True),
        ([0], True),
    ],
)
def test_is_present(value: object, expected: bool) -> None:
    assert is_present(value) is expected


def test_completeness_score_rounds_checklist_share() -> None:
    assert completeness_score({}) == 0
    assert completeness_score({"name": "x", "slug": "y", "extra": "z"}) == 20
    assert completeness_score({"name": "x", "chains": [], "tvlUsd": 0}) == 20


def test_orphaned_provenance_is_rejected() -> None:
    with pytest.raises(ProvenanceMismatchError) as excinfo:
        UnifiedMetadata(
            fields={"name": "Aave", "websiteUrl": None},
            sources={"name": SourceTag.STORE, "websiteUrl": SourceTag.DIRECTORY},
        )

    assert excinfo.value.orphaned == {"websiteUrl"}


def test_unattributed_value_is_rejected() -> None:
    with pytest.raises(ProvenanceMismatchError) as excinfo:
        UnifiedMetadata(fields={"name": "Aave"}, sources={})

    assert excinfo.value.unattributed == {"name"}


def test_empty_values_without_provenance_are_dropped() -> None:
    unified = UnifiedMetadata(
        fields={"name": "Aave", "chains": []}, sources={"name": SourceTag.STORE}
    )

    assert dict(unified.fields) == {"name": "Aave"}


def test_with_field_and_without() -> None:
    unified = UnifiedMetadata(
        fields={"name": "Aave", "chainTvl": {"Ethereum": 1.0}},
        sources={"name": SourceTag.STORE, "chainTvl": SourceTag.ANALYTICS},
    )

    renamed = unified.with_field("name", "Aave V3")
    trimmed = unified.without("chainTvl")

    assert renamed.get("name") == "Aave V3"
    assert unified.get("name") == "Aave"
    assert "chainTvl" not in trimmed
    assert "chainTvl" not in trimmed.sources
    with pytest.raises(KeyError):
        unified.with_field("description", "new")


def test_payload_shape() -> None:
    unified = UnifiedMetadata(
        fields={"name": "Aave"},
        sources={"name": SourceTag.BOTH},
        has_analytics_data=True,
    )

    payload = unified.to_payload()

    assert payload["sources"] == {"name": "both"}
    assert payload["dataQuality"] == {
        "hasDirectoryData": False,
        "hasAnalyticsData": True,
        "completenessScore": 10,
    }
    last_updated = payload["lastUpdated"]
    assert isinstance(last_updated, str)
    assert last_updated.endswith("Z")
