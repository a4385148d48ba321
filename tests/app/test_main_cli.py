from __future__ import annotations

import pytest

from dappsync.domain.data_integration import BatchSummary
from dappsync.ui import cli as cli_module


def _capture(monkeypatch: pytest.MonkeyPatch, name: str) -> dict[str, object]:
    captured: dict[str, object] = {}

    def fake_command(**kwargs: object) -> BatchSummary:
        captured.update(kwargs)
        return BatchSummary(processed=1)

    monkeypatch.setattr(cli_module, name, fake_command)
    return captured


def test_merge_duplicates_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch, "merge_duplicate_dapps")

    cli_module.main(["merge-duplicates"])

    assert captured == {"dry_run": False}


def test_unified_metadata_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch, "generate_metadata")

    cli_module.main(["-v", "unified-metadata", "--budget-bytes", "1000", "--minimal"])

    assert captured == {"budget_bytes": 1000, "force_minimal": True}


def test_unified_metadata_defaults_budget_to_config(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch, "generate_metadata")

    cli_module.main(["unified-metadata"])

    assert captured == {"budget_bytes": None, "force_minimal": False}


def test_sync_and_link_chains(monkeypatch: pytest.MonkeyPatch) -> None:
    sync = _capture(monkeypatch, "sync_dapps")
    link = _capture(monkeypatch, "link_dapp_chains")

    cli_module.main(["sync", "--limit", "5"])
    cli_module.main(["link-chains", "--dry-run"])

    assert sync == {"limit": 5}
    assert link == {"dry_run": True}


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["unknown"],
        ["unified-metadata", "--budget-bytes", "0"],
        ["sync", "--limit", "many"],
    ],
)
def test_invalid_arguments_exit_with_usage_error(
    monkeypatch: pytest.MonkeyPatch, argv: list[str]
) -> None:
    _capture(monkeypatch, "generate_metadata")
    _capture(monkeypatch, "sync_dapps")

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(argv)

    assert excinfo.value.code == 2


def test_fatal_error_exits_non_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing(**_: object) -> BatchSummary:
        raise RuntimeError("store offline")

    monkeypatch.setattr(cli_module, "merge_duplicate_dapps", failing)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["merge-duplicates"])

    assert excinfo.value.code == 1
