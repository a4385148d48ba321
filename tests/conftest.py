from __future__ import annotations

import pytest

from dappsync.domain.reconciliation.chains import ChainMatcher
from dappsync.domain.reconciliation.reconcile import SourceReconciler
from dappsync.domain.reference import DEFAULT_REFERENCE_DATA
from tests.helpers.records import FIXED_NOW, SleepRecorder


@pytest.fixture(autouse=True)
def isolated_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> None:
    monkeypatch.setenv("DAPPSYNC_DATA_DIR", str(tmp_path_factory.mktemp("dappsync-data")))


@pytest.fixture
def matcher() -> ChainMatcher:
    return ChainMatcher(DEFAULT_REFERENCE_DATA.chains)


@pytest.fixture
def reconciler(matcher: ChainMatcher) -> SourceReconciler:
    return SourceReconciler(DEFAULT_REFERENCE_DATA, matcher=matcher, clock=lambda: FIXED_NOW)


@pytest.fixture
def plain_reconciler() -> SourceReconciler:
    return SourceReconciler(DEFAULT_REFERENCE_DATA, clock=lambda: FIXED_NOW)


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()
