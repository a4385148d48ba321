from __future__ import annotations

import pytest

from dappsync.domain.model import (
    AnalyticsRecord,
    DirectoryRecord,
    ReconcileMode,
    RelatedDapp,
    SourceTag,
)
from dappsync.domain.reconciliation.reconcile import (
    PageUrls,
    SourceReconciler,
    github_link,
    reconcile,
    truncate_description,
    twitter_link,
)
from tests.helpers.records import make_store_record


def _assert_attributed(fields: object, sources: object) -> None:
    assert isinstance(fields, dict)
    assert isinstance(sources, dict)
    assert set(fields) == set(sources)


def test_end_to_end_arbitrum(reconciler: SourceReconciler) -> None:
    store = make_store_record("rec1", title="Arbitrum One", tvl_usd=None)
    directory = DirectoryRecord(
        name="Arbitrum", chain_names=("Arbitrum",), website_url="https://arbitrum.io"
    )
    analytics = AnalyticsRecord(tvl_usd=1.2e9, category="Rollup")

    unified = reconciler.reconcile(store, directory, analytics)

    assert unified.get("name") == "Arbitrum One"
    assert unified.get("tvlUsd") == 1.2e9
    assert unified.get("isDefiProtocol") is True
    assert unified.get("websiteUrl") == "https://arbitrum.io"
    assert unified.get("chains") == ["Arbitrum"]
    assert unified.get("category") == "Rollup"
    assert unified.sources["tvlUsd"] is SourceTag.ANALYTICS
    assert unified.sources["name"] is SourceTag.STORE
    assert unified.sources["websiteUrl"] is SourceTag.DIRECTORY
    assert unified.data_quality.completeness_score == 50
    _assert_attributed(dict(unified.fields), dict(unified.sources))


def test_sparse_output_has_no_empty_keys(reconciler: SourceReconciler) -> None:
    unified = reconciler.reconcile(make_store_record("rec1", title="Solo"))

    assert dict(unified.fields) == {"name": "Solo"}
    for name in ("websiteUrl", "twitterUrl", "githubUrl", "chains", "featured", "tvlUsd"):
        assert name not in unified
    payload = unified.to_payload()
    assert "websiteUrl" not in payload
    assert payload["dataQuality"] == {
        "hasDirectoryData": False,
        "hasAnalyticsData": False,
        "completenessScore": 10,
    }
    assert payload["lastUpdated"] == "2025-03-01T12:00:00Z"


def test_longer_directory_name_wins_with_both_provenance(reconciler: SourceReconciler) -> None:
    unified = reconciler.reconcile(
        make_store_record("rec1", title="Aave"), DirectoryRecord(name="Aave V3 Protocol")
    )

    assert unified.get("name") == "Aave V3 Protocol"
    assert unified.sources["name"] is SourceTag.BOTH


def test_directory_name_without_store_title(reconciler: SourceReconciler) -> None:
    unified = reconciler.reconcile(
        make_store_record("rec1", title=None), DirectoryRecord(name="Aave")
    )

    assert unified.sources["name"] is SourceTag.DIRECTORY


def test_analytics_links_override_directory(reconciler: SourceReconciler) -> None:
    directory = DirectoryRecord(
        website_url="https://dir.example",
        twitter="https://twitter.com/aave",
        discord_url="https://discord.gg/aave",
        docs_url="https://docs.aave.com",
    )
    analytics = AnalyticsRecord(url="https://aave.com", twitter="AaveAave", github="aave")

    unified = reconciler.reconcile(make_store_record("rec1", title="Aave"), directory, analytics)

    assert unified.get("websiteUrl") == "https://aave.com"
    assert unified.sources["websiteUrl"] is SourceTag.BOTH
    assert unified.get("twitterUrl") == "https://twitter.com/AaveAave"
    assert unified.get("twitterHandle") == "@AaveAave"
    assert unified.sources["twitterHandle"] is SourceTag.BOTH
    assert unified.get("githubUrl") == "https://github.com/aave"
    assert unified.sources["githubUrl"] is SourceTag.ANALYTICS
    assert unified.get("discordUrl") == "https://discord.gg/aave"
    assert unified.get("documentationUrl") == "https://docs.aave.com"


def test_description_is_longest_candidate(reconciler: SourceReconciler) -> None:
    directory = DirectoryRecord(description="Short one", long_description="A much longer story")

    unified = reconciler.reconcile(
        make_store_record("rec1", short_description="Mid length"), directory
    )

    assert unified.get("description") == "A much longer story"
    assert unified.sources["description"] is SourceTag.DIRECTORY


@pytest.mark.parametrize(
    ("mode", "limit"), [(ReconcileMode.FULL, 3000), (ReconcileMode.MINIMAL, 500)]
)
def test_description_is_capped_per_mode(
    reconciler: SourceReconciler, mode: ReconcileMode, limit: int
) -> None:
    record = make_store_record("rec1", short_description="x" * 3500)

    unified = reconciler.reconcile(record, mode=mode)

    description = unified.get("description")
    assert isinstance(description, str)
    assert len(description) == limit + 3
    assert description.endswith("...")


def test_chains_are_canonical_union(reconciler: SourceReconciler) -> None:
    store = make_store_record("rec1", chain_names=("Ethereum",))
    directory = DirectoryRecord(chain_names=("ethereum", "OP Mainnet"))
    analytics = AnalyticsRecord(chain_tvl={"Arbitrum": 5.0, "Qwzx": 1.0})

    unified = reconciler.reconcile(store, directory, analytics)

    assert unified.get("chains") == ["Arbitrum", "Ethereum", "Optimism", "Qwzx"]
    assert unified.sources["chains"] is SourceTag.BOTH


def test_chains_without_matcher_keep_raw_names(plain_reconciler: SourceReconciler) -> None:
    store = make_store_record("rec1", chain_names=("Ethereum",))
    directory = DirectoryRecord(chain_names=("ethereum", "OP Mainnet"))

    unified = plain_reconciler.reconcile(store, directory)

    assert unified.get("chains") == ["Ethereum", "OP Mainnet"]


def test_chain_tvl_keeps_top_ten_in_full_mode_only(reconciler: SourceReconciler) -> None:
    chain_tvl = {f"Chain{index}": float(index) for index in range(12)}
    analytics = AnalyticsRecord(tvl_usd=66.0, chain_tvl=chain_tvl)
    store = make_store_record("rec1")

    full = reconciler.reconcile(store, analytics=analytics)
    minimal = reconciler.reconcile(store, analytics=analytics, mode=ReconcileMode.MINIMAL)

    top = full.get("chainTvl")
    assert isinstance(top, dict)
    assert list(top) == [f"Chain{index}" for index in range(11, 1, -1)]
    assert "chainTvl" not in minimal


def test_categories_union_skips_excluded(reconciler: SourceReconciler) -> None:
    directory = DirectoryRecord(category_names=("Community Chain", "DeFi", "dexes"))

    unified = reconciler.reconcile(make_store_record("rec1", category="Dexes"), directory)

    assert unified.get("category") == "Dexes"
    assert unified.sources["category"] is SourceTag.STORE
    assert unified.get("categories") == ["Dexes", "DeFi"]
    assert unified.sources["categories"] is SourceTag.BOTH


def test_category_falls_back_to_directory(reconciler: SourceReconciler) -> None:
    directory = DirectoryRecord(category_names=("Archived Chain", "Gaming"))

    unified = reconciler.reconcile(make_store_record("rec1"), directory)

    assert unified.get("category") == "Gaming"
    assert unified.sources["category"] is SourceTag.DIRECTORY


def test_non_positive_tvl_is_not_defi(reconciler: SourceReconciler) -> None:
    unified = reconciler.reconcile(
        make_store_record("rec1"), analytics=AnalyticsRecord(tvl_usd=0.0, token_symbol="ABC")
    )

    assert "tvlUsd" not in unified
    assert unified.get("isDefiProtocol") is False
    assert unified.get("tokenSymbol") == "ABC"


def test_page_links(reconciler: SourceReconciler) -> None:
    unified = reconciler.reconcile(
        make_store_record("rec1"),
        DirectoryRecord(slug="aave-app"),
        AnalyticsRecord(protocol_id="aave"),
    )

    assert unified.get("slug") == "aave-app"
    assert unified.get("defillamaUrl") == "https://defillama.com/protocol/aave"
    assert unified.get("alchemyUrl") == "https://dapp-store.alchemy.com/dapps/aave-app"


def test_store_defillama_url_and_custom_page_urls() -> None:
    reconciler = SourceReconciler(page_urls=PageUrls(alchemy_dapp="https://dapps.example/"))
    store = make_store_record("rec1", defillama_url="https://defillama.com/protocol/custom")

    unified = reconciler.reconcile(
        store, DirectoryRecord(slug="x"), AnalyticsRecord(protocol_id="aave")
    )

    assert unified.get("defillamaUrl") == "https://defillama.com/protocol/custom"
    assert unified.sources["defillamaUrl"] is SourceTag.STORE
    assert unified.get("alchemyUrl") == "https://dapps.example/x"


def test_slug_falls_back_to_protocol_id(reconciler: SourceReconciler) -> None:
    unified = reconciler.reconcile(
        make_store_record("rec1"), analytics=AnalyticsRecord(protocol_id="aave")
    )

    assert unified.get("slug") == "aave"
    assert unified.sources["slug"] is SourceTag.ANALYTICS


def test_directory_extras(reconciler: SourceReconciler) -> None:
    related = tuple(RelatedDapp(name=f"Dapp {index}", slug=f"dapp-{index}") for index in range(8))
    directory = DirectoryRecord(related=related, featured=True)

    unified = reconciler.reconcile(make_store_record("rec1"), directory)

    related_dapps = unified.get("relatedDapps")
    assert isinstance(related_dapps, list)
    assert len(related_dapps) == 6
    assert related_dapps[0] == {"name": "Dapp 0", "slug": "dapp-0"}
    assert unified.get("featured") is True
    assert unified.get("verified") is False
    assert unified.data_quality.has_directory_data


def test_module_level_reconcile() -> None:
    unified = reconcile(make_store_record("rec1", title="Aave"))

    assert unified.get("name") == "Aave"


def test_twitter_link_variants() -> None:
    assert twitter_link("https://x.com/aave/status/1") == ("https://x.com/aave/status/1", "@aave")
    assert twitter_link("@aave") == ("https://twitter.com/aave", "@aave")
    assert twitter_link("https://example.com/aave") == ("https://example.com/aave", None)
    assert twitter_link("  ") == (None, None)


def test_github_link_variants() -> None:
    assert github_link("aave/aave-v3") == "https://github.com/aave/aave-v3"
    assert github_link("https://github.com/aave") == "https://github.com/aave"
    assert github_link(None) is None


def test_truncate_description() -> None:
    assert truncate_description("  abc  ", 10) == "abc"
    assert truncate_description("abcdef", 3) == "abc..."
