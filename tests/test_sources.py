from market_context import sources
from market_context.cache.ttl_config import LIVE_THRESHOLD
from market_context.models import Tier, tier_access


def _ids(tier):
    return {s.id for s in sources.sources_for_tier(tier)}


def test_higher_tiers_are_supersets():
    assert _ids(Tier.STARTER) <= _ids(Tier.STANDARD) <= _ids(Tier.PREMIUM)
    assert _ids(Tier.PREMIUM) == set(sources.REGISTRY)


def test_available_and_unavailable_partition_registry():
    for tier in Tier:
        available = {s.id for s in sources.sources_for_tier(tier)}
        unavailable = {s.id for s in sources.unavailable_sources_for_tier(tier)}
        assert available.isdisjoint(unavailable)
        assert available | unavailable == set(sources.REGISTRY)


def test_live_sources_refresh_within_five_minutes():
    for s in sources.all_sources():
        if s.is_live:
            assert s.cache_duration <= LIVE_THRESHOLD, s.id
        else:
            assert s.cache_duration > LIVE_THRESHOLD, s.id


def test_starter_only_sees_account_data():
    assert {s.category for s in sources.sources_for_tier(Tier.STARTER)} == {"account"}


def test_external_sources_are_premium_only():
    for s in sources.all_sources():
        if s.category == "external":
            assert s.tiers == {Tier.PREMIUM}


def test_upgrade_suggestions_for_starter():
    suggestions = sources.upgrade_suggestions(Tier.STARTER)
    assert len(suggestions) == 2
    assert suggestions[0].startswith("Upgrade to Standard to access economic indicators like")
    assert "Consumer Price Index" in suggestions[0]
    assert suggestions[1].startswith("Upgrade to Premium for live market data including")
    assert "CD Rates" in suggestions[1]


def test_upgrade_suggestions_for_standard_and_premium():
    standard = sources.upgrade_suggestions(Tier.STANDARD)
    assert len(standard) == 1
    assert standard[0].startswith("Upgrade to Premium for real-time market data including")
    assert sources.upgrade_suggestions(Tier.PREMIUM) == []


def test_next_tier_chain():
    assert sources.next_tier(Tier.STARTER) == Tier.STANDARD
    assert sources.next_tier(Tier.STANDARD) == Tier.PREMIUM
    assert sources.next_tier(Tier.PREMIUM) is None


def test_tier_limitations():
    assert "Limited to account data only" in sources.tier_limitations("starter")
    assert sources.tier_limitations(Tier.PREMIUM) == ["Full access to all data sources"]


def test_upgrade_hints_name_required_tier():
    hints = {h.feature: h for h in sources.upgrade_hints(Tier.STARTER)}
    assert hints["Consumer Price Index"].required_tier == Tier.STANDARD
    assert hints["Treasury Yields"].required_tier == Tier.PREMIUM
    assert hints["Treasury Yields"].benefit == "Compare Treasury yields for safe investment options"


def test_rate_limits_come_from_registry():
    limits = sources.rate_limits_per_minute()
    assert limits["alpha-vantage"] == 5
    assert limits["brave"] == 60


def test_tier_access_table():
    starter = tier_access(Tier.STARTER)
    assert not (starter.has_economic_context or starter.has_live_data
                or starter.has_scenario_planning or starter.has_search_context)

    standard = tier_access(Tier.STANDARD)
    assert standard.has_economic_context and standard.has_search_context
    assert not standard.has_live_data and not standard.has_scenario_planning

    premium = tier_access(Tier.PREMIUM)
    assert premium.has_economic_context and premium.has_live_data and premium.has_scenario_planning


def test_unknown_tier_strings_fall_back_to_starter():
    assert Tier.parse("platinum") == Tier.STARTER
    assert Tier.parse(None) == Tier.STARTER
    assert Tier.parse("  Premium ") == Tier.PREMIUM
    assert tier_access("gold") == tier_access(Tier.STARTER)


def test_get_source_by_id():
    cpi = sources.get_source("fred-cpi")
    assert cpi.provider == "fred"
    assert cpi.lowest_tier == Tier.STANDARD
    assert sources.get_source("brave-search").cache_duration == 30 * 60
    assert sources.get_source("no-such-source") is None
