"""Tests for duplicate-profile detection and merging."""

from datetime import datetime, timezone

from models import Candidate, CandidateMetrics, PastAppearance, SocialHandles
from profile_matcher import (
    dedupe_candidates,
    levenshtein_distance,
    merge_profiles,
    names_similar,
    profiles_match,
    split_name,
)


def test_levenshtein_distance():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("same", "same") == 0


def test_names_similar_tolerance():
    assert names_similar("Jon", "John")
    assert not names_similar("Jon", "Jonathan")
    assert names_similar("Katherine", "Catherine")


def test_split_name():
    assert split_name("Mary Jane Watson") == ("maryjane", "watson")
    assert split_name("Cher") == ("", "cher")
    assert split_name("  ") == ("", "")


def test_profiles_match_rules():
    assert profiles_match(Candidate(name="Jane Doe"), Candidate(name="jane  DOE"))
    assert profiles_match(Candidate(name="Jon Smith"), Candidate(name="John Smith"))
    assert not profiles_match(Candidate(name="Jane Smith"), Candidate(name="John Smith"))
    assert not profiles_match(Candidate(name="Jane Doe"), Candidate(name="Mark Lee"))


def test_profiles_match_same_company():
    assert profiles_match(
        Candidate(name="Alice Wu", company="Acme Inc"),
        Candidate(name="Bob Li", company="ACME, Inc."),
    )


def test_merge_keeps_richest_fields():
    early = datetime(2024, 1, 1, tzinfo=timezone.utc)
    late = datetime(2024, 5, 1, tzinfo=timezone.utc)
    a = Candidate(
        name="Jon Smith",
        title="CTO",
        expertise=("AI", "Robotics"),
        social_handles=SocialHandles(twitter_handle="jon"),
        metrics=CandidateMetrics(followers=1200, engagement_rate=0.01),
        past_appearances=(PastAppearance(platform="podcast", title="Ep 1", url="u1"),),
        last_active=early,
        source="llm",
    )
    b = Candidate(
        name="John Smith",
        title="Chief Technology Officer",
        expertise=("ai", "Edge Computing"),
        social_handles=SocialHandles(linkedin_url="https://linkedin.com/in/js"),
        metrics=CandidateMetrics(followers=900, engagement_rate=0.04, recent_post_count=7),
        past_appearances=(
            PastAppearance(platform="podcast", title="Ep 1", url="u1"),
            PastAppearance(platform="podcast", title="Ep 2", url="u2"),
        ),
        last_active=late,
        source="search",
    )

    merged = merge_profiles(a, b)

    assert merged.name == "John Smith"
    assert merged.title == "Chief Technology Officer"
    assert merged.expertise == ("AI", "Robotics", "Edge Computing")
    assert merged.metrics == CandidateMetrics(
        followers=1200, engagement_rate=0.04, recent_post_count=7
    )
    assert merged.social_handles == SocialHandles(
        linkedin_url="https://linkedin.com/in/js", twitter_handle="jon"
    )
    assert [p.url for p in merged.past_appearances] == ["u1", "u2"]
    assert merged.last_active == late
    assert merged.source == "llm+search"


def test_merge_expertise_is_superset():
    a = Candidate(name="Ann Lee", expertise=("Fintech", "Payments"))
    b = Candidate(name="Ann Lee", expertise=("Lending",))
    merged = merge_profiles(a, b)
    assert {t.lower() for t in a.expertise + b.expertise} <= {
        t.lower() for t in merged.expertise
    }


def test_dedupe_preserves_first_seen_order():
    records = [
        Candidate(name="Jon Smith", expertise=("AI",)),
        Candidate(name="Priya Patel"),
        Candidate(name="John Smith", expertise=("Robotics",)),
        Candidate(name="Marco Rossi"),
    ]

    unique = dedupe_candidates(records)

    assert [c.name for c in unique] == ["John Smith", "Priya Patel", "Marco Rossi"]
    assert unique[0].expertise == ("AI", "Robotics")


def test_dedupe_without_duplicates_is_identity():
    records = [Candidate(name="Priya Patel"), Candidate(name="Marco Rossi")]
    assert dedupe_candidates(records) == records


def test_merge_mixed_naive_and_aware_last_active():
    naive = Candidate(name="Jane Doe", last_active=datetime(2024, 5, 1))
    aware = Candidate(
        name="Jane Doe", last_active=datetime(2024, 5, 2, tzinfo=timezone.utc)
    )

    assert merge_profiles(naive, aware).last_active == aware.last_active
    assert merge_profiles(aware, naive).last_active == aware.last_active
    assert dedupe_candidates([naive, aware])[0].last_active == aware.last_active
