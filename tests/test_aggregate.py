import pandas as pd
import pytest

from narrative_geo.analysis.aggregate import (
    analytic_subpopulation,
    camp_share_by_group,
    group_summary,
    location_totals,
    locations_per_person,
    round_for_display,
    summarize_groups,
)
from narrative_geo.enrichment.geocode_join import join_resolved_locations
from narrative_geo.ingestion.loaders import prepare_mentions, prepare_resolved_locations
from narrative_geo.pipeline import NarrativeGeoPipeline


@pytest.fixture
def joined(mentions, resolved):
    deduped = NarrativeGeoPipeline().prepare_mentions(mentions)
    return join_resolved_locations(deduped, resolved)


@pytest.fixture
def analytic(joined):
    return analytic_subpopulation(joined)


def test_analytic_filters(analytic):
    # admin (Punjab), unmatched (Rawalpindi) and occupation=No (Esha) drop out
    assert "Punjab" not in set(analytic["resolved_location"])
    assert "Esha_8" not in set(analytic["person_id"])
    assert analytic["resolved_location"].notna().all()
    assert len(analytic) == 7
    assert set(analytic["occupation_mentioned"]) == {"Yes", "NotMentioned"}


def test_repeated_mention_counts_once(analytic):
    per_person = locations_per_person(analytic).set_index("person_id")
    # Amir: Lahore twice + Delhi
    assert per_person.loc["Amir_20", "loc_by_name"] == 2
    assert per_person.loc["Bibi_12", "loc_by_name"] == 2
    assert per_person.loc["Chand_30", "loc_by_name"] == 1
    assert per_person.loc["Bibi_12", "gender_occupation"] == "Female_NotMentioned"


def test_location_totals(analytic):
    totals = location_totals(analytic)
    assert totals.iloc[0].to_dict() == {"resolved_location": "Lahore", "loc_total": 3}
    assert totals["loc_total"].sum() == 7


def test_group_summary_by_gender(analytic):
    per_person = locations_per_person(analytic)
    summary = group_summary(per_person, "gender").set_index("gender")
    assert summary.loc["Female", "mean"] == pytest.approx(1.5)
    assert summary.loc["Male", "mean"] == pytest.approx(2.0)
    assert summary.loc["Male", "count"] == 2
    assert {"q25", "q50", "q75"} <= set(summary.columns)


def test_empty_group_is_absent():
    per_person = pd.DataFrame({"gender": ["Male", "Male"], "loc_by_name": [1, 3]})
    summary = group_summary(per_person, "gender")
    assert summary["gender"].tolist() == ["Male"]


def test_summarize_groups_keys(analytic):
    summaries = summarize_groups(locations_per_person(analytic))
    assert set(summaries) == {"gender", "occupation", "gender_occupation"}
    assert list(summaries["gender_occupation"].columns[:2]) == ["gender", "occupation_mentioned"]


def test_camp_share(analytic):
    share = camp_share_by_group(analytic, locations_per_person(analytic)).set_index("gender")
    assert share.loc["Female", "camp_share"] == pytest.approx(0.5)
    assert share.loc["Male", "camp_share"] == 0.0


def test_round_for_display_keeps_source():
    df = pd.DataFrame({"mean": [1.23456]})
    assert round_for_display(df)["mean"].iloc[0] == 1.23
    assert df["mean"].iloc[0] == 1.23456


def test_exclude_occupation_is_configurable(joined):
    everyone = analytic_subpopulation(joined, exclude_occupation="__none__")
    assert "Esha_8" in set(everyone["person_id"])


def test_amir_bibi_scenario():
    raw = pd.DataFrame([
        {"name": "Amir", "age": "30", "migrated_from": "", "migrated_to": "", "gender": "Male",
         "occupation": "Yes", "location": "Lahore", "city": "", "country": ""},
        {"name": "Amir", "age": "30", "migrated_from": "", "migrated_to": "", "gender": "Male",
         "occupation": "Yes", "location": "Delhi", "city": "", "country": ""},
        {"name": "Bibi", "age": "28", "migrated_from": "", "migrated_to": "", "gender": "Female",
         "occupation": "No", "location": "Lahore", "city": "", "country": ""},
    ])
    resolved = prepare_resolved_locations(pd.DataFrame([
        {"address": "Lahore", "latitude": "31.5497", "longitude": "74.3436", "known": "True",
         "camp": "False", "resolved_location": "Lahore", "admin": "False"},
        {"address": "Delhi", "latitude": "28.6517178", "longitude": "77.2219388", "known": "True",
         "camp": "False", "resolved_location": "Delhi", "admin": "False"},
    ]))

    result = NarrativeGeoPipeline().run(prepare_mentions(raw), resolved)

    assert result.per_person["person_id"].tolist() == ["Amir_30"]
    assert result.per_person["loc_by_name"].tolist() == [2]
    assert result.loc_totals.set_index("resolved_location")["loc_total"].to_dict() == {
        "Delhi": 1, "Lahore": 1,
    }
    by_gender = result.summaries["gender"]
    assert by_gender["gender"].tolist() == ["Male"]
    assert by_gender["mean"].tolist() == [2.0]


def test_two_addresses_resolving_to_one_location_keep_one_row(mentions, resolved):
    df = mentions.copy()
    df.loc[1, "raw_location"] = "Lahore Fort"
    fort = pd.DataFrame([{
        "address": "Lahore Fort, Pakistan", "latitude": 31.5880, "longitude": 74.3150,
        "known": True, "camp": False, "resolved_location": "Lahore", "admin": False,
    }])
    joined = join_resolved_locations(
        NarrativeGeoPipeline().prepare_mentions(df), pd.concat([resolved, fort], ignore_index=True)
    )
    analytic = analytic_subpopulation(joined)

    amir = analytic[analytic["person_id"] == "Amir_20"]
    assert amir["resolved_location"].tolist() == ["Lahore", "Delhi"]
    # first address wins
    assert amir["latitude"].iloc[0] == 31.5497
    assert not analytic.duplicated(subset=["person_id", "resolved_location"]).any()
