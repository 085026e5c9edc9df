from __future__ import annotations

import pytest

from esrollup.capabilities import CapabilityAggregator, build_job_caps
from esrollup.errors import EngineUnavailableError
from esrollup.schemas import (
    DateHistogramGroupConfig,
    GroupConfig,
    MetricConfig,
    TermsGroupConfig,
)
from tests.in_memory_rollup_engine import InMemoryRollupEngine, make_job_config


def _aggregator(*configs) -> CapabilityAggregator:
    engine = InMemoryRollupEngine()
    for config in configs:
        engine.put_job(config)
    return CapabilityAggregator(engine)


def test_caps_for_documented_job():
    caps = _aggregator(make_job_config()).get_capabilities("docs")

    assert list(caps) == ["docs"]
    docs = caps["docs"]
    assert docs.index_name == "docs"
    assert len(docs.rollup_jobs) == 1

    job_caps = docs.rollup_jobs[0]
    assert job_caps.job_id == "job_1"
    assert job_caps.rollup_index == "rollup"
    assert job_caps.index_pattern == docs.index_name
    assert len(job_caps.fields) == 8
    assert job_caps.fields["timestamp"].aggs == [
        {
            "agg": "date_histogram",
            "interval": "1h",
            "delay": "7d",
            "time_zone": "UTC",
        }
    ]
    assert job_caps.fields["temperature"].aggs == [
        {"agg": "min"},
        {"agg": "max"},
        {"agg": "sum"},
    ]


def test_caps_include_histogram_interval_and_terms():
    job_caps = build_job_caps(make_job_config())

    assert list(job_caps.fields) == [
        "timestamp",
        "load",
        "net_in",
        "net_out",
        "hostname",
        "datacenter",
        "temperature",
        "voltage",
    ]
    assert job_caps.fields["load"].aggs == [{"agg": "histogram", "interval": 5}]
    assert job_caps.fields["hostname"].aggs == [{"agg": "terms"}]
    assert job_caps.fields["voltage"].aggs == [
        {"agg": "avg"},
        {"agg": "value_count"},
    ]


def test_date_histogram_caps_use_configured_interval_key_and_skip_missing_delay():
    config = make_job_config(
        groups=GroupConfig(
            date_histogram=DateHistogramGroupConfig(
                field="@timestamp", calendar_interval="1d", time_zone="Europe/Oslo"
            )
        ),
        metrics=(),
    )

    caps = build_job_caps(config)

    assert list(caps.fields) == ["@timestamp"]
    assert caps.fields["@timestamp"].aggs == [
        {"agg": "date_histogram", "calendar_interval": "1d", "time_zone": "Europe/Oslo"}
    ]


def test_field_used_by_group_and_metric_concatenates_entries():
    config = make_job_config(
        groups=GroupConfig(
            date_histogram=DateHistogramGroupConfig(field="timestamp", interval="1h"),
            terms=TermsGroupConfig(fields=("hostname",)),
        ),
        metrics=(MetricConfig(field="hostname", metrics=("value_count",)),),
    )

    caps = build_job_caps(config)

    assert caps.fields["hostname"].aggs == [{"agg": "terms"}, {"agg": "value_count"}]


def test_jobs_on_same_pattern_are_listed_in_order_without_dedup():
    aggregator = _aggregator(
        make_job_config("job_1"),
        make_job_config("job_2", rollup_index="rollup_2"),
        make_job_config("job_3", index_pattern="metrics-*", rollup_index="rollup_3"),
    )

    caps = aggregator.get_capabilities("docs")

    assert list(caps) == ["docs"]
    jobs = caps["docs"].rollup_jobs
    assert [job.job_id for job in jobs] == ["job_1", "job_2"]
    assert jobs[0].fields["temperature"].aggs == jobs[1].fields["temperature"].aggs


@pytest.mark.parametrize("query", [None, "_all", "*"])
def test_all_patterns_grouped_by_index_pattern(query):
    aggregator = _aggregator(
        make_job_config("job_1"),
        make_job_config("job_3", index_pattern="metrics-*", rollup_index="rollup_3"),
    )

    caps = aggregator.get_capabilities(query)

    assert list(caps) == ["docs", "metrics-*"]
    assert caps["metrics-*"].rollup_jobs[0].job_id == "job_3"


def test_pattern_match_is_exact():
    aggregator = _aggregator(
        make_job_config("job_3", index_pattern="metrics-*", rollup_index="rollup_3")
    )

    assert aggregator.get_capabilities("metrics-2024") == {}
    assert aggregator.get_capabilities("unknown") == {}


def test_rollup_index_caps_are_keyed_by_rollup_index():
    aggregator = _aggregator(
        make_job_config("job_1"),
        make_job_config("job_2", index_pattern="metrics-*"),
        make_job_config("job_3", rollup_index="rollup_3"),
    )

    caps = aggregator.get_rollup_index_capabilities("rollup")

    assert list(caps) == ["rollup"]
    assert [job.job_id for job in caps["rollup"].rollup_jobs] == ["job_1", "job_2"]
    assert [job.index_pattern for job in caps["rollup"].rollup_jobs] == [
        "docs",
        "metrics-*",
    ]
    assert list(aggregator.get_rollup_index_capabilities()) == ["rollup", "rollup_3"]


def test_caps_outlive_deleted_job():
    engine = InMemoryRollupEngine()
    engine.put_job(make_job_config())
    engine.delete_job("job_1")

    caps = CapabilityAggregator(engine).get_capabilities("docs")

    assert caps["docs"].rollup_jobs[0].job_id == "job_1"


def test_caps_are_rebuilt_on_each_call():
    engine = InMemoryRollupEngine()
    aggregator = CapabilityAggregator(engine)
    assert aggregator.get_capabilities() == {}

    engine.put_job(make_job_config())

    assert list(aggregator.get_capabilities()) == ["docs"]


def test_engine_unavailable_is_propagated():
    aggregator = CapabilityAggregator(InMemoryRollupEngine(unavailable=True))

    with pytest.raises(EngineUnavailableError):
        aggregator.get_capabilities("docs")
