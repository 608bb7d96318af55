from __future__ import annotations

import random

from bidengine.app.modules.evidence.service import EVIDENCE_CATEGORIES, EVIDENCE_TYPE, count_by_category

CODES = [code for code, _ in EVIDENCE_CATEGORIES]


def test_counts_ignore_unknown_categories_and_sum_to_known_records():
    rng = random.Random(7)
    records = [{"category": rng.choice(CODES + ["BOGUS", None])} for _ in range(400)]

    counts = count_by_category(records)

    known = sum(1 for r in records if r["category"] in CODES)
    assert sum(item.count for item in counts) == known
    assert all(item.count > 0 for item in counts)


def test_counts_are_sorted_largest_first():
    rng = random.Random(11)
    for _ in range(20):
        records = [{"category": rng.choice(CODES)} for _ in range(rng.randint(0, 60))]
        counts = [item.count for item in count_by_category(records)]
        assert counts == sorted(counts, reverse=True)


def test_equal_counts_keep_enumeration_order():
    records = [{"category": "OTHER"}, {"category": "SAFETY"}, {"category": "QUALITY"}]

    assert [item.category for item in count_by_category(records)] == ["Safety", "Quality", "Other"]


def test_client_evidence_route_returns_labelled_counts(client, store):
    store.add(EVIDENCE_TYPE, project_id="c1", category="SOCIAL_VALUE")
    store.add(EVIDENCE_TYPE, project_id="c1", category="SOCIAL_VALUE")
    store.add(EVIDENCE_TYPE, project_id="c1", category="SAFETY")
    store.add(EVIDENCE_TYPE, project_id="c2", category="SAFETY")

    response = client.get("/api/clients/c1/evidence")

    assert response.status_code == 200
    assert response.json() == {
        "evidence": [{"category": "Social Value", "count": 2}, {"category": "Safety", "count": 1}]
    }


def test_client_evidence_degrades_to_empty_list_when_store_fails(client, store):
    store.fail = True

    response = client.get("/api/clients/c1/evidence")

    assert response.status_code == 200
    assert response.json() == {"evidence": []}


def test_client_evidence_skips_records_with_malformed_category(client, store):
    store.add(EVIDENCE_TYPE, project_id="c1", category=["SAFETY", "KPI"])
    store.add(EVIDENCE_TYPE, project_id="c1", category="SAFETY")

    response = client.get("/api/clients/c1/evidence")

    assert response.status_code == 200
    assert response.json() == {"evidence": [{"category": "Safety", "count": 1}]}


def test_evidence_summary_skips_records_with_malformed_category(client, store):
    store.add(EVIDENCE_TYPE, project_id="c1", category={"code": "SAFETY"}, **{"Modified Date": "2024-09-01"})
    store.add(EVIDENCE_TYPE, project_id="c1", category="SAFETY", title="Toolbox talks")

    response = client.get("/api/clients/c1/evidence/summary")

    assert response.status_code == 200
    safety = response.json()["categories"][0]
    assert safety["count"] == 1
    assert safety["last_upload_title"] == "Toolbox talks"


def test_evidence_summary_lists_every_category_with_latest_upload(client, store):
    store.add(EVIDENCE_TYPE, project_id="c1", category="SAFETY", title="Old", **{"Modified Date": "2024-01-01"})
    store.add(EVIDENCE_TYPE, project_id="c1", category="SAFETY", title="New", **{"Modified Date": "2024-06-01"})

    body = client.get("/api/clients/c1/evidence/summary").json()

    assert len(body["categories"]) == len(EVIDENCE_CATEGORIES)
    safety = body["categories"][0]
    assert safety["category"] == "SAFETY"
    assert safety["count"] == 2
    assert safety["last_upload_title"] == "New"
    assert safety["last_upload_date"] == "2024-06-01"
    assert body["categories"][1]["count"] == 0


def test_evidence_records_filter_by_category(client, store):
    store.add(EVIDENCE_TYPE, project_id="c1", category="SAFETY", title="Toolbox talks")
    store.add(EVIDENCE_TYPE, project_id="c1", category="QUALITY", title="ISO 9001")

    body = client.get("/api/clients/c1/evidence/records", params={"category": "QUALITY"}).json()

    assert [record["title"] for record in body["records"]] == ["ISO 9001"]


def test_evidence_records_degrade_when_store_fails(client, store):
    store.fail = True

    assert client.get("/api/clients/c1/evidence/records").json() == {"records": []}


def test_evidence_detail_returns_404_for_unknown_id(client):
    response = client.get("/api/evidence/missing")

    assert response.status_code == 404
    assert response.json() == {"error": "Evidence not found"}


def test_evidence_detail_returns_record(client, store):
    evidence_id = store.add(EVIDENCE_TYPE, project_id="c1", category="KPI", title="On-time delivery")

    body = client.get(f"/api/evidence/{evidence_id}").json()

    assert body["evidence"]["_id"] == evidence_id
    assert body["evidence"]["title"] == "On-time delivery"
