"""
Competitor Intel - API Endpoint Tests

Exercises the routers end to end through TestClient: session gating,
envelopes and status codes, CSV import and matrix export.
"""
import os
import sys
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

pytestmark = pytest.mark.timeout(20)


def _create_competitor(client, name="Ledn", tag="core"):
    response = client.post("/api/competitors", json={"name": name, "tag": tag})
    assert response.status_code == 201
    return response.json()["data"]


def _baseline_id(client):
    matrix = client.get("/api/matrix").json()["data"]
    return next(c["id"] for c in matrix["competitors"] if c["is_baseline"])


# ==============================================================================
# Authentication
# ==============================================================================

class TestAuth:

    def test_api_requires_session(self, test_client):
        response = test_client.get("/api/competitors")
        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated"}

    def test_wrong_password(self, test_client):
        response = test_client.post("/api/auth", json={"password": "nope"})
        assert response.status_code == 401

    def test_login_sets_cookie(self, test_client):
        response = test_client.post("/api/auth", json={"password": "test-password"})
        assert response.status_code == 200
        assert "eh_session" in response.cookies
        assert "httponly" in response.headers["set-cookie"].lower()
        assert test_client.get("/api/competitors").status_code == 200

    def test_bearer_token_accepted(self, test_client):
        token = test_client.post("/api/auth", json={"password": "test-password"}).json()["access_token"]
        test_client.cookies.clear()
        response = test_client.get("/api/dashboard/stats", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200

    def test_garbage_token_rejected(self, test_client):
        response = test_client.get("/api/competitors", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_logout_clears_cookie(self, auth_client):
        auth_client.post("/api/auth/logout")
        assert auth_client.get("/api/competitors").status_code == 401


# ==============================================================================
# Competitors
# ==============================================================================

class TestCompetitorEndpoints:

    def test_create_and_list(self, auth_client):
        created = _create_competitor(auth_client, "Ledn")
        assert created["slug"] == "ledn"
        assert created["is_baseline"] is False

        listing = auth_client.get("/api/competitors").json()["data"]
        assert [c["name"] for c in listing] == ["Ledn"]
        assert listing[0]["claim_count"] == 0

    def test_create_requires_tag(self, auth_client):
        response = auth_client.post("/api/competitors", json={"name": "Ledn"})
        assert response.status_code == 400
        assert "tag" in response.json()["error"]

    def test_duplicate_is_409(self, auth_client):
        _create_competitor(auth_client, "Ledn")
        response = auth_client.post("/api/competitors", json={"name": "Ledn", "tag": "core"})
        assert response.status_code == 409

    def test_get_detail_includes_sources_and_claims(self, auth_client):
        competitor = _create_competitor(auth_client)
        auth_client.post("/api/sources", json={
            "competitor_id": competitor["id"], "url": "https://ledn.io", "source_type": "website",
        })
        auth_client.post("/api/claims", json={
            "competitor_id": competitor["id"], "category": "Term length",
            "claim_text": "12 months", "claim_type": "explicit",
        })
        detail = auth_client.get(f"/api/competitors/{competitor['id']}").json()["data"]
        assert len(detail["sources"]) == 1
        assert detail["claims"][0]["claim_text"] == "12 months"

    def test_missing_competitor_404(self, auth_client):
        response = auth_client.get("/api/competitors/9999")
        assert response.status_code == 404
        assert response.json() == {"error": "Competitor not found"}

    def test_baseline_is_protected(self, auth_client):
        baseline_id = _baseline_id(auth_client)
        put = auth_client.put(f"/api/competitors/{baseline_id}", json={"name": "X", "tag": "core"})
        assert put.status_code == 403
        delete = auth_client.delete(f"/api/competitors/{baseline_id}")
        assert delete.status_code == 403

    def test_get_baseline(self, auth_client):
        response = auth_client.get("/api/competitors/baseline")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == _baseline_id(auth_client)
        assert data["is_baseline"] is True

    def test_update_and_delete(self, auth_client):
        competitor = _create_competitor(auth_client)
        put = auth_client.put(f"/api/competitors/{competitor['id']}", json={"name": "Ledn 2", "tag": "adjacent"})
        assert put.status_code == 200
        assert put.json()["data"]["tag"] == "adjacent"
        assert auth_client.delete(f"/api/competitors/{competitor['id']}").json() == {"success": True}
        assert auth_client.get(f"/api/competitors/{competitor['id']}").status_code == 404


# ==============================================================================
# Sources & Claims
# ==============================================================================

class TestSourceAndClaimEndpoints:

    def test_source_delete_keeps_claims(self, auth_client):
        competitor = _create_competitor(auth_client)
        source = auth_client.post("/api/sources", json={
            "competitor_id": competitor["id"], "url": "https://ledn.io", "source_type": "website",
        }).json()["data"]
        for category in ("Term length", "Loan currency"):
            auth_client.post("/api/claims", json={
                "competitor_id": competitor["id"], "source_id": source["id"], "category": category,
                "claim_text": "x", "claim_type": "explicit",
            })

        cited = auth_client.get(f"/api/sources/{source['id']}/claims").json()["data"]
        assert sorted(c["category"] for c in cited) == ["Loan currency", "Term length"]

        response = auth_client.delete(f"/api/sources/{source['id']}")
        assert response.json()["claims_detached"] == 2
        assert auth_client.get(f"/api/sources/{source['id']}/claims").status_code == 404

        claims = auth_client.get(f"/api/competitors/{competitor['id']}/claims").json()["data"]
        assert len(claims) == 2
        assert all(c["source_id"] is None for c in claims)

    def test_invalid_source_type_400(self, auth_client):
        competitor = _create_competitor(auth_client)
        response = auth_client.post("/api/sources", json={
            "competitor_id": competitor["id"], "url": "https://ledn.io", "source_type": "tv",
        })
        assert response.status_code == 400

    def test_verify_toggle(self, auth_client):
        competitor = _create_competitor(auth_client)
        claim = auth_client.post("/api/claims", json={
            "competitor_id": competitor["id"], "category": "Custody model",
            "claim_text": "Custodial", "claim_type": "explicit",
        }).json()["data"]
        assert claim["status"] == "pending"

        verified = auth_client.patch(f"/api/claims/{claim['id']}/verify", json={"verified": True}).json()["data"]
        assert (verified["status"], verified["verified"], verified["verified_by"]) == ("verified", True, "User")

        reverted = auth_client.patch(f"/api/claims/{claim['id']}/verify", json={"verified": False}).json()["data"]
        assert (reverted["status"], reverted["verified"], reverted["verified_by"]) == ("pending", False, None)

    def test_verify_without_flag_400(self, auth_client):
        competitor = _create_competitor(auth_client)
        claim = auth_client.post("/api/claims", json={
            "competitor_id": competitor["id"], "category": "Custody model",
            "claim_text": "Custodial", "claim_type": "explicit",
        }).json()["data"]
        response = auth_client.patch(f"/api/claims/{claim['id']}/verify", json={})
        assert response.status_code == 400

    def test_put_partial_and_patch_details(self, auth_client):
        competitor = _create_competitor(auth_client)
        claim = auth_client.post("/api/claims", json={
            "competitor_id": competitor["id"], "category": "Custody model",
            "claim_text": "Custodial", "claim_type": "explicit", "citation": "site",
        }).json()["data"]

        put = auth_client.put(f"/api/claims/{claim['id']}", json={"status": "rejected"}).json()["data"]
        assert put["status"] == "rejected"
        assert put["citation"] == "site"

        patch = auth_client.patch(f"/api/claims/{claim['id']}", json={"verbatim_quote": "we hold keys"}).json()["data"]
        assert patch["verbatim_quote"] == "we hold keys"
        assert patch["claim_text"] == "Custodial"

        assert auth_client.delete(f"/api/claims/{claim['id']}").status_code == 200
        assert auth_client.get(f"/api/claims/{claim['id']}").status_code == 404


# ==============================================================================
# CSV import
# ==============================================================================

class TestImportEndpoints:

    def test_json_import(self, auth_client, sample_csv):
        response = auth_client.post("/api/import-csv", json={"csv_content": sample_csv})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["stats"] == {
            "competitors_created": 2,
            "competitors_existing": 0,
            "sources_created": 3,
            "claims_created": 4,
        }

    def test_validation_failure_body(self, auth_client):
        content = (
            "competitor_name,source_url,source_type,claim_category,claim_text,claim_type\n"
            "A,https://a.io,tv,Custody model,x,explicit\n"
        )
        response = auth_client.post("/api/import-csv", json={"csv_content": content})
        assert response.status_code == 400
        assert response.json() == {
            "error": "Validation failed",
            "details": ['Row 2: invalid source_type "tv"'],
        }

    def test_missing_content_400(self, auth_client):
        response = auth_client.post("/api/import-csv", json={})
        assert response.status_code == 400
        assert response.json()["error"] == "csv_content is required"

    @pytest.mark.parametrize("body", [{"csv_content": 5}, {"csv_content": ["a"]}, ["not", "an", "object"]])
    def test_non_string_content_400(self, auth_client, body):
        response = auth_client.post("/api/import-csv", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "csv_content is required"}

    def test_non_json_body_400(self, auth_client):
        response = auth_client.post(
            "/api/import-csv",
            content=b"competitor_name,source_url",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "csv_content is required"}

    def test_upload_import_with_bom(self, auth_client, sample_csv):
        payload = ("\ufeff" + sample_csv).encode("utf-8")
        response = auth_client.post(
            "/api/import-csv/upload",
            files={"file": ("claims.csv", payload, "text/csv")},
        )
        assert response.status_code == 200
        assert response.json()["stats"]["claims_created"] == 4


# ==============================================================================
# Matrix, export, dashboard
# ==============================================================================

class TestMatrixEndpoints:

    def test_matrix_tier_filter_keeps_baseline(self, auth_client):
        _create_competitor(auth_client, "Zeta", "contrast")
        _create_competitor(auth_client, "Alpha", "core")
        _create_competitor(auth_client, "Beta", "adjacent")

        everything = auth_client.get("/api/matrix").json()["data"]
        assert [c["name"] for c in everything["competitors"]] == ["Escape Hatch", "Alpha", "Beta", "Zeta"]

        contrast = auth_client.get("/api/matrix", params={"tiers": "contrast"}).json()["data"]
        assert [c["name"] for c in contrast["competitors"]] == ["Escape Hatch", "Zeta"]
        assert len(contrast["rows"]) == 13

    def test_cell_lookup(self, auth_client):
        competitor = _create_competitor(auth_client)
        for text in ("12 months", "24 months"):
            auth_client.post("/api/claims", json={
                "competitor_id": competitor["id"], "category": "Term length",
                "claim_text": text, "claim_type": "explicit", "verbatim_quote": "up to " + text,
            })

        response = auth_client.get(
            "/api/matrix/cell", params={"competitor_id": competitor["id"], "category": "Term length"}
        )
        assert response.status_code == 200
        cell = response.json()["data"]
        assert cell["claim_text"] == "24 months"
        assert cell["is_priority"] is True
        assert cell["has_details"] is True

        empty = auth_client.get(
            "/api/matrix/cell", params={"competitor_id": competitor["id"], "category": "Loan currency"}
        ).json()["data"]
        assert empty["claim_id"] is None

    def test_cell_lookup_errors(self, auth_client):
        competitor = _create_competitor(auth_client)
        bad_category = auth_client.get(
            "/api/matrix/cell", params={"competitor_id": competitor["id"], "category": "Vibes"}
        )
        assert bad_category.status_code == 400
        missing = auth_client.get("/api/matrix/cell", params={"competitor_id": 9999, "category": "Term length"})
        assert missing.status_code == 404

    def test_invalid_tier_400(self, auth_client):
        assert auth_client.get("/api/matrix", params={"tiers": "rival"}).status_code == 400

    def test_csv_export_download(self, auth_client):
        competitor = _create_competitor(auth_client)
        auth_client.post("/api/claims", json={
            "competitor_id": competitor["id"], "category": "Custody model",
            "claim_text": 'He said "hi"', "claim_type": "explicit",
        })
        response = auth_client.get("/api/matrix/export", params={"format": "csv"})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="escape-hatch-comparison-' in response.headers["content-disposition"]
        assert '"He said ""hi"""' in response.text

    def test_export_selection_by_ids(self, auth_client):
        _create_competitor(auth_client, "Ledn")
        other = _create_competitor(auth_client, "Unchained")
        response = auth_client.get(
            "/api/matrix/export", params={"format": "fulltext", "competitor_ids": str(other["id"])}
        )
        assert "## Escape Hatch (Baseline)" in response.text
        assert "## Unchained (core)" in response.text
        assert "## Ledn" not in response.text

    def test_xlsx_export(self, auth_client):
        response = auth_client.get("/api/matrix/export", params={"format": "xlsx"})
        assert response.status_code == 200
        assert response.content[:2] == b"PK"

    def test_unknown_format_400(self, auth_client):
        assert auth_client.get("/api/matrix/export", params={"format": "png"}).status_code == 400

    def test_dashboard_stats(self, auth_client, sample_csv):
        auth_client.post("/api/import-csv", json={"csv_content": sample_csv})
        stats = auth_client.get("/api/dashboard/stats").json()["data"]
        assert stats == {
            "total_competitors": 2,
            "total_sources": 3,
            "total_claims": 4,
            "verified_claims": 0,
        }
