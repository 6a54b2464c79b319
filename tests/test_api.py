"""
HTTP API tests.

Covers:
- Actor header handling (401/403)
- Admin lead lifecycle over HTTP
- Domain error translation to status codes and error names
- Partner panel labels and scoping
"""

import pytest

from conftest import OTHER_PARTNER, headers_for

LEAD_PAYLOAD = {
    "customer_id": "cust-1",
    "customer_name": "Kiran Rao",
    "customer_phone": "+919800000001",
    "loan_type": "personal_loan",
    "loan_amount": "500000",
    "tenure_months": 36,
}


async def _create_lead(client, admin_headers, **overrides):
    payload = {
        **LEAD_PAYLOAD,
        "partner_id": "partner-7",
        "partner_name": "Ravi Partner",
        **overrides,
    }
    response = await client.post("/api/admin/leads", json=payload, headers=admin_headers)
    assert response.status_code == 201
    return response.json()


async def _advance(client, headers, lead_id, status, **extra):
    return await client.post(
        f"/api/admin/leads/{lead_id}/status",
        json={"status": status, **extra},
        headers=headers,
    )


# ── Actor identity ───────────────────────────────────────


class TestActorIdentity:
    @pytest.mark.asyncio
    async def test_missing_headers(self, client):
        response = await client.get("/api/admin/leads/list")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_role(self, client):
        response = await client.get(
            "/api/admin/leads/list",
            headers={"X-Actor-Id": "x", "X-Actor-Role": "superuser"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_partner_cannot_use_admin_routes(self, client, partner_headers):
        response = await client.get("/api/admin/leads/list", headers=partner_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_cannot_use_panel_routes(self, client, admin_headers):
        response = await client.get("/api/panel/dashboard", headers=admin_headers)
        assert response.status_code == 403


# ── Admin lifecycle ──────────────────────────────────────


class TestAdminLeads:
    @pytest.mark.asyncio
    async def test_full_lifecycle(self, client, admin_headers):
        lead = await _create_lead(client, admin_headers)
        lead_id = lead["id"]
        assert lead["status"] == "submitted"
        assert lead["timeline"] == []

        assert (await _advance(client, admin_headers, lead_id, "docs_collected")).status_code == 200
        assert (await _advance(client, admin_headers, lead_id, "bank_logged")).status_code == 200

        response = await client.post(
            f"/api/admin/leads/{lead_id}/bank",
            json={"bank_name": "HDFC Bank"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["requires_confirmation"] is False

        assert (await _advance(client, admin_headers, lead_id, "approved")).status_code == 200

        response = await client.post(
            f"/api/admin/leads/{lead_id}/disbursement",
            json={"amount": "480000"},
            headers=admin_headers,
        )
        assert response.status_code == 200

        response = await _advance(client, admin_headers, lead_id, "disbursed")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "disbursed"
        assert len(body["timeline"]) == 5
        assert body["commission"]["status"] == "pending"
        assert float(body["commission"]["commission_amount"]) == 4800.0

        response = await client.get(f"/api/admin/leads/{lead_id}/commission", headers=admin_headers)
        assert response.status_code == 200
        commission_id = response.json()["id"]

        response = await client.post(
            f"/api/admin/commissions/{commission_id}/status",
            json={"status": "approved"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["lead_reference"] == lead["reference"]

        response = await client.get("/api/admin/commissions/summary", headers=admin_headers)
        body = response.json()
        assert body["approved"]["count"] == 1
        assert body["pending"]["count"] == 0

        response = await client.get("/api/admin/dashboard/metrics", headers=admin_headers)
        body = response.json()
        assert body["total_leads"] == 1
        assert body["funnel"]["disbursed"] == 1
        assert body["conversion_rate"] == 100.0

        response = await client.get(
            "/api/admin/audit/list",
            params={"target_type": "lead", "target_id": lead_id},
            headers=admin_headers,
        )
        assert response.json()["total"] == 8

    @pytest.mark.asyncio
    async def test_list_and_stats(self, client, admin_headers):
        await _create_lead(client, admin_headers)
        await _create_lead(client, admin_headers, customer_name="Sunita Iyer", loan_type="home_loan")

        response = await client.get(
            "/api/admin/leads/list",
            params={"loan_type": "home_loan"},
            headers=admin_headers,
        )
        body = response.json()
        assert body["total"] == 1
        assert body["pages"] == 1
        assert body["items"][0]["customer_name"] == "Sunita Iyer"

        response = await client.get("/api/admin/leads/stats", headers=admin_headers)
        body = response.json()
        assert body["total"] == 2
        assert body["by_status"]["submitted"] == 2

    @pytest.mark.asyncio
    async def test_slabs(self, client, admin_headers):
        response = await client.get(
            "/api/admin/commissions/slabs",
            params={"loan_type": "personal_loan"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert len(response.json()) == 2


# ── Error translation ────────────────────────────────────


class TestErrorTranslation:
    @pytest.mark.asyncio
    async def test_invalid_transition_is_409(self, client, admin_headers):
        lead = await _create_lead(client, admin_headers)
        response = await _advance(client, admin_headers, lead["id"], "approved")

        assert response.status_code == 409
        assert response.json()["error"] == "InvalidTransition"

    @pytest.mark.asyncio
    async def test_unknown_lead_is_404(self, client, admin_headers):
        response = await client.get("/api/admin/leads/4242", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    @pytest.mark.asyncio
    async def test_stale_expected_status_is_409(self, client, admin_headers):
        lead = await _create_lead(client, admin_headers)
        await _advance(client, admin_headers, lead["id"], "docs_collected")

        response = await _advance(
            client, admin_headers, lead["id"], "rejected", expected_status="submitted"
        )
        assert response.status_code == 409
        assert response.json()["error"] == "ConcurrentModification"

    @pytest.mark.asyncio
    async def test_disbursement_before_approval(self, client, admin_headers):
        lead = await _create_lead(client, admin_headers)
        response = await client.post(
            f"/api/admin/leads/{lead['id']}/disbursement",
            json={"amount": "480000"},
            headers=admin_headers,
        )
        assert response.status_code == 409
        assert response.json()["error"] == "DisbursementNotAllowed"

    @pytest.mark.asyncio
    async def test_non_positive_amount_rejected(self, client, admin_headers):
        response = await client.post(
            "/api/admin/leads",
            json={**LEAD_PAYLOAD, "loan_amount": "0", "partner_id": "p", "partner_name": "P"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_bank_change_flow(self, client, admin_headers):
        lead = await _create_lead(client, admin_headers)
        url = f"/api/admin/leads/{lead['id']}/bank"
        await client.post(url, json={"bank_name": "HDFC Bank"}, headers=admin_headers)

        response = await client.post(url, json={"bank_name": "ICICI Bank"}, headers=admin_headers)
        body = response.json()
        assert body["requires_confirmation"] is True
        assert body["lead"]["bank_assigned"] == "HDFC Bank"
        assert body["lead"]["pending_bank"] == "ICICI Bank"

        response = await client.post(f"{url}/confirm", headers=admin_headers)
        assert response.json()["bank_assigned"] == "ICICI Bank"

        response = await client.post(f"{url}/confirm", headers=admin_headers)
        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "BankChangeNotConfirmed"
        assert body["current_bank"] == "ICICI Bank"


# ── Partner panel ────────────────────────────────────────


class TestPartnerPanel:
    @pytest.mark.asyncio
    async def test_submit_and_upload_docs(self, client, partner_headers):
        response = await client.post("/api/panel/leads", json=LEAD_PAYLOAD, headers=partner_headers)
        assert response.status_code == 201
        lead = response.json()
        assert lead["status"] == "submitted"

        response = await client.post(
            f"/api/panel/leads/{lead['id']}/status",
            json={"status": "docs_uploaded"},
            headers=partner_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "docs_uploaded"
        assert body["timeline"][-1]["status"] == "docs_uploaded"
        assert "internal_notes" not in body

    @pytest.mark.asyncio
    async def test_partner_limited_to_docs_upload(self, client, partner_headers):
        response = await client.post("/api/panel/leads", json=LEAD_PAYLOAD, headers=partner_headers)
        lead = response.json()

        response = await client.post(
            f"/api/panel/leads/{lead['id']}/status",
            json={"status": "rejected"},
            headers=partner_headers,
        )
        assert response.status_code == 403
        assert response.json()["error"] == "PermissionDenied"

    @pytest.mark.asyncio
    async def test_partner_scoping(self, client, partner_headers):
        response = await client.post("/api/panel/leads", json=LEAD_PAYLOAD, headers=partner_headers)
        lead = response.json()

        other = headers_for(OTHER_PARTNER)
        response = await client.get(f"/api/panel/leads/{lead['id']}", headers=other)
        assert response.status_code == 403

        response = await client.get("/api/panel/leads/list", headers=other)
        assert response.json()["total"] == 0

        response = await client.get(
            "/api/panel/leads/list",
            params={"status": "draft"},
            headers=partner_headers,
        )
        assert response.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_partner_dashboard(self, client, partner_headers):
        await client.post("/api/panel/leads", json=LEAD_PAYLOAD, headers=partner_headers)

        response = await client.get("/api/panel/dashboard", headers=partner_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["total_leads"] == 1
        assert body["by_status"]["submitted"] == 1
        assert body["by_status"]["docs_uploaded"] == 0
        assert float(body["commission_total"]) == 0
