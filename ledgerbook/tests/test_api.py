"""End-to-end tests through the HTTP API."""
from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from ledgerbook.app.core.config import settings

ACCOUNTS = "/api/v1/accounts"
ENTRIES = "/api/v1/journal/entries"
REPORTS = "/api/v1/reports"


def _entry(debit_account, credit_account, amount="100", **extra):
    return {
        "entry_date": "2026-01-15",
        "memo": "API entry",
        "postings": [
            {"account_id": str(debit_account.id), "debit": amount},
            {"account_id": str(credit_account.id), "credit": amount},
        ],
        **extra,
    }


class TestAccountsApi:
    def test_create_list_and_duplicate(self, client):
        res = client.post(ACCOUNTS, json={"code": "1001", "name": "Cash", "account_type": "ASSET"})
        assert res.status_code == 201
        assert res.json()["nature"] == "DEBIT"
        assert res.json()["level"] == 1

        dup = client.post(ACCOUNTS, json={"code": "1001", "name": "Again", "account_type": "ASSET"})
        assert dup.status_code == 409
        assert dup.json()["error_code"] == "ERR_ACCOUNT_DUPLICATE_CODE"

        listing = client.get(ACCOUNTS)
        assert [a["code"] for a in listing.json()] == ["1001"]

    def test_bad_code_format(self, client):
        res = client.post(ACCOUNTS, json={"code": "", "name": "Cash", "account_type": "ASSET"})
        assert res.status_code == 422

    def test_patch_deactivate_delete(self, client, seed_accounts):
        rent = seed_accounts["5001"]
        res = client.patch(f"{ACCOUNTS}/{rent.id}", json={"name": "Office Rent"})
        assert res.status_code == 200
        assert res.json()["name"] == "Office Rent"

        res = client.post(f"{ACCOUNTS}/{rent.id}/deactivate")
        assert res.json()["is_active"] is False
        assert rent.code not in [a["code"] for a in client.get(ACCOUNTS).json()]
        assert client.get(f"{ACCOUNTS}/{rent.id}").status_code == 200

        assert client.delete(f"{ACCOUNTS}/{rent.id}").status_code == 204
        missing = client.get(f"{ACCOUNTS}/{rent.id}")
        assert missing.status_code == 404
        assert missing.json()["error_code"] == "ERR_NOT_FOUND"

    def test_delete_in_use_account(self, client, seed_accounts):
        a = seed_accounts
        client.post(ENTRIES, json=_entry(a["1001"], a["4001"]))
        res = client.delete(f"{ACCOUNTS}/{a['1001'].id}")
        assert res.status_code == 409
        assert res.json()["error_code"] == "ERR_ACCOUNT_IN_USE"


class TestJournalApi:
    def test_post_and_fetch(self, client, seed_accounts):
        a = seed_accounts
        res = client.post(
            ENTRIES,
            json=_entry(a["1001"], a["4001"], reference="R-1"),
            headers={"X-Principal": "alice"},
        )
        assert res.status_code == 201
        body = res.json()
        assert body["sequence_number"] == 1
        assert body["posted_by"] == "alice"
        assert [p["account_code"] for p in body["postings"]] == ["1001", "4001"]

        fetched = client.get(f"{ENTRIES}/{body['id']}").json()
        assert Decimal(fetched["total_debit"]) == Decimal("100")

    def test_default_principal(self, client, seed_accounts):
        a = seed_accounts
        body = client.post(ENTRIES, json=_entry(a["1001"], a["4001"])).json()
        assert body["posted_by"] == settings.DEFAULT_PRINCIPAL

    def test_unbalanced_entry(self, client, seed_accounts):
        a = seed_accounts
        payload = _entry(a["1001"], a["4001"])
        payload["postings"][1]["credit"] = "90"
        res = client.post(ENTRIES, json=payload)
        assert res.status_code == 400
        body = res.json()
        assert body["error_code"] == "ERR_ENTRY_UNBALANCED"
        assert Decimal(body["details"]["total_debit"]) == Decimal("100")
        assert Decimal(body["details"]["total_credit"]) == Decimal("90")
        assert client.get(ENTRIES).json() == []

    def test_unknown_account(self, client, seed_accounts):
        payload = _entry(seed_accounts["1001"], seed_accounts["4001"])
        ghost = str(uuid.uuid4())
        payload["postings"][1]["account_id"] = ghost
        res = client.post(ENTRIES, json=payload)
        assert res.status_code == 400
        assert res.json()["details"]["account_id"] == ghost

    def test_sub_scale_amount_rejected(self, client, seed_accounts):
        payload = _entry(seed_accounts["1001"], seed_accounts["4001"], amount="0.00004")
        res = client.post(ENTRIES, json=payload)
        assert res.status_code == 400
        assert res.json()["error_code"] == "ERR_ENTRY_AMOUNT"
        assert client.get(ENTRIES).json() == []

    def test_single_line_entry(self, client, seed_accounts):
        payload = _entry(seed_accounts["1001"], seed_accounts["4001"])
        payload["postings"] = payload["postings"][:1]
        res = client.post(ENTRIES, json=payload)
        assert res.status_code == 400
        assert res.json()["error_code"] == "ERR_ENTRY_LINES"

    def test_void_then_hard_delete(self, client, seed_accounts):
        a = seed_accounts
        entry_id = client.post(ENTRIES, json=_entry(a["1001"], a["4001"])).json()["id"]

        voided = client.delete(f"{ENTRIES}/{entry_id}")
        assert voided.status_code == 200
        assert voided.json()["status"] == "VOIDED"
        assert client.delete(f"{ENTRIES}/{entry_id}").status_code == 409

        listed = client.get(ENTRIES, params={"include_voided": True}).json()
        assert [e["id"] for e in listed] == [entry_id]

        assert client.delete(f"{ENTRIES}/{entry_id}", params={"hard": True}).status_code == 204
        assert client.get(f"{ENTRIES}/{entry_id}").status_code == 404

    def test_list_date_filter(self, client, seed_accounts):
        a = seed_accounts
        client.post(ENTRIES, json=_entry(a["1001"], a["4001"]))
        feb = _entry(a["1001"], a["4001"])
        feb["entry_date"] = "2026-02-15"
        client.post(ENTRIES, json=feb)

        res = client.get(ENTRIES, params={"from_date": "2026-02-01", "to_date": "2026-02-28"})
        assert [e["entry_date"] for e in res.json()] == ["2026-02-15"]

    def test_inverted_date_range(self, client):
        res = client.get(ENTRIES, params={"from_date": "2026-02-01", "to_date": "2026-01-01"})
        assert res.status_code == 422


class TestCompaniesApi:
    def test_create_and_filter_entries(self, client, seed_accounts):
        res = client.post("/api/v1/companies", json={"name": "Sky Home", "tax_id": "SHO123"})
        assert res.status_code == 201
        company_id = res.json()["id"]
        assert [c["name"] for c in client.get("/api/v1/companies").json()] == ["Sky Home"]

        a = seed_accounts
        client.post(ENTRIES, json=_entry(a["1001"], a["4001"], company_id=company_id))
        client.post(ENTRIES, json=_entry(a["1002"], a["4001"], amount="40"))
        rows = client.get(f"{REPORTS}/trial-balance", params={"company_id": company_id}).json()["rows"]
        assert [r["code"] for r in rows] == ["1001", "4001"]

    def test_unknown_company_on_entry(self, client, seed_accounts):
        a = seed_accounts
        res = client.post(ENTRIES, json=_entry(a["1001"], a["4001"], company_id=str(uuid.uuid4())))
        assert res.status_code == 404


class TestReportsApi:
    @pytest.fixture()
    def booked(self, client, seed_accounts):
        a = seed_accounts
        client.post(ENTRIES, json=_entry(a["1002"], a["3001"], amount="1000"))
        client.post(ENTRIES, json=_entry(a["1001"], a["4001"], amount="300"))
        client.post(ENTRIES, json=_entry(a["5001"], a["1001"], amount="120"))
        return a

    def test_trial_balance(self, client, booked):
        body = client.get(f"{REPORTS}/trial-balance").json()
        assert body["is_balanced"] is True
        assert Decimal(body["total_debit"]) == Decimal("1420")

    def test_general_ledger(self, client, booked):
        body = client.get(
            f"{REPORTS}/general-ledger", params={"account_id": str(booked["1001"].id)}
        ).json()
        (section,) = body["accounts"]
        assert [Decimal(r["running_balance"]) for r in section["rows"]] == [
            Decimal("300"), Decimal("180"),
        ]

    def test_general_ledger_from_earliest_date(self, client, booked):
        res = client.get(f"{REPORTS}/general-ledger", params={"from_date": "0001-01-01"})
        assert res.status_code == 200
        sections = {s["code"]: s for s in res.json()["accounts"]}
        assert Decimal(sections["1001"]["opening_balance"]) == Decimal("0")
        assert Decimal(sections["1001"]["closing_balance"]) == Decimal("180")

    def test_balance_sheet(self, client, booked):
        body = client.get(f"{REPORTS}/balance-sheet", params={"as_of_date": "2026-12-31"}).json()
        assert body["is_balanced"] is True
        assert Decimal(body["total_assets"]) == Decimal("1180")
        assert Decimal(body["retained_earnings"]) == Decimal("180")

    def test_income_statement(self, client, booked):
        body = client.get(f"{REPORTS}/income-statement").json()
        assert Decimal(body["net_income"]) == Decimal("180")

    def test_account_balances(self, client, booked):
        rows = client.get(f"{REPORTS}/account-balances").json()
        assert {r["code"]: Decimal(r["balance"]) for r in rows}["3001"] == Decimal("-1000")

    def test_single_account_balance(self, client, booked):
        res = client.get(f"{REPORTS}/accounts/{booked['1001'].id}/balance")
        assert res.status_code == 200
        assert Decimal(res.json()["balance"]) == Decimal("180")
        assert client.get(f"{REPORTS}/accounts/{uuid.uuid4()}/balance").status_code == 404

    def test_report_timeout(self, client, booked, monkeypatch):
        monkeypatch.setattr(settings, "REPORT_TIMEOUT_SECONDS", 0)
        res = client.get(f"{REPORTS}/trial-balance")
        assert res.status_code == 504
        assert res.json()["error_code"] == "ERR_REPORT_TIMEOUT"
