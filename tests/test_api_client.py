import json

import pytest
import requests

import api_client


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


@pytest.fixture
def calls(monkeypatch):
    """Records GET calls; responses are queued per path suffix."""
    state = {"calls": [], "routes": {}}

    def fake_get(url, params=None, headers=None, timeout=None):
        state["calls"].append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        for suffix, resp in state["routes"].items():
            if url.endswith(suffix):
                if isinstance(resp, Exception):
                    raise resp
                return resp
        return FakeResponse(404, {"error": "not found"})

    monkeypatch.setattr(api_client.requests, "get", fake_get)
    monkeypatch.setattr(api_client, "BACKEND_URL", "http://backend")
    monkeypatch.setattr(api_client, "ADMIN_TOKEN", "")
    return state


LEDGER = {
    "ok": True,
    "meta": {"batch": "b1", "attemptNo": 1},
    "columns": [{"ciId": "c1", "maxMarks": 100, "passMarks": 40}],
    "rows": [{"student": {"_id": "s1"}, "cells": {"c1": {"examOutcome": "scored", "marks": 50}}}],
}


def test_get_ledger_normalizes(calls):
    calls["routes"]["/result/admin/ledger"] = FakeResponse(200, LEDGER)
    res = api_client.get_ledger({"batch": "b1", "attemptNo": "1"})

    assert res["ok"] is True
    assert res["columns"][0]["ci_id"] == "c1"
    assert res["rows"][0]["cells"]["c1"]["marks"] == 50
    assert calls["calls"][0]["url"] == "http://backend/result/admin/ledger"
    assert calls["calls"][0]["params"] == {"batch": "b1", "attemptNo": "1"}
    assert calls["calls"][0]["headers"] == {}


def test_token_is_sent_when_configured(calls, monkeypatch):
    monkeypatch.setattr(api_client, "ADMIN_TOKEN", "tok")
    calls["routes"]["/result/admin/ledger"] = FakeResponse(200, LEDGER)
    api_client.get_ledger({})
    assert calls["calls"][0]["headers"] == {"Authorization": "Bearer tok"}


def test_get_ledger_not_ok(calls):
    calls["routes"]["/result/admin/ledger"] = FakeResponse(200, {"ok": False, "error": "No exam"})
    assert api_client.get_ledger({}) == {"error": "No exam"}

    calls["routes"]["/result/admin/ledger"] = FakeResponse(200, {"ok": False})
    assert api_client.get_ledger({}) == {"error": "Failed to load ledger"}


def test_get_ledger_http_errors(calls):
    calls["routes"]["/result/admin/ledger"] = FakeResponse(500, {"message": "boom"})
    assert api_client.get_ledger({}) == {"error": "boom"}

    calls["routes"]["/result/admin/ledger"] = FakeResponse(502, text="")
    assert api_client.get_ledger({}) == {"error": "Request failed (502)"}

    calls["routes"]["/result/admin/ledger"] = FakeResponse(401, {"error": "Unauthorized"})
    err = api_client.get_ledger({})["error"]
    assert err.startswith("Unauthorized")
    assert "token" in err


def test_get_ledger_network_error(calls):
    calls["routes"]["/result/admin/ledger"] = requests.ConnectionError("refused")
    assert "Could not reach the server" in api_client.get_ledger({})["error"]


def test_get_ledger_invalid_json(calls):
    calls["routes"]["/result/admin/ledger"] = FakeResponse(200, text="<html>")
    assert api_client.get_ledger({}) == {"error": "Server response is not valid JSON."}


def test_scope_lists(calls):
    calls["routes"]["/faculty-api/facultycode"] = FakeResponse(200, {"faculties": [{"_id": "f1"}, "junk"]})
    calls["routes"]["/batch-api/batchcode"] = FakeResponse(200, {"batches": [{"_id": "b1"}]})
    calls["routes"]["/sem-api/semesterOrYear"] = FakeResponse(200, {"semesters": [{"_id": "d1", "semesterNumber": 1}]})

    assert api_client.get_faculties() == [{"_id": "f1"}]
    assert api_client.get_batches("f1") == [{"_id": "b1"}]
    assert api_client.get_batches("") == []
    assert api_client.get_level_definitions("f1") == [{"_id": "d1", "semesterNumber": 1}]

    sem_call = calls["calls"][-1]
    assert sem_call["params"] == {"faculty": "f1", "limit": 100}


def test_scope_lists_empty_on_failure(calls):
    assert api_client.get_faculties() == []


def test_exam_sessions(calls):
    calls["routes"]["/result/admin/by-scope"] = FakeResponse(200, {"courseInstances": [{"_id": "c1"}, {"_id": "c2"}]})
    calls["routes"]["/exam-sessions/c1"] = FakeResponse(200, {"sessions": [{"examSlot": 1, "attemptNo": 2, "examTitle": "Mid"}]})
    calls["routes"]["/exam-sessions/c2"] = FakeResponse(500, {"error": "down"})

    cis = api_client.get_scope_course_instances(batch_id="b1", ftype="yearly", level=2)
    assert [c["_id"] for c in cis] == ["c1", "c2"]
    assert calls["calls"][0]["params"] == {"batch": "b1", "type": "year", "level": "2"}

    sessions = api_client.get_exam_sessions(["c1", "c2"])
    assert sessions == [{"ciId": "c1", "examSlot": 1, "attemptNo": 2, "examTitle": "Mid"}]


def test_get_practicals(calls):
    calls["routes"]["/result/admin/by-scope"] = FakeResponse(200, {
        "grouped": [{"ciId": "c1", "course": {"code": "PH"}, "records": []}],
    })
    res = api_client.get_practicals(batch_id="b1", ftype="semester", level=1)
    assert res["ok"] is True
    assert res["groups"][0]["course_code"] == "PH"
    assert calls["calls"][0]["params"]["kind"] == "practical"


def test_get_practicals_error(calls):
    calls["routes"]["/result/admin/by-scope"] = FakeResponse(503, text="")
    assert api_client.get_practicals(batch_id="b1", ftype="semester", level=1) == {
        "error": "Practical fetch failed: Request failed (503)"
    }
