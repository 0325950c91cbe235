import io
import json
from urllib.error import HTTPError, URLError

import navboard


class FakeResponse:
    def __init__(self, body=b"", status=200):
        self.status = status
        self._body = body

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class Opener:
    """Stands in for urlopen: records each Request and answers from a queue."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.requests = []

    def __call__(self, req, timeout=None):
        self.requests.append(req)
        answer = self.answers.pop(0) if self.answers else FakeResponse(b"[]")
        if isinstance(answer, Exception):
            raise answer
        return answer


def json_response(data, status=200):
    return FakeResponse(json.dumps(data).encode("utf-8"), status)


def make_store(*answers, password="secret"):
    opener = Opener(*answers)
    return navboard.RemoteStore("http://api.local/", password, timeout=1, opener=opener), opener


def test_list_categories_hits_the_categories_path():
    store, opener = make_store(json_response([{"id": 1, "name": "Work"}]))
    assert store.list_categories() == [{"id": 1, "name": "Work"}]
    req = opener.requests[0]
    assert req.get_method() == "GET"
    assert req.full_url == "http://api.local/api/categories"


def test_list_bookmarks_scopes_by_category_unless_all():
    store, opener = make_store(json_response([]), json_response([]))
    store.list_bookmarks(3)
    store.list_bookmarks(navboard.ALL_CATEGORIES)
    assert opener.requests[0].full_url == "http://api.local/api/bookmarks?category_id=3"
    assert opener.requests[1].full_url == "http://api.local/api/bookmarks"


def test_lists_degrade_to_empty_on_failure():
    store, _ = make_store(
        HTTPError("http://api.local/api/categories", 500, "boom", {}, io.BytesIO(b"")),
        URLError("connection refused"),
        json_response(None),
        json_response({"error": "nope"}),
    )
    assert store.list_categories() == []
    assert store.list_bookmarks() == []
    assert store.list_categories() == []
    assert store.list_bookmarks() == []


def test_list_degrades_on_invalid_json():
    store, _ = make_store(FakeResponse(b"<html>oops</html>"))
    assert store.list_categories() == []


def test_mutations_carry_the_credential_and_json_body():
    store, opener = make_store(FakeResponse(b""))
    assert store.create_category("Work") is True
    req = opener.requests[0]
    assert req.get_method() == "POST"
    assert req.full_url == "http://api.local/api/categories?password=secret"
    assert json.loads(req.data.decode("utf-8")) == {"name": "Work"}
    assert req.get_header("Content-type") == "application/json"


def test_update_and_delete_paths():
    store, opener = make_store(FakeResponse(b"{}"), FakeResponse(b""), FakeResponse(b""))
    assert store.update_bookmark(7, {"title": "T"}) is True
    assert store.delete_bookmark(7) is True
    assert store.rename_category(2, "Media") is True
    methods = [(r.get_method(), r.full_url) for r in opener.requests]
    assert methods == [
        ("PUT", "http://api.local/api/bookmarks/7?password=secret"),
        ("DELETE", "http://api.local/api/bookmarks/7?password=secret"),
        ("PUT", "http://api.local/api/categories/2?password=secret"),
    ]


def test_reorder_sends_the_full_id_list():
    store, opener = make_store(FakeResponse(b""))
    assert store.reorder_bookmarks((3, 1, 2)) is True
    req = opener.requests[0]
    assert req.full_url == "http://api.local/api/bookmarks/reorder?password=secret"
    assert json.loads(req.data.decode("utf-8")) == {"ids": [3, 1, 2]}


def test_mutation_failure_is_false_not_raised():
    store, _ = make_store(HTTPError("u", 401, "unauthorized", {}, io.BytesIO(b"")))
    assert store.delete_category(1) is False
    store, _ = make_store(URLError("down"))
    assert store.create_bookmark({"title": "x"}) is False


def test_call_raises_store_error_with_status():
    store, _ = make_store(HTTPError("u", 404, "missing", {}, io.BytesIO(b"")))
    try:
        store.call("GET", "/api/categories")
    except navboard.StoreError as e:
        assert e.status == 404
    else:
        raise AssertionError("StoreError not raised")


def test_check_auth_needs_literal_true():
    store, opener = make_store(
        json_response({"authenticated": True}),
        json_response({"authenticated": "yes"}),
        json_response({"authenticated": False}),
        URLError("down"),
    )
    assert store.check_auth("pw") is True
    assert store.check_auth("pw") is False
    assert store.check_auth("pw") is False
    assert store.check_auth("pw") is False
    assert opener.requests[0].full_url == "http://api.local/api/auth/check?password=pw"
