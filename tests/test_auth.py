import navboard

from conftest import FakeStore, CATEGORIES, BOOKMARKS


def test_no_credential_makes_no_auth_request():
    store = FakeStore(password="")
    assert navboard.check_auth(store, "") is False
    assert store.calls == []


def test_wrong_credential_is_not_authenticated():
    store = FakeStore(password="nope")
    assert navboard.check_auth(store, "nope") is False
    assert store.calls == [("check_auth", "nope")]


def test_failed_auth_check_hides_edit_controls():
    store = FakeStore(password="nope", categories=CATEGORIES, bookmarks=BOOKMARKS)
    store.fail.add("check_auth")
    dash = navboard.Dashboard(store, navboard.DashboardState("nope"))
    html = str(dash.load())
    assert dash.state.authenticated is False
    assert 'data-action="add-category"' not in html
    assert 'data-action="edit-bookmark"' not in html
    assert 'draggable="true"' not in html
    assert 'data-menu="true"' not in html


def test_authenticated_dashboard_shows_edit_controls(dash):
    html = str(dash.html)
    assert dash.state.authenticated is True
    assert 'data-action="add-category"' in html
    assert 'data-action="add-bookmark"' in html
    assert 'data-action="edit-bookmark"' in html
    assert 'data-menu="true"' in html


def test_unauthenticated_forms_do_not_open(anon_dash):
    assert anon_dash.show_add_category() is False
    assert anon_dash.show_add_bookmark() is False
    assert anon_dash.show_edit_category(1) is False
    assert anon_dash.state.modal is None


def test_unauthenticated_mutation_is_rejected_by_the_server(anon_dash, anon_store):
    assert anon_dash.delete_bookmark(11) is False
    assert anon_dash.state.toast == {"message": "Failed to delete bookmark.", "kind": "error"}
    assert any(b["id"] == 11 for b in anon_store.bookmarks)


def test_credential_from_args_prefers_pwd():
    assert navboard.credential_from_args({"pwd": "a", "password": "b"}) == "a"
    assert navboard.credential_from_args({"password": "b"}) == "b"
    assert navboard.credential_from_args({}) == ""


def test_with_credential_rewrites_legacy_parameter():
    url = navboard.with_credential("http://nav.local/?password=pw&category_id=2", "pw")
    assert url == "http://nav.local/?category_id=2&pwd=pw"
    assert navboard.with_credential("http://nav.local/?pwd=old", "") == "http://nav.local/"
