import pytest

import navboard


class FakeStore:
    """In-memory bookmark API. Records every call; methods named in `fail` answer like a dead server."""

    def __init__(self, password="", valid_password="secret", categories=None, bookmarks=None):
        self.password = password
        self.valid_password = valid_password
        self.categories = [dict(c) for c in (categories or [])]
        self.bookmarks = [dict(b) for b in (bookmarks or [])]
        self.fail = set()
        self.calls = []
        self._next_id = 100

    def _new_id(self):
        self._next_id += 1
        return self._next_id

    def check_auth(self, credential):
        self.calls.append(("check_auth", credential))
        if "check_auth" in self.fail:
            return False
        return credential == self.valid_password

    def list_categories(self):
        self.calls.append(("list_categories",))
        if "list_categories" in self.fail:
            return []
        return [dict(c) for c in self.categories]

    def list_bookmarks(self, category_id=navboard.ALL_CATEGORIES):
        self.calls.append(("list_bookmarks", category_id))
        if "list_bookmarks" in self.fail:
            return []
        rows = self.bookmarks if not category_id else [b for b in self.bookmarks if b["category_id"] == category_id]
        return [dict(b) for b in rows]

    def _write(self, name, *args):
        self.calls.append((name,) + args)
        return name not in self.fail and self.password == self.valid_password

    def create_category(self, name):
        if not self._write("create_category", name):
            return False
        self.categories.append({"id": self._new_id(), "name": name, "order": len(self.categories)})
        return True

    def rename_category(self, category_id, name):
        if not self._write("rename_category", category_id, name):
            return False
        for c in self.categories:
            if c["id"] == category_id:
                c["name"] = name
        return True

    def delete_category(self, category_id):
        if not self._write("delete_category", category_id):
            return False
        self.categories = [c for c in self.categories if c["id"] != category_id]
        self.bookmarks = [b for b in self.bookmarks if b["category_id"] != category_id]
        return True

    def reorder_categories(self, ids):
        if not self._write("reorder_categories", list(ids)):
            return False
        by_id = {c["id"]: c for c in self.categories}
        self.categories = [by_id[i] for i in ids]
        return True

    def create_bookmark(self, fields):
        if not self._write("create_bookmark", dict(fields)):
            return False
        self.bookmarks.append(dict(fields, id=self._new_id()))
        return True

    def update_bookmark(self, bookmark_id, fields):
        if not self._write("update_bookmark", bookmark_id, dict(fields)):
            return False
        for b in self.bookmarks:
            if b["id"] == bookmark_id:
                b.update(fields)
        return True

    def delete_bookmark(self, bookmark_id):
        if not self._write("delete_bookmark", bookmark_id):
            return False
        self.bookmarks = [b for b in self.bookmarks if b["id"] != bookmark_id]
        return True

    def reorder_bookmarks(self, ids):
        if not self._write("reorder_bookmarks", list(ids)):
            return False
        by_id = {b["id"]: b for b in self.bookmarks}
        rest = [b for b in self.bookmarks if b["id"] not in ids]
        self.bookmarks = [by_id[i] for i in ids] + rest
        return True

    def names(self):
        return [c[0] for c in self.calls]


CATEGORIES = [
    {"id": 1, "name": "Work", "order": 0},
    {"id": 2, "name": "Media", "order": 1},
    {"id": 3, "name": "Home", "order": 2},
]

BOOKMARKS = [
    {"id": 11, "category_id": 1, "title": "A", "url": "https://a.example", "description": "", "icon": "💻", "account": "", "password": "", "order": 0},
    {"id": 12, "category_id": 1, "title": "B", "url": "https://b.example", "description": "", "icon": "", "account": "", "password": "", "order": 1},
    {"id": 13, "category_id": 1, "title": "C", "url": "https://c.example", "description": "", "icon": "🌐", "account": "", "password": "", "order": 2},
    {"id": 14, "category_id": 1, "title": "D", "url": "https://d.example", "description": "", "icon": "🎵", "account": "", "password": "", "order": 3},
    {"id": 21, "category_id": 2, "title": "Films", "url": "https://films.example", "description": "Watch list", "icon": "🎬", "account": "me", "password": "hunter2", "order": 0},
]


@pytest.fixture
def store():
    return FakeStore(password="secret", categories=CATEGORIES, bookmarks=BOOKMARKS)


@pytest.fixture
def anon_store():
    return FakeStore(password="", categories=CATEGORIES, bookmarks=BOOKMARKS)


@pytest.fixture
def dash(store):
    d = navboard.Dashboard(store, navboard.DashboardState("secret"))
    d.load()
    store.calls.clear()
    return d


@pytest.fixture
def anon_dash(anon_store):
    d = navboard.Dashboard(anon_store, navboard.DashboardState(""))
    d.load()
    return d
