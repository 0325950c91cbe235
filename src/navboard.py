# navboard.py: single-file Flask front end for a personal bookmark navigation page
# Includes:
# - Category tabs + bookmark cards, fetched as JSON from the bookmark API (/api/...)
# - Password-gated editing: the credential rides in the page URL (?pwd=...)
# - Drag & drop reorder of tabs and cards (optimistic, reconciled by refetch)
# - Right-click / long-press context menu on category tabs
# - Modal forms for add/edit; transient toasts
#
# The API server and its storage live elsewhere; this file only talks HTTP to it.
# Every page action rebuilds the dashboard state from the API, runs one controller
# action and hands the re-rendered markup back to the browser, which rewires itself.
# CLI helpers included at bottom.

import argparse, json, os, sys
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode, urlparse, urlunparse, parse_qsl
from urllib.request import Request, urlopen
from flask import Flask, request, jsonify, render_template_string
from markupsafe import Markup, escape

app = Flask(__name__)

API_BASE = os.environ.get("NAVBOARD_API", "http://127.0.0.1:8080")
API_TIMEOUT = float(os.environ.get("NAVBOARD_TIMEOUT", "5"))
SITE_TITLE = os.environ.get("SITE_TITLE", "NAS Navigation")
HOST = os.environ.get("NAVBOARD_HOST", "127.0.0.1")
PORT = int(os.environ.get("NAVBOARD_PORT", "5000"))
USER_AGENT = "Mozilla/5.0 (navboard)"

ALL_CATEGORIES = 0  # synthetic "All bookmarks" tab
ICONS = [
    '📁', '🏠', '💻', '🌐', '📧', '📷', '🎬', '🎵',
    '📚', '🎮', '🔧', '📊', '💼', '🔒', '☁️', '📱',
    '🎨', '✈️', '🚗', '🍕', '💰', '📰', '🎯', '⭐',
    '🔑', '💾', '🖥️', '📡', '⚡', '🔮', '🎪', '🌟',
]
DEFAULT_ICON = ICONS[0]
BOOKMARK_TEXT_FIELDS = ["description", "account", "password"]

LONG_PRESS_SECONDS = 0.5
MENU_MARGIN = 10
MENU_SIZE = (160, 84)
TOAST_MS = 3000
REQUIRED_MESSAGES = {
    "category": "Category name required.",
    "bookmark": "Title and URL are required.",
}


class StoreError(Exception):
    """Transport failure or non-2xx answer from the bookmark API."""

    def __init__(self, message, status=None):
        super().__init__(message)
        self.status = status


class ValidationError(ValueError):
    """A required form field was left empty."""


# ----------------------------
# Remote store (bookmark API client)
# ----------------------------
class RemoteStore:
    """
    Thin client for the bookmark API.

    List calls degrade to [] and mutations to False on any failure; nothing is
    retried. Mutations always carry the credential as ?password=, the server
    re-checks it on every write.
    """

    def __init__(self, base_url=API_BASE, password="", timeout=API_TIMEOUT, opener=None):
        self.base_url = base_url.rstrip("/")
        self.password = password
        self.timeout = timeout
        self.opener = opener or urlopen

    def url(self, path, params=None):
        params = {k: v for k, v in (params or {}).items() if v is not None}
        return self.base_url + path + ("?" + urlencode(params) if params else "")

    def call(self, method, path, params=None, body=None):
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        data = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"
        req = Request(self.url(path, params), data=data, headers=headers, method=method)
        try:
            with self.opener(req, timeout=self.timeout) as resp:
                status = getattr(resp, "status", 200)
                raw = resp.read()
        except HTTPError as e:
            raise StoreError(f"{method} {path} returned {e.code}", e.code) from e
        except (URLError, OSError) as e:
            raise StoreError(f"{method} {path} failed: {e}") from e
        if not 200 <= status < 300:
            raise StoreError(f"{method} {path} returned {status}", status)
        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except ValueError as e:
            raise StoreError(f"{method} {path} sent invalid JSON") from e

    def _list(self, path, params=None):
        try:
            data = self.call("GET", path, params)
        except StoreError as e:
            app.logger.warning("%s", e)
            return []
        return data if isinstance(data, list) else []

    def _write(self, method, path, body=None):
        try:
            self.call(method, path, {"password": self.password}, body)
        except StoreError as e:
            app.logger.warning("%s", e)
            return False
        return True

    def check_auth(self, credential) -> bool:
        try:
            data = self.call("GET", "/api/auth/check", {"password": credential})
        except StoreError as e:
            app.logger.warning("auth check: %s", e)
            return False
        return isinstance(data, dict) and data.get("authenticated") is True

    def list_categories(self):
        return self._list("/api/categories")

    def list_bookmarks(self, category_id=ALL_CATEGORIES):
        params = {"category_id": category_id} if category_id else None
        return self._list("/api/bookmarks", params)

    def create_category(self, name):
        return self._write("POST", "/api/categories", {"name": name})

    def rename_category(self, category_id, name):
        return self._write("PUT", f"/api/categories/{category_id}", {"name": name})

    def delete_category(self, category_id):
        return self._write("DELETE", f"/api/categories/{category_id}")

    def reorder_categories(self, ids):
        return self._write("POST", "/api/categories/reorder", {"ids": list(ids)})

    def create_bookmark(self, fields):
        return self._write("POST", "/api/bookmarks", fields)

    def update_bookmark(self, bookmark_id, fields):
        return self._write("PUT", f"/api/bookmarks/{bookmark_id}", fields)

    def delete_bookmark(self, bookmark_id):
        return self._write("DELETE", f"/api/bookmarks/{bookmark_id}")

    def reorder_bookmarks(self, ids):
        return self._write("POST", "/api/bookmarks/reorder", {"ids": list(ids)})


# ----------------------------
# Auth gate
# ----------------------------
def credential_from_args(args) -> str:
    """?pwd= is current, ?password= is still accepted from old links."""
    return args.get("pwd") or args.get("password") or ""

def check_auth(store, credential) -> bool:
    # no credential, no request
    if not credential:
        return False
    return store.check_auth(credential)

def with_credential(url: str, credential: str) -> str:
    """Same address with the credential stored as ?pwd= (legacy ?password= dropped)."""
    pr = urlparse(url)
    query = [(k, v) for k, v in parse_qsl(pr.query, keep_blank_values=True) if k not in ("pwd", "password")]
    if credential:
        query.append(("pwd", credential))
    return urlunparse(pr._replace(query=urlencode(query)))


# ----------------------------
# Utilities: ids, escaping, ordering, menu geometry
# ----------------------------
def as_id(value):
    """Ids come back from the API as integers; forms and URLs hand them over as text."""
    if isinstance(value, str):
        value = value.strip()
        if value.isdigit():
            return int(value)
        return value or None
    return value

@app.template_filter("esc")
def escape_html(text):
    if not text:
        return Markup("")
    return escape(text)

def reorder_ids(ids, dragged, target):
    """
    Move `dragged` next to `target`: after it when it started in front of it,
    before it otherwise. Only the dragged id changes position.
    """
    ids = list(ids)
    if dragged == target or dragged not in ids or target not in ids:
        return ids
    dragged_before = ids.index(dragged) < ids.index(target)
    ids.remove(dragged)
    pos = ids.index(target)
    ids.insert(pos + 1 if dragged_before else pos, dragged)
    return ids

def clamp_menu_position(x, y, width, height, view_width, view_height, margin=MENU_MARGIN):
    if x + width > view_width:
        x = view_width - width - margin
    if y + height > view_height:
        y = view_height - height - margin
    return x, y


# ----------------------------
# Forms
# ----------------------------
def category_name(values) -> str:
    name = (values.get("name") or "").strip()
    if not name:
        raise ValidationError(REQUIRED_MESSAGES["category"])
    return name

def bookmark_form_values(bookmark, categories):
    """Initial form fields: the bookmark's own values, or blanks filed under the first category."""
    if bookmark is None:
        fields = {k: "" for k in ["title", "url"] + BOOKMARK_TEXT_FIELDS}
        fields["category_id"] = categories[0]["id"] if categories else None
        fields["icon"] = DEFAULT_ICON
        return fields
    fields = {k: bookmark.get(k) or "" for k in ["title", "url"] + BOOKMARK_TEXT_FIELDS}
    fields["category_id"] = bookmark.get("category_id")
    fields["icon"] = bookmark.get("icon") or DEFAULT_ICON
    return fields

def bookmark_payload(values, categories):
    title = (values.get("title") or "").strip()
    url = (values.get("url") or "").strip()
    if not title or not url:
        raise ValidationError(REQUIRED_MESSAGES["bookmark"])
    payload = {"title": title, "url": url}
    for k in BOOKMARK_TEXT_FIELDS:
        payload[k] = (values.get(k) or "").strip()
    category_id = as_id(values.get("category_id"))
    if category_id is None and categories:
        category_id = categories[0]["id"]
    payload["category_id"] = category_id
    payload["icon"] = values.get("icon") if values.get("icon") in ICONS else DEFAULT_ICON
    return payload

def validate_form(kind, values):
    """Required-field check on its own; raises ValidationError, touches nothing."""
    if kind == "category":
        category_name(values)
    else:
        bookmark_payload(values, [])


# ----------------------------
# Context menu (category tabs)
# ----------------------------
class ContextMenu:
    """
    Edit/delete menu for one category tab at a time.

      idle  -> open   right-click (open_at)
      idle  -> armed  touch_start
      armed -> open   poll() once LONG_PRESS_SECONDS have passed
      armed -> idle   poll() before that
      open  -> idle   close()

    The browser cancels a press that ends or moves before the delay, so a
    press that reaches the server is judged only by how long it was held.
    """
    IDLE, ARMED, OPEN = "idle", "armed", "open"

    def __init__(self, delay=LONG_PRESS_SECONDS):
        self.delay = delay
        self.state = self.IDLE
        self.target = None
        self.x = self.y = 0
        self.armed_at = None

    @property
    def is_open(self):
        return self.state == self.OPEN

    def open_at(self, target, x, y, size=MENU_SIZE, viewport=None):
        if viewport is not None:
            x, y = clamp_menu_position(x, y, size[0], size[1], viewport[0], viewport[1])
        self.target, self.x, self.y = target, x, y
        self.armed_at = None
        self.state = self.OPEN

    def touch_start(self, target, x, y, now):
        self.target, self.x, self.y = target, x, y
        self.armed_at = now
        self.state = self.ARMED

    def poll(self, now, size=MENU_SIZE, viewport=None) -> bool:
        if self.state != self.ARMED:
            return False
        if now - self.armed_at < self.delay:
            # released early
            self.close()
            return False
        self.open_at(self.target, self.x, self.y, size, viewport)
        return True

    def close(self):
        self.state = self.IDLE
        self.target = None
        self.armed_at = None


# ----------------------------
# Dashboard state + renderer
# ----------------------------
class DashboardState:
    def __init__(self, credential="", category_id=ALL_CATEGORIES):
        self.authenticated = False
        self.credential = credential
        self.category_id = category_id
        self.categories = []
        self.bookmarks = []
        self.editing = None   # ("category" | "bookmark", item); one edit target at most
        self.dragging = None  # ("categories" | "bookmarks", id); one drag at most
        self.modal = None     # {"kind", "title", "fields"}
        self.menu = ContextMenu()
        self.toast = None

    def notify(self, message, kind="info"):
        self.toast = {"message": message, "kind": kind}

    def editing_id(self):
        return self.editing[1].get("id") if self.editing else None


DASHBOARD = """
<div class="container">
  <header class="header">
    <h1>{{ site_title|esc }}</h1>
    <div class="header-actions">
      {% if authenticated %}
        <button class="btn" type="button" data-action="add-category">+ Add category</button>
        <button class="btn" type="button" data-action="add-bookmark">+ Add bookmark</button>
      {% endif %}
    </div>
  </header>

  <nav class="categories">
    <div class="category-tabs" id="categoryTabs">
      <button class="category-tab{% if active == all_id %} active{% endif %}" type="button"
              data-id="{{ all_id }}" data-action="select" draggable="false">All bookmarks</button>
      {% for c in categories %}
      <button class="category-tab{% if c.id == active %} active{% endif %}{% if dragging == ('categories', c.id) %} dragging{% endif %}" type="button"
              data-id="{{ c.id }}" data-action="select" draggable="{{ 'true' if authenticated else 'false' }}"{% if authenticated %} data-menu="true"{% endif %}>
        <span class="drag-handle">{{ c.name|esc }}</span>
      </button>
      {% endfor %}
    </div>
  </nav>

  <main class="bookmarks-grid" id="bookmarksGrid">
    {% for b in bookmarks %}
    <div class="bookmark-card{% if dragging == ('bookmarks', b.id) %} dragging{% endif %}" data-id="{{ b.id }}" draggable="{{ 'true' if authenticated else 'false' }}">
      <div class="card-header">
        <div class="card-icon">{{ (b.icon or default_icon)|esc }}</div>
        <div class="card-title">
          <h3>{{ b.title|esc }}</h3>
          <a href="{{ b.url|esc }}" target="_blank" rel="noopener noreferrer">{{ b.url|esc }}</a>
        </div>
      </div>
      {% if b.description %}<p class="card-desc">{{ b.description|esc }}</p>{% endif %}
      {% if authenticated and (b.account or b.password) %}
      <div class="card-info">
        {% if b.account %}<span><span class="label">Account:</span> {{ b.account|esc }}</span>{% endif %}
        {% if b.password %}<span><span class="label">Password:</span> {{ b.password|esc }}</span>{% endif %}
      </div>
      {% endif %}
      {% if authenticated %}
      <div class="card-actions">
        <button class="btn small ghost" type="button" data-action="edit-bookmark" data-id="{{ b.id }}">Edit</button>
        <button class="btn small danger" type="button" data-action="delete-bookmark" data-id="{{ b.id }}">Delete</button>
      </div>
      {% endif %}
    </div>
    {% else %}
    <div class="empty-state">
      <div class="icon">📭</div>
      <p>No bookmarks yet</p>
    </div>
    {% endfor %}
  </main>
</div>

{% if modal %}
{% set v = modal.fields %}
<div class="modal-overlay" data-action="close-modal">
  <div class="modal" data-kind="{{ modal.kind }}">
    <div class="modal-head">
      <h3>{{ modal.title }}</h3>
      <button class="xbtn" type="button" data-action="close-modal" title="Close">&times;</button>
    </div>
    <form class="modal-body" id="modalForm" data-kind="{{ modal.kind }}" data-id="{{ editing_id if editing_id is not none else '' }}" onsubmit="return false">
      {% if modal.kind == "category" %}
        <label>Category name</label>
        <input type="text" name="name" value="{{ v.get('name')|esc }}" placeholder="Category name">
      {% else %}
        <label>Title *</label>
        <input type="text" name="title" value="{{ v.get('title')|esc }}" placeholder="Title">
        <label>URL *</label>
        <input type="url" name="url" value="{{ v.get('url')|esc }}" placeholder="https://example.com">
        <label>Description</label>
        <textarea name="description" placeholder="Optional">{{ v.get('description')|esc }}</textarea>
        <label>Account</label>
        <input type="text" name="account" value="{{ v.get('account')|esc }}" placeholder="Optional">
        <label>Password</label>
        <input type="text" name="password" value="{{ v.get('password')|esc }}" placeholder="Optional">
        <label>Category</label>
        <select name="category_id">
          {% for c in categories %}
            <option value="{{ c.id }}"{% if c.id == v.get('category_id') %} selected{% endif %}>{{ c.name|esc }}</option>
          {% endfor %}
        </select>
        <label>Icon</label>
        <div class="icon-selector">
          {% for icon in icons %}
            <button type="button" class="icon-option{% if icon == v.get('icon') %} selected{% endif %}" data-action="select-icon" data-icon="{{ icon }}">{{ icon }}</button>
          {% endfor %}
        </div>
        <input type="hidden" name="icon" value="{{ v.get('icon') or default_icon }}">
      {% endif %}
    </form>
    <div class="modal-foot">
      <button class="btn ghost" type="button" data-action="close-modal">Cancel</button>
      <button class="btn" type="button" data-action="save">Save</button>
    </div>
  </div>
</div>
{% endif %}

<div id="contextMenu" class="context-menu{% if menu.is_open %} show{% endif %}"{% if menu.is_open %} style="left:{{ menu.x }}px; top:{{ menu.y }}px"{% endif %}>
  {% if menu.is_open %}
  <div class="context-menu-item" data-action="edit-category" data-id="{{ menu.target }}">✏️ Edit category</div>
  <div class="context-menu-item danger" data-action="delete-category" data-id="{{ menu.target }}">🗑️ Delete category</div>
  {% endif %}
</div>

{% if toast %}<div class="toast {{ toast.kind }}" data-timeout="{{ toast_ms }}">{{ toast.message|esc }}</div>{% endif %}
"""

def render(state):
    """Whole-dashboard markup for one state snapshot; same state, same output."""
    html = app.jinja_env.from_string(DASHBOARD).render(
        site_title=SITE_TITLE,
        authenticated=state.authenticated,
        categories=state.categories,
        bookmarks=state.bookmarks,
        active=state.category_id,
        all_id=ALL_CATEGORIES,
        dragging=state.dragging,
        modal=state.modal,
        editing_id=state.editing_id(),
        menu=state.menu,
        toast=state.toast,
        icons=ICONS,
        default_icon=DEFAULT_ICON,
        toast_ms=TOAST_MS,
    )
    return Markup(html)


# ----------------------------
# Dashboard controller (interaction layer)
# ----------------------------
class Dashboard:
    """
    Owns one DashboardState and a RemoteStore. Every handler changes the
    state (talking to the API where needed), then re-renders and hands the
    new markup to each subscriber, which rewires itself against it.
    """

    def __init__(self, store, state=None):
        self.store = store
        self.state = state if state is not None else DashboardState(credential=store.password)
        self.html = Markup("")
        self.listeners = []

    def subscribe(self, listener):
        self.listeners.append(listener)
        if self.html:
            listener(self.html, self.state)
        return listener

    def refresh(self):
        self.html = render(self.state)
        for listener in list(self.listeners):
            listener(self.html, self.state)
        return self.html

    # ---- loading ----
    def load(self):
        self.state.authenticated = check_auth(self.store, self.state.credential)
        self.fetch_categories()
        self.select_category(self.state.category_id)
        return self.html

    def fetch_categories(self):
        self.state.categories = self.store.list_categories()

    def fetch_bookmarks(self):
        self.state.bookmarks = self.store.list_bookmarks(self.state.category_id)

    def select_category(self, category_id):
        self.state.category_id = category_id if category_id is not None else ALL_CATEGORIES
        self.state.menu.close()
        self.fetch_bookmarks()
        self.refresh()
        return True

    def collection(self, container):
        return self.state.categories if container == "categories" else self.state.bookmarks

    def find(self, container, item_id):
        return next((x for x in self.collection(container) if x.get("id") == item_id), None)

    # ---- modal forms ----
    def _open_form(self, kind, title, fields, target=None):
        self.state.menu.close()
        self.state.editing = (kind, target) if target is not None else None
        self.state.modal = {"kind": kind, "title": title, "fields": fields}

    def _keep_form(self, kind, values):
        """Make sure the modal shows what the user typed, so a failed save loses nothing."""
        if not self.state.modal or self.state.modal["kind"] != kind:
            editing = self.state.editing if self.state.editing and self.state.editing[0] == kind else None
            title = ("Edit " if editing else "Add ") + kind
            self._open_form(kind, title, {}, editing[1] if editing else None)
        fields = self.state.modal["fields"]
        fields.update(values)
        if "category_id" in fields:
            fields["category_id"] = as_id(fields["category_id"])

    def close_modal(self, rerender=True):
        self.state.modal = None
        self.state.editing = None
        if rerender:
            self.refresh()

    def show_add_category(self):
        if not self.state.authenticated:
            return False
        self._open_form("category", "Add category", {"name": ""})
        self.refresh()
        return True

    def show_edit_category(self, category_id):
        category = self.find("categories", category_id)
        if not self.state.authenticated or category is None:
            return False
        self._open_form("category", "Edit category", {"name": category.get("name", "")}, category)
        self.refresh()
        return True

    def save_category(self, values):
        self._keep_form("category", {"name": values.get("name") or ""})
        try:
            name = category_name(values)
        except ValidationError as e:
            self.state.notify(str(e), "error")
            self.refresh()
            return False
        target = self.state.editing[1] if self.state.editing else None
        if target is not None:
            ok = self.store.rename_category(target["id"], name)
        else:
            ok = self.store.create_category(name)
        if not ok:
            self.state.notify("Failed to save category.", "error")
            self.refresh()
            return False
        self.close_modal(rerender=False)
        self.fetch_categories()
        self.state.notify("Category updated." if target is not None else "Category created.", "success")
        self.refresh()
        return True

    def delete_category(self, category_id):
        self.state.menu.close()
        if not self.store.delete_category(category_id):
            self.state.notify("Failed to delete category.", "error")
            self.refresh()
            return False
        if self.state.category_id == category_id:
            self.state.category_id = ALL_CATEGORIES
        if self.state.editing_id() == category_id and self.state.editing[0] == "category":
            self.close_modal(rerender=False)
        self.fetch_categories()
        self.fetch_bookmarks()
        self.state.notify("Category deleted.", "success")
        self.refresh()
        return True

    def show_add_bookmark(self):
        if not self.state.authenticated:
            return False
        if not self.state.categories:
            self.state.notify("Create a category first.", "error")
            self.refresh()
            return False
        self._open_form("bookmark", "Add bookmark", bookmark_form_values(None, self.state.categories))
        self.refresh()
        return True

    def show_edit_bookmark(self, bookmark_id):
        bookmark = self.find("bookmarks", bookmark_id)
        if not self.state.authenticated or bookmark is None:
            return False
        self._open_form("bookmark", "Edit bookmark", bookmark_form_values(bookmark, self.state.categories), bookmark)
        self.refresh()
        return True

    def save_bookmark(self, values):
        self._keep_form("bookmark", values)
        try:
            payload = bookmark_payload(values, self.state.categories)
        except ValidationError as e:
            self.state.notify(str(e), "error")
            self.refresh()
            return False
        target = self.state.editing[1] if self.state.editing else None
        if target is not None:
            ok = self.store.update_bookmark(target["id"], payload)
        else:
            ok = self.store.create_bookmark(payload)
        if not ok:
            self.state.notify("Failed to save bookmark.", "error")
            self.refresh()
            return False
        self.close_modal(rerender=False)
        self.fetch_bookmarks()
        self.state.notify("Bookmark updated." if target is not None else "Bookmark created.", "success")
        self.refresh()
        return True

    def delete_bookmark(self, bookmark_id):
        if not self.store.delete_bookmark(bookmark_id):
            self.state.notify("Failed to delete bookmark.", "error")
            self.refresh()
            return False
        if self.state.editing_id() == bookmark_id and self.state.editing[0] == "bookmark":
            self.close_modal(rerender=False)
        self.fetch_bookmarks()
        self.state.notify("Bookmark deleted.", "success")
        self.refresh()
        return True

    # ---- context menu ----
    def _menu_allowed(self, category_id):
        return (self.state.authenticated and category_id != ALL_CATEGORIES
                and self.find("categories", category_id) is not None)

    def open_menu(self, category_id, x, y, viewport=None):
        if not self._menu_allowed(category_id):
            return False
        self.state.menu.open_at(category_id, x, y, viewport=viewport)
        self.refresh()
        return True

    def touch_start(self, category_id, x, y, now):
        if not self._menu_allowed(category_id):
            return False
        self.state.menu.touch_start(category_id, x, y, now)
        return True

    def tick(self, now, viewport=None):
        if self.state.menu.poll(now, viewport=viewport):
            self.refresh()
            return True
        return False

    def long_press(self, category_id, x, y, held, viewport=None):
        """A touch held for `held` seconds without moving; opens the menu only past the delay."""
        if not self.touch_start(category_id, x, y, 0.0):
            return False
        return self.tick(held, viewport)

    # ---- drag & drop reorder ----
    def drag_start(self, container, item_id):
        if not self.state.authenticated or self.find(container, item_id) is None:
            return False
        self.state.dragging = (container, item_id)
        self.refresh()
        return True

    def drop(self, container, target_id):
        dragging = self.state.dragging
        if dragging is None or dragging[0] != container or dragging[1] == target_id:
            return False
        ids = [x.get("id") for x in self.collection(container)]
        if target_id not in ids:
            return False
        new_ids = reorder_ids(ids, dragging[1], target_id)
        by_id = {x.get("id"): x for x in self.collection(container)}
        setattr(self.state, container, [by_id[i] for i in new_ids])
        self.refresh()

        if container == "categories":
            ok = self.store.reorder_categories(new_ids)
        else:
            ok = self.store.reorder_bookmarks(new_ids)
        if not ok:
            # optimistic order stays on screen until the next refetch
            self.state.notify("Failed to save order.", "error")
            self.refresh()
            return False
        if container == "categories":
            self.fetch_categories()
        else:
            self.fetch_bookmarks()
        self.refresh()
        return True

    def drag_end(self):
        self.state.dragging = None
        self.refresh()

    def reorder(self, container, dragged_id, target_id):
        """A whole gesture: pick up `dragged_id`, drop it on `target_id`, let go."""
        if not self.drag_start(container, dragged_id):
            return False
        try:
            return self.drop(container, target_id)
        finally:
            self.drag_end()


# ----------------------------
# Page template (browser glue)
# ----------------------------
BASE = r"""
<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{{ site_title }}</title>
  <style>
    :root{
      --gap: 0.8rem; --radius: 8px; --btn-radius: 6px; --muted:#6b7280; --brand:#2b6cb0; --danger:#ef4444;
      --bg:#f5f7fb; --text:#0f172a; --card-bg:#ffffff; --border:#e5e7eb; --hover:#f3f4f6; --overlay: rgba(15, 23, 42, .55);
    }
    *{ box-sizing: border-box; } html, body { height: 100%; }
    body { font-family: system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial, sans-serif; background:var(--bg); color:var(--text); margin:0; }
    .container { padding:1rem; max-width: min(1600px, 98vw); margin: 0 auto; }
    .header { display:flex; justify-content:space-between; align-items:center; gap:1rem; margin-bottom:.8rem; }
    .header h1 { margin:0; font-size:1.4rem; }
    .header-actions { display:flex; gap:.5rem; }

    .btn { display:inline-flex; align-items:center; gap:0.35rem; background:var(--brand); color:#fff; border:0; padding:0.35rem 0.65rem; border-radius:var(--btn-radius); cursor:pointer; font-size:0.9rem; }
    .btn.small { padding: 0.22rem 0.45rem; font-size: 0.82rem; }
    .btn.ghost { background:var(--hover); color:inherit; }
    .btn.danger { background:var(--danger); }

    .category-tabs { display:flex; gap:.4rem; overflow-x:auto; padding-bottom:.4rem; margin-bottom:.8rem; }
    .category-tab { background:var(--card-bg); border:1px solid var(--border); border-radius:999px; padding:.35rem .9rem; cursor:pointer; white-space:nowrap; color:inherit; user-select:none; -webkit-user-select:none; -webkit-touch-callout:none; }
    .category-tab.active { background:var(--brand); color:#fff; border-color:var(--brand); }
    .category-tab[draggable="true"] { cursor:grab; }

    .bookmarks-grid { display:grid; gap:var(--gap); grid-template-columns: repeat(auto-fill, minmax(260px, 1fr)); }
    .bookmark-card { background:var(--card-bg); border:1px solid var(--border); border-radius:var(--radius); padding:.8rem; box-shadow:0 1px 6px rgba(0,0,0,.06); }
    .bookmark-card[draggable="true"] { cursor:grab; }
    .dragging { opacity:.45; }
    .card-header { display:flex; gap:.6rem; align-items:flex-start; }
    .card-icon { font-size:1.6rem; line-height:1; }
    .card-title { min-width:0; }
    .card-title h3 { margin:0 0 .2rem; font-size:1rem; }
    .card-title a { color:var(--brand); text-decoration:none; font-size:.85rem; overflow-wrap:anywhere; }
    .card-desc { color:var(--muted); font-size:.88rem; margin:.5rem 0 0; }
    .card-info { display:flex; flex-direction:column; gap:.15rem; margin-top:.5rem; font-size:.85rem; background:var(--hover); padding:.35rem .5rem; border-radius:6px; }
    .card-info .label { color:var(--muted); }
    .card-actions { display:flex; gap:.4rem; margin-top:.6rem; justify-content:flex-end; }
    .empty-state { grid-column:1 / -1; text-align:center; color:var(--muted); padding:3rem 0; }
    .empty-state .icon { font-size:2.5rem; }

    .modal-overlay { position:fixed; inset:0; z-index:1000; background:var(--overlay); display:flex; align-items:center; justify-content:center; padding:1rem; }
    .modal { background:var(--card-bg); width:min(560px, 96vw); border-radius:10px; border:1px solid var(--border); box-shadow:0 15px 60px rgba(0,0,0,.25); max-height:90vh; display:flex; flex-direction:column; }
    .modal-head { display:flex; justify-content:space-between; align-items:center; padding:.8rem 1rem; border-bottom:1px solid var(--border); }
    .modal-head h3 { margin:0; font-size:1.05rem; }
    .modal-body { padding:1rem; overflow:auto; }
    .modal-foot { display:flex; justify-content:flex-end; gap:.5rem; padding:.8rem 1rem; border-top:1px solid var(--border); }
    .modal label { display:block; margin:.5rem 0 .2rem; font-weight:600; }
    .modal input, .modal textarea, .modal select { width:100%; padding:.45rem .55rem; border-radius:6px; border:1px solid var(--border); background:var(--card-bg); color:inherit; }
    .xbtn { border:0; background:transparent; cursor:pointer; font-size:1.3rem; color:inherit; }
    .icon-selector { display:grid; grid-template-columns: repeat(8, 1fr); gap:.3rem; }
    .icon-option { font-size:1.2rem; background:var(--hover); border:2px solid transparent; border-radius:6px; cursor:pointer; padding:.2rem; }
    .icon-option.selected { border-color:var(--brand); }

    .context-menu { display:none; position:fixed; z-index:1100; background:var(--card-bg); border:1px solid var(--border); border-radius:var(--radius); box-shadow:0 6px 20px rgba(0,0,0,.15); min-width:150px; overflow:hidden; }
    .context-menu.show { display:block; }
    .context-menu-item { padding:.5rem .8rem; cursor:pointer; }
    .context-menu-item:hover { background:var(--hover); }
    .context-menu-item.danger { color:var(--danger); }

    .toast { position:fixed; bottom:1.2rem; left:50%; transform:translateX(-50%); z-index:1200; padding:.55rem 1rem; border-radius:var(--radius); background:#1e3a8a; color:#fff; }
    .toast.success { background:#15803d; } .toast.error { background:#b91c1c; }
  </style>
</head>
<body>
  <div id="app" data-category="{{ category_id }}">{{ dashboard }}</div>

  <script>
  (function(){
    const LONG_PRESS_MS = {{ long_press_ms }};
    const REQUIRED = {{ required_messages|tojson }};
    const root = document.getElementById('app');
    const params = new URLSearchParams(window.location.search);
    const pwd = params.get('pwd') || params.get('password') || '';
    let categoryId = root.dataset.category || '0';
    let dragged = null;
    let longPressTimer = null;
    let longPressTriggered = false;
    let sent = 0;
    let latestSelect = 0;

    // keep the credential in the address, so a reload stays logged in
    window.history.replaceState({}, '', {{ canonical_url|tojson }});

    function flash(message, kind){
      root.querySelectorAll('.toast').forEach(t => t.remove());
      const t = document.createElement('div');
      t.className = 'toast ' + (kind || 'info');
      t.textContent = message;
      t.dataset.timeout = '{{ toast_ms }}';
      root.appendChild(t);
      armToasts();
    }
    function armToasts(){
      root.querySelectorAll('.toast').forEach(t => {
        setTimeout(() => t.remove(), parseInt(t.dataset.timeout || '3000', 10));
      });
    }

    function formValues(){
      const form = document.getElementById('modalForm');
      const out = {};
      if(form){ new FormData(form).forEach((v, k) => { out[k] = v; }); }
      return out;
    }
    function formTarget(){
      const form = document.getElementById('modalForm');
      return form && form.dataset.id ? form.dataset.id : null;
    }
    function missingRequired(kind, values){
      const blank = (k) => !String(values[k] || '').trim();
      if(kind === 'category'){ return blank('name') ? REQUIRED.category : null; }
      return (blank('title') || blank('url')) ? REQUIRED.bookmark : null;
    }

    async function send(action, extra){
      // an answer issued before the latest tab switch would show the old filter
      const seq = ++sent;
      if(action === 'select'){ latestSelect = seq; }
      const body = Object.assign({pwd: pwd, category_id: categoryId, seq: seq}, extra || {});
      try{
        const rsp = await fetch('/ui/' + action, {
          method: 'POST',
          headers: {'Content-Type': 'application/json', 'Accept': 'application/json'},
          body: JSON.stringify(body)
        });
        const data = await rsp.json();
        if(data.seq < latestSelect){ return false; }
        if(data.html !== undefined){
          root.innerHTML = data.html;
          if(data.category_id !== undefined){ categoryId = String(data.category_id); }
          rewire();
        } else if(data.toast){
          flash(data.toast.message, data.toast.kind);
        }
        return data.ok;
      }catch(e){
        flash('Request failed', 'error');
        return false;
      }
    }

    // ---- context menu (markup, position and the hold check come from the server) ----
    function hideMenu(){
      const menu = document.getElementById('contextMenu');
      if(menu){ menu.classList.remove('show'); }
    }
    function openMenu(tab, x, y, heldMs){
      const extra = {id: tab.dataset.id, x: Math.round(x), y: Math.round(y),
                     viewport: [window.innerWidth, window.innerHeight]};
      if(heldMs !== undefined){ extra.held_ms = Math.round(heldMs); }
      send('open-menu', extra);
    }
    function disarm(){
      if(longPressTimer){ clearTimeout(longPressTimer); longPressTimer = null; }
    }
    function wireMenu(){
      root.querySelectorAll('.category-tab[data-menu="true"]').forEach(tab => {
        tab.addEventListener('contextmenu', (e) => {
          e.preventDefault();
          openMenu(tab, e.clientX, e.clientY);
        });
        tab.addEventListener('touchstart', (e) => {
          disarm();
          longPressTriggered = false;
          const touch = e.touches[0];
          const started = performance.now();
          longPressTimer = setTimeout(() => {
            longPressTimer = null;
            longPressTriggered = true;
            openMenu(tab, touch.clientX, touch.clientY, performance.now() - started);
          }, LONG_PRESS_MS);
        }, {passive: true});
        tab.addEventListener('touchend', (e) => {
          if(longPressTriggered){
            e.preventDefault();
            setTimeout(() => { longPressTriggered = false; }, 0);
          }
          disarm();
        });
        tab.addEventListener('touchmove', disarm);
      });
    }

    // ---- drag & drop ----
    function wireDrag(containerSel, itemSel, action){
      const container = root.querySelector(containerSel);
      if(!container) return;
      container.querySelectorAll(itemSel).forEach(el => {
        el.addEventListener('dragstart', (e) => {
          dragged = el;
          el.classList.add('dragging');
          e.dataTransfer.effectAllowed = 'move';
        });
        el.addEventListener('dragend', () => {
          el.classList.remove('dragging');
          dragged = null;
        });
        el.addEventListener('dragover', (e) => {
          e.preventDefault();
          e.dataTransfer.dropEffect = 'move';
        });
        el.addEventListener('drop', (e) => {
          e.preventDefault();
          if(!dragged || dragged === el || !container.contains(dragged)) return;
          const all = Array.from(container.querySelectorAll(itemSel));
          if(all.indexOf(dragged) < all.indexOf(el)){
            el.parentNode.insertBefore(dragged, el.nextSibling);
          } else {
            el.parentNode.insertBefore(dragged, el);
          }
          send(action, {id: dragged.dataset.id, target: el.dataset.id});
        });
      });
    }

    function rewire(){
      armToasts();
      wireMenu();
      wireDrag('#categoryTabs', '.category-tab[draggable="true"]', 'reorder-categories');
      wireDrag('#bookmarksGrid', '.bookmark-card[draggable="true"]', 'reorder-bookmarks');
    }

    // ---- clicks (delegated; root survives every swap) ----
    root.addEventListener('click', (e) => {
      if(longPressTriggered){
        longPressTriggered = false;
        e.preventDefault();
        return;
      }
      hideMenu();
      const el = e.target.closest('[data-action]');
      if(!el) return;
      const action = el.dataset.action;
      if(action === 'close-modal'){
        if(el.classList.contains('modal-overlay') && e.target !== el) return;
        const overlay = root.querySelector('.modal-overlay');
        if(overlay){ overlay.remove(); }
        return;
      }
      if(action === 'select'){ send('select', {category_id: el.dataset.id}); return; }
      if(action === 'delete-category'){
        if(!confirm('Delete this category? All of its bookmarks are deleted too.')) return;
        send(action, {id: el.dataset.id});
        return;
      }
      if(action === 'delete-bookmark'){
        if(!confirm('Delete this bookmark?')) return;
        send(action, {id: el.dataset.id});
        return;
      }
      if(action === 'select-icon'){
        const form = el.closest('form');
        form.querySelectorAll('.icon-option').forEach(o => o.classList.toggle('selected', o === el));
        form.querySelector('input[name="icon"]').value = el.dataset.icon;
        return;
      }
      if(action === 'save'){
        const form = document.getElementById('modalForm');
        if(!form) return;
        const values = formValues();
        const missing = missingRequired(form.dataset.kind, values);
        if(missing){ flash(missing, 'error'); return; }
        send('save-' + form.dataset.kind, {id: formTarget(), values: values});
        return;
      }
      send(action, {id: el.dataset.id});
    });
    document.addEventListener('click', (e) => { if(!root.contains(e.target)) hideMenu(); });
    document.addEventListener('touchstart', (e) => {
      if(!e.target.closest('.context-menu') && !e.target.closest('.category-tab')) hideMenu();
    });

    rewire();
  })();
  </script>
</body>
</html>
"""


# ----------------------------
# Routes
# ----------------------------
def get_store(credential):
    return RemoteStore(API_BASE, credential)

def build_dashboard(credential, category_id=ALL_CATEGORIES):
    dash = Dashboard(get_store(credential), DashboardState(credential, category_id))
    dash.load()
    return dash

def _reopen_form(dash, kind, item_id):
    """Put back the modal the browser had open, so a save lands on the same target."""
    if kind == "category":
        return dash.show_edit_category(item_id) if item_id is not None else dash.show_add_category()
    return dash.show_edit_bookmark(item_id) if item_id is not None else dash.show_add_bookmark()

def _save(kind):
    def run(dash, item_id, payload):
        if not _reopen_form(dash, kind, item_id):
            if dash.state.authenticated and item_id is not None:
                dash.state.notify(f"That {kind} no longer exists.", "error")
                dash.refresh()
            return False
        values = payload.get("values") or {}
        if kind == "category":
            return dash.save_category(values)
        return dash.save_bookmark(values)
    return run

def _number(value, default=0):
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default

def _open_menu(dash, item_id, payload):
    x, y = _number(payload.get("x")), _number(payload.get("y"))
    viewport = payload.get("viewport")
    if isinstance(viewport, (list, tuple)) and len(viewport) == 2:
        viewport = (_number(viewport[0]), _number(viewport[1]))
    else:
        viewport = None
    if payload.get("held_ms") is None:
        return dash.open_menu(item_id, x, y, viewport)
    return dash.long_press(item_id, x, y, _number(payload.get("held_ms")) / 1000, viewport)

UI_ACTIONS = {
    # the filter is already applied by build_dashboard
    "select": lambda dash, item_id, payload: True,
    "add-category": lambda dash, item_id, payload: dash.show_add_category(),
    "edit-category": lambda dash, item_id, payload: dash.show_edit_category(item_id),
    "save-category": _save("category"),
    "delete-category": lambda dash, item_id, payload: dash.delete_category(item_id),
    "add-bookmark": lambda dash, item_id, payload: dash.show_add_bookmark(),
    "edit-bookmark": lambda dash, item_id, payload: dash.show_edit_bookmark(item_id),
    "save-bookmark": _save("bookmark"),
    "delete-bookmark": lambda dash, item_id, payload: dash.delete_bookmark(item_id),
    "open-menu": _open_menu,
    "reorder-categories": lambda dash, item_id, payload: dash.reorder("categories", item_id, as_id(payload.get("target"))),
    "reorder-bookmarks": lambda dash, item_id, payload: dash.reorder("bookmarks", item_id, as_id(payload.get("target"))),
}

@app.route("/", methods=["GET"])
def index():
    credential = credential_from_args(request.args)
    category_id = as_id(request.args.get("category_id")) or ALL_CATEGORIES
    dash = build_dashboard(credential, category_id)
    return render_template_string(
        BASE,
        site_title=SITE_TITLE,
        dashboard=dash.html,
        category_id=dash.state.category_id,
        canonical_url=with_credential(request.url, credential),
        long_press_ms=int(LONG_PRESS_SECONDS * 1000),
        required_messages=REQUIRED_MESSAGES,
        toast_ms=TOAST_MS,
    )

@app.route("/ui/<action>", methods=["POST"])
def ui_action(action):
    """
    One page action. The body carries what the browser knows: the credential
    (pwd), the active filter, the item id and any form values, plus `seq`,
    echoed back so the page can drop answers overtaken by a later tab switch.
    The state is rebuilt from the API, the action runs, and the fresh markup
    goes back. A save with a blank required field is refused before any API
    call and answers without markup, leaving the open form as it is.
    """
    handler = UI_ACTIONS.get(action)
    if handler is None:
        return jsonify({"ok": False, "error": "unknown_action"}), 404
    payload = request.get_json(force=True, silent=True) or {}
    seq = payload.get("seq")
    if action in ("save-category", "save-bookmark"):
        try:
            validate_form(action.split("-", 1)[1], payload.get("values") or {})
        except ValidationError as e:
            return jsonify({"ok": False, "seq": seq, "toast": {"message": str(e), "kind": "error"}})
    dash = build_dashboard(payload.get("pwd") or "", as_id(payload.get("category_id")) or ALL_CATEGORIES)
    ok = bool(handler(dash, as_id(payload.get("id")), payload))
    app.logger.debug("ui action %s ok=%s", action, ok)
    return jsonify({
        "ok": ok,
        "seq": seq,
        "html": str(dash.html),
        "category_id": dash.state.category_id,
        "toast": dash.state.toast,
    })


# ----------------------------
# CLI tool
# ----------------------------
MUTATING_COMMANDS = {
    "add-category", "rename-category", "delete-category",
    "add-bookmark", "delete-bookmark", "move-category", "move-bookmark",
}

def _report(dash, ok):
    toast = dash.state.toast
    if toast:
        print(toast["message"], file=sys.stdout if ok else sys.stderr)
    return 0 if ok else 1

def cli_main(argv):
    parser = argparse.ArgumentParser(description="Browse and edit the bookmark API from a terminal")
    parser.add_argument("--api", default=API_BASE, help="Bookmark API base URL")
    parser.add_argument("--password", default=os.environ.get("NAVBOARD_PASSWORD", ""), help="Edit password")
    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("check-auth", help="Check the edit password")
    sub.add_parser("list-categories", help="List categories in display order")

    lsb = sub.add_parser("list-bookmarks", help="List bookmarks")
    lsb.add_argument("--category", type=int, default=ALL_CATEGORIES, help="Category ID (0 = all)")

    addc = sub.add_parser("add-category", help="Add a category")
    addc.add_argument("--name", required=True)

    renc = sub.add_parser("rename-category", help="Rename a category")
    renc.add_argument("--id", type=int, required=True)
    renc.add_argument("--name", required=True)

    delc = sub.add_parser("delete-category", help="Delete a category (and its bookmarks)")
    delc.add_argument("--id", type=int, required=True)

    addb = sub.add_parser("add-bookmark", help="Add a bookmark")
    addb.add_argument("--title", required=True)
    addb.add_argument("--url", required=True)
    addb.add_argument("--description", default="")
    addb.add_argument("--account", default="")
    addb.add_argument("--secret", default="", help="Password stored with the bookmark")
    addb.add_argument("--category", type=int, help="Category ID (default: first category)")
    addb.add_argument("--icon", default=DEFAULT_ICON)

    delb = sub.add_parser("delete-bookmark", help="Delete a bookmark")
    delb.add_argument("--id", type=int, required=True)

    movc = sub.add_parser("move-category", help="Drop one category onto another")
    movc.add_argument("--id", type=int, required=True)
    movc.add_argument("--onto", type=int, required=True)

    movb = sub.add_parser("move-bookmark", help="Drop one bookmark onto another")
    movb.add_argument("--id", type=int, required=True)
    movb.add_argument("--onto", type=int, required=True)
    movb.add_argument("--category", type=int, default=ALL_CATEGORIES, help="View to reorder in (0 = all)")

    rnd = sub.add_parser("render", help="Print the dashboard markup")
    rnd.add_argument("--category", type=int, default=ALL_CATEGORIES)

    args = parser.parse_args(argv)
    if not args.cmd:
        parser.print_help()
        return 0

    view = args.category if args.cmd in ("list-bookmarks", "move-bookmark", "render") else ALL_CATEGORIES
    dash = Dashboard(RemoteStore(args.api, args.password), DashboardState(args.password, view))
    dash.load()

    if args.cmd == "check-auth":
        print("authenticated" if dash.state.authenticated else "not authenticated")
        return 0 if dash.state.authenticated else 1

    if args.cmd in MUTATING_COMMANDS and not dash.state.authenticated:
        print("Not authenticated (check --password)", file=sys.stderr); return 1

    if args.cmd == "list-categories":
        for c in dash.state.categories:
            print(f"{c['id']}\t{c.get('name', '')}")
        return 0

    if args.cmd == "list-bookmarks":
        for b in dash.state.bookmarks:
            print(f"{b['id']}\t{b.get('icon') or DEFAULT_ICON}\t{b.get('title', '')}\t{b.get('url', '')}")
        return 0

    if args.cmd == "add-category":
        return _report(dash, dash.save_category({"name": args.name}))

    if args.cmd == "rename-category":
        if not dash.show_edit_category(args.id):
            print("Category not found", file=sys.stderr); return 1
        return _report(dash, dash.save_category({"name": args.name}))

    if args.cmd == "delete-category":
        return _report(dash, dash.delete_category(args.id))

    if args.cmd == "add-bookmark":
        if not dash.show_add_bookmark():
            return _report(dash, False)
        values = {
            "title": args.title, "url": args.url, "description": args.description,
            "account": args.account, "password": args.secret, "icon": args.icon,
        }
        if args.category is not None:
            values["category_id"] = args.category
        return _report(dash, dash.save_bookmark(values))

    if args.cmd == "delete-bookmark":
        return _report(dash, dash.delete_bookmark(args.id))

    if args.cmd == "move-category":
        if not dash.reorder("categories", args.id, args.onto):
            if not dash.state.toast:
                print("Nothing to move", file=sys.stderr)
            return _report(dash, False)
        return 0

    if args.cmd == "move-bookmark":
        if not dash.reorder("bookmarks", args.id, args.onto):
            if not dash.state.toast:
                print("Nothing to move", file=sys.stderr)
            return _report(dash, False)
        return 0

    if args.cmd == "render":
        dash.subscribe(lambda html, state: print(html))
        return 0

    parser.print_help()
    return 0


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if argv:
        return cli_main(argv)
    app.run(debug=True, host=HOST, port=PORT)
    return 0


# ------------- Run -------------
if __name__ == "__main__":
    sys.exit(main())
