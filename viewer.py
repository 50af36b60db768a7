#!/usr/bin/env python3
"""
Web viewer for your component library.

Sign in with a magic link, then browse, search, filter by tag, preview,
copy, add, edit, and delete components. Rows, images, and auth live in
Supabase; this server keeps one CatalogView per browser session and the
page renders whatever that view says.

Usage:
    python viewer.py                # http://localhost:5000
    python viewer.py --port 8080
    python viewer.py --debug

Requires SUPABASE_URL and SUPABASE_KEY (or a .env file).
"""
import argparse
import threading
import time
import uuid
from collections import OrderedDict
from typing import Callable, Optional

from flask import Flask, jsonify, redirect, render_template_string, request, session
from rich.console import Console
from rich.panel import Panel
from werkzeug.exceptions import RequestEntityTooLarge

from config.settings import config
from component_library.errors import CatalogError, ValidationError
from component_library.gateway import BackendGateway, SupabaseGateway
from component_library.services import CatalogView, ImageFile

console = Console()

app = Flask(__name__)
app.secret_key = config.viewer.secret_key
# Leave room above the image limit so oversize files reach our own check
app.config["MAX_CONTENT_LENGTH"] = config.upload.max_image_bytes * 4

# ============================================
# PER-SESSION CATALOG VIEWS
# ============================================
# One view (and one Supabase client) per browser session, keyed by a random id
# stored in the signed Flask session cookie. Least recently used first.
views: "OrderedDict[str, CatalogView]" = OrderedDict()
views_lock = threading.Lock()
clock: Callable[[], float] = time.monotonic


def default_gateway_factory() -> BackendGateway:
    """Build a gateway with its own Supabase client."""
    return SupabaseGateway()


gateway_factory: Callable[[], BackendGateway] = default_gateway_factory


def evict_idle_views() -> None:
    """Drop idle views, then the oldest ones past the cap. Caller holds views_lock."""
    now = clock()
    while views:
        sid, oldest = next(iter(views.items()))
        idle = now - oldest.last_seen > config.viewer.view_idle_seconds
        if not idle and len(views) <= config.viewer.max_views:
            break
        views.pop(sid)
        if config.logging.verbose:
            console.print(f"[dim]Evicted view {sid[:8]}[/dim]")


def get_view() -> CatalogView:
    """Return the CatalogView for the current browser, creating it on first use."""
    sid = session.get("sid")
    if not sid:
        sid = uuid.uuid4().hex
        session["sid"] = sid

    with views_lock:
        view = views.get(sid)
        if view is None:
            view = CatalogView(gateway_factory(), clock=clock)
            views[sid] = view
        else:
            view.touch()
            views.move_to_end(sid)
        evict_idle_views()
    return view


def discard_view() -> None:
    """Forget the current browser's view; the next request starts a fresh one."""
    sid = session.pop("sid", None)
    if sid:
        with views_lock:
            views.pop(sid, None)


def catalog_response(view: CatalogView, ok: bool = True, **extra):
    """Standard JSON body: the rendered catalog plus pending toasts."""
    body = {
        "success": ok,
        "catalog": view.snapshot(),
        "notifications": view.drain_notifications(),
    }
    body.update(extra)
    if ok:
        return jsonify(body)

    error = view.last_error
    body["error"] = error.message if error else "Request failed"
    return jsonify(body), (error.status_code if error else 400)


def json_body() -> dict:
    """The request's JSON object, or an empty dict for anything else."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def run_action(action: Callable[[CatalogView], object], **extra):
    """Run one view operation under the view lock and render the result."""
    view = get_view()
    with view.lock:
        view.last_error = None
        result = action(view)
        ok = result is not None and result is not False
        return catalog_response(view, ok, **extra)


@app.errorhandler(RequestEntityTooLarge)
def handle_too_large(error: RequestEntityTooLarge):
    """Uploads over MAX_CONTENT_LENGTH get the usual JSON body instead of an HTML page."""
    view = get_view()
    with view.lock:
        max_mb = config.upload.max_image_bytes / (1024 * 1024)
        message = f"Image size should be less than {max_mb:g}MB"
        view.last_error = ValidationError(message)
        view.notify("Error", message, variant="destructive")
        body, _ = catalog_response(view, False)
        return body, 413


@app.errorhandler(CatalogError)
def handle_catalog_error(error: CatalogError):
    """Failures outside a view action (e.g. the backend is not configured)."""
    console.print(f"[red]Error: {error}[/red]")
    return jsonify({"success": False, "error": error.user_message}), error.status_code


# ============================================
# PAGE
# ============================================

HTML_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Component Library</title>
    <style>
        * { margin: 0; padding: 0; box-sizing: border-box; }

        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Oxygen, Ubuntu, sans-serif;
            background: #f5f5f5;
            min-height: 100vh;
            color: #111;
        }

        header {
            background: #000;
            color: #fff;
            padding: 16px 24px;
            display: flex;
            align-items: center;
            justify-content: space-between;
        }

        header h1 { font-size: 22px; font-weight: 600; }

        button {
            border: none;
            padding: 8px 16px;
            font-size: 14px;
            cursor: pointer;
            border-radius: 6px;
            background: #111;
            color: #fff;
        }

        button.outline { background: #fff; color: #111; border: 1px solid #ccc; }
        button.ghost { background: transparent; color: #111; padding: 6px 10px; }
        button.active { background: #111; color: #fff; }
        button:disabled { opacity: 0.5; cursor: default; }
        header button { background: #fff; color: #000; margin-left: 8px; }

        main { padding: 24px; max-width: 1100px; margin: 0 auto; }

        .toolbar { display: flex; gap: 12px; margin-bottom: 16px; }
        .toolbar input { flex: 1; }

        input, textarea {
            padding: 8px 12px;
            font-size: 14px;
            border: 1px solid #ccc;
            border-radius: 6px;
            width: 100%;
        }

        textarea { font-family: ui-monospace, Menlo, monospace; min-height: 180px; }

        .tag-filter { display: flex; flex-wrap: wrap; gap: 6px; margin-bottom: 24px; }

        .badge {
            display: inline-flex;
            align-items: center;
            gap: 4px;
            padding: 3px 10px;
            border-radius: 12px;
            font-size: 12px;
            background: #eee;
            border: 1px solid #ddd;
        }

        .badge.clickable { cursor: pointer; }
        .badge.selected { background: #111; color: #fff; border-color: #111; }
        .badge button { background: none; color: inherit; padding: 0 2px; }

        .card {
            background: #fff;
            border: 1px solid #e3e3e3;
            border-radius: 8px;
            padding: 20px;
            margin-bottom: 20px;
        }

        .card-head { display: flex; align-items: center; justify-content: space-between; }
        .card-head h3 { font-size: 18px; }
        .card-tags { display: flex; flex-wrap: wrap; gap: 6px; margin: 8px 0 16px; }
        .card img { width: 100%; height: auto; border-radius: 6px; border: 1px solid #eee; }

        pre {
            max-height: 400px;
            overflow: auto;
            background: #f3f3f3;
            padding: 16px;
            border-radius: 6px;
            font-size: 13px;
        }

        .empty {
            height: 300px;
            display: flex;
            flex-direction: column;
            align-items: center;
            justify-content: center;
            border: 1px dashed #bbb;
            border-radius: 8px;
            color: #666;
        }

        .empty h3 { color: #111; margin-bottom: 6px; }

        .auth-box {
            max-width: 380px;
            margin: 80px auto;
            background: #fff;
            padding: 28px;
            border-radius: 8px;
            border: 1px solid #e3e3e3;
        }

        .auth-box h2 { margin-bottom: 16px; }
        .auth-box button { width: 100%; margin-top: 12px; }
        .hint { font-size: 13px; color: #666; margin-top: 10px; text-align: center; }

        .modal-backdrop {
            position: fixed;
            inset: 0;
            background: rgba(0, 0, 0, 0.45);
            display: flex;
            align-items: center;
            justify-content: center;
        }

        .modal {
            background: #fff;
            border-radius: 8px;
            padding: 24px;
            width: min(800px, 95vw);
            max-height: 90vh;
            overflow: auto;
        }

        .modal label { display: block; font-weight: 600; margin: 14px 0 6px; }
        .modal-footer { display: flex; justify-content: flex-end; gap: 8px; margin-top: 20px; }
        .form-error { color: #c62828; margin-top: 10px; font-size: 14px; }

        .suggestions { border: 1px solid #ddd; border-radius: 6px; margin-top: 4px; }
        .suggestions div { padding: 6px 12px; cursor: pointer; }
        .suggestions div:hover { background: #f0f0f0; }

        #toasts { position: fixed; bottom: 20px; right: 20px; display: flex; flex-direction: column; gap: 8px; }

        .toast {
            background: #fff;
            border: 1px solid #ddd;
            border-radius: 6px;
            padding: 12px 16px;
            min-width: 260px;
            box-shadow: 0 4px 12px rgba(0, 0, 0, 0.1);
        }

        .toast.destructive { background: #c62828; color: #fff; border-color: #c62828; }
        .toast strong { display: block; }
    </style>
</head>
<body>
    <header>
        <h1>Component Library</h1>
        <div id="headerActions"></div>
    </header>
    <main id="app"></main>
    <div id="modalRoot"></div>
    <div id="toasts"></div>

    <script>
        let catalog = null;
        const PLACEHOLDER_IMAGE = 'data:image/svg+xml;charset=utf-8,' + encodeURIComponent(
            '<svg xmlns="http://www.w3.org/2000/svg" width="400" height="240">' +
            '<rect width="100%" height="100%" fill="#f1f5f9"/>' +
            '<text x="50%" y="50%" fill="#94a3b8" font-family="sans-serif" font-size="16" ' +
            'text-anchor="middle" dominant-baseline="middle">No preview</text></svg>');
        let tagFilterOpen = false;

        function escapeHtml(text) {
            return String(text ?? '')
                .replace(/&/g, '&amp;')
                .replace(/</g, '&lt;')
                .replace(/>/g, '&gt;')
                .replace(/"/g, '&quot;')
                .replace(/'/g, '&#39;');
        }

        function js(value) {
            return escapeHtml(JSON.stringify(value));
        }

        function showToasts(notifications) {
            const root = document.getElementById('toasts');
            (notifications || []).forEach(n => {
                const el = document.createElement('div');
                el.className = `toast ${n.variant}`;
                el.innerHTML = `<strong>${escapeHtml(n.title)}</strong>${escapeHtml(n.description)}`;
                root.appendChild(el);
                setTimeout(() => el.remove(), 4000);
            });
        }

        async function api(method, url, body, isForm) {
            const options = { method, headers: {} };
            if (body !== undefined) {
                if (isForm) {
                    options.body = body;
                } else {
                    options.headers['Content-Type'] = 'application/json';
                    options.body = JSON.stringify(body);
                }
            }
            try {
                const response = await fetch(url, options);
                const data = await response.json();
                showToasts(data.notifications);
                if (data.catalog) {
                    catalog = data.catalog;
                    render();
                } else if (data.error) {
                    showToasts([{ title: 'Error', description: data.error, variant: 'destructive' }]);
                }
                return data;
            } catch (error) {
                console.error(`Error calling ${url}:`, error);
                showToasts([{ title: 'Error', description: String(error.message || error), variant: 'destructive' }]);
                return null;
            }
        }

        function render() {
            const app = document.getElementById('app');
            const actions = document.getElementById('headerActions');
            if (catalog.auth.state !== 'authenticated') {
                actions.innerHTML = '';
                document.getElementById('modalRoot').innerHTML = '';
                app.innerHTML = renderAuth();
                return;
            }
            actions.innerHTML = `
                <span>${escapeHtml(catalog.auth.email || '')}</span>
                <button onclick="api('POST', '/api/forms/create')">+ Add Component</button>
                <button onclick="api('POST', '/auth/sign-out')">Sign out</button>`;
            app.innerHTML = renderToolbar() + renderList();
            renderForm();
        }

        function renderAuth() {
            const sent = catalog.auth.sign_in_sent_to;
            return `
                <div class="auth-box">
                    <h2>Sign in</h2>
                    <label for="email">Email</label>
                    <input id="email" type="email" value="${escapeHtml(sent || '')}">
                    <button onclick="signIn(this)" ${sent ? 'disabled' : ''}>
                        ${sent ? 'Check Your Email' : 'Send Magic Link'}
                    </button>
                    ${sent ? '<p class="hint">A login link has been sent to your email. Please check your inbox.</p>' : ''}
                </div>`;
        }

        async function signIn(button) {
            button.disabled = true;
            button.textContent = 'Sending...';
            await api('POST', '/auth/sign-in', { email: document.getElementById('email').value });
        }

        function renderToolbar() {
            const tags = catalog.tags.map(tag => {
                const selected = catalog.selected_tags.includes(tag);
                return `<span class="badge clickable ${selected ? 'selected' : ''}"
                              onclick='api("POST", "/api/catalog/tags/toggle", {tag: ${js(tag)}})'>${escapeHtml(tag)}</span>`;
            }).join('');
            return `
                <div class="toolbar">
                    <input id="search" placeholder="Search components..." value="${escapeHtml(catalog.search)}"
                           oninput="search(this.value)">
                    <button class="outline" onclick="tagFilterOpen = !tagFilterOpen; render()">
                        Filter Tags${catalog.selected_tags.length ? ` (${catalog.selected_tags.length})` : ''}
                    </button>
                </div>
                ${tagFilterOpen ? `<div class="tag-filter">${tags || '<span class="hint">No tags yet</span>'}</div>` : ''}`;
        }

        let searchTimer = null;
        function search(value) {
            clearTimeout(searchTimer);
            searchTimer = setTimeout(async () => {
                await api('POST', '/api/catalog/search', { query: value });
                const input = document.getElementById('search');
                input.focus();
                input.setSelectionRange(input.value.length, input.value.length);
            }, 200);
        }

        function renderList() {
            if (catalog.empty_message) {
                return `
                    <div class="empty">
                        <h3>${escapeHtml(catalog.empty_message)}</h3>
                        <p>Try adjusting your search or filter criteria</p>
                    </div>`;
            }
            return catalog.components.map(renderCard).join('');
        }

        function renderCard(c) {
            const id = js(c.id);
            const preview = c.display_mode === 'preview';
            return `
                <div class="card">
                    <div class="card-head">
                        <h3>${escapeHtml(c.name)}</h3>
                        <div>
                            <button class="ghost ${preview ? 'active' : ''}" onclick='setMode(${id}, "preview")'>Preview</button>
                            <button class="ghost ${preview ? '' : 'active'}" onclick='setMode(${id}, "code")'>Code</button>
                            <button class="ghost" onclick='copyCode(${id})'>${c.copied ? 'Copied!' : 'Copy'}</button>
                            <button class="ghost" onclick='api("POST", "/api/forms/edit/" + ${id})'>Edit</button>
                            <button class="ghost" onclick='deleteComponent(${id}, ${js(c.name)})'>Delete</button>
                        </div>
                    </div>
                    <div class="card-tags">
                        ${c.tags.map(t => `<span class="badge">${escapeHtml(t)}</span>`).join('')}
                    </div>
                    ${preview
                        ? `<img src="${escapeHtml(c.image_url)}" alt="${escapeHtml(c.name)}"
                                onerror="this.onerror = null; this.src = PLACEHOLDER_IMAGE;">`
                        : `<pre><code>${escapeHtml(c.code)}</code></pre>`}
                </div>`;
        }

        function setMode(id, mode) {
            api('POST', `/api/components/${encodeURIComponent(id)}/mode`, { mode });
        }

        async function copyCode(id) {
            const data = await api('POST', `/api/components/${encodeURIComponent(id)}/copy`);
            if (data && data.success) {
                try {
                    await navigator.clipboard.writeText(data.code);
                } catch (error) {
                    console.error('Clipboard write failed:', error);
                }
                // The acknowledgment expires server-side; fetch again to show it
                setTimeout(() => api('GET', '/api/catalog'), data.ack_seconds * 1000 + 50);
            }
        }

        function deleteComponent(id, name) {
            const typed = prompt(`This cannot be undone. Type the component name to confirm:\\n\\n${name}`);
            if (typed === null) return;
            api('POST', `/api/components/${encodeURIComponent(id)}/delete`, { confirmation: typed });
        }

        function renderForm() {
            const root = document.getElementById('modalRoot');
            const form = catalog.form;
            if (!form) {
                root.innerHTML = '';
                return;
            }
            const creating = form.kind === 'create';
            const suggestions = form.tags.suggestions.map(s =>
                `<div onclick='api("POST", "/api/forms/current/tags", {action: "select", value: ${js(s)}})'>${escapeHtml(s)}</div>`
            ).join('');
            root.innerHTML = `
                <div class="modal-backdrop">
                    <div class="modal">
                        <h2>${creating ? 'Add New Component' : 'Edit Component'}</h2>
                        <label for="formName">Component Name</label>
                        <input id="formName" value="${escapeHtml(form.name)}" placeholder="e.g., Navbar, Button, Card"
                               onchange="api('PATCH', '/api/forms/current', {name: this.value})">
                        <label for="formCode">Component Code</label>
                        <textarea id="formCode" placeholder="Paste your component code here..."
                                  onchange="api('PATCH', '/api/forms/current', {code: this.value})">${escapeHtml(form.code)}</textarea>
                        ${creating ? `
                            <label for="formImage">Preview Image (max ${form.max_image_mb}MB)</label>
                            <input id="formImage" type="file" accept="image/*" onchange="selectImage(this)">
                            ${form.file ? `<p class="hint">${escapeHtml(form.file.file_name)} selected</p>` : ''}` : ''}
                        <label for="tagInput">Tags</label>
                        <div class="card-tags">
                            ${form.tags.tags.map(t => `<span class="badge">${escapeHtml(t)}
                                <button onclick='api("POST", "/api/forms/current/tags", {action: "remove", value: ${js(t)}})'>×</button></span>`).join('')}
                        </div>
                        <input id="tagInput" placeholder="Add tags..." value="${escapeHtml(form.tags.input)}"
                               onkeydown="tagKey(event)" oninput="tagInput(this.value)">
                        ${suggestions ? `<div class="suggestions">${suggestions}</div>` : ''}
                        ${form.error ? `<p class="form-error">${escapeHtml(form.error)}</p>` : ''}
                        <div class="modal-footer">
                            <button class="outline" onclick="api('DELETE', '/api/forms/current')">Cancel</button>
                            <button onclick="submitForm()" ${form.busy ? 'disabled' : ''}>
                                ${creating ? 'Add Component' : 'Update Component'}
                            </button>
                        </div>
                    </div>
                </div>`;
            if (form.tags.focus) document.getElementById('tagInput').focus();
        }

        let tagTimer = null;
        function tagInput(value) {
            clearTimeout(tagTimer);
            tagTimer = setTimeout(async () => {
                await api('PATCH', '/api/forms/current', { tag_input: value });
                const input = document.getElementById('tagInput');
                input.focus();
                input.setSelectionRange(input.value.length, input.value.length);
            }, 150);
        }

        function tagKey(event) {
            const value = event.target.value;
            if (event.key === 'Enter' && value) {
                event.preventDefault();
                clearTimeout(tagTimer);
                api('POST', '/api/forms/current/tags', { action: 'commit', value });
            } else if (event.key === 'Backspace' && !value) {
                api('POST', '/api/forms/current/tags', { action: 'backspace' });
            }
        }

        function selectImage(input) {
            const file = input.files && input.files[0];
            if (!file) return;
            const form = catalog && catalog.form;
            let problem = null;
            if (!file.type.startsWith('image/')) {
                problem = 'Please select an image file';
            } else if (form && file.size > form.max_image_mb * 1024 * 1024) {
                problem = `Image size should be less than ${form.max_image_mb}MB`;
            }
            if (problem) {
                input.value = '';
                showToasts([{ title: 'Error', description: problem, variant: 'destructive' }]);
                return;
            }
            const body = new FormData();
            body.append('image', file);
            api('POST', '/api/forms/current/image', body, true);
        }

        async function submitForm() {
            const button = document.querySelector('.modal-footer button:last-child');
            button.disabled = true;
            button.textContent = catalog.form.kind === 'create' ? 'Adding Component...' : 'Updating Component...';
            await api('POST', '/api/forms/current/submit', {
                name: document.getElementById('formName').value,
                code: document.getElementById('formCode').value,
            });
        }

        api('GET', '/api/catalog');
    </script>
</body>
</html>
"""


@app.route("/")
def index():
    """Serve the catalog page."""
    return render_template_string(HTML_TEMPLATE)


# ============================================
# AUTH ENDPOINTS
# ============================================


@app.route("/auth/sign-in", methods=["POST"])
def sign_in():
    """Send a magic sign-in link."""
    data = json_body()
    email = data.get("email", "")
    return run_action(lambda view: view.request_sign_in(email))


@app.route("/auth/callback")
def auth_callback():
    """Landing page of the magic link: finish sign-in and go to the catalog."""
    view = get_view()
    with view.lock:
        error_description = request.args.get("error_description")
        if error_description:
            console.print(f"[red]Error in sign-in callback: {error_description}[/red]")
            view.notify("Error", error_description, variant="destructive")
        else:
            view.complete_sign_in(
                token_hash=request.args.get("token_hash"),
                code=request.args.get("code"),
                otp_type=request.args.get("type", "email"),
            )
    return redirect("/")


@app.route("/auth/sign-out", methods=["POST"])
def sign_out():
    """Sign out and forget this browser's catalog data."""
    response = run_action(lambda view: view.sign_out())
    discard_view()
    return response


# ============================================
# CATALOG ENDPOINTS
# ============================================


@app.route("/api/catalog")
def api_catalog():
    """Current catalog snapshot. The first call per browser checks for a session."""
    view = get_view()
    with view.lock:
        if not view.session_checked:
            view.check_session()
        return catalog_response(view)


@app.route("/api/catalog/reload", methods=["POST"])
def reload_catalog():
    """Re-fetch every component from the backend."""
    return run_action(lambda view: view.reload())


@app.route("/api/catalog/search", methods=["POST"])
def search_catalog():
    """Set the free-text search."""
    data = json_body()
    return run_action(lambda view: view.set_search(data.get("query") or ""))


@app.route("/api/catalog/tags/toggle", methods=["POST"])
def toggle_tag():
    """Add or remove a tag from the required-tag filter."""
    data = json_body()
    return run_action(lambda view: view.toggle_tag(data.get("tag") or ""))


@app.route("/api/components/<component_id>/mode", methods=["POST"])
def set_display_mode(component_id):
    """Switch a component between image preview and code."""
    data = json_body()
    mode = str(data.get("mode", ""))
    return run_action(lambda view: view.set_display_mode(component_id, mode))


@app.route("/api/components/<component_id>/copy", methods=["POST"])
def copy_code(component_id):
    """Return a component's code for the clipboard and start the acknowledgment."""
    view = get_view()
    with view.lock:
        view.last_error = None
        code = view.copy_code(component_id)
        return catalog_response(
            view,
            code is not None,
            code=code,
            ack_seconds=view.settings.viewer.copy_ack_seconds,
        )


@app.route("/api/components/<component_id>/delete", methods=["POST"])
def delete_component(component_id):
    """Delete a component. Body: {"confirmation": "<exact component name>"}."""
    data = json_body()
    confirmation = data.get("confirmation", "")
    if not isinstance(confirmation, str):
        confirmation = ""
    return run_action(lambda view: view.delete_component(component_id, confirmation))


# ============================================
# FORM ENDPOINTS
# ============================================


@app.route("/api/forms/create", methods=["POST"])
def open_create_form():
    """Open an empty Add Component form."""
    return run_action(lambda view: view.open_create_form())


@app.route("/api/forms/edit/<component_id>", methods=["POST"])
def open_edit_form(component_id):
    """Open the Edit form pre-filled from a component."""
    return run_action(lambda view: view.open_edit_form(component_id))


@app.route("/api/forms/current", methods=["PATCH"])
def update_form():
    """Record typed values. Body: any of name, code, tag_input."""
    data = json_body()
    return run_action(
        lambda view: view.update_form(
            name=data.get("name"),
            code=data.get("code"),
            tag_input=data.get("tag_input"),
        )
    )


@app.route("/api/forms/current/tags", methods=["POST"])
def form_tags():
    """Tag editor gesture. Body: {"action": add|select|commit|remove|backspace, "value": ...}."""
    data = json_body()
    return run_action(
        lambda view: view.tag_action(str(data.get("action", "")), data.get("value"))
    )


@app.route("/api/forms/current/image", methods=["POST"])
def form_image():
    """Pick the preview image (multipart field "image")."""
    upload = request.files.get("image")

    def action(view: CatalogView):
        if upload is None or not upload.filename:
            return view.select_image(None)
        return view.select_image(
            ImageFile(
                file_name=upload.filename,
                data=upload.read(),
                content_type=upload.mimetype,
            )
        )

    return run_action(action)


@app.route("/api/forms/current/submit", methods=["POST"])
def submit_form():
    """Submit the open form. Optional body {name, code} is applied first."""
    data = json_body()

    def action(view: CatalogView):
        if view.form is not None and ("name" in data or "code" in data):
            if not view.update_form(name=data.get("name"), code=data.get("code")):
                return False
        return view.submit_form()

    return run_action(action)


@app.route("/api/forms/current", methods=["DELETE"])
def close_form():
    """Cancel the open form."""

    def action(view: CatalogView):
        view.close_form()
        return True

    return run_action(action)


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Component Library - browse and manage your UI components"
    )
    parser.add_argument(
        "--host",
        default=config.viewer.host,
        help=f"Host to bind (default: {config.viewer.host})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=config.viewer.port,
        help=f"Port to run the server on (default: {config.viewer.port})",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Run Flask in debug mode",
    )
    return parser.parse_args()


def print_banner(host: str, port: int, connected: Optional[bool]) -> None:
    """Startup banner with the backend status and the URL to open."""
    status = {
        True: "[green]✓ Connected[/green]",
        False: "[yellow]! Bucket not reachable (see warning above)[/yellow]",
        None: "[red]✗ SUPABASE_KEY not set[/red]",
    }[connected]
    console.print(
        Panel.fit(
            f"[bold]COMPONENT LIBRARY[/bold]\n\n"
            f"[dim]Backend:[/dim]  {config.supabase.url}  {status}\n"
            f"[dim]Table:[/dim]    {config.supabase.table}\n"
            f"[dim]Bucket:[/dim]   {config.supabase.bucket}\n\n"
            f"🌐  [underline cyan]http://{host}:{port}[/underline cyan]",
            border_style="bold",
        )
    )
    console.print("[dim]Press CTRL+C to stop the server[/dim]")


if __name__ == "__main__":
    args = parse_args()

    connected: Optional[bool] = None
    try:
        connected = default_gateway_factory().check_bucket()
    except CatalogError as e:
        console.print(f"[red]✗ {e}[/red]")

    print_banner(args.host, args.port, connected)
    app.run(host=args.host, debug=args.debug, port=args.port)
