"""HTML page shell: login view and dashboard view."""
import json
from typing import Optional

from fastapi import APIRouter, Cookie
from fastapi.responses import HTMLResponse

from vmrunner.auth import SessionGate
from vmrunner.presentation import derive_view
from vmrunner.status import CanonicalState

router = APIRouter()


# Main application page
@router.get("/")
async def index(auth: Optional[str] = Cookie(None)):
    if not SessionGate.is_authenticated(auth):
        return HTMLResponse(LOGIN_PAGE)
    return HTMLResponse(DASHBOARD_PAGE.replace(STATE_VIEWS_MARKER, json.dumps(state_views())))


STATE_VIEWS_MARKER = "/*STATE_VIEWS*/null"


def state_views() -> dict:
    """Display hints per state, keyed by state value ("" when no state is known).

    The page falls back to these whenever it has no fresh view from the server.
    """
    views = {"": derive_view(None, None, False, True)}
    for state in CanonicalState:
        views[state.value] = derive_view(state, None, False, True)
    return {key: view.model_dump(mode="json") for key, view in views.items()}


LOGIN_PAGE = """<!doctype html>
<html>
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Login - Virtual Machine runner</title>
    <style>
      * { box-sizing: border-box; margin: 0; padding: 0; }
      body { font-family: system-ui, -apple-system, sans-serif; background: #f8fafc; color: #0f172a; min-height: 100vh; display: flex; align-items: center; justify-content: center; padding: 16px; }
      .login-container { background: white; border: 1px solid #e2e8f0; border-radius: 12px; padding: 32px; width: 100%; max-width: 400px; box-shadow: 0 1px 3px rgba(0,0,0,0.08); }
      h1 { font-size: 24px; color: #2563eb; margin-bottom: 4px; }
      .subtitle { font-size: 14px; color: #64748b; margin-bottom: 24px; }
      .form-group { margin-bottom: 16px; }
      .form-group label { display: block; font-size: 13px; font-weight: 500; margin-bottom: 6px; }
      .form-group input { width: 100%; padding: 10px; border: 1px solid #cbd5e1; border-radius: 6px; font-size: 14px; }
      .form-group input:focus { outline: none; border-color: #2563eb; }
      .btn { width: 100%; padding: 10px; background: #2563eb; color: white; border: none; border-radius: 6px; cursor: pointer; font-size: 14px; }
      .btn:hover { background: #1d4ed8; }
      .btn:disabled { opacity: 0.6; cursor: default; }
      .error { margin-top: 16px; padding: 10px; background: #fee2e2; color: #b91c1c; border-radius: 6px; font-size: 13px; text-align: center; }
    </style>
  </head>
  <body>
    <div class="login-container">
      <h1>Virtual Machine runner</h1>
      <div class="subtitle">Sign in to continue</div>
      <form id="loginForm">
        <div class="form-group">
          <label>Username</label>
          <input type="text" id="username" autocomplete="username" required autofocus />
        </div>
        <div class="form-group">
          <label>Password</label>
          <input type="password" id="password" autocomplete="current-password" required />
        </div>
        <button type="submit" class="btn">Sign In</button>
      </form>
      <div id="error"></div>
    </div>

    <script>
      document.getElementById('loginForm').addEventListener('submit', async (e) => {
        e.preventDefault();

        const btn = e.target.querySelector('button');
        const errorEl = document.getElementById('error');

        btn.disabled = true;
        btn.textContent = 'Signing in...';
        errorEl.textContent = '';

        try {
          const res = await fetch('/api/auth/login', {
            method: 'POST',
            headers: {'Content-Type': 'application/json'},
            body: JSON.stringify({
              username: document.getElementById('username').value,
              password: document.getElementById('password').value
            })
          });

          if (res.ok) {
            window.location.reload();
          } else {
            const data = await res.json().catch(() => ({}));
            errorEl.innerHTML = '<div class="error"></div>';
            errorEl.firstChild.textContent = data.message || 'Login failed';
          }
        } catch (err) {
          errorEl.innerHTML = '<div class="error"></div>';
          errorEl.firstChild.textContent = 'Error: ' + err.message;
        } finally {
          btn.disabled = false;
          btn.textContent = 'Sign In';
        }
      });
    </script>
  </body>
</html>
"""


DASHBOARD_PAGE = """<!doctype html>
<html>
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Virtual Machine runner</title>
    <style>
      * { box-sizing: border-box; margin: 0; padding: 0; }
      body { font-family: system-ui, -apple-system, sans-serif; background: #f8fafc; color: #0f172a; min-height: 100vh; display: flex; align-items: center; justify-content: center; padding: 16px; }
      .card { background: white; border: 1px solid #e2e8f0; border-radius: 12px; width: 100%; max-width: 672px; padding: 24px; box-shadow: 0 1px 3px rgba(0,0,0,0.08); }
      .header { display: flex; justify-content: space-between; align-items: flex-start; margin-bottom: 28px; }
      .header h1 { font-size: 24px; color: #2563eb; }
      .header p { font-size: 14px; color: #64748b; }
      .logout-btn { background: none; border: none; cursor: pointer; font-size: 13px; color: #64748b; padding: 6px 10px; border-radius: 6px; }
      .logout-btn:hover { background: #f1f5f9; }

      .status-row { display: flex; justify-content: space-between; align-items: center; border: 1px solid #e2e8f0; background: rgba(239,246,255,0.5); border-radius: 8px; padding: 16px; margin-bottom: 24px; }
      .status-title { font-size: 13px; font-weight: 500; color: #1e3a8a; margin-bottom: 4px; }
      .badge { font-size: 11px; font-weight: 600; padding: 2px 8px; border-radius: 999px; border: 1px solid #cbd5e1; }
      .badge.positive { background: #10b981; border-color: #10b981; color: white; }
      .badge.negative { background: #f43f5e; border-color: #f43f5e; color: white; }
      .placeholder { font-size: 13px; color: #64748b; }
      .btn-outline { background: white; border: 1px solid #cbd5e1; border-radius: 6px; padding: 6px 12px; cursor: pointer; font-size: 13px; }
      .btn-outline:disabled { opacity: 0.5; cursor: default; }

      .fields { display: grid; grid-template-columns: 1fr 1fr; gap: 24px; }
      .form-group label { display: block; font-size: 13px; font-weight: 500; margin-bottom: 6px; }
      .form-group input { width: 100%; padding: 14px; border: 1px solid #cbd5e1; border-radius: 6px; font-size: 16px; }
      .token-wrap { position: relative; }
      .token-wrap input { padding-right: 64px; }
      .token-toggle { position: absolute; right: 0; top: 0; height: 100%; width: 60px; background: none; border: none; cursor: pointer; font-size: 12px; color: #64748b; }
      .hint { font-size: 12px; color: #64748b; margin-top: 12px; }

      .actions { display: grid; grid-template-columns: repeat(3, 1fr); gap: 16px; padding-top: 24px; }
      .action { height: 96px; border: none; border-radius: 8px; color: white; font-size: 18px; cursor: pointer; }
      .action:disabled { cursor: default; opacity: 0.6; }
      .action.muted { opacity: 0.45; }
      .action-start { background: #10b981; }
      .action-stop { background: #f43f5e; }
      .action-restart { background: #0f172a; }

      #toasts { position: fixed; bottom: 16px; right: 16px; display: flex; flex-direction: column; gap: 8px; }
      .toast { padding: 10px 14px; border-radius: 6px; font-size: 13px; color: white; background: #334155; box-shadow: 0 2px 6px rgba(0,0,0,0.15); }
      .toast.success { background: #059669; }
      .toast.error { background: #dc2626; }
      .toast.warning { background: #d97706; }

      @media (max-width: 640px) { .fields, .actions { grid-template-columns: 1fr; } }
    </style>
  </head>
  <body>
    <div class="card">
      <div class="header">
        <div>
          <h1>Virtual Machine runner</h1>
          <p>Manage your VM instances securely</p>
        </div>
        <button class="logout-btn" id="logoutBtn" title="Logout">Logout</button>
      </div>

      <div class="status-row">
        <div>
          <div class="status-title">VM Status</div>
          <div id="statusBadge"><span class="placeholder">Enter credentials to see status</span></div>
        </div>
        <button class="btn-outline" id="refreshBtn" disabled>Refresh</button>
      </div>

      <div class="fields">
        <div class="form-group">
          <label for="vmId">VM ID</label>
          <input id="vmId" placeholder="vm-123456" />
        </div>
        <div class="form-group">
          <label for="token">Bearer Token</label>
          <div class="token-wrap">
            <input id="token" type="password" placeholder="Enter your token" />
            <button type="button" class="token-toggle" id="tokenToggle">Show</button>
          </div>
        </div>
      </div>
      <p class="hint">Your credentials are saved automatically in your browser.</p>

      <div class="actions">
        <button class="action action-start" data-action="start">Start</button>
        <button class="action action-stop" data-action="stop">Stop</button>
        <button class="action action-restart" data-action="restart">Restart</button>
      </div>
    </div>
    <div id="toasts"></div>

    <script>
      const vmIdInput = document.getElementById('vmId');
      const tokenInput = document.getElementById('token');
      const refreshBtn = document.getElementById('refreshBtn');
      const actionButtons = document.querySelectorAll('.action');

      const BUSY_CAPTIONS = { start: 'Starting...', stop: 'Stopping...', restart: 'Restarting...' };
      const STATE_VIEWS = /*STATE_VIEWS*/null;

      // Global state
      let state = null;
      let loading = null;
      let fetchingStatus = false;

      vmIdInput.value = localStorage.getItem('vmId') || '';
      tokenInput.value = localStorage.getItem('bearerToken') || '';

      function credentials() {
        return { vmId: vmIdInput.value, token: tokenInput.value };
      }

      function toast(notification) {
        const el = document.createElement('div');
        el.className = 'toast ' + notification.level;
        el.textContent = notification.message;
        document.getElementById('toasts').appendChild(el);
        setTimeout(() => el.remove(), 4000);
      }

      function request(path, body) {
        const { token } = credentials();
        return fetch(path, {
          method: 'POST',
          headers: {
            'Content-Type': 'application/json',
            'Authorization': 'Bearer ' + token
          },
          body: JSON.stringify(body)
        });
      }

      function render(fresh) {
        // Without a fresh view, use the hints for the state we last saw
        const view = fresh || (STATE_VIEWS ? STATE_VIEWS[state || ''] : null);
        const badgeEl = document.getElementById('statusBadge');
        badgeEl.innerHTML = '';
        if (view && view.badge) {
          const badge = document.createElement('span');
          badge.className = 'badge ' + view.badge.tone;
          badge.textContent = view.badge.label;
          badgeEl.appendChild(badge);
        } else if (!state) {
          const span = document.createElement('span');
          span.className = 'placeholder';
          span.textContent = 'Enter credentials to see status';
          badgeEl.appendChild(span);
        }

        const { vmId, token } = credentials();
        refreshBtn.disabled = fetchingStatus || !vmId || !token;
        refreshBtn.textContent = fetchingStatus ? 'Refreshing...' : 'Refresh';

        const buttons = view ? view.buttons : [];
        actionButtons.forEach((btn) => {
          const hint = buttons.find((b) => b.action === btn.dataset.action);
          btn.disabled = loading !== null;
          if (hint) {
            btn.classList.toggle('muted', !hint.emphasized);
          }
        });
      }

      let lastView = null;

      async function fetchStatus() {
        const { vmId, token } = credentials();
        if (!vmId || !token) return;

        fetchingStatus = true;
        render(lastView);
        try {
          const res = await request('/api/vm/status', { vm_id: vmId, state: state });
          if (res.status === 401) {
            window.location.reload();
            return;
          }
          if (!res.ok) {
            throw new Error('status request failed: ' + res.status);
          }
          const data = await res.json();
          if (data.report) {
            state = data.report.state;
          }
          lastView = data.view;
        } catch (err) {
          state = 'offline';
          lastView = null;
        } finally {
          fetchingStatus = false;
          render(lastView);
        }
      }

      async function performAction(action) {
        const { vmId } = credentials();

        loading = action;
        actionButtons.forEach((btn) => {
          if (btn.dataset.action === action) {
            btn.dataset.caption = btn.textContent;
            btn.textContent = BUSY_CAPTIONS[action];
          }
        });
        render(lastView);
        try {
          const res = await request('/api/vm/' + action, { vm_id: vmId, state: state });
          if (res.status === 401) {
            window.location.reload();
            return;
          }
          const outcome = await res.json();
          toast(outcome.notification);
          (outcome.repoll_delays || []).forEach((delay) => {
            setTimeout(() => void fetchStatus(), delay * 1000);
          });
        } catch (err) {
          toast({ level: 'error', message: 'Error connecting to compute service' });
        } finally {
          loading = null;
          actionButtons.forEach((btn) => {
            if (btn.dataset.caption) {
              btn.textContent = btn.dataset.caption;
              delete btn.dataset.caption;
            }
          });
          render(lastView);
        }
      }

      vmIdInput.addEventListener('input', () => {
        localStorage.setItem('vmId', vmIdInput.value);
        render(lastView);
        void fetchStatus();
      });

      tokenInput.addEventListener('input', () => {
        localStorage.setItem('bearerToken', tokenInput.value);
        render(lastView);
        void fetchStatus();
      });

      document.getElementById('tokenToggle').addEventListener('click', (e) => {
        const hidden = tokenInput.type === 'password';
        tokenInput.type = hidden ? 'text' : 'password';
        e.target.textContent = hidden ? 'Hide' : 'Show';
      });

      refreshBtn.addEventListener('click', () => void fetchStatus());

      actionButtons.forEach((btn) => {
        btn.addEventListener('click', () => performAction(btn.dataset.action));
      });

      document.getElementById('logoutBtn').addEventListener('click', async () => {
        // The session cookie is httpOnly, only the server can clear it
        await fetch('/api/auth/logout', { method: 'POST' });
        window.location.reload();
      });

      // Initialize
      render(null);
      void fetchStatus();
    </script>
  </body>
</html>
"""
