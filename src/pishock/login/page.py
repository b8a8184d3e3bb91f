"""HTML page served at the root of the local login endpoint.

The page opens the PiShock login popup, waits for the popup to post the
user's credentials back with ``window.postMessage``, and forwards them
to the local ``/callback`` route. Messages from any origin other than
the login origin are ignored.
"""

from __future__ import annotations

import json
from string import Template

LOGIN_ORIGIN = "https://login.pishock.com"
POPUP_NAME = "pishock_login"

_PAGE_TEMPLATE = Template("""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>PiShock Login</title>
  <style>
    body { font-family: system-ui, sans-serif; margin: 24px; }
    button { padding: 10px 14px; font-size: 14px; }
    #status { margin-top: 14px; }
  </style>
</head>
<body>
  <h2>PiShock Login</h2>
  <p>Click the button to log in. The login window closes automatically once you are done.</p>
  <button id="btn">Login with PiShock</button>
  <div id="status"></div>

<script>
const CALLBACK_URL = $callback_url;
const LOGIN_ORIGIN = $login_origin;
const POPUP_NAME = $popup_name;
let loginWindow = null;

function setStatus(msg) {
  document.getElementById('status').textContent = msg;
}

function closePopup() {
  try { if (loginWindow) loginWindow.close(); } catch (e) {}
}

async function sendToLocal(payload) {
  const res = await fetch(CALLBACK_URL, {
    method: 'POST',
    headers: { 'Content-Type': 'application/json' },
    body: JSON.stringify(payload)
  });
  return res.ok;
}

function receiveMessage(event) {
  if (event.origin !== LOGIN_ORIGIN) {
    return;
  }
  const data = event.data || {};
  const userId = data.id;
  const token = data.token;

  if (!userId || !token) {
    setStatus('Received a message from the login window, but it had no id/token.');
    closePopup();
    return;
  }

  setStatus('Sending credentials to the application...');
  sendToLocal({ id: userId, token: token })
    .then(ok => {
      if (ok) {
        setStatus('Success! You can now return to the application.');
        setTimeout(() => { window.close(); }, 2000);
      } else {
        setStatus('The application rejected the login. Please try again.');
      }
      closePopup();
    })
    .catch(err => {
      setStatus('Could not reach the application: ' + err);
      closePopup();
    });
}

window.addEventListener('message', receiveMessage, false);

function openLoginWindow() {
  setStatus('Opening login window...');
  loginWindow = window.open(
    LOGIN_ORIGIN + '?proto=web',
    POPUP_NAME,
    'toolbar=yes,scrollbars=yes,resizable=yes,width=500,height=800'
  );
  if (!loginWindow) {
    setStatus('Popup blocked. Please allow popups for this page and try again.');
  }
}

document.getElementById('btn').addEventListener('click', openLoginWindow);
</script>
</body>
</html>
""")


def _js_string(value: str) -> str:
    """Encode ``value`` as a JavaScript string literal safe inside <script>."""
    return json.dumps(value).replace("</", "<\\/")


def build_login_page(callback_url: str, login_origin: str = LOGIN_ORIGIN) -> str:
    """Render the login page for the given local callback URL."""
    return _PAGE_TEMPLATE.substitute(
        callback_url=_js_string(callback_url),
        login_origin=_js_string(login_origin.rstrip("/")),
        popup_name=_js_string(POPUP_NAME),
    )
