"""
Apotek Alpro BPT Portal — HTML Templates
Login page and dashboard shell. Page scripts only post events to the API
and render what comes back; tab and iframe state live on the server.
"""

import html
import json
from datetime import date

from src.core import whatsapp
from src.core.campaign_calendar import month_grid
from src.core.tabs import CAMPAIGN_TABS, MAIN_TABS, MONITORING_TABS

BASE_CSS = """
:root{--bg:#f4f7fb;--sf:#fff;--sf2:#eef2f8;--bd:#dbe2ec;--tx:#1f2a37;--tx2:#64748b;
--ac:#0b6e4f;--ac2:#08573e;--gn:#16a34a;--yl:#d97706;--rd:#dc2626;--wa:#25D366;--r:10px}
*{margin:0;padding:0;box-sizing:border-box}
body{font-family:'Segoe UI',system-ui,-apple-system,sans-serif;background:var(--bg);color:var(--tx);min-height:100vh}
a{color:var(--ac);text-decoration:none}
.btn{padding:9px 18px;border-radius:6px;border:1px solid var(--bd);background:var(--sf2);color:var(--tx);cursor:pointer;font-weight:600;font-size:14px}
.btn:hover{border-color:var(--ac)}
.btn-p{background:var(--ac);border-color:var(--ac);color:#fff}
.btn-p:hover{background:var(--ac2)}
.btn-wa{background:var(--wa);border-color:var(--wa);color:#fff}
.card{background:var(--sf);border:1px solid var(--bd);border-radius:var(--r);padding:20px;margin-bottom:16px}
.toast{position:fixed;right:20px;bottom:20px;padding:12px 18px;border-radius:8px;color:#fff;font-size:14px;z-index:1000;box-shadow:0 6px 20px rgba(0,0,0,.15)}
.toast-success{background:var(--gn)}.toast-warning{background:var(--yl)}.toast-error{background:var(--rd)}.toast-info{background:#2563eb}
"""

LOGIN_CSS = """
.login-wrap{max-width:420px;margin:8vh auto;padding:0 16px}
.login-wrap h1{font-size:22px;margin-bottom:4px}
.login-wrap .sub{color:var(--tx2);font-size:13px;margin-bottom:18px}
.login-tabs{display:flex;gap:8px;margin-bottom:16px}
.login-tab{flex:1;padding:10px;border:1px solid var(--bd);border-radius:8px;background:var(--sf2);cursor:pointer;font-weight:600}
.login-tab.active{background:var(--ac);border-color:var(--ac);color:#fff}
label{display:block;font-size:12px;color:var(--tx2);margin:10px 0 4px;text-transform:uppercase;letter-spacing:.5px}
input{width:100%;padding:10px 12px;border:1px solid var(--bd);border-radius:6px;font-size:15px}
input:focus{border-color:var(--ac);outline:none}
.login-btn{width:100%;margin-top:18px}
.login-msg{margin-top:12px;font-size:14px;min-height:20px}
.login-msg.error{color:var(--rd)}.login-msg.success{color:var(--gn)}
"""

DASHBOARD_CSS = """
.hdr{background:var(--sf);border-bottom:2px solid var(--bd);padding:12px 24px;display:flex;justify-content:space-between;align-items:center;gap:12px;flex-wrap:wrap}
.hdr h1{font-size:17px;color:var(--ac)}
.hdr-user{font-size:13px;color:var(--tx2);text-align:right;line-height:1.4}
.hdr-user b{color:var(--tx)}
.nav{display:flex;gap:6px;padding:10px 24px;background:var(--sf);border-bottom:1px solid var(--bd);flex-wrap:wrap}
.nav-item,.sub-tab{padding:8px 14px;border-radius:6px;border:1px solid transparent;cursor:pointer;font-size:14px;background:none;color:var(--tx2)}
.nav-item.active,.sub-tab.active{background:rgba(11,110,79,.1);border-color:var(--ac);color:var(--ac);font-weight:600}
.ctr{max-width:1600px;margin:0 auto;padding:20px 24px}
.tab-pane,.sub-pane{display:none}
.tab-pane.active,.sub-pane.active{display:block}
.sub-tabs{display:flex;gap:6px;margin-bottom:14px;flex-wrap:wrap}
.embed{position:relative;min-height:70vh;background:var(--sf);border:1px solid var(--bd);border-radius:var(--r);overflow:hidden}
.embed iframe{width:100%;height:78vh;border:0;display:none}
.embed.loaded iframe{display:block}
.embed-status{position:absolute;inset:0;display:flex;flex-direction:column;align-items:center;justify-content:center;gap:10px;color:var(--tx2);text-align:center;padding:20px}
.embed.loaded .embed-status{display:none}
.embed-error h3{color:var(--rd)}
.spinner{width:36px;height:36px;border:4px solid var(--bd);border-top-color:var(--ac);border-radius:50%;animation:spin 1s linear infinite}
@keyframes spin{to{transform:rotate(360deg)}}
.placeholder{padding:40px;text-align:center;color:var(--tx2)}
.wa-panel{display:none;position:fixed;right:20px;bottom:80px;width:340px;z-index:900}
.wa-panel.open{display:block}
.wa-overlay{display:none;position:fixed;inset:0;background:rgba(15,23,42,.55);z-index:950;align-items:center;justify-content:center}
.wa-overlay.open{display:flex}
.wa-overlay .card{max-width:440px;width:92%}
.wa-link{display:block;padding:10px 12px;border:1px solid var(--bd);border-radius:8px;margin:8px 0;color:var(--tx)}
.wa-link small{display:block;color:var(--tx2)}
.wa-fab{position:fixed;right:20px;bottom:20px;border-radius:28px;padding:12px 18px;z-index:900}
.cal-head{display:flex;justify-content:space-between;align-items:center;margin-bottom:12px}
.cal-grid{display:grid;grid-template-columns:repeat(7,1fr);gap:4px}
.cal-wd{font-size:12px;color:var(--tx2);text-align:center;padding:4px 0;font-weight:600}
.calendar-day{padding:10px 0;text-align:center;border-radius:6px;background:var(--sf2);cursor:pointer;font-size:14px}
.calendar-day.other-month{opacity:.4;cursor:default}
.calendar-day.today{outline:2px solid var(--ac)}
.calendar-day.has-event{background:rgba(11,110,79,.15);color:var(--ac);font-weight:700}
.chart svg{width:100%;height:auto}
.chart .grid{stroke:var(--bd)}
.chart .line{fill:none;stroke:var(--ac);stroke-width:3}
.chart .pt{fill:var(--ac);stroke:#fff;stroke-width:2}
.chart text{font-size:11px;fill:var(--tx2)}
"""

# Sample monthly trend shown on the Performance Metrics pane.
REVENUE_TREND = (
    ("Jan", 180000), ("Feb", 195000), ("Mar", 210000), ("Apr", 225000), ("May", 240000),
    ("Jun", 235000), ("Jul", 250000), ("Aug", 245000), ("Sep", 245680),
)

# Posts every user action to the API, arms the one timer the server hands out
# per frame, and reports load/error/timer events back.
DASHBOARD_JS = r"""
const VIEW = JSON.parse(document.getElementById('portal-view').textContent);
const timers = {};
let currentMain = VIEW.main;

function notify(text, kind){
  const el = document.createElement('div');
  el.className = 'toast toast-' + (kind || 'info');
  el.textContent = text;
  document.body.appendChild(el);
  setTimeout(() => el.remove(), 3000);
}

async function api(path, body){
  const r = await fetch(path, {method:'POST', credentials:'same-origin',
    headers:{'Content-Type':'application/json'}, body: JSON.stringify(body || {})});
  if (r.status === 401){ window.location.replace('/login'); throw new Error('Not authenticated'); }
  return r.json();
}

function applyClasses(group, active){
  document.querySelectorAll('[data-group="' + group + '"]').forEach(el => {
    el.classList.toggle('active', !!active[el.dataset.tab]);
  });
}

async function switchTab(group, tab){
  const d = await api('/api/tabs', {group: group, tab: tab, online: navigator.onLine});
  if (!d.success){ notify(d.message, 'error'); return; }
  if (group === 'main') currentMain = d.switch.tab;
  applyClasses(group, d.switch.active);
  if (d.frame) renderFrame(d.frame);
}

// ── Iframe loading ──────────────────────────────────────────────────
function frameEvent(name, body){
  return api('/api/embeds/' + encodeURIComponent(name) + '/events', body).then(d => {
    if (d.success) renderFrame(d.frame);
    return d;
  });
}

function renderFrame(f){
  const box = document.getElementById('embed-' + f.name);
  if (!box) return;
  const iframe = box.querySelector('iframe');
  const status = box.querySelector('.embed-status');
  clearTimeout(timers[f.name]);
  delete timers[f.name];

  if (f.state === 'loading' && iframe.dataset.loads !== String(f.loads)){
    iframe.dataset.loads = String(f.loads);
    iframe.src = f.src;
  }
  box.classList.toggle('loaded', f.state === 'loaded');
  if (f.state === 'loaded'){
    notify(f.message, 'success');
  } else if (f.canRetry){
    status.innerHTML = '<div class="embed-error"><h3>Connection Issue</h3><p></p>' +
      '<button class="btn btn-p">Retry</button></div>';
    status.querySelector('p').textContent = f.message;
    status.querySelector('button').onclick = () => frameEvent(f.name, {event:'retry'});
    notify(f.message, 'warning');
  } else if (f.state !== 'idle'){
    status.innerHTML = '<div class="spinner"></div><p></p>';
    status.querySelector('p').textContent = f.message;
  }
  if (f.timer){
    timers[f.name] = setTimeout(() => frameEvent(f.name, {event:'timer', token:f.timer.token}),
                                f.timer.delayMs);
  }
}

function wireFrame(iframe){
  const name = iframe.dataset.frame;
  iframe.addEventListener('load', () => {
    if (!iframe.getAttribute('src')) return;
    let body = {event:'load'};
    try {
      const doc = iframe.contentDocument || iframe.contentWindow.document;
      body.reachable = !!(doc && doc.body && doc.body.innerHTML.length > 0);
    } catch (e) {
      body.crossOrigin = true;  // expected for embedded micro-apps
    }
    frameEvent(name, body);
  });
  iframe.addEventListener('error', () => frameEvent(name, {event:'error', reason:'Failed to load'}));
}

// ── WhatsApp ────────────────────────────────────────────────────────
const STRATEGIES = {
  popup: url => { const w = window.open(url, '_blank', 'width=800,height=600'); return !!(w && !w.closed); },
  anchor: url => { const a = document.createElement('a'); a.href = url; a.target = '_blank';
    a.rel = 'noopener noreferrer'; document.body.appendChild(a); a.click(); a.remove(); return true; },
  form: url => { const f = document.createElement('form'); f.action = url; f.method = 'GET';
    f.target = '_blank'; document.body.appendChild(f); f.submit(); f.remove(); return true; },
  location: url => { window.location.href = url; return true; },
};

// Every strategy on plan.url, then on each alternate, then the fallback panel.
function runPlan(plan){
  const steps = [];
  [plan.url].concat(plan.alternates || []).forEach(url =>
    plan.strategies.forEach(name => steps.push([name, url])));
  function next(){
    const step = steps.shift();
    if (!step){ if (plan.fallback) showFallback(plan.fallback); return; }
    let ok = false;
    try { ok = STRATEGIES[step[0]](step[1]); } catch (e) { ok = false; }
    setTimeout(() => { if (!ok) next(); }, plan.delayMs);
  }
  next();
}

function showFallback(fb){
  const ov = document.getElementById('wa-overlay');
  const list = ov.querySelector('.wa-links');
  list.innerHTML = '';
  fb.links.forEach(l => {
    const a = document.createElement('a');
    a.className = 'wa-link'; a.href = l.url; a.target = '_blank'; a.rel = 'noopener noreferrer';
    a.textContent = l.title;
    const s = document.createElement('small'); s.textContent = l.description; a.appendChild(s);
    list.appendChild(a);
  });
  ov.querySelector('.wa-copy').onclick = () => {
    navigator.clipboard.writeText(fb.copyText).then(
      () => notify('Link copied to clipboard', 'success'),
      () => notify('Copy failed: ' + fb.copyText, 'warning'));
  };
  ov.querySelector('.wa-phone').textContent = fb.phoneDisplay;
  ov.classList.add('open');
}

async function openWhatsApp(body){
  const d = await api('/api/whatsapp/plan', body);
  if (d.success) runPlan(d.plan);
}

window.addEventListener('message', async event => {
  let d;
  try {
    d = await api('/api/frame-messages', {origin: event.origin, data: event.data});
  } catch (e) { return; }
  if (!d.success) return;
  const r = d.response;
  if (r.notify) notify(r.notify, 'info');
  if (r.open) runPlan(r.open);
  if (r.showPanel) document.getElementById('wa-panel').classList.add('open');
  if (r.reply && event.source) event.source.postMessage(r.reply, '*');
});

// ── Campaign calendar ───────────────────────────────────────────────
const calendarBox = document.getElementById('campaign-calendar-box');
async function showMonth(year, month){
  const r = await fetch('/api/calendar?year=' + year + '&month=' + month, {credentials:'same-origin'});
  if (r.status === 401){ window.location.replace('/login'); return; }
  const d = await r.json();
  if (!d.success){ notify(d.message, 'error'); return; }
  calendarBox.innerHTML = d.html;
}
if (calendarBox) calendarBox.addEventListener('click', e => {
  const nav = e.target.closest('[data-cal-year]');
  if (nav){ showMonth(nav.dataset.calYear, nav.dataset.calMonth); return; }
  const day = e.target.closest('.calendar-day');
  if (day && !day.classList.contains('other-month')) notify('Selected date: ' + day.dataset.date, 'info');
});

// ── Shortcuts & auto-refresh ────────────────────────────────────────
document.addEventListener('keydown', e => {
  if ((e.ctrlKey || e.metaKey) && /^[1-9]$/.test(e.key)){
    const tab = VIEW.shortcuts[Number(e.key) - 1];
    if (tab){ e.preventDefault(); switchTab('main', tab); }
  }
  if (e.key === 'Escape') document.querySelectorAll('.toast').forEach(t => t.remove());
});

setInterval(async () => {
  if (currentMain !== 'homepage') return;
  const r = await fetch('/api/user', {credentials:'same-origin'});
  const d = await r.json();
  if (!d.user) window.location.replace('/login');
}, VIEW.refreshMs);

// ── Wiring ──────────────────────────────────────────────────────────
document.querySelectorAll('[data-group][data-tab]').forEach(el => {
  if (el.tagName === 'BUTTON') el.addEventListener('click', () => switchTab(el.dataset.group, el.dataset.tab));
});
document.querySelectorAll('iframe[data-frame]').forEach(wireFrame);
document.querySelectorAll('[data-wa]').forEach(el => el.addEventListener('click', e => {
  e.preventDefault();
  openWhatsApp(el.dataset.wa === 'group' ? {} : {phone: el.dataset.wa});
}));
document.querySelectorAll('[data-close]').forEach(el => el.addEventListener('click', () =>
  document.getElementById(el.dataset.close).classList.remove('open')));
document.getElementById('logout').addEventListener('click', async () => {
  try { await api('/api/logout'); } finally { window.location.replace('/login'); }
});
window.addEventListener('online', () => notify('Back online', 'success'));
window.addEventListener('offline', () => notify('No internet connection detected', 'warning'));
Object.values(VIEW.frames).forEach(renderFrame);
"""

LOGIN_JS = r"""
let loginType = 'outlet';
const LABELS = {outlet: ['Store Code', 'e.g. JKJSTT1'], hq: ['Email', 'name@apotekalpro.id']};
document.querySelectorAll('.login-tab').forEach(btn => btn.addEventListener('click', () => {
  loginType = btn.dataset.type;
  document.querySelectorAll('.login-tab').forEach(b => b.classList.toggle('active', b === btn));
  document.getElementById('username-label').textContent = LABELS[loginType][0];
  document.getElementById('username').placeholder = LABELS[loginType][1];
}));
document.getElementById('login-form').addEventListener('submit', async e => {
  e.preventDefault();
  const msg = document.getElementById('login-msg');
  const username = document.getElementById('username').value.trim();
  const password = document.getElementById('password').value.trim();
  if (!username || !password){ msg.className = 'login-msg error'; msg.textContent = 'Please fill in all fields'; return; }
  try {
    const r = await fetch('/api/login', {method:'POST', credentials:'same-origin',
      headers:{'Content-Type':'application/json'},
      body: JSON.stringify({username: username, password: password, loginType: loginType})});
    const d = await r.json();
    if (d.success){
      msg.className = 'login-msg success'; msg.textContent = 'Welcome, ' + d.user.displayName + '!';
      setTimeout(() => window.location.replace('/dashboard'), 500);
    } else {
      msg.className = 'login-msg error'; msg.textContent = d.message || 'Invalid credentials';
    }
  } catch (err) {
    msg.className = 'login-msg error'; msg.textContent = 'Server error';
  }
});
"""


def _e(value) -> str:
    return html.escape(str(value or ""))


def render_login_page():
    """Outlet / HQ login form."""
    return f"""<!DOCTYPE html>
<html><head>
<meta charset="utf-8"><meta name="viewport" content="width=device-width,initial-scale=1">
<title>Login — Apotek Alpro BPT Portal</title>
<style>{BASE_CSS}{LOGIN_CSS}</style>
</head><body>
<div class="login-wrap"><div class="card">
 <h1>💊 Apotek Alpro</h1>
 <div class="sub">BPT Portal — sign in with your store code or HQ email</div>
 <div class="login-tabs">
  <button type="button" class="login-tab active" data-type="outlet">🏪 Outlet</button>
  <button type="button" class="login-tab" data-type="hq">🏢 HQ</button>
 </div>
 <form id="login-form" autocomplete="on">
  <label id="username-label" for="username">Store Code</label>
  <input id="username" name="username" placeholder="e.g. JKJSTT1" autocomplete="username">
  <label for="password">Password</label>
  <input id="password" name="password" type="password" autocomplete="current-password">
  <button class="btn btn-p login-btn" type="submit">Login</button>
  <div id="login-msg" class="login-msg"></div>
 </form>
</div></div>
<script>{LOGIN_JS}</script>
</body></html>"""


def _embed(name, frame) -> str:
    if frame is None:
        return '<div class="card placeholder">📰 Content coming soon.</div>'
    return f"""<div class="embed" id="embed-{_e(name)}">
 <div class="embed-status"><p>{_e(frame['title'])} loads when you open this tab.</p></div>
 <iframe data-frame="{_e(name)}" title="{_e(frame['title'])}"
   sandbox="allow-scripts allow-same-origin allow-forms allow-popups allow-popups-to-escape-sandbox"
   referrerpolicy="no-referrer"></iframe>
</div>"""


def render_calendar(grid) -> str:
    """Month grid markup; also returned by /api/calendar for month navigation."""
    prev, nxt = grid["prev"], grid["next"]
    head = "".join(f'<div class="cal-wd">{d}</div>' for d in grid["weekdays"])
    days = []
    for cell in grid["days"]:
        css = ["calendar-day"]
        if cell["otherMonth"]:
            css.append("other-month")
        if cell["today"]:
            css.append("today")
        if cell["hasEvent"]:
            css.append("has-event")
        days.append(f'<div class="{" ".join(css)}" data-date="{cell["date"]}">{cell["day"]}</div>')
    cells = "".join(days)
    return f"""<div class="cal-head">
 <button class="btn" data-cal-year="{prev['year']}" data-cal-month="{prev['month']}">‹</button>
 <h3 class="cal-title">{_e(grid['title'])}</h3>
 <button class="btn" data-cal-year="{nxt['year']}" data-cal-month="{nxt['month']}">›</button>
</div>
<div class="cal-grid">{head}{cells}</div>"""


def _line_chart(points, width=640, height=240, pad=40) -> str:
    """Inline SVG line chart of (label, value) points, values shown in thousands."""
    values = [v for _, v in points]
    low, high = min(values), max(values)
    span = (high - low) or 1
    step = (width - 2 * pad) / max(len(points) - 1, 1)

    def y(v):
        return round(height - pad - (v - low) / span * (height - 2 * pad), 1)

    coords = [(round(pad + i * step, 1), y(v)) for i, v in enumerate(values)]
    line = " ".join(f"{x},{yy}" for x, yy in coords)
    dots = "".join(f'<circle class="pt" cx="{x}" cy="{yy}" r="5"><title>{_e(label)}: '
                   f'{value // 1000}K</title></circle>'
                   for (x, yy), (label, value) in zip(coords, points))
    labels = "".join(f'<text x="{x}" y="{height - pad + 18}" text-anchor="middle">{_e(label)}</text>'
                     for (x, _), (label, _) in zip(coords, points))
    ticks = "".join(f'<line class="grid" x1="{pad}" x2="{width - pad}" y1="{y(v)}" y2="{y(v)}"/>'
                    f'<text x="{pad - 6}" y="{y(v) + 4}" text-anchor="end">{v // 1000}K</text>'
                    for v in (low, (low + high) // 2, high))
    return (f'<svg viewBox="0 0 {width} {height}" role="img">{ticks}'
            f'<polyline class="line" points="{line}"/>{dots}{labels}</svg>')


def _tab_button(group, tab, label, active, css="nav-item"):
    cls = f"{css} active" if active else css
    return f'<button class="{cls}" data-group="{group}" data-tab="{tab}">{label}</button>'


def _pane(group, tab, body, active, css="tab-pane"):
    cls = f"{css} active" if active else css
    return f'<section class="{cls}" id="{tab}" data-group="{group}" data-tab="{tab}">{body}</section>'


def render_dashboard_page(user, settings, view):
    """Dashboard shell for a logged-in user. view is the fresh session view state."""
    frames = settings.frames()
    main = view["main"]["current"]
    campaign = view["campaign"]["current"]
    monitoring = view["monitoring"]["current"]

    nav = "".join(_tab_button("main", t, label, t == main) for t, label in (
        ("homepage", "🏠 Homepage"), ("campaign", "📣 Campaign"),
        ("monitoring", "📊 Monitoring"), ("health-news", "📰 Health News"),
        ("tiktok-cuan", "🎵 TikTok Cuan")))

    campaign_titles = {"campaign-calendar": "📅 Calendar"}
    campaign_tabs = "".join(
        _tab_button("campaign", t, _e(campaign_titles.get(t) or frames[t]["title"]),
                    t == campaign, "sub-tab")
        for t in CAMPAIGN_TABS)
    today = date.today()
    grid = month_grid(today.year, today.month, today, settings.calendar_event_days)
    calendar_card = f'<div class="card" id="campaign-calendar-box">{render_calendar(grid)}</div>'
    campaign_panes = "".join(
        _pane("campaign", t, _embed(t, frames.get(t)) if t in frames else calendar_card,
              t == campaign, "sub-pane")
        for t in CAMPAIGN_TABS)

    monitoring_labels = {"tiktok-analytics": "📈 TikTok Analytics",
                         "performance-metrics": "🏁 Performance Metrics"}
    monitoring_tabs = "".join(
        _tab_button("monitoring", t, monitoring_labels[t], t == monitoring, "sub-tab")
        for t in MONITORING_TABS)
    monitoring_bodies = {
        "tiktok-analytics": '<div class="card placeholder">📈 TikTok Analytics — reports '
                            'are shared by the marketing team.</div>',
        "performance-metrics": '<div class="card chart"><h3>Monthly Revenue</h3>'
                               f'{_line_chart(REVENUE_TREND)}</div>',
    }
    monitoring_panes = "".join(
        _pane("monitoring", t, monitoring_bodies[t], t == monitoring, "sub-pane")
        for t in MONITORING_TABS)

    contact = whatsapp.normalize_phone(settings.contact_phone)
    if user.type == "outlet":
        who = f"<b>{_e(user.display_name)}</b><br>{_e(user.full_store_name)} · AM: {_e(user.am)}"
    else:
        who = f"<b>{_e(user.display_name)}</b><br>{_e(user.role)} · {_e(user.email)}"

    homepage = f"""<div class="card">
 <h2>Welcome, {_e(user.display_name)} 👋</h2>
 <p style="color:var(--tx2);margin-top:6px">Campaign materials, monitoring reports, health news
 and the TikTok Cuan program in one place.</p>
</div>
<div class="card">
 <h3>Need help?</h3>
 <p style="margin:8px 0">Contact the marketing team on WhatsApp
 ({_e(whatsapp.format_phone_display(contact))}).</p>
 <a href="{_e(whatsapp.web_url(contact, whatsapp.CONTACT_MESSAGE))}" class="btn btn-wa" data-wa="{_e(contact)}">📱 Chat with Marketing</a>
</div>"""

    body = "".join([
        _pane("main", "homepage", homepage, main == "homepage"),
        _pane("main", "campaign",
              f'<div class="sub-tabs">{campaign_tabs}</div>{campaign_panes}', main == "campaign"),
        _pane("main", "monitoring",
              f'<div class="sub-tabs">{monitoring_tabs}</div>{monitoring_panes}', main == "monitoring"),
        _pane("main", "health-news", _embed("health-news", frames.get("health-news")),
              main == "health-news"),
        _pane("main", "tiktok-cuan", _embed("tiktok", frames.get("tiktok")), main == "tiktok-cuan"),
    ])

    view_json = json.dumps({
        "frames": {n: {"name": n, "state": d["state"], "loads": d["loads"]}
                   for n, d in view["frames"].items()},
        "main": main,
        "shortcuts": list(MAIN_TABS),
        "refreshMs": settings.refresh_minutes * 60 * 1000,
    })
    view_json = view_json.replace("</", "<\\/")

    return f"""<!DOCTYPE html>
<html><head>
<meta charset="utf-8"><meta name="viewport" content="width=device-width,initial-scale=1">
<title>Dashboard — Apotek Alpro BPT Portal</title>
<style>{BASE_CSS}{DASHBOARD_CSS}</style>
</head><body>
<div class="hdr">
 <h1>💊 Apotek Alpro · BPT Portal</h1>
 <div style="display:flex;gap:14px;align-items:center">
  <div class="hdr-user">{who}</div>
  <button class="btn" id="logout">Logout</button>
 </div>
</div>
<nav class="nav">{nav}</nav>
<div class="ctr">{body}</div>

<div class="wa-panel card" id="wa-panel">
 <h3>📱 WhatsApp</h3>
 <p style="margin:8px 0;color:var(--tx2)">Join the TikTok Cuan group or message our team.</p>
 <button class="btn btn-wa" data-wa="group">Join WhatsApp Group</button>
 <button class="btn" data-close="wa-panel">Close</button>
</div>
<button class="btn btn-wa wa-fab" data-wa="group">📱 WhatsApp</button>

<div class="wa-overlay" id="wa-overlay"><div class="card">
 <h3>Could not open WhatsApp</h3>
 <p style="margin:8px 0;color:var(--tx2)">Your network may block it. Try one of these:</p>
 <div class="wa-links"></div>
 <p>Phone: <b class="wa-phone"></b></p>
 <div style="margin-top:12px;display:flex;gap:8px">
  <button class="btn btn-p wa-copy">📋 Copy Link</button>
  <button class="btn" data-close="wa-overlay">Close</button>
 </div>
</div></div>

<script type="application/json" id="portal-view">{view_json}</script>
<script>{DASHBOARD_JS}</script>
</body></html>"""
